"""Asset storage and QR rendering."""

from .qr import render_qr_png
from .storage import AssetStorage, InMemoryAssetStorage, LocalAssetStorage

__all__ = ["AssetStorage", "InMemoryAssetStorage", "LocalAssetStorage", "render_qr_png"]
