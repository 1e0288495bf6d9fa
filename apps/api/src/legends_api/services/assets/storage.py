"""Binary asset storage for generated images."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol
from uuid import uuid4


class AssetStorage(Protocol):
    """Minimal protocol for persisting uploaded binaries."""

    async def upload(self, buffer: bytes, metadata: dict[str, Any]) -> dict[str, Any]:
        ...


class LocalAssetStorage:
    """Writes assets below a directory on local disk."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    async def upload(self, buffer: bytes, metadata: dict[str, Any]) -> dict[str, Any]:
        asset_id = uuid4().hex
        suffix = Path(str(metadata.get("name") or "asset.bin")).suffix or ".bin"
        path = self._root / f"{asset_id}{suffix}"
        await asyncio.to_thread(self._write, path, buffer)
        return {"id": asset_id, "path": str(path), "size": len(buffer)}

    @staticmethod
    def _write(path: Path, buffer: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(buffer)


@dataclass
class StoredAsset:
    id: str
    payload: bytes
    metadata: dict[str, Any] = field(default_factory=dict)


class InMemoryAssetStorage:
    """Test backend keeping uploads in memory."""

    def __init__(self) -> None:
        self.assets: dict[str, StoredAsset] = {}

    async def upload(self, buffer: bytes, metadata: dict[str, Any]) -> dict[str, Any]:
        asset_id = uuid4().hex
        self.assets[asset_id] = StoredAsset(id=asset_id, payload=buffer, metadata=dict(metadata))
        return {"id": asset_id, "size": len(buffer)}
