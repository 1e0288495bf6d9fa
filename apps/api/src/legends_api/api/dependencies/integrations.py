"""Providers for outbound integrations, overridable in tests."""

from __future__ import annotations

from functools import lru_cache

from legends_api.core.settings import settings
from legends_api.services.assets import AssetStorage, LocalAssetStorage
from legends_api.services.notifications import EmailBackend, build_email_backend


@lru_cache
def _default_email_backend() -> EmailBackend | None:
    return build_email_backend()


def get_email_backend() -> EmailBackend | None:
    return _default_email_backend()


def get_asset_storage() -> AssetStorage:
    return LocalAssetStorage(settings.asset_storage_path)
