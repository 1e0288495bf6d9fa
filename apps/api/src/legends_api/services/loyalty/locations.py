"""Location create/update rules: QR token, entry code and QR image upkeep."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from legends_api.models.loyalty import Location
from legends_api.repositories import LocationRepository
from legends_api.services.assets import AssetStorage, render_qr_png
from legends_api.services.codes import generate_qr_token, unique_entry_code
from legends_api.services.errors import InvalidLocation, ValidationFailed

QR_IMAGE_NAME = "location-qr.png"


def _has_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


class LocationService:
    """Administrator-facing location writes.

    Tokens and entry codes are generated when absent and preserved across
    updates unless a valid replacement is supplied. The QR image is
    regenerated whenever the token changes or no image exists; image
    failures are logged and never block the save.
    """

    def __init__(self, db_session: AsyncSession, *, asset_storage: AssetStorage | None = None) -> None:
        self._db = db_session
        self._locations = LocationRepository(db_session)
        self._assets = asset_storage

    async def create_location(
        self,
        *,
        name: str,
        qr_token: str | None = None,
        entry_code: str | None = None,
        is_active: bool = True,
        qr_image_ref: str | None = None,
    ) -> Location:
        if _has_text(qr_token):
            token = qr_token.strip()
            await self._ensure_token_free(token)
        else:
            token = generate_qr_token()
        code = await self._resolve_entry_code(entry_code)

        if not qr_image_ref:
            qr_image_ref = await self._render_and_upload(token)

        location = await self._locations.create(
            name=name,
            qr_token=token,
            entry_code=code,
            is_active=is_active,
            qr_image_ref=qr_image_ref,
        )
        await self._db.commit()
        logger.info("Created location", location_id=str(location.id), entry_code=code)
        return location

    async def update_location(self, location_id: UUID, **changes: Any) -> Location:
        current = await self._locations.find_one(location_id)
        if current is None:
            raise InvalidLocation("Location not found")

        data = dict(changes)
        token_current = current.qr_token

        if not _has_text(data.get("qr_token")):
            data["qr_token"] = token_current if _has_text(token_current) else generate_qr_token()
        else:
            data["qr_token"] = data["qr_token"].strip()
            await self._ensure_token_free(data["qr_token"], exclude_id=current.id)

        if not data.get("entry_code") and current.entry_code:
            data["entry_code"] = current.entry_code
        data["entry_code"] = await self._resolve_entry_code(data.get("entry_code"), exclude_id=current.id)

        token_changed = data["qr_token"] != token_current
        image_missing = not data.get("qr_image_ref") and not current.qr_image_ref
        if token_changed or image_missing:
            uploaded = await self._render_and_upload(data["qr_token"])
            if uploaded:
                data["qr_image_ref"] = uploaded

        if "qr_image_ref" in data and data["qr_image_ref"] is None:
            data.pop("qr_image_ref")

        location = await self._locations.update(current, **data)
        await self._db.commit()
        logger.info(
            "Updated location",
            location_id=str(location.id),
            token_rotated=token_changed,
        )
        return location

    async def _ensure_token_free(self, token: str, *, exclude_id: UUID | None = None) -> None:
        if await self._locations.qr_token_taken(token, exclude_id=exclude_id):
            logger.warning("Rejected QR token already assigned to another location")
            raise ValidationFailed("QR token already in use")

    async def _resolve_entry_code(self, candidate: str | None, *, exclude_id: UUID | None = None) -> str:
        async def taken(code: str) -> bool:
            return await self._locations.entry_code_taken(code, exclude_id=exclude_id)

        return await unique_entry_code(taken, initial=candidate)

    async def _render_and_upload(self, token: str) -> str | None:
        if self._assets is None:
            return None
        try:
            buffer = render_qr_png(token)
            uploaded = await self._assets.upload(
                buffer,
                {"name": QR_IMAGE_NAME, "type": "image/png", "size": len(buffer)},
            )
        except Exception:
            logger.exception("QR image generation failed")
            return None

        asset_id = (uploaded or {}).get("id")
        return str(asset_id) if asset_id else None
