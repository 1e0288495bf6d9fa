"""Operator endpoints for managing scan locations."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from legends_api.api.dependencies.integrations import get_asset_storage
from legends_api.api.dependencies.security import require_admin_api_key
from legends_api.db.session import get_session
from legends_api.models.loyalty import Location
from legends_api.services.assets import AssetStorage
from legends_api.services.loyalty import LocationService


router = APIRouter(
    prefix="/admin/locations",
    tags=["Admin"],
    dependencies=[Depends(require_admin_api_key)],
)

_FIELD_MAP = {
    "name": "name",
    "qrToken": "qr_token",
    "entryCode": "entry_code",
    "isActive": "is_active",
    "qrImageRef": "qr_image_ref",
}


class LocationCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    qrToken: Optional[str] = None
    entryCode: Optional[str] = None
    isActive: bool = True
    qrImageRef: Optional[str] = None


class LocationUpdateRequest(BaseModel):
    name: Optional[str] = None
    qrToken: Optional[str] = None
    entryCode: Optional[str] = None
    isActive: Optional[bool] = None
    qrImageRef: Optional[str] = None


class LocationResponse(BaseModel):
    id: UUID
    name: str
    qrToken: str
    entryCode: str
    isActive: bool
    qrImageRef: Optional[str]

    @classmethod
    def from_location(cls, location: Location) -> "LocationResponse":
        return cls(
            id=location.id,
            name=location.name,
            qrToken=location.qr_token,
            entryCode=location.entry_code,
            isActive=bool(location.is_active),
            qrImageRef=location.qr_image_ref,
        )


@router.post("", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
async def create_location(
    payload: LocationCreateRequest,
    db: AsyncSession = Depends(get_session),
    asset_storage: AssetStorage = Depends(get_asset_storage),
) -> LocationResponse:
    location = await LocationService(db, asset_storage=asset_storage).create_location(
        name=payload.name,
        qr_token=payload.qrToken,
        entry_code=payload.entryCode,
        is_active=payload.isActive,
        qr_image_ref=payload.qrImageRef,
    )
    return LocationResponse.from_location(location)


@router.patch("/{location_id}", response_model=LocationResponse)
async def update_location(
    location_id: UUID,
    payload: LocationUpdateRequest,
    db: AsyncSession = Depends(get_session),
    asset_storage: AssetStorage = Depends(get_asset_storage),
) -> LocationResponse:
    changes = {
        _FIELD_MAP[key]: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if not (key in {"name", "isActive"} and value is None)
    }
    location = await LocationService(db, asset_storage=asset_storage).update_location(location_id, **changes)
    return LocationResponse.from_location(location)
