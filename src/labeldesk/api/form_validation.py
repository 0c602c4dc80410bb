"""Lookups and checks backing the release form (no authentication)."""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from labeldesk.core.db import get_db
from labeldesk.core.exceptions import BadRequestError

from ..services.artist_service import ArtistService
from ..services.label_service import LabelService
from ..services.release_service import ReleaseService
from .schemas import ORMResponse

router = APIRouter(prefix="/form-validation", tags=["form-validation"])

GENRES = [
    "Pop", "Rock", "Hip Hop", "R&B", "Country", "Electronic", "Jazz", "Classical",
    "Folk", "Blues", "Reggae", "Punk", "Metal", "Alternative", "Indie", "Dance",
    "House", "Techno", "Trance", "Dubstep", "Ambient", "World", "Latin", "Gospel",
    "Soundtrack", "Comedy", "Spoken Word", "Children", "Holiday", "Other",
]

LANGUAGES = [
    {"code": "en", "name": "English"},
    {"code": "es", "name": "Spanish"},
    {"code": "fr", "name": "French"},
    {"code": "de", "name": "German"},
    {"code": "it", "name": "Italian"},
    {"code": "pt", "name": "Portuguese"},
    {"code": "ru", "name": "Russian"},
    {"code": "ja", "name": "Japanese"},
    {"code": "ko", "name": "Korean"},
    {"code": "zh", "name": "Chinese"},
    {"code": "ar", "name": "Arabic"},
    {"code": "hi", "name": "Hindi"},
    {"code": "other", "name": "Other"},
]


class UpcRequest(BaseModel):
    upc: Optional[str] = None


class UpcValidationResponse(BaseModel):
    valid: bool
    message: str


class NamedOption(ORMResponse):
    id: UUID
    name: str


async def _check_upc(upc: Optional[str], db: AsyncSession) -> UpcValidationResponse:
    upc = (upc or "").strip()
    if not upc:
        raise BadRequestError("UPC code is required")

    existing = await ReleaseService(db).find_by_upc(upc)
    if existing:
        return UpcValidationResponse(valid=False, message=f"UPC code already exists for release: {existing.title}")
    return UpcValidationResponse(valid=True, message="UPC code is available")


@router.get("/validate-upc", response_model=UpcValidationResponse)
async def validate_upc(
    upc: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
) -> UpcValidationResponse:
    """Report whether a UPC is still free."""
    return await _check_upc(upc, db)


@router.post("/validate-upc", response_model=UpcValidationResponse)
async def validate_upc_body(
    body: UpcRequest,
    db: AsyncSession = Depends(get_db)
) -> UpcValidationResponse:
    return await _check_upc(body.upc, db)


@router.get("/artists")
async def artist_options(
    search: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """Up to 50 artists for the form dropdown, by name."""
    artists = await ArtistService(db).search_artist_names(search)
    return {"artists": [NamedOption.model_validate(a) for a in artists]}


@router.get("/labels")
async def label_options(
    search: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
) -> dict:
    labels = await LabelService(db).search_label_names(search)
    return {"labels": [NamedOption.model_validate(label) for label in labels]}


@router.get("/genres")
async def genres() -> dict:
    return {"genres": GENRES}


@router.get("/languages")
async def languages() -> dict:
    return {"languages": LANGUAGES}
