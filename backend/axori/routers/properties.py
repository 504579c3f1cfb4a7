"""Property endpoints backing the add-property wizard.

Endpoints:
  POST /api/properties                    → create a draft (wizard step 1)
  PUT  /api/properties/{id}               → update the draft (later steps)
  POST /api/properties/{id}/complete      → mark active (final step)
  GET  /api/properties/{id}/market-data   → cached or fresh enrichment

Properties are visible only to the user who added them.
"""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from axori.auth.deps import get_current_user_id
from axori.database import get_db, utcnow
from axori.middleware.exceptions import BusinessLogicError, ResourceNotFoundError
from axori.models.property import Property
from axori.schemas.property import MarketDataOut, PropertyOut, PropertyWrite
from axori.services.market_data import fetch_market_data, is_cache_fresh

router = APIRouter()


class PropertyEnvelope(BaseModel):
    property: PropertyOut


# ── Helpers ──────────────────────────────────────────────────

async def _get_owned_property(db: AsyncSession, property_id: str, user_id: str) -> Property:
    result = await db.execute(
        select(Property).where(Property.id == property_id, Property.user_id == user_id)
    )
    prop = result.scalar_one_or_none()
    if not prop:
        raise ResourceNotFoundError("Property", property_id)
    return prop


def _apply(prop: Property, body: PropertyWrite) -> None:
    data = body.model_dump(
        exclude={"portfolio_id", "characteristics", "valuation", "acquisition",
                 "loan", "rental_income", "management"},
        exclude_unset=True,
    )
    for k, v in data.items():
        setattr(prop, k, v)
    # Merge so a step that omits a block doesn't wipe another step's data
    prop.details = {**(prop.details or {}), **body.details()}


# ── POST /api/properties ─────────────────────────────────────

@router.post("", response_model=PropertyEnvelope, status_code=status.HTTP_201_CREATED)
async def create_property(
    body: PropertyWrite,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Create a draft property from the wizard's first step."""
    if not body.portfolio_id:
        raise BusinessLogicError("Portfolio ID is required", error_code="PORTFOLIO_REQUIRED")

    prop = Property(
        portfolio_id=body.portfolio_id,
        user_id=user_id,
        added_by=user_id,
        status="draft",
        details={},
    )
    _apply(prop, body)
    db.add(prop)
    await db.flush()
    await db.refresh(prop)
    return PropertyEnvelope(property=PropertyOut.model_validate(prop))


# ── PUT /api/properties/{id} ─────────────────────────────────

@router.put("/{property_id}", response_model=PropertyEnvelope)
async def update_property(
    property_id: str,
    body: PropertyWrite,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    prop = await _get_owned_property(db, property_id, user_id)
    _apply(prop, body)
    await db.flush()
    await db.refresh(prop)
    return PropertyEnvelope(property=PropertyOut.model_validate(prop))


# ── POST /api/properties/{id}/complete ───────────────────────

@router.post("/{property_id}/complete", response_model=PropertyEnvelope)
async def complete_property(
    property_id: str,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Finalize a draft. Completing an active property is a no-op."""
    prop = await _get_owned_property(db, property_id, user_id)
    if prop.status != "active":
        prop.status = "active"
        await db.flush()
        await db.refresh(prop)
    return PropertyEnvelope(property=PropertyOut.model_validate(prop))


# ── GET /api/properties/{id}/market-data ─────────────────────

@router.get("/{property_id}/market-data", response_model=MarketDataOut)
async def get_market_data(
    property_id: str,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    prop = await _get_owned_property(db, property_id, user_id)

    if is_cache_fresh(prop):
        return MarketDataOut(data=prop.market_data, cached=True, fetched_at=prop.market_data_fetched_at)

    data = await fetch_market_data(prop)
    prop.market_data = data
    prop.market_data_fetched_at = utcnow()
    await db.flush()
    return MarketDataOut(data=data, cached=False, fetched_at=prop.market_data_fetched_at)
