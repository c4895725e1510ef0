from datetime import UTC, date, datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.api.deps import get_session, get_settings
from booking_api.api.schemas.appointment import AvailableSlotsResponse, SlotInfo
from booking_api.core.config import Settings
from booking_api.services.slot_service import SlotCatalog, get_available_slots_for_date

router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/available", response_model=AvailableSlotsResponse)
async def available_slots(
    date_param: date = Query(..., alias="date"),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> AvailableSlotsResponse:
    """Return the bookable slots for the given date, each flagged available or not."""
    catalog = SlotCatalog.from_settings(date_param, datetime.now(UTC), settings)
    day = date_param.isoformat()
    slots_with_availability = await get_available_slots_for_date(session, catalog, day)
    return AvailableSlotsResponse(
        date=day,
        slots=[SlotInfo(time=s, available=avail) for s, avail in slots_with_availability],
    )
