from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime
from proptrack.api.responses import success, paginated
from proptrack.core.auth import get_current_user_id
from proptrack.core.database import get_db
from proptrack.core.exceptions import PropTrackError
from proptrack.models.viewing import (
    ViewingCreate, ViewingUpdate, ViewingFilters, ViewingStatus, ViewingStatusUpdate,
    RescheduleRequest, CancelRequest, ViewingNoteCreate, AvailabilityRequest
)
from proptrack.modules.common.filters import split_csv
from proptrack.modules.viewings.service import ViewingService
import logging

logger = logging.getLogger(__name__)

# Every viewing endpoint is agent-only
router = APIRouter(dependencies=[Depends(get_current_user_id)])


def get_viewing_service(db: Session = Depends(get_db)) -> ViewingService:
    return ViewingService(db)


def _internal_error(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


@router.get("")
async def get_viewings(
    search: Optional[str] = Query(None, description="Free text over notes and special instructions"),
    viewing_status: Optional[str] = Query(None, alias="status", description="Comma separated"),
    priority: Optional[str] = Query(None),
    viewing_type: Optional[str] = Query(None, alias="type"),
    property_id: Optional[str] = Query(None, alias="propertyId"),
    client_id: Optional[str] = Query(None, alias="clientId"),
    date_from: Optional[datetime] = Query(None, alias="dateFrom"),
    date_to: Optional[datetime] = Query(None, alias="dateTo"),
    is_active: bool = Query(True, alias="isActive"),
    sort: str = Query("scheduledDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    viewing_service: ViewingService = Depends(get_viewing_service)
):
    """List viewings with filtering, sorting and pagination."""
    criteria = ViewingFilters(
        search=search,
        status=split_csv(viewing_status),
        priority=priority,
        viewing_type=viewing_type,
        property_id=property_id,
        client_id=client_id,
        date_from=date_from,
        date_to=date_to,
        is_active=is_active,
        sort=sort,
        page=page,
        limit=limit,
    )
    try:
        viewings, total = await viewing_service.list_viewings(criteria)
        return paginated(viewings, criteria, total, "totalViewings")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to get viewings: {e}")
        raise _internal_error("Error fetching viewings")


@router.get("/today/list")
async def get_today_viewings(viewing_service: ViewingService = Depends(get_viewing_service)):
    try:
        return success(await viewing_service.get_today_viewings())

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to get today's viewings: {e}")
        raise _internal_error("Error fetching today's viewings")


@router.get("/upcoming/list")
async def get_upcoming_viewings(
    days: int = Query(7, ge=1, le=365),
    viewing_service: ViewingService = Depends(get_viewing_service)
):
    try:
        return success(await viewing_service.get_upcoming_viewings(days))

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to get upcoming viewings: {e}")
        raise _internal_error("Error fetching upcoming viewings")


@router.get("/stats/overview")
async def get_viewing_stats(viewing_service: ViewingService = Depends(get_viewing_service)):
    try:
        return success(await viewing_service.get_stats())

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to get viewing stats: {e}")
        raise _internal_error("Error fetching viewing statistics")


@router.get("/property/{property_id}")
async def get_property_viewings(
    property_id: str,
    viewing_status: Optional[ViewingStatus] = Query(None, alias="status"),
    limit: int = Query(10, ge=1, le=100),
    viewing_service: ViewingService = Depends(get_viewing_service)
):
    try:
        return success(await viewing_service.get_property_viewings(property_id, viewing_status, limit))

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to get viewings for property {property_id}: {e}")
        raise _internal_error("Error fetching viewings for property")


@router.get("/client/{client_id}")
async def get_client_viewings(
    client_id: str,
    viewing_status: Optional[ViewingStatus] = Query(None, alias="status"),
    limit: int = Query(10, ge=1, le=100),
    viewing_service: ViewingService = Depends(get_viewing_service)
):
    try:
        return success(await viewing_service.get_client_viewings(client_id, viewing_status, limit))

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to get viewings for client {client_id}: {e}")
        raise _internal_error("Error fetching viewings for client")


@router.post("/availability")
async def check_availability(
    request: AvailabilityRequest,
    viewing_service: ViewingService = Depends(get_viewing_service)
):
    """
    Check whether a slot is free for a property.

    When it is taken, up to five free times on the same day are suggested,
    scanning every 30 minutes from 9:00 AM to 6:00 PM.
    """
    try:
        return success(await viewing_service.check_availability(request))

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to check availability: {e}")
        raise _internal_error("Error checking availability")


@router.get("/{viewing_id}")
async def get_viewing(
    viewing_id: str,
    viewing_service: ViewingService = Depends(get_viewing_service)
):
    try:
        return success(await viewing_service.get_viewing(viewing_id))

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to get viewing {viewing_id}: {e}")
        raise _internal_error("Error fetching viewing")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_viewing(
    viewing_data: ViewingCreate,
    viewing_service: ViewingService = Depends(get_viewing_service)
):
    """
    Schedule a viewing.

    Rejected with 400 when another active viewing of the same property
    conflicts with the requested slot.
    """
    try:
        created = await viewing_service.create_viewing(viewing_data)
        return success(created, "Viewing scheduled successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to create viewing: {e}")
        raise _internal_error("Error scheduling viewing")


@router.put("/{viewing_id}")
async def update_viewing(
    viewing_id: str,
    viewing_data: ViewingUpdate,
    viewing_service: ViewingService = Depends(get_viewing_service)
):
    try:
        updated = await viewing_service.update_viewing(viewing_id, viewing_data)
        return success(updated, "Viewing updated successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to update viewing {viewing_id}: {e}")
        raise _internal_error("Error updating viewing")


@router.delete("/{viewing_id}")
async def delete_viewing(
    viewing_id: str,
    viewing_service: ViewingService = Depends(get_viewing_service)
):
    try:
        await viewing_service.delete_viewing(viewing_id)
        return success(message="Viewing deleted successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to delete viewing {viewing_id}: {e}")
        raise _internal_error("Error deleting viewing")


@router.patch("/{viewing_id}/status")
async def update_viewing_status(
    viewing_id: str,
    status_data: ViewingStatusUpdate,
    viewing_service: ViewingService = Depends(get_viewing_service)
):
    try:
        updated = await viewing_service.update_status(viewing_id, status_data)
        return success(updated, "Viewing status updated successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to update status for viewing {viewing_id}: {e}")
        raise _internal_error("Error updating viewing status")


@router.patch("/{viewing_id}/reschedule")
async def reschedule_viewing(
    viewing_id: str,
    reschedule_data: RescheduleRequest,
    viewing_service: ViewingService = Depends(get_viewing_service)
):
    try:
        updated = await viewing_service.reschedule(viewing_id, reschedule_data)
        return success(updated, "Viewing rescheduled successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to reschedule viewing {viewing_id}: {e}")
        raise _internal_error("Error rescheduling viewing")


@router.patch("/{viewing_id}/cancel")
async def cancel_viewing(
    viewing_id: str,
    cancel_data: Optional[CancelRequest] = None,
    viewing_service: ViewingService = Depends(get_viewing_service)
):
    try:
        reason = cancel_data.reason if cancel_data else None
        cancelled = await viewing_service.cancel(viewing_id, reason)
        return success(cancelled, "Viewing cancelled successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to cancel viewing {viewing_id}: {e}")
        raise _internal_error("Error cancelling viewing")


@router.post("/{viewing_id}/notes")
async def add_viewing_note(
    viewing_id: str,
    note_data: ViewingNoteCreate,
    viewing_service: ViewingService = Depends(get_viewing_service)
):
    try:
        updated = await viewing_service.add_note(viewing_id, note_data)
        return success(updated, "Note added successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to add note to viewing {viewing_id}: {e}")
        raise _internal_error("Error adding note")
