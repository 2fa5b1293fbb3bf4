from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Optional
from proptrack.api.responses import success, paginated
from proptrack.core.auth import get_current_user_id
from proptrack.core.database import get_db
from proptrack.core.exceptions import PropTrackError
from proptrack.models.client import (
    ClientCreate, ClientUpdate, ClientFilters, ClientStatus, ClientStatusUpdate,
    ClientPriorityUpdate, ClientNoteCreate, FollowUpUpdate
)
from proptrack.modules.common.filters import split_csv
from proptrack.modules.clients.service import ClientService
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def get_client_service(db: Session = Depends(get_db)) -> ClientService:
    return ClientService(db)


def _internal_error(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


@router.get("")
async def get_clients(
    search: Optional[str] = Query(None, description="Free text over name, email and message"),
    client_status: Optional[str] = Query(None, alias="status", description="Comma separated"),
    priority: Optional[str] = Query(None, description="Comma separated"),
    inquiry_type: Optional[str] = Query(None, alias="inquiryType"),
    property_id: Optional[str] = Query(None, alias="propertyId"),
    source: Optional[str] = Query(None),
    is_active: bool = Query(True, alias="isActive"),
    sort: str = Query("-createdAt"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user_id: str = Depends(get_current_user_id),
    client_service: ClientService = Depends(get_client_service)
):
    """List inquiries with filtering, sorting and pagination."""
    criteria = ClientFilters(
        search=search,
        status=split_csv(client_status),
        priority=split_csv(priority),
        inquiry_type=inquiry_type,
        property_id=property_id,
        source=source,
        is_active=is_active,
        sort=sort,
        page=page,
        limit=limit,
    )
    try:
        clients, total = await client_service.list_clients(criteria)
        return paginated(clients, criteria, total, "totalClients")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to get clients: {e}")
        raise _internal_error("Error fetching clients")


@router.get("/stats/overview")
async def get_client_stats(
    current_user_id: str = Depends(get_current_user_id),
    client_service: ClientService = Depends(get_client_service)
):
    try:
        return success(await client_service.get_stats())

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to get client stats: {e}")
        raise _internal_error("Error fetching client statistics")


@router.get("/followups/due")
async def get_due_follow_ups(
    current_user_id: str = Depends(get_current_user_id),
    client_service: ClientService = Depends(get_client_service)
):
    try:
        return success(await client_service.get_due_follow_ups())

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to get follow-ups: {e}")
        raise _internal_error("Error fetching follow-up reminders")


@router.get("/urgent/list")
async def get_urgent_clients(
    limit: int = Query(10, ge=1, le=100),
    current_user_id: str = Depends(get_current_user_id),
    client_service: ClientService = Depends(get_client_service)
):
    try:
        return success(await client_service.get_urgent_clients(limit))

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to get urgent clients: {e}")
        raise _internal_error("Error fetching urgent clients")


@router.get("/property/{property_id}")
async def get_clients_for_property(
    property_id: str,
    client_status: Optional[ClientStatus] = Query(None, alias="status"),
    limit: int = Query(10, ge=1, le=100),
    current_user_id: str = Depends(get_current_user_id),
    client_service: ClientService = Depends(get_client_service)
):
    try:
        return success(await client_service.get_clients_for_property(property_id, client_status, limit))

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to get clients for property {property_id}: {e}")
        raise _internal_error("Error fetching clients for property")


@router.get("/{client_id}")
async def get_client(
    client_id: str,
    current_user_id: str = Depends(get_current_user_id),
    client_service: ClientService = Depends(get_client_service)
):
    try:
        return success(await client_service.get_client(client_id))

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to get client {client_id}: {e}")
        raise _internal_error("Error fetching client")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_client(
    client_data: ClientCreate,
    client_service: ClientService = Depends(get_client_service)
):
    """
    Submit a property inquiry.

    Public endpoint used by the listing page; the property must exist.
    """
    try:
        created = await client_service.create_client(client_data)
        return success(created, "Inquiry submitted successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to create client: {e}")
        raise _internal_error("Error submitting inquiry")


@router.put("/{client_id}")
async def update_client(
    client_id: str,
    client_data: ClientUpdate,
    current_user_id: str = Depends(get_current_user_id),
    client_service: ClientService = Depends(get_client_service)
):
    try:
        updated = await client_service.update_client(client_id, client_data)
        return success(updated, "Client updated successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to update client {client_id}: {e}")
        raise _internal_error("Error updating client")


@router.delete("/{client_id}")
async def delete_client(
    client_id: str,
    current_user_id: str = Depends(get_current_user_id),
    client_service: ClientService = Depends(get_client_service)
):
    """Deactivate the client; the record is kept with ``isActive=false``."""
    try:
        await client_service.deactivate_client(client_id)
        return success(message="Client deleted successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to delete client {client_id}: {e}")
        raise _internal_error("Error deleting client")


@router.patch("/{client_id}/deactivate")
async def deactivate_client(
    client_id: str,
    current_user_id: str = Depends(get_current_user_id),
    client_service: ClientService = Depends(get_client_service)
):
    try:
        deactivated = await client_service.deactivate_client(client_id)
        return success(deactivated, "Client deactivated successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to deactivate client {client_id}: {e}")
        raise _internal_error("Error deactivating client")


@router.patch("/{client_id}/status")
async def update_client_status(
    client_id: str,
    status_data: ClientStatusUpdate,
    current_user_id: str = Depends(get_current_user_id),
    client_service: ClientService = Depends(get_client_service)
):
    try:
        updated = await client_service.update_status(client_id, status_data.status)
        return success(updated, "Client status updated successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to update status for client {client_id}: {e}")
        raise _internal_error("Error updating client status")


@router.patch("/{client_id}/priority")
async def update_client_priority(
    client_id: str,
    priority_data: ClientPriorityUpdate,
    current_user_id: str = Depends(get_current_user_id),
    client_service: ClientService = Depends(get_client_service)
):
    try:
        updated = await client_service.update_priority(client_id, priority_data.priority)
        return success(updated, "Client priority updated successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to update priority for client {client_id}: {e}")
        raise _internal_error("Error updating client priority")


@router.patch("/{client_id}/followup")
async def schedule_follow_up(
    client_id: str,
    follow_up: FollowUpUpdate,
    current_user_id: str = Depends(get_current_user_id),
    client_service: ClientService = Depends(get_client_service)
):
    try:
        updated = await client_service.schedule_follow_up(client_id, follow_up.follow_up_date)
        return success(updated, "Follow-up scheduled successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to schedule follow-up for client {client_id}: {e}")
        raise _internal_error("Error scheduling follow-up")


@router.post("/{client_id}/notes")
async def add_client_note(
    client_id: str,
    note_data: ClientNoteCreate,
    current_user_id: str = Depends(get_current_user_id),
    client_service: ClientService = Depends(get_client_service)
):
    try:
        updated = await client_service.add_note(client_id, note_data)
        return success(updated, "Note added successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to add note to client {client_id}: {e}")
        raise _internal_error("Error adding note")
