"""Connection API routes: every route acts as the authenticated caller."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cns_network.database import get_db
from cns_network.deps import get_current_user_id
from cns_network.errors import InvalidArgumentError
from cns_network.models.connection import ConnectionStatus
from cns_network.schemas.connection import (
    ConnectionListOut,
    ConnectionOut,
    ConnectionRequestCreate,
    ConnectionStatsOut,
    ConnectionStatusOut,
    MessageOut,
    PendingRequestOut,
    SentRequestOut,
)
from cns_network.services import connection_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/request", response_model=ConnectionOut)
def send_request(
    payload: ConnectionRequestCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Send a connection request to another member."""
    return connection_service.send_request(db, user_id, payload.addressee_id, payload.message)


@router.patch("/{connection_id}/accept", response_model=ConnectionOut)
def accept_request(
    connection_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return connection_service.accept_request(db, connection_id, user_id)


@router.patch("/{connection_id}/decline", response_model=ConnectionOut)
def decline_request(
    connection_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return connection_service.decline_request(db, connection_id, user_id)


@router.delete("/{connection_id}", response_model=MessageOut)
def remove_connection(
    connection_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Remove a connection (hard delete)."""
    return connection_service.remove_connection(db, connection_id, user_id)


@router.get("/", response_model=ConnectionListOut)
def list_connections(
    status_filter: str = Query(ConnectionStatus.accepted.value, alias="status"),
    search: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """List the caller's connections, optionally filtered by status and name."""
    try:
        connection_status = ConnectionStatus(status_filter)
    except ValueError:
        raise InvalidArgumentError(f"Invalid connection status: {status_filter}")
    connections = connection_service.get_connections(db, user_id, connection_status, search)
    return {"connections": connections, "count": len(connections)}


@router.get("/pending", response_model=list[PendingRequestOut])
def pending_requests(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return connection_service.get_pending_requests(db, user_id)


@router.get("/sent", response_model=list[SentRequestOut])
def sent_requests(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return connection_service.get_sent_requests(db, user_id)


@router.get("/stats", response_model=ConnectionStatsOut)
def connection_stats(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return connection_service.get_stats(db, user_id)


@router.get("/status/{other_user_id}", response_model=ConnectionStatusOut)
def connection_status(
    other_user_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Relationship between the caller and another member."""
    return connection_service.get_connection_status(db, user_id, other_user_id)
