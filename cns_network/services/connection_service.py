"""Connection service: request lifecycle between two members.

A pair of users owns at most one Connection row, whichever side sent the
request. The addressee alone answers a pending request; either party may
remove the connection, which deletes the row.
"""
import logging
from typing import Any, Optional

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from cns_network.clock import utcnow
from cns_network.database import contains_pattern
from cns_network.errors import (
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
)
from cns_network.models.connection import Connection, ConnectionStatus, ordered_pair
from cns_network.models.user import User
from cns_network.services.projections import user_summary

logger = logging.getLogger(__name__)


def _find_pair(db: Session, user_a: str, user_b: str) -> Optional[Connection]:
    low, high = ordered_pair(user_a, user_b)
    return (
        db.query(Connection)
        .filter(Connection.user_low_id == low, Connection.user_high_id == high)
        .first()
    )


def _reject_existing(existing: Connection) -> None:
    """Raise the error matching an existing connection that blocks a new request."""
    if existing.status == ConnectionStatus.blocked:
        raise ForbiddenError("Cannot connect with this user")
    if existing.status == ConnectionStatus.accepted:
        raise ConflictError("Already connected", connection_id=existing.id)
    if existing.status == ConnectionStatus.pending:
        raise ConflictError(
            "Connection request already pending",
            connection_id=existing.id,
            requester_id=existing.requester_id,
        )


def _get_connection(db: Session, connection_id: str) -> Connection:
    connection = db.query(Connection).filter(Connection.id == connection_id).first()
    if not connection:
        raise NotFoundError("Connection not found")
    return connection


def send_request(
    db: Session,
    requester_id: str,
    addressee_id: str,
    message: Optional[str] = None,
) -> Connection:
    """Create a PENDING connection from requester to addressee."""
    if requester_id == addressee_id:
        raise InvalidArgumentError("Cannot connect to yourself")

    if not db.query(User).filter(User.id == requester_id).first():
        raise NotFoundError("User not found", user_id=requester_id)
    if not db.query(User).filter(User.id == addressee_id).first():
        raise NotFoundError("User not found", user_id=addressee_id)

    existing = _find_pair(db, requester_id, addressee_id)
    if existing:
        _reject_existing(existing)
        # A declined request makes room for a fresh one; the pair keeps a single row
        db.delete(existing)
        db.flush()

    low, high = ordered_pair(requester_id, addressee_id)
    connection = Connection(
        requester_id=requester_id,
        addressee_id=addressee_id,
        user_low_id=low,
        user_high_id=high,
        status=ConnectionStatus.pending,
        request_message=message,
        last_action_by=requester_id,
    )
    db.add(connection)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        winner = _find_pair(db, requester_id, addressee_id)
        if winner is None:
            raise
        # Another request for the same pair committed first
        logger.warning("Lost connection insert race for pair %s/%s", requester_id, addressee_id)
        _reject_existing(winner)
        raise ConflictError("Connection request already pending", connection_id=winner.id)

    db.refresh(connection)
    logger.info("Connection request %s sent by %s to %s", connection.id, requester_id, addressee_id)
    return connection


def _respond(
    db: Session,
    connection_id: str,
    acting_user_id: str,
    new_status: ConnectionStatus,
) -> Connection:
    connection = _get_connection(db, connection_id)

    # Only the receiving party may respond
    if connection.addressee_id != acting_user_id:
        raise ForbiddenError("Only the addressee can respond to this request")

    if connection.status != ConnectionStatus.pending:
        raise InvalidStateError(
            "Connection not pending",
            current_status=connection.status.value,
        )

    now = utcnow()
    values: dict[str, Any] = {
        "status": new_status,
        "last_action_by": acting_user_id,
        "updated_at": now,
    }
    if new_status == ConnectionStatus.accepted:
        values["accepted_at"] = now

    result = db.execute(
        update(Connection)
        .where(Connection.id == connection_id, Connection.status == ConnectionStatus.pending)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        raise InvalidStateError("Connection not pending")
    db.commit()
    db.refresh(connection)
    logger.info("Connection %s %s by %s", connection_id, new_status.value, acting_user_id)
    return connection


def accept_request(db: Session, connection_id: str, acting_user_id: str) -> Connection:
    return _respond(db, connection_id, acting_user_id, ConnectionStatus.accepted)


def decline_request(db: Session, connection_id: str, acting_user_id: str) -> Connection:
    return _respond(db, connection_id, acting_user_id, ConnectionStatus.declined)


def remove_connection(db: Session, connection_id: str, acting_user_id: str) -> dict[str, str]:
    """Hard-delete a connection; either party may do it."""
    connection = _get_connection(db, connection_id)
    if acting_user_id not in (connection.requester_id, connection.addressee_id):
        raise ForbiddenError("Not a party to this connection")

    db.delete(connection)
    db.commit()
    logger.info("Connection %s removed by %s", connection_id, acting_user_id)
    return {"message": "Connection removed"}


def _involving(user_id: str):
    return or_(Connection.requester_id == user_id, Connection.addressee_id == user_id)


def get_connections(
    db: Session,
    user_id: str,
    status: ConnectionStatus = ConnectionStatus.accepted,
    search: Optional[str] = None,
) -> list[dict[str, Any]]:
    """Connections of ``user_id`` projected onto the other party."""
    query = (
        db.query(Connection)
        .options(joinedload(Connection.requester), joinedload(Connection.addressee))
        .filter(Connection.status == status, _involving(user_id))
    )
    if search:
        # Match the other party's full name
        pattern = contains_pattern(search.lower())
        other = select(User.id).where(
            func.lower(User.first_name + " " + User.last_name).like(pattern, escape="\\")
        )
        query = query.filter(
            or_(
                and_(Connection.requester_id == user_id, Connection.addressee_id.in_(other)),
                and_(Connection.addressee_id == user_id, Connection.requester_id.in_(other)),
            )
        )

    connections = query.order_by(Connection.updated_at.desc()).all()
    return [
        {
            "id": conn.id,
            "user": user_summary(
                conn.addressee if conn.requester_id == user_id else conn.requester
            ),
            "connected_since": conn.accepted_at or conn.created_at,
            "status": conn.status.value,
        }
        for conn in connections
    ]


def get_pending_requests(db: Session, user_id: str) -> list[dict[str, Any]]:
    """Requests waiting for ``user_id`` to answer, newest first."""
    requests = (
        db.query(Connection)
        .options(joinedload(Connection.requester))
        .filter(Connection.addressee_id == user_id, Connection.status == ConnectionStatus.pending)
        .order_by(Connection.created_at.desc())
        .all()
    )
    return [
        {
            "id": req.id,
            "requester": user_summary(req.requester),
            "message": req.request_message,
            "created_at": req.created_at,
        }
        for req in requests
    ]


def get_sent_requests(db: Session, user_id: str) -> list[dict[str, Any]]:
    """Requests sent by ``user_id`` that are still pending, newest first."""
    requests = (
        db.query(Connection)
        .options(joinedload(Connection.addressee))
        .filter(Connection.requester_id == user_id, Connection.status == ConnectionStatus.pending)
        .order_by(Connection.created_at.desc())
        .all()
    )
    return [
        {
            "id": req.id,
            "addressee": user_summary(req.addressee),
            "status": req.status.value,
            "created_at": req.created_at,
        }
        for req in requests
    ]


def get_stats(db: Session, user_id: str) -> dict[str, int]:
    total = (
        db.query(func.count(Connection.id))
        .filter(Connection.status == ConnectionStatus.accepted, _involving(user_id))
        .scalar()
    )
    pending_received = (
        db.query(func.count(Connection.id))
        .filter(Connection.addressee_id == user_id, Connection.status == ConnectionStatus.pending)
        .scalar()
    )
    pending_sent = (
        db.query(func.count(Connection.id))
        .filter(Connection.requester_id == user_id, Connection.status == ConnectionStatus.pending)
        .scalar()
    )
    return {
        "total": total or 0,
        "pending_received": pending_received or 0,
        "pending_sent": pending_sent or 0,
    }


def get_connection_status(db: Session, viewer_id: str, other_id: str) -> dict[str, Any]:
    """Relationship between viewer and another user, as seen by the viewer."""
    connection = _find_pair(db, viewer_id, other_id)
    if not connection:
        return {"status": "NONE", "connection_id": None, "is_pending": False, "is_sent_by_me": False}

    return {
        "status": connection.status.value,
        "connection_id": connection.id,
        "is_pending": connection.status == ConnectionStatus.pending,
        "is_sent_by_me": connection.requester_id == viewer_id,
    }
