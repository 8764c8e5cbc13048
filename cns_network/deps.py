"""Shared route dependencies: caller identity.

Authentication lives outside this service; the gateway in front of it
forwards the resolved caller as the ``X-User-Id`` header.
"""
from typing import Optional

from fastapi import Header, HTTPException, status


def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Caller identity for mutating routes; 401 when absent."""
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"kind": "Unauthenticated", "message": "Authentication required"},
        )
    return x_user_id


def get_optional_user_id(x_user_id: Optional[str] = Header(None)) -> Optional[str]:
    """Caller identity for read routes; None means anonymous."""
    return x_user_id or None
