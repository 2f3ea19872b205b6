"""
Shared FastAPI dependencies.

Authentication happens upstream; the gateway forwards the authenticated user's
id in the X-User-Id header and every query is scoped to it.
"""

from typing import Optional

from fastapi import Header, HTTPException


def get_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_user_id.strip()
