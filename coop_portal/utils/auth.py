from typing import Optional
from fastapi import Header


def get_actor_id(x_user_id: Optional[str] = Header(None, alias="X-User-Id")) -> Optional[str]:
    """
    Caller identity for audit columns and supervisor checks.

    Authentication happens in front of this service; the gateway forwards the
    authenticated user id in the ``X-User-Id`` header.
    """
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()
    return None
