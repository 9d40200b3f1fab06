"""Role-protected greeting endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from authcore.api.v1.auth import require_role
from authcore.core.roles import Role

router = APIRouter()


@router.get("/user", response_class=PlainTextResponse)
async def user_greeting(uid: Annotated[str, Depends(require_role(Role.USER))]) -> str:
    """Any valid token, Admin included."""
    return f"Hello User {uid}"


@router.get("/admin", response_class=PlainTextResponse)
async def admin_greeting(uid: Annotated[str, Depends(require_role(Role.ADMIN))]) -> str:
    return f"Hello Admin {uid}"
