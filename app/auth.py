"""Caller identity and the admin gate.

Issuing tokens is someone else's job. This module only turns a bearer token into a
``CallerContext`` and answers "is this caller an admin?".
"""
from dataclasses import dataclass
from typing import Dict, Optional

from fastapi import Depends, Header, Request

from .errors import ForbiddenError, UnauthorizedError

ADMIN_ROLE = "admin"
USER_ROLE = "user"


@dataclass(frozen=True)
class CallerContext:
    user_id: str
    role: str = USER_ROLE


class TokenAuthenticator:
    """Resolves bearer tokens from a static table of ``token -> "user_id:role"``."""

    def __init__(self, tokens: Dict[str, str]):
        self._callers: Dict[str, CallerContext] = {}
        for token, spec in tokens.items():
            user_id, _, role = spec.partition(":")
            self._callers[token] = CallerContext(user_id=user_id, role=role or USER_ROLE)

    def __call__(self, token: str) -> Optional[CallerContext]:
        return self._callers.get(token)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization.split(" ", 1)[1].strip() or None


async def get_caller(request: Request, authorization: Optional[str] = Header(None)) -> CallerContext:
    token = _bearer_token(authorization)
    if token is None:
        raise UnauthorizedError("No token, authorization denied")
    caller = request.app.state.authenticator(token)
    if caller is None:
        raise UnauthorizedError("Token is not valid")
    return caller


def is_admin(caller: Optional[CallerContext]) -> bool:
    return caller is not None and caller.role == ADMIN_ROLE


async def require_admin(caller: CallerContext = Depends(get_caller)) -> CallerContext:
    if not is_admin(caller):
        raise ForbiddenError("Access denied. Admins only.")
    return caller
