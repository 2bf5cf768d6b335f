"""
Bearer token authentication for WebSocket connections.

Browsers cannot set an ``Authorization`` header on a WebSocket handshake, so
clients holding a simplejwt access token pass it as ``?token=<access>``.
A valid token replaces the session user that ``AuthMiddlewareStack`` put in
the scope; a missing or invalid one leaves the scope untouched.
"""
import logging
from typing import Optional
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication

logger = logging.getLogger(__name__)


def token_from_scope(scope) -> Optional[str]:
    query = parse_qs(scope.get("query_string", b"").decode("latin-1"))
    values = query.get("token")
    return values[0] if values else None


def get_user_for_token(raw_token: str):
    auth = JWTAuthentication()
    try:
        return auth.get_user(auth.get_validated_token(raw_token))
    except AuthenticationFailed as exc:
        logger.info("websocket token rejected: %s", exc)
        return None


async def resolve_user(raw_token: str):
    return await database_sync_to_async(get_user_for_token)(raw_token)


class JWTAuthMiddleware(BaseMiddleware):
    async def __call__(self, scope, receive, send):
        token = token_from_scope(scope)
        if token:
            user = await resolve_user(token)
            if user is not None:
                scope = dict(scope, user=user)
        return await super().__call__(scope, receive, send)
