"""Cookie-backed session storage for the web layer.

``CookieSessionProvider`` implements the auth gate's ``SessionProvider``
on top of one request/response pair: reads come from the request's
``auth_token`` cookie, writes are buffered and applied to whichever
response is finally returned.

The admin credential lives in a separate ``admin_session`` cookie, an
HS256 JWT signed with ``SESSION_SECRET``; a cookie the server did not
sign never seeds the admin gate.  It is persistent (until the API's
``expiresAt``) only when the operator chose "remember me"; otherwise it
is a browser-session cookie.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import jwt
from fastapi import Request, Response

from superengulfing.routing.admin_gate import AdminSession

logger = logging.getLogger(__name__)

AUTH_COOKIE = "auth_token"
ADMIN_SESSION_COOKIE = "admin_session"
ADMIN_FLOW_COOKIE = "admin_flow"
JWT_ALGORITHM = "HS256"

_UNSET = object()


class CookieSessionProvider:
    """``SessionProvider`` over the ``auth_token`` cookie."""

    def __init__(self, request: Request, secure: bool = False) -> None:
        self._token: str | None = request.cookies.get(AUTH_COOKIE) or None
        self._pending: object = _UNSET
        self._secure = secure

    def get_token(self) -> str | None:
        return self._token

    def set_token(self, token: str) -> None:
        self._token = token
        self._pending = token

    def clear_token(self) -> None:
        self._token = None
        self._pending = None

    def apply(self, response: Response) -> Response:
        """Write buffered changes to *response* and return it."""
        if self._pending is _UNSET:
            return response
        if self._pending is None:
            response.delete_cookie(AUTH_COOKIE, path="/")
        else:
            response.set_cookie(
                AUTH_COOKIE,
                str(self._pending),
                path="/",
                httponly=True,
                samesite="lax",
                secure=self._secure,
            )
        return response


# ---------------------------------------------------------------------------
# Admin credential cookie
# ---------------------------------------------------------------------------


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def encode_admin_session(session: AdminSession, secret: str) -> str:
    """Sign *session* into a JWT whose ``exp`` is the credential expiry."""
    payload = {
        "sub": session.email,
        "token": session.token,
        "remembered": session.remembered,
        "exp": _aware(session.expires_at),
        "iat": datetime.now(timezone.utc),
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_admin_session(value: str, secret: str) -> AdminSession | None:
    """Verify and decode a signed admin cookie.  Returns None if invalid."""
    try:
        data = jwt.decode(value, secret, algorithms=[JWT_ALGORITHM], options={"require": ["exp"]})
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        logger.warning("Discarding unverifiable admin session cookie", extra={"event": "admin_cookie_invalid"})
        return None

    token = data.get("token")
    if not isinstance(token, str):
        return None
    session = AdminSession(
        token=token,
        expires_at=datetime.fromtimestamp(data["exp"], tz=timezone.utc),
        email=str(data.get("sub", "")),
        remembered=bool(data.get("remembered", False)),
    )
    return session if session.is_valid() else None


def load_admin_session(request: Request, secret: str) -> AdminSession | None:
    """Return the stored admin credential, or ``None`` if absent, forged or expired."""
    raw = request.cookies.get(ADMIN_SESSION_COOKIE)
    if not raw:
        return None
    return decode_admin_session(raw, secret)


def store_admin_session(
    response: Response,
    session: AdminSession,
    secret: str,
    secure: bool = False,
) -> None:
    max_age = None
    if session.remembered:
        max_age = max(int((_aware(session.expires_at) - datetime.now(timezone.utc)).total_seconds()), 0)
    response.set_cookie(
        ADMIN_SESSION_COOKIE,
        encode_admin_session(session, secret),
        max_age=max_age,
        path="/",
        httponly=True,
        samesite="strict",
        secure=secure,
    )


def clear_admin_session(response: Response) -> None:
    response.delete_cookie(ADMIN_SESSION_COOKIE, path="/")
