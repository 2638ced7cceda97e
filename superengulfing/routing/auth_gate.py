"""Auth gate for dashboard pages.

The decision (``decide``) is a pure function of ``(path, token, profile)``;
``AuthGate`` wraps it with the effects: reading the injected session
provider, fetching the profile, and guarding against applying a result
after the page was unmounted.

States::

    unknown ──no token──────────────▶ anonymous (redirect to login)
       │
       └─token──▶ profile-pending ──profile──▶ authenticated
                        │                          (maybe locale redirect)
                        └─fetch failed──▶ stays pending, renders nothing

The user's profile locale is the source of truth: a logged-in user who
edits the URL to the other locale's dashboard is sent back.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Protocol

from superengulfing.routing.locale import localize_path, resolve_locale, strip_locale_prefix
from superengulfing.services.api_client import ProfileResult, UserProfile

logger = logging.getLogger(__name__)

DASHBOARD_PATH = "/dashboard"
LOGIN_PATH = "/login"


class SessionProvider(Protocol):
    """Storage for the dashboard bearer token (``auth_token``)."""

    def get_token(self) -> str | None: ...

    def set_token(self, token: str) -> None: ...

    def clear_token(self) -> None: ...


ProfileLoader = Callable[[str], Awaitable[ProfileResult]]


class GateState(str, enum.Enum):
    UNKNOWN = "unknown"
    ANONYMOUS = "anonymous"
    PROFILE_PENDING = "authenticated-profile-pending"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class GateDecision:
    state: GateState
    redirect_to: str | None = None

    @property
    def render(self) -> bool:
        """Protected content renders only when authorized and not redirecting."""
        return self.state is GateState.AUTHENTICATED and self.redirect_to is None


# ---------------------------------------------------------------------------
# Pure decision logic
# ---------------------------------------------------------------------------


def is_dashboard_path(logical_path: str) -> bool:
    return logical_path == DASHBOARD_PATH or logical_path.startswith(DASHBOARD_PATH + "/")


def login_path_for(path: str) -> str:
    """Login page in the locale of the *current* path, never a stored preference."""
    return localize_path(LOGIN_PATH, resolve_locale(path))


def reconcile_locale(path: str, profile: UserProfile) -> str | None:
    """Return the redirect target when *path* disagrees with ``profile.locale``.

    Returns ``None`` when path and profile already agree, which makes the
    check idempotent: evaluating the redirect target yields no redirect.
    """
    path_locale = resolve_locale(path)
    if profile.locale == "am":
        if path_locale == "en" and is_dashboard_path(path):
            return localize_path(path, "am")
    elif path_locale == "am" and is_dashboard_path(strip_locale_prefix(path)):
        return strip_locale_prefix(path) or DASHBOARD_PATH
    return None


def decide(path: str, token: str | None, profile: UserProfile | None) -> GateDecision:
    """Compute the gate outcome without performing any effect."""
    if not token:
        return GateDecision(GateState.ANONYMOUS, redirect_to=login_path_for(path))
    if profile is None:
        return GateDecision(GateState.PROFILE_PENDING)
    return GateDecision(GateState.AUTHENTICATED, redirect_to=reconcile_locale(path, profile))


# ---------------------------------------------------------------------------
# Effectful gate
# ---------------------------------------------------------------------------


class AuthGate:
    """Run the gate for one mount of a protected page.

    Args:
        session: Token storage, injected so tests can use fakes.
        load_profile: Coroutine returning a ``ProfileResult`` for a token.
    """

    def __init__(self, session: SessionProvider, load_profile: ProfileLoader) -> None:
        self._session = session
        self._load_profile = load_profile
        self._mounted = False
        self.state = GateState.UNKNOWN
        self.profile: UserProfile | None = None

    @property
    def mounted(self) -> bool:
        return self._mounted

    async def mount(self, path: str) -> GateDecision:
        """Evaluate the gate for *path*.

        A profile that resolves after ``unmount()`` is discarded: the
        result is a pending decision with no redirect.
        """
        self._mounted = True
        token = self._session.get_token()
        if not token:
            decision = decide(path, None, None)
            self.state = decision.state
            logger.info(
                "No session, redirecting to login",
                extra={"event": "auth_redirect", "redirect_to": decision.redirect_to},
            )
            return decision

        self.state = GateState.PROFILE_PENDING
        result = await self._load_profile(token)
        if not self._mounted:
            return GateDecision(GateState.PROFILE_PENDING)

        if result.unauthorized:
            # Known-bad token; the next navigation lands on login.
            self._session.clear_token()

        self.profile = result.profile
        decision = decide(path, token, result.profile)
        self.state = decision.state
        if decision.redirect_to is not None:
            logger.info(
                "Profile locale differs from path, redirecting",
                extra={
                    "event": "locale_redirect",
                    "locale": result.profile.locale if result.profile else None,
                    "redirect_to": decision.redirect_to,
                },
            )
        return decision

    def unmount(self) -> None:
        self._mounted = False
