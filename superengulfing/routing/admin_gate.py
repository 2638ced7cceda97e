"""Two-factor admin gate: shared secret, then a TOTP code.

::

    password-entry ──secret ok──▶ code-entry ──code ok──▶ authorized
          ▲                          │   └──code ok, QR shown──▶ authorized-show-qr
          └────── back_to_password ──┘                               │
                                                 dismiss_qr ─────────┘──▶ authorized

The admin panel is reachable only in ``authorized``.  When step 1 handed
out a provisioning URI (``otpauth_url``), a successful step 2 stops at
``authorized-show-qr`` so a second co-administrator can scan the same
QR before the operator continues.

The credential issued by step 2 (``AdminSession``) carries the API's
expiry.  Remember-me durations are forwarded to the API, which decides
the expiry; the gate only discards a credential once it has expired.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Protocol

from superengulfing.services.api_client import (
    MSG_INVALID_CODE,
    MSG_INVALID_SECRET,
    AdminCodeRequestResult,
    AdminVerifyResult,
)

logger = logging.getLogger(__name__)

CODE_LENGTH = 6
DEFAULT_REMEMBER_DURATION = "1d"
MASKED_FALLBACK = "***"

REMEMBER_DURATIONS: dict[str, timedelta] = {
    "1h": timedelta(hours=1),
    "3h": timedelta(hours=3),
    "12h": timedelta(hours=12),
    "1d": timedelta(days=1),
    "2d": timedelta(days=2),
    "1w": timedelta(weeks=1),
}

REMEMBER_LABELS: dict[str, str] = {
    "1h": "1 hour",
    "3h": "3 hours",
    "12h": "12 hours",
    "1d": "1 day",
    "2d": "2 days",
    "1w": "1 week",
}

_NON_DIGIT_RE = re.compile(r"\D")


class AdminStep(str, enum.Enum):
    PASSWORD_ENTRY = "password-entry"
    CODE_ENTRY = "code-entry"
    AUTHORIZED = "authorized"
    AUTHORIZED_SHOW_QR = "authorized-show-qr-for-second-admin"


class InvalidTransition(RuntimeError):
    """An action was attempted from a step that does not allow it."""


class AdminAuthBackend(Protocol):
    async def request_admin_code(self, secret: str) -> AdminCodeRequestResult: ...

    async def verify_admin_code(
        self,
        email: str,
        code: str,
        remember_me: bool = False,
        remember_duration: str | None = None,
    ) -> AdminVerifyResult: ...


@dataclass
class AdminSession:
    """Credential issued after both factors succeeded."""

    token: str
    expires_at: datetime
    email: str
    remembered: bool = False

    def is_valid(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return bool(self.token) and expires_at > now


def sanitize_code(raw: str) -> str:
    """Keep digits only, at most six of them."""
    return _NON_DIGIT_RE.sub("", raw or "")[:CODE_LENGTH]


def normalize_remember_duration(value: str | None) -> str:
    return value if value in REMEMBER_DURATIONS else DEFAULT_REMEMBER_DURATION


class AdminGate:
    """State machine for one operator's admin sign-in.

    Args:
        backend: Performs the two API calls (``SiteApiClient`` in production).
        session: A still-valid credential from an earlier sign-in, if any.
    """

    def __init__(self, backend: AdminAuthBackend, session: AdminSession | None = None) -> None:
        self._backend = backend
        self._lock = asyncio.Lock()
        self.session: AdminSession | None = None
        self._step = AdminStep.PASSWORD_ENTRY
        self._reset_flow()
        if session is not None and session.is_valid():
            self.session = session
            self._step = AdminStep.AUTHORIZED

    def _reset_flow(self) -> None:
        self.error = ""
        self.pending_identifier = ""
        self.email_masked = ""
        self.setup_required = False
        self.otpauth_url = ""
        self.code = ""
        self.remember_me = False
        self.remember_duration = DEFAULT_REMEMBER_DURATION

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def step(self) -> AdminStep:
        if self._step in (AdminStep.AUTHORIZED, AdminStep.AUTHORIZED_SHOW_QR) and not self.is_valid:
            # Credential expired while signed in: start over.
            self.logout()
        return self._step

    @property
    def is_valid(self) -> bool:
        return self.session is not None and self.session.is_valid()

    @property
    def panel_visible(self) -> bool:
        return self.step is AdminStep.AUTHORIZED

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def _require(self, *allowed: AdminStep) -> None:
        if self.step not in allowed:
            raise InvalidTransition(f"not allowed from {self._step.value}")

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def submit_password(self, secret: str) -> AdminStep:
        """Step 1.  Stays in ``password-entry`` with ``error`` set on failure."""
        self._require(AdminStep.PASSWORD_ENTRY)
        if self._lock.locked():
            return self._step
        self.error = ""
        if not secret.strip():
            self.error = MSG_INVALID_SECRET
            return self._step

        async with self._lock:
            result = await self._backend.request_admin_code(secret)

        if not result.success:
            self.error = result.error or MSG_INVALID_SECRET
            logger.info("Admin secret rejected", extra={"event": "admin_step1_rejected"})
            return self._step

        self.pending_identifier = secret.strip().lower()
        self.email_masked = result.email_masked or MASKED_FALLBACK
        self.setup_required = result.setup_required
        self.otpauth_url = result.otpauth_url or ""
        self.code = ""
        self._step = AdminStep.CODE_ENTRY
        return self._step

    async def submit_code(
        self,
        code: str,
        remember_me: bool = False,
        remember_duration: str | None = None,
    ) -> AdminStep:
        """Step 2.  Stays in ``code-entry`` with ``error`` set on failure."""
        self._require(AdminStep.CODE_ENTRY)
        if self._lock.locked():
            return self._step
        self.error = ""
        self.code = sanitize_code(code)
        self.remember_me = remember_me
        self.remember_duration = normalize_remember_duration(remember_duration)
        if not self.code:
            self.error = MSG_INVALID_CODE
            return self._step

        async with self._lock:
            result = await self._backend.verify_admin_code(
                self.pending_identifier,
                self.code,
                remember_me=remember_me,
                remember_duration=self.remember_duration if remember_me else None,
            )

        if not result.success or not result.token or result.expires_at is None:
            self.error = result.error or MSG_INVALID_CODE
            logger.info("Admin code rejected", extra={"event": "admin_step2_rejected"})
            return self._step

        self.session = AdminSession(
            token=result.token,
            expires_at=result.expires_at,
            email=self.pending_identifier,
            remembered=remember_me,
        )
        logger.info("Admin signed in", extra={"event": "admin_signed_in"})
        if self.otpauth_url:
            self._step = AdminStep.AUTHORIZED_SHOW_QR
        else:
            self._step = AdminStep.AUTHORIZED
            self.pending_identifier = ""
            self.code = ""
        return self._step

    def back_to_password(self) -> AdminStep:
        """Leave ``code-entry``, dropping every step-2 field."""
        self._require(AdminStep.CODE_ENTRY)
        self.error = ""
        self.code = ""
        self.pending_identifier = ""
        self.email_masked = ""
        self.setup_required = False
        self.otpauth_url = ""
        self._step = AdminStep.PASSWORD_ENTRY
        return self._step

    def dismiss_qr(self) -> AdminStep:
        """Operator is done showing the QR; open the panel."""
        self._require(AdminStep.AUTHORIZED_SHOW_QR)
        self.otpauth_url = ""
        self.pending_identifier = ""
        self.code = ""
        self._step = AdminStep.AUTHORIZED
        return self._step

    def logout(self) -> AdminStep:
        self.session = None
        self._reset_flow()
        self._step = AdminStep.PASSWORD_ENTRY
        return self._step
