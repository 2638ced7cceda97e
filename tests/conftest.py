"""Shared test fixtures: fake session storage, fake admin backend, API stubs.

The external API is never contacted: ``SiteApiClient`` is built over an
``httpx.MockTransport`` whose handler the test supplies.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

import httpx
import pytest

from superengulfing.core.config import get_settings
from superengulfing.services.api_client import (
    AdminCodeRequestResult,
    AdminVerifyResult,
    SiteApiClient,
    UserProfile,
)

Handler = Callable[[httpx.Request], httpx.Response]

TEST_SESSION_SECRET = "test-session-secret-0123456789abcdef"


class FakeSessionProvider:
    """In-memory ``SessionProvider`` that records clears."""

    def __init__(self, token: str | None = None) -> None:
        self.token = token
        self.cleared = False

    def get_token(self) -> str | None:
        return self.token

    def set_token(self, token: str) -> None:
        self.token = token

    def clear_token(self) -> None:
        self.token = None
        self.cleared = True


class FakeAdminBackend:
    """Scripted ``AdminAuthBackend`` that records every call."""

    def __init__(
        self,
        step1: AdminCodeRequestResult | None = None,
        step2: AdminVerifyResult | None = None,
    ) -> None:
        self.step1 = step1 or AdminCodeRequestResult(success=True, email_masked="a***@x.com")
        self.step2 = step2 or AdminVerifyResult(
            success=True,
            token="admin-token",
            expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
        )
        self.step1_calls: list[str] = []
        self.step2_calls: list[dict] = []

    async def request_admin_code(self, secret: str) -> AdminCodeRequestResult:
        self.step1_calls.append(secret)
        return self.step1

    async def verify_admin_code(
        self,
        email: str,
        code: str,
        remember_me: bool = False,
        remember_duration: str | None = None,
    ) -> AdminVerifyResult:
        self.step2_calls.append(
            {
                "email": email,
                "code": code,
                "remember_me": remember_me,
                "remember_duration": remember_duration,
            }
        )
        return self.step2


def make_profile(locale: str = "en", **overrides: object) -> UserProfile:
    """Helper to build a dashboard user profile."""
    data = {"id": 1, "email": "trader@example.com", "first_name": "Ani", "locale": locale}
    data.update(overrides)
    return UserProfile.model_validate(data)


def make_api(handler: Handler) -> SiteApiClient:
    """``SiteApiClient`` whose HTTP traffic is answered by *handler*."""
    return SiteApiClient(
        httpx.AsyncClient(
            transport=httpx.MockTransport(handler),
            base_url="http://api.test",
        )
    )


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch: pytest.MonkeyPatch):
    """Isolate every test from the developer's environment and .env file."""
    for name in (
        "SITE_URL",
        "API_URL",
        "THANK_YOU_GATE",
        "ADMIN_ALIAS",
        "DEV_LOGIN_ENABLED",
        "COOKIE_SECURE",
        "SESSION_SECRET",
        "ADMIN_FLOW_TTL_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SITE_URL", "https://superengulfing.com")
    monkeypatch.setenv("SESSION_SECRET", TEST_SESSION_SECRET)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
