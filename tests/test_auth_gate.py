"""Tests for superengulfing.routing.auth_gate.

Covers the pure ``decide`` function and the effectful ``AuthGate``:
- No token → login redirect in the locale of the current path.
- Profile locale wins over the URL on dashboard paths.
- Nothing protected renders while the profile is pending or failed.
- A rejected token is cleared; an unmounted gate ignores late results.
"""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock

import pytest

from superengulfing.routing.auth_gate import (
    AuthGate,
    GateState,
    decide,
    is_dashboard_path,
    login_path_for,
    reconcile_locale,
)
from superengulfing.services.api_client import ProfileResult
from tests.conftest import FakeSessionProvider, make_profile


# ---------------------------------------------------------------------------
# Pure decision
# ---------------------------------------------------------------------------


class TestDecide:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("/dashboard", "/login"),
            ("/dashboard/academy", "/login"),
            ("/am/dashboard", "/am/login"),
            ("/am/dashboard/course/3", "/am/login"),
        ],
    )
    def test_no_token_redirects_to_login_in_path_locale(self, path: str, expected: str) -> None:
        decision = decide(path, None, None)
        assert decision.state is GateState.ANONYMOUS
        assert decision.redirect_to == expected
        assert decision.render is False

    def test_empty_token_counts_as_missing(self) -> None:
        assert decide("/dashboard", "", None).state is GateState.ANONYMOUS

    def test_token_without_profile_is_pending(self) -> None:
        decision = decide("/dashboard", "tok", None)
        assert decision.state is GateState.PROFILE_PENDING
        assert decision.redirect_to is None
        assert decision.render is False

    def test_matching_locale_renders(self) -> None:
        assert decide("/dashboard", "tok", make_profile("en")).render is True
        assert decide("/am/dashboard", "tok", make_profile("am")).render is True

    def test_am_profile_on_en_dashboard(self) -> None:
        decision = decide("/dashboard/academy", "tok", make_profile("am"))
        assert decision.redirect_to == "/am/dashboard/academy"
        assert decision.render is False

    def test_en_profile_on_am_dashboard(self) -> None:
        decision = decide("/am/dashboard/course/9", "tok", make_profile("en"))
        assert decision.redirect_to == "/dashboard/course/9"

    def test_en_profile_on_am_dashboard_root(self) -> None:
        assert decide("/am/dashboard", "tok", make_profile("en")).redirect_to == "/dashboard"


class TestReconcileLocale:
    @pytest.mark.parametrize(
        ("path", "locale"),
        [
            ("/dashboard", "en"),
            ("/am/dashboard", "en"),
            ("/dashboard", "am"),
            ("/am/dashboard/academy", "am"),
        ],
    )
    def test_redirect_target_is_stable(self, path: str, locale: str) -> None:
        profile = make_profile(locale)
        target = reconcile_locale(path, profile)
        if target is not None:
            assert reconcile_locale(target, profile) is None

    def test_non_dashboard_path_untouched(self) -> None:
        assert reconcile_locale("/am/book", make_profile("en")) is None
        assert reconcile_locale("/book", make_profile("am")) is None


class TestHelpers:
    def test_is_dashboard_path(self) -> None:
        assert is_dashboard_path("/dashboard")
        assert is_dashboard_path("/dashboard/course/1")
        assert not is_dashboard_path("/dashboards")
        assert not is_dashboard_path("/am/dashboard")

    def test_login_path_for(self) -> None:
        assert login_path_for("/am/dashboard") == "/am/login"
        assert login_path_for("/dashboard") == "/login"


# ---------------------------------------------------------------------------
# Effectful gate
# ---------------------------------------------------------------------------


class TestAuthGate:
    async def test_no_token_skips_profile_fetch(self) -> None:
        loader = AsyncMock()
        gate = AuthGate(FakeSessionProvider(None), loader)

        decision = await gate.mount("/am/dashboard")

        assert decision.redirect_to == "/am/login"
        assert gate.state is GateState.ANONYMOUS
        loader.assert_not_called()

    async def test_profile_loaded(self) -> None:
        loader = AsyncMock(return_value=ProfileResult(profile=make_profile("en")))
        gate = AuthGate(FakeSessionProvider("tok"), loader)

        decision = await gate.mount("/dashboard")

        loader.assert_awaited_once_with("tok")
        assert decision.render is True
        assert gate.state is GateState.AUTHENTICATED
        assert gate.profile.email == "trader@example.com"

    async def test_fetch_failure_renders_nothing(self) -> None:
        session = FakeSessionProvider("tok")
        gate = AuthGate(session, AsyncMock(return_value=ProfileResult()))

        decision = await gate.mount("/dashboard")

        assert decision.state is GateState.PROFILE_PENDING
        assert decision.redirect_to is None
        assert decision.render is False
        assert session.cleared is False

    async def test_unauthorized_clears_token(self) -> None:
        session = FakeSessionProvider("stale")
        gate = AuthGate(session, AsyncMock(return_value=ProfileResult(unauthorized=True)))

        decision = await gate.mount("/dashboard")

        assert session.cleared is True
        assert session.get_token() is None
        assert decision.render is False
        assert decision.redirect_to is None

    async def test_unmounted_gate_ignores_late_profile(self) -> None:
        gate: AuthGate

        async def slow_loader(token: str) -> ProfileResult:
            gate.unmount()
            return ProfileResult(profile=make_profile("am"))

        gate = AuthGate(FakeSessionProvider("tok"), slow_loader)
        decision = await gate.mount("/dashboard")

        assert decision.state is GateState.PROFILE_PENDING
        assert decision.redirect_to is None
        assert gate.profile is None
        assert gate.mounted is False

    async def test_locale_redirect_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        gate = AuthGate(
            FakeSessionProvider("tok"),
            AsyncMock(return_value=ProfileResult(profile=make_profile("am"))),
        )
        with caplog.at_level(logging.INFO, logger="superengulfing.routing.auth_gate"):
            decision = await gate.mount("/dashboard")

        assert decision.redirect_to == "/am/dashboard"
        events = [getattr(r, "event", None) for r in caplog.records]
        assert "locale_redirect" in events
