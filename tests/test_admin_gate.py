"""Tests for superengulfing.routing.admin_gate: the two-factor state machine."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from superengulfing.routing.admin_gate import (
    MASKED_FALLBACK,
    REMEMBER_DURATIONS,
    AdminGate,
    AdminSession,
    AdminStep,
    InvalidTransition,
    normalize_remember_duration,
    sanitize_code,
)
from superengulfing.services.api_client import (
    MSG_INVALID_CODE,
    MSG_INVALID_SECRET,
    AdminCodeRequestResult,
    AdminVerifyResult,
)
from tests.conftest import FakeAdminBackend


def _future(hours: int = 1) -> datetime:
    return datetime.now(timezone.utc) + timedelta(hours=hours)


async def _at_code_entry(backend: FakeAdminBackend) -> AdminGate:
    gate = AdminGate(backend)
    await gate.submit_password("  Admin@Example.com ")
    assert gate.step is AdminStep.CODE_ENTRY
    return gate


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestSanitizeCode:
    def test_digits_only(self) -> None:
        assert sanitize_code("12a3-45 6") == "123456"

    def test_truncated_to_six(self) -> None:
        assert sanitize_code("123456789") == "123456"

    def test_empty(self) -> None:
        assert sanitize_code("") == ""


class TestRememberDuration:
    def test_known_values_kept(self) -> None:
        for value in REMEMBER_DURATIONS:
            assert normalize_remember_duration(value) == value

    def test_unknown_falls_back_to_one_day(self) -> None:
        assert normalize_remember_duration("5y") == "1d"
        assert normalize_remember_duration(None) == "1d"

    def test_one_week(self) -> None:
        assert REMEMBER_DURATIONS["1w"] == timedelta(days=7)


class TestAdminSession:
    def test_valid_until_expiry(self) -> None:
        assert AdminSession("t", _future(), "a@x.com").is_valid()

    def test_expired(self) -> None:
        assert not AdminSession("t", _future(-1), "a@x.com").is_valid()

    def test_empty_token_invalid(self) -> None:
        assert not AdminSession("", _future(), "a@x.com").is_valid()

    def test_naive_expiry_treated_as_utc(self) -> None:
        naive = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(minutes=5)
        assert AdminSession("t", naive, "a@x.com").is_valid()


# ---------------------------------------------------------------------------
# Step 1: secret
# ---------------------------------------------------------------------------


class TestPasswordStep:
    async def test_starts_at_password_entry(self) -> None:
        gate = AdminGate(FakeAdminBackend())
        assert gate.step is AdminStep.PASSWORD_ENTRY
        assert gate.panel_visible is False

    async def test_empty_secret_rejected_without_call(self) -> None:
        backend = FakeAdminBackend()
        gate = AdminGate(backend)

        step = await gate.submit_password("   ")

        assert step is AdminStep.PASSWORD_ENTRY
        assert gate.error == MSG_INVALID_SECRET
        assert backend.step1_calls == []

    async def test_success_moves_to_code_entry(self) -> None:
        gate = await _at_code_entry(FakeAdminBackend())
        assert gate.pending_identifier == "admin@example.com"
        assert gate.email_masked == "a***@x.com"
        assert gate.error == ""

    async def test_missing_mask_uses_fallback(self) -> None:
        backend = FakeAdminBackend(step1=AdminCodeRequestResult(success=True))
        gate = await _at_code_entry(backend)
        assert gate.email_masked == MASKED_FALLBACK

    async def test_failure_keeps_step_and_shows_api_error(self) -> None:
        backend = FakeAdminBackend(step1=AdminCodeRequestResult(success=False, error="Too many attempts"))
        gate = AdminGate(backend)

        step = await gate.submit_password("secret")

        assert step is AdminStep.PASSWORD_ENTRY
        assert gate.error == "Too many attempts"
        assert gate.pending_identifier == ""

    async def test_failure_without_error_uses_default(self) -> None:
        backend = FakeAdminBackend(step1=AdminCodeRequestResult(success=False))
        gate = AdminGate(backend)
        await gate.submit_password("secret")
        assert gate.error == MSG_INVALID_SECRET

    async def test_setup_fields_carried(self) -> None:
        backend = FakeAdminBackend(
            step1=AdminCodeRequestResult(
                success=True,
                email_masked="a***",
                setup_required=True,
                otpauth_url="otpauth://totp/SE:admin?secret=ABC",
            )
        )
        gate = await _at_code_entry(backend)
        assert gate.setup_required is True
        assert gate.otpauth_url.startswith("otpauth://")

    async def test_code_step_not_allowed_first(self) -> None:
        gate = AdminGate(FakeAdminBackend())
        with pytest.raises(InvalidTransition):
            await gate.submit_code("123456")


# ---------------------------------------------------------------------------
# Step 2: code
# ---------------------------------------------------------------------------


class TestCodeStep:
    async def test_success_authorizes(self) -> None:
        backend = FakeAdminBackend()
        gate = await _at_code_entry(backend)

        step = await gate.submit_code("123456")

        assert step is AdminStep.AUTHORIZED
        assert gate.panel_visible is True
        assert gate.session.token == "admin-token"
        assert gate.session.email == "admin@example.com"
        assert gate.pending_identifier == ""
        assert backend.step2_calls == [
            {"email": "admin@example.com", "code": "123456", "remember_me": False, "remember_duration": None}
        ]

    async def test_remember_duration_sent_only_with_remember_me(self) -> None:
        backend = FakeAdminBackend()
        gate = await _at_code_entry(backend)

        await gate.submit_code("123456", remember_me=True, remember_duration="1w")

        assert backend.step2_calls[0]["remember_me"] is True
        assert backend.step2_calls[0]["remember_duration"] == "1w"
        assert gate.session.remembered is True

    async def test_code_sanitized_before_sending(self) -> None:
        backend = FakeAdminBackend()
        gate = await _at_code_entry(backend)
        await gate.submit_code("12 34 56 78")
        assert backend.step2_calls[0]["code"] == "123456"

    async def test_empty_code_rejected_without_call(self) -> None:
        backend = FakeAdminBackend()
        gate = await _at_code_entry(backend)

        step = await gate.submit_code("abc")

        assert step is AdminStep.CODE_ENTRY
        assert gate.error == MSG_INVALID_CODE
        assert backend.step2_calls == []

    async def test_failure_keeps_code_entry(self) -> None:
        backend = FakeAdminBackend(step2=AdminVerifyResult(success=False, error="Code expired"))
        gate = await _at_code_entry(backend)

        step = await gate.submit_code("123456")

        assert step is AdminStep.CODE_ENTRY
        assert gate.error == "Code expired"
        assert gate.session is None
        assert gate.panel_visible is False

    async def test_failure_without_error_uses_default(self) -> None:
        backend = FakeAdminBackend(step2=AdminVerifyResult(success=False))
        gate = await _at_code_entry(backend)
        await gate.submit_code("123456")
        assert gate.error == MSG_INVALID_CODE

    async def test_qr_step_before_panel(self) -> None:
        backend = FakeAdminBackend(
            step1=AdminCodeRequestResult(success=True, setup_required=True, otpauth_url="otpauth://totp/x")
        )
        gate = await _at_code_entry(backend)

        step = await gate.submit_code("123456")

        assert step is AdminStep.AUTHORIZED_SHOW_QR
        assert gate.panel_visible is False
        assert gate.dismiss_qr() is AdminStep.AUTHORIZED
        assert gate.panel_visible is True
        assert gate.otpauth_url == ""

    async def test_duplicate_submit_ignored_while_in_flight(self) -> None:
        release = asyncio.Event()

        class SlowBackend(FakeAdminBackend):
            async def verify_admin_code(self, *args, **kwargs):
                await release.wait()
                return await super().verify_admin_code(*args, **kwargs)

        backend = SlowBackend()
        gate = await _at_code_entry(backend)

        first = asyncio.create_task(gate.submit_code("123456"))
        await asyncio.sleep(0)
        assert gate.busy is True
        assert await gate.submit_code("123456") is AdminStep.CODE_ENTRY

        release.set()
        assert await first is AdminStep.AUTHORIZED
        assert len(backend.step2_calls) == 1


# ---------------------------------------------------------------------------
# Back / logout / expiry
# ---------------------------------------------------------------------------


class TestOtherTransitions:
    async def test_back_clears_step2_fields(self) -> None:
        backend = FakeAdminBackend(
            step1=AdminCodeRequestResult(success=True, email_masked="a***", otpauth_url="otpauth://x")
        )
        gate = await _at_code_entry(backend)

        assert gate.back_to_password() is AdminStep.PASSWORD_ENTRY
        assert gate.pending_identifier == ""
        assert gate.email_masked == ""
        assert gate.otpauth_url == ""
        assert gate.code == ""

    async def test_back_not_allowed_from_password(self) -> None:
        gate = AdminGate(FakeAdminBackend())
        with pytest.raises(InvalidTransition):
            gate.back_to_password()

    async def test_dismiss_qr_not_allowed_from_authorized(self) -> None:
        gate = await _at_code_entry(FakeAdminBackend())
        await gate.submit_code("123456")
        with pytest.raises(InvalidTransition):
            gate.dismiss_qr()

    async def test_logout(self) -> None:
        gate = await _at_code_entry(FakeAdminBackend())
        await gate.submit_code("123456")

        assert gate.logout() is AdminStep.PASSWORD_ENTRY
        assert gate.session is None
        assert gate.panel_visible is False

    async def test_expired_credential_returns_to_password(self) -> None:
        gate = await _at_code_entry(FakeAdminBackend())
        await gate.submit_code("123456")
        gate.session.expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)

        assert gate.step is AdminStep.PASSWORD_ENTRY
        assert gate.panel_visible is False

    def test_seeded_with_valid_session(self) -> None:
        gate = AdminGate(FakeAdminBackend(), AdminSession("t", _future(), "a@x.com"))
        assert gate.step is AdminStep.AUTHORIZED

    def test_seeded_with_expired_session(self) -> None:
        gate = AdminGate(FakeAdminBackend(), AdminSession("t", _future(-1), "a@x.com"))
        assert gate.step is AdminStep.PASSWORD_ENTRY
