"""Client for the site's external HTTP/JSON API.

The API (auth, profile, admin 2FA, thank-you tokens, site media, email
subscriptions, access requests, password setup) is a
black box reached over plain HTTP.  Every transport error, non-JSON body
and unexpected payload shape is caught here and mapped to a typed result,
so routing code never handles ``httpx`` exceptions.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Literal

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from superengulfing.core.config import Settings
from superengulfing.routing.locale import Locale, normalize_locale

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Fallback messages (used when the API gives no ``error`` text)
# ---------------------------------------------------------------------------

MSG_INVALID_SECRET = "Invalid secret password"
MSG_REQUEST_FAILED = "Request failed"
MSG_INVALID_CODE = "Invalid or expired code"
MSG_VERIFICATION_FAILED = "Verification failed"

DEFAULT_REMEMBER_DURATION = "1h"

# ``already used`` in a set-password error message marks a spent link.
LINK_USED_MARKER = "already used"


# ---------------------------------------------------------------------------
# Payload models
# ---------------------------------------------------------------------------


class UserProfile(BaseModel):
    """``GET /api/me`` payload.  Routing only inspects ``locale``."""

    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    email: str
    first_name: str = ""
    onboarding_completed: bool = False
    locale: Locale = "en"

    @field_validator("locale", mode="before")
    @classmethod
    def _coerce_locale(cls, v: Any) -> Locale:
        return normalize_locale(v)

    @field_validator("first_name", mode="before")
    @classmethod
    def _coerce_first_name(cls, v: Any) -> str:
        return v or ""


class ProfileResult(BaseModel):
    """Outcome of a profile fetch.  ``unauthorized`` means the token was rejected."""

    profile: UserProfile | None = None
    unauthorized: bool = False


class LoginResult(BaseModel):
    success: bool
    token: str | None = None
    locale: Locale = "en"
    message_key: str | None = None


class AdminCodeRequestResult(BaseModel):
    """Step-1 response of the admin 2FA flow."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    success: bool
    email_masked: str | None = Field(default=None, alias="emailMasked")
    setup_required: bool = Field(default=False, alias="setupRequired")
    otpauth_url: str | None = Field(default=None, alias="otpauthUrl")
    error: str | None = None


class AdminVerifyResult(BaseModel):
    """Step-2 response: an admin credential on success."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    success: bool
    token: str | None = None
    expires_at: datetime | None = Field(default=None, alias="expiresAt")
    error: str | None = None


class SiteMedia(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    welcome_pdf_url: str | None = Field(default=None, alias="welcomePdfUrl")
    welcome_video_url: str | None = Field(default=None, alias="welcomeVideoUrl")


SubscriptionStatus = Literal["subscribed", "already_subscribed", "pending_confirmation", "failed"]


class SubscribeResult(BaseModel):
    """Outcome of an email subscription.  ``message`` is API text when it sent any."""

    status: SubscriptionStatus
    message_key: str
    message: str = ""

    @property
    def success(self) -> bool:
        return self.status == "subscribed"


class AccessRequestResult(BaseModel):
    success: bool
    message_key: str
    message: str = ""


SetPasswordOutcome = Literal["set", "link_used", "link_invalid", "error"]


class SetPasswordResult(BaseModel):
    outcome: SetPasswordOutcome

    @property
    def success(self) -> bool:
        return self.outcome == "set"


def _json_or_empty(response: httpx.Response) -> dict[str, Any]:
    """Decode a JSON object body, or ``{}`` when the body is not one."""
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class SiteApiClient:
    """Thin async wrapper over ``httpx.AsyncClient`` for the site API.

    Args:
        client: An ``httpx.AsyncClient`` whose ``base_url`` is the API
            origin (no trailing ``/api``).
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def aclose(self) -> None:
        await self._client.aclose()

    # --- Dashboard users ---------------------------------------------------

    async def fetch_profile(self, token: str) -> ProfileResult:
        """``GET /api/me`` with the bearer *token*."""
        try:
            response = await self._client.get(
                "/api/me",
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as exc:
            logger.warning("Profile fetch failed: %s", exc, extra={"event": "profile_fetch_failed"})
            return ProfileResult()

        if response.status_code == 401:
            return ProfileResult(unauthorized=True)
        if response.is_error:
            logger.warning(
                "Profile fetch returned %d",
                response.status_code,
                extra={"event": "profile_fetch_failed", "status_code": response.status_code},
            )
            return ProfileResult()

        try:
            profile = UserProfile.model_validate(response.json())
        except (ValueError, ValidationError):
            logger.warning("Malformed profile payload", extra={"event": "profile_fetch_failed"})
            return ProfileResult()
        return ProfileResult(profile=profile)

    async def login(self, email: str, password: str) -> LoginResult:
        """``POST /api/login``; the returned ``locale`` picks the dashboard URL."""
        return await self._token_login("/api/login", {"email": email.strip(), "password": password})

    async def dev_login(self) -> LoginResult:
        """``POST /api/dev-login`` (non-production API only)."""
        result = await self._token_login("/api/dev-login", {})
        if not result.success and result.message_key != "login_server_error":
            result.message_key = "login_dev_failed"
        return result

    async def _token_login(self, url: str, body: dict[str, Any]) -> LoginResult:
        try:
            response = await self._client.post(url, json=body)
        except httpx.HTTPError as exc:
            logger.warning("Login request failed: %s", exc, extra={"event": "login_failed"})
            return LoginResult(success=False, message_key="login_server_error")

        data = _json_or_empty(response)
        if response.is_error:
            return LoginResult(success=False, message_key="login_error_invalid")
        token = data.get("token")
        if not token:
            return LoginResult(success=False, message_key="login_invalid_response")
        return LoginResult(success=True, token=str(token), locale=normalize_locale(data.get("locale")))

    # --- Admin 2FA -----------------------------------------------------------

    async def request_admin_code(self, secret: str) -> AdminCodeRequestResult:
        """Step 1: submit the shared admin secret."""
        try:
            response = await self._client.post(
                "/api/admin-auth/request-code",
                json={"password": secret.strip()},
            )
        except httpx.HTTPError as exc:
            logger.warning("Admin code request failed: %s", exc, extra={"event": "admin_step1_failed"})
            return AdminCodeRequestResult(success=False, error=MSG_REQUEST_FAILED)

        data = _json_or_empty(response)
        if response.is_error:
            return AdminCodeRequestResult(success=False, error=data.get("error") or MSG_INVALID_SECRET)
        try:
            return AdminCodeRequestResult.model_validate({**data, "success": True})
        except ValidationError:
            return AdminCodeRequestResult(success=False, error=MSG_REQUEST_FAILED)

    async def verify_admin_code(
        self,
        email: str,
        code: str,
        remember_me: bool = False,
        remember_duration: str | None = None,
    ) -> AdminVerifyResult:
        """Step 2: verify the 6-digit code for the pending identifier."""
        body = {
            "email": email.strip().lower(),
            "code": code.strip(),
            "rememberMe": bool(remember_me),
            "rememberDuration": remember_duration or DEFAULT_REMEMBER_DURATION,
        }
        try:
            response = await self._client.post("/api/admin-auth/verify", json=body)
        except httpx.HTTPError as exc:
            logger.warning("Admin verify failed: %s", exc, extra={"event": "admin_step2_failed"})
            return AdminVerifyResult(success=False, error=MSG_VERIFICATION_FAILED)

        data = _json_or_empty(response)
        if response.is_error:
            return AdminVerifyResult(success=False, error=data.get("error") or MSG_INVALID_CODE)
        try:
            result = AdminVerifyResult.model_validate({**data, "success": True})
        except ValidationError:
            return AdminVerifyResult(success=False, error=MSG_VERIFICATION_FAILED)
        if not result.token or result.expires_at is None:
            return AdminVerifyResult(success=False, error=MSG_VERIFICATION_FAILED)
        return result

    # --- Public content --------------------------------------------------------

    async def exchange_thank_you_token(self, token: str) -> Locale | None:
        """Trade a one-time thank-you token for the subscriber's locale.

        Returns ``None`` on any failure: transport error, non-OK status,
        ``ok`` not true, or no ``locale`` in the payload.
        """
        try:
            response = await self._client.get("/api/thank-you-access", params={"token": token})
        except httpx.HTTPError as exc:
            logger.warning("Thank-you token exchange failed: %s", exc, extra={"event": "thank_you_exchange_failed"})
            return None

        data = _json_or_empty(response)
        if response.is_error or not data.get("ok") or not data.get("locale"):
            return None
        return normalize_locale(data["locale"])

    async def fetch_site_media(self, locale: Locale) -> SiteMedia | None:
        """``GET /api/site-media`` for the thank-you page PDF and video links."""
        try:
            response = await self._client.get("/api/site-media", params={"locale": locale})
            response.raise_for_status()
            return SiteMedia.model_validate(response.json())
        except (httpx.HTTPError, ValueError, ValidationError) as exc:
            logger.warning("Site media fetch failed: %s", exc, extra={"event": "site_media_failed"})
            return None

    # --- Email and course access ------------------------------------------------

    async def subscribe(self, email: str, locale: Locale, source: str = "hero") -> SubscribeResult:
        """``POST /api/subscribe`` for the free PDF mailing list.

        An existing or unconfirmed subscriber is reported through
        ``status``; only a new subscription counts as success.
        """
        body = {"email": email.strip(), "source": source, "locale": locale}
        try:
            response = await self._client.post("/api/subscribe", json=body)
        except httpx.HTTPError as exc:
            logger.warning("Subscribe request failed: %s", exc, extra={"event": "subscribe_failed"})
            return SubscribeResult(status="failed", message_key="subscribe_connection_error")

        data = _json_or_empty(response)
        if not data.get("success"):
            return SubscribeResult(
                status="failed",
                message_key="subscribe_failed",
                message=str(data.get("message") or ""),
            )
        status = data.get("subscriptionStatus")
        if status == "already_subscribed":
            return SubscribeResult(status="already_subscribed", message_key="subscribe_already")
        if status == "pending_confirmation":
            return SubscribeResult(status="pending_confirmation", message_key="subscribe_pending")
        return SubscribeResult(
            status="subscribed",
            message_key="subscribe_success",
            message=str(data.get("message") or ""),
        )

    async def request_access(self, email: str, uid: str, locale: Locale) -> AccessRequestResult:
        """``POST /api/access-requests`` with the trader's exchange UID."""
        body = {"email": email.strip(), "uid": uid.strip(), "locale": locale}
        try:
            response = await self._client.post("/api/access-requests", json=body)
        except httpx.HTTPError as exc:
            logger.warning("Access request failed: %s", exc, extra={"event": "access_request_failed"})
            return AccessRequestResult(success=False, message_key="access_error_generic")

        data = _json_or_empty(response)
        if response.is_error:
            if data.get("code") == "already_exists":
                return AccessRequestResult(success=False, message_key="access_error_exists")
            return AccessRequestResult(
                success=False,
                message_key="access_error_generic",
                message=str(data.get("message") or ""),
            )
        return AccessRequestResult(success=True, message_key="access_success")

    async def set_password(self, token: str, password: str) -> SetPasswordResult:
        """``POST /api/set-password`` with the one-time link *token*."""
        try:
            response = await self._client.post(
                "/api/set-password",
                json={"token": token, "password": password},
            )
        except httpx.HTTPError as exc:
            logger.warning("Set-password request failed: %s", exc, extra={"event": "set_password_failed"})
            return SetPasswordResult(outcome="error")

        if response.is_error:
            data = _json_or_empty(response)
            message = str(data.get("message") or data.get("error") or "").lower()
            return SetPasswordResult(outcome="link_used" if LINK_USED_MARKER in message else "link_invalid")
        return SetPasswordResult(outcome="set")


def create_api_client(settings: Settings) -> SiteApiClient:
    """Build a ``SiteApiClient`` from settings."""
    return SiteApiClient(
        httpx.AsyncClient(
            base_url=settings.API_URL,
            timeout=settings.API_TIMEOUT_SECONDS,
        )
    )
