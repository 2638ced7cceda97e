"""FastAPI application: site shell, crawler files, auth and admin gates.

Every GET that is not one of the fixed endpoints below is resolved
through the route table:

1. Redirect entries (``/am/admin``) answer with a redirect right away.
2. Dashboard pages run the auth gate; a redirect or a "render nothing"
   decision stops before any protected markup is produced.
3. Admin pages render the two-factor admin gate for this browser's flow.
4. ``/am/thank-you`` renders only after its confirmation or token check.
5. Everything else renders the localized page shell.

Form posts (login, subscribe, course access, set password, admin steps)
answer with a post/redirect/get redirect on success and re-render the
page with a message otherwise.

The external API client is created in the lifespan hook and closed on
shutdown.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager
from functools import lru_cache, partial
from pathlib import Path
from typing import Any, AsyncIterator

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse
from jinja2 import Environment, FileSystemLoader, select_autoescape
from starlette.concurrency import run_in_threadpool

from superengulfing.core.config import get_settings
from superengulfing.core.logging import ctx_path, ctx_request_id, setup_logging
from superengulfing.core.version import get_version
from superengulfing.i18n import html_lang, t
from superengulfing.routing.admin_gate import (
    REMEMBER_LABELS,
    AdminGate,
    AdminStep,
    InvalidTransition,
)
from superengulfing.routing.auth_gate import AuthGate
from superengulfing.routing.locale import Locale, localize_path, resolve_locale, switch_locale_path
from superengulfing.routing.redirects import resolve_am_thank_you
from superengulfing.routing.routes import CACHE_CONTROL, RouteEntry, RouteTable
from superengulfing.routing.seo import canonical_url, page_meta
from superengulfing.services.admin_flows import AdminFlowRegistry
from superengulfing.services.api_client import SiteApiClient, UserProfile, create_api_client
from superengulfing.web.session import (
    ADMIN_FLOW_COOKIE,
    ADMIN_SESSION_COOKIE,
    CookieSessionProvider,
    clear_admin_session,
    load_admin_session,
    store_admin_session,
)

logger = logging.getLogger(__name__)

_api: SiteApiClient | None = None
_admin_flows: AdminFlowRegistry | None = None

# (page_id, label key) pairs; hrefs come from the route table.
NAV_LINKS: tuple[tuple[str, str], ...] = (
    ("home", "nav_home"),
    ("access", "nav_access"),
    ("book", "nav_book"),
)

SUBSCRIBE_SOURCES = ("hero", "pattern-showcase")
MIN_PASSWORD_LENGTH = 6

_NO_STORE = {"Cache-Control": "no-store"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

templates_path = Path(__file__).parent / "templates"
jinja_env = Environment(
    loader=FileSystemLoader(templates_path),
    autoescape=select_autoescape(["html"]),
)


def _render_template_sync(template_name: str, context: dict[str, Any]) -> str:
    template = jinja_env.get_template(template_name)
    return template.render(**context)


async def render_template_async(template_name: str, context: dict[str, Any]) -> str:
    """Render a Jinja2 template in the threadpool so the event loop is not blocked."""
    return await run_in_threadpool(_render_template_sync, template_name, context)


@lru_cache(maxsize=4)
def get_route_table(admin_alias: str) -> RouteTable:
    return RouteTable(admin_alias=admin_alias)


def url_for(page_id: str, locale: Locale, **params: str) -> str:
    return get_route_table(get_settings().ADMIN_ALIAS).url_for(page_id, locale, **params)


def _require_api() -> SiteApiClient:
    if _api is None:
        raise HTTPException(status_code=503, detail="API client not ready")
    return _api


def _require_admin_flows() -> AdminFlowRegistry:
    global _admin_flows  # noqa: PLW0603
    if _admin_flows is None:
        api = _require_api()
        _admin_flows = AdminFlowRegistry(
            lambda session: AdminGate(api, session),
            ttl_seconds=get_settings().ADMIN_FLOW_TTL_SECONDS,
        )
    return _admin_flows


def _redirect(url: str, status_code: int = 302) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=status_code, headers=_NO_STORE)


def _base_context(
    path: str,
    page_id: str,
    locale: Locale,
    session: CookieSessionProvider,
) -> dict[str, Any]:
    """Context shared by every template: meta, canonical link, navbar."""
    settings = get_settings()
    return {
        "path": path,
        "page_id": page_id,
        "locale": locale,
        "lang": html_lang(locale),
        "t": partial(t, locale=locale),
        "meta": page_meta(page_id),
        "canonical": canonical_url(settings.SITE_URL, path),
        "nav_links": [(url_for(nav_page, locale), t(key, locale)) for nav_page, key in NAV_LINKS],
        "home_href": url_for("home", locale),
        "switch_href": switch_locale_path(path),
        "authenticated": session.get_token() is not None,
        "dashboard_href": url_for("dashboard", locale),
        "login_href": url_for("login", locale),
        "access_href": url_for("access", locale),
        "logout_action": localize_path("/logout", locale),
    }


async def _render_page(
    request: Request,
    session: CookieSessionProvider,
    page_id: str,
    locale: Locale,
    *,
    path: str | None = None,
    params: dict[str, str] | None = None,
    profile: UserProfile | None = None,
    message_key: str | None = None,
    message_text: str = "",
    message_class: str = "error",
    extra: dict[str, Any] | None = None,
    status_code: int = 200,
) -> Response:
    """Render one localized page.

    *path* overrides the request path for canonical and switch links, for
    form posts to endpoints that are not pages themselves (``/subscribe``).
    *message_text* (API wording) wins over *message_key*.
    """
    path = path or request.url.path
    context = _base_context(path, page_id, locale, session)
    context.update(
        heading=t(f"page_{page_id}", locale),
        params=params or {},
        profile=profile,
        message=message_text or (t(message_key, locale) if message_key else ""),
        message_class=message_class,
        login_action=url_for("login", locale),
        dev_login_action=localize_path("/dev-login", locale),
        dev_login_enabled=get_settings().DEV_LOGIN_ENABLED,
        subscribe_action=localize_path("/subscribe", locale),
        access_action=url_for("access", locale),
        set_password_action=url_for("set_password", locale),
        media=None,
    )
    context.update(extra or {})
    if page_id == "thank_you" and _api is not None:
        context["media"] = await _api.fetch_site_media(locale)

    template = "login.html" if page_id == "login" else "page.html"
    html = await render_template_async(template, context)
    return session.apply(HTMLResponse(html, status_code=status_code))


def _render_nothing(session: CookieSessionProvider) -> Response:
    """Empty body: nothing protected is shown while authorization is unknown."""
    return session.apply(HTMLResponse("", status_code=200, headers=_NO_STORE))


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging, open the API client, close it on shutdown."""
    global _api, _admin_flows  # noqa: PLW0603

    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    _api = create_api_client(settings)
    _admin_flows = AdminFlowRegistry(
        lambda session: AdminGate(_require_api(), session),
        ttl_seconds=settings.ADMIN_FLOW_TTL_SECONDS,
    )
    logger.info("Site started", extra={"event": "startup"})

    yield

    if _api is not None:
        await _api.aclose()
    _api = None
    _admin_flows = None
    logger.info("API client closed", extra={"event": "shutdown"})


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

app = FastAPI(lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)


@app.middleware("http")
async def request_context(request: Request, call_next: Any) -> Response:
    """Bind ``request_id``/``path`` for log records and log each request."""
    tok_rid = ctx_request_id.set(uuid.uuid4().hex[:12])
    tok_path = ctx_path.set(request.url.path)
    started = time.perf_counter()
    try:
        response = await call_next(request)
        logger.info(
            "%s %s",
            request.method,
            request.url.path,
            extra={
                "event": "request",
                "status_code": response.status_code,
                "latency_ms": round((time.perf_counter() - started) * 1000, 1),
            },
        )
        return response
    finally:
        ctx_request_id.reset(tok_rid)
        ctx_path.reset(tok_path)


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok", "version": get_version()}


@app.get("/robots.txt")
async def robots_txt() -> Response:
    settings = get_settings()
    body = get_route_table(settings.ADMIN_ALIAS).render_robots_txt(settings.SITE_URL)
    return PlainTextResponse(body, headers={"Cache-Control": CACHE_CONTROL})


@app.get("/sitemap.xml")
async def sitemap_xml() -> Response:
    settings = get_settings()
    body = get_route_table(settings.ADMIN_ALIAS).render_sitemap_xml(settings.SITE_URL)
    return Response(body, media_type="application/xml", headers={"Cache-Control": CACHE_CONTROL})


async def _am_thank_you(request: Request) -> Response:
    """Gated Armenian thank-you page; the page locale comes from the gate."""
    settings = get_settings()

    async def exchange(token: str) -> Locale | None:
        return await _require_api().exchange_thank_you_token(token)

    outcome = await resolve_am_thank_you(settings.THANK_YOU_GATE, request.query_params, exchange)
    if outcome.redirect_to is not None:
        return _redirect(outcome.redirect_to)

    session = CookieSessionProvider(request, secure=settings.COOKIE_SECURE)
    return await _render_page(request, session, "thank_you", outcome.locale or "am")


# ---------------------------------------------------------------------------
# Dashboard session actions
# ---------------------------------------------------------------------------


@app.post("/login")
@app.post("/am/login")
async def login_action(request: Request) -> Response:
    """Exchange email/password for a session token, then open the dashboard."""
    settings = get_settings()
    locale = resolve_locale(request.url.path)
    session = CookieSessionProvider(request, secure=settings.COOKIE_SECURE)

    form = await request.form()
    email = str(form.get("email") or "")
    password = str(form.get("password") or "")
    if not email.strip() or not password:
        return await _render_page(
            request, session, "login", locale, message_key="login_error_required", status_code=400
        )

    result = await _require_api().login(email, password)
    if not result.success or result.token is None:
        status_code = 401 if result.message_key == "login_error_invalid" else 502
        return await _render_page(
            request, session, "login", locale, message_key=result.message_key, status_code=status_code
        )

    session.set_token(result.token)
    logger.info("Dashboard login", extra={"event": "login", "locale": result.locale})
    return session.apply(_redirect(url_for("dashboard", result.locale), status_code=303))


@app.post("/dev-login")
@app.post("/am/dev-login")
async def dev_login_action(request: Request) -> Response:
    settings = get_settings()
    if not settings.DEV_LOGIN_ENABLED:
        raise HTTPException(status_code=404, detail="Not Found")
    locale = resolve_locale(request.url.path)
    session = CookieSessionProvider(request, secure=settings.COOKIE_SECURE)

    result = await _require_api().dev_login()
    if not result.success or result.token is None:
        return await _render_page(
            request, session, "login", locale, message_key=result.message_key, status_code=502
        )

    session.set_token(result.token)
    return session.apply(_redirect(url_for("dashboard", result.locale), status_code=303))


@app.post("/logout")
@app.post("/am/logout")
async def logout_action(request: Request) -> Response:
    settings = get_settings()
    session = CookieSessionProvider(request, secure=settings.COOKIE_SECURE)
    session.clear_token()
    login = url_for("login", resolve_locale(request.url.path))
    return session.apply(_redirect(login, status_code=303))


# ---------------------------------------------------------------------------
# Email subscribe, course access, password setup
# ---------------------------------------------------------------------------


@app.post("/subscribe")
@app.post("/am/subscribe")
async def subscribe_action(request: Request) -> Response:
    """Subscribe an email to the free PDF list; the answer renders on the home page."""
    settings = get_settings()
    locale = resolve_locale(request.url.path)
    session = CookieSessionProvider(request, secure=settings.COOKIE_SECURE)
    home = url_for("home", locale)

    form = await request.form()
    email = str(form.get("email") or "").strip()
    source = str(form.get("source") or "")
    if source not in SUBSCRIBE_SOURCES:
        source = SUBSCRIBE_SOURCES[0]
    if "@" not in email:
        return await _render_page(
            request, session, "home", locale, path=home, message_key="subscribe_error_required", status_code=400
        )

    result = await _require_api().subscribe(email, locale, source)
    logger.info(
        "Subscribe %s",
        result.status,
        extra={"event": "subscribe", "locale": locale},
    )
    if result.status == "failed":
        status_code = 502 if result.message_key == "subscribe_connection_error" else 400
        return await _render_page(
            request,
            session,
            "home",
            locale,
            path=home,
            message_key=result.message_key,
            message_text=result.message,
            status_code=status_code,
        )
    return await _render_page(
        request,
        session,
        "home",
        locale,
        path=home,
        message_key=result.message_key,
        message_class="success" if result.success else "notice",
    )


@app.post("/course-access")
@app.post("/am/course-access")
async def access_request_action(request: Request) -> Response:
    """Submit an email + exchange UID course access request."""
    settings = get_settings()
    locale = resolve_locale(request.url.path)
    session = CookieSessionProvider(request, secure=settings.COOKIE_SECURE)

    form = await request.form()
    email = str(form.get("email") or "").strip()
    uid = str(form.get("uid") or "").strip()
    if "@" not in email or not uid:
        return await _render_page(
            request, session, "access", locale, message_key="access_error_required", status_code=400
        )

    result = await _require_api().request_access(email, uid, locale)
    if not result.success:
        status_code = 409 if result.message_key == "access_error_exists" else 502
        return await _render_page(
            request,
            session,
            "access",
            locale,
            message_key=result.message_key,
            message_text=result.message,
            status_code=status_code,
        )

    logger.info("Course access requested", extra={"event": "access_request", "locale": locale})
    return await _render_page(
        request,
        session,
        "access",
        locale,
        message_key=result.message_key,
        message_class="success",
        extra={"access_done": True},
    )


def _set_password_context(token: str, state: str = "form") -> dict[str, Any]:
    """``state`` is one of ``form``, ``missing-token``, ``link-used``, ``link-invalid``."""
    return {"token": token, "set_password_state": state if token else "missing-token"}


@app.post("/set-password")
@app.post("/am/set-password")
async def set_password_action(request: Request) -> Response:
    """Set the dashboard password from an emailed one-time link."""
    settings = get_settings()
    locale = resolve_locale(request.url.path)
    session = CookieSessionProvider(request, secure=settings.COOKIE_SECURE)

    form = await request.form()
    token = str(form.get("token") or "")
    password = str(form.get("password") or "")
    confirm = str(form.get("confirm_password") or "")

    message_key = None
    if token and len(password) < MIN_PASSWORD_LENGTH:
        message_key = "set_password_min"
    elif token and password != confirm:
        message_key = "set_password_mismatch"
    if not token or message_key is not None:
        return await _render_page(
            request,
            session,
            "set_password",
            locale,
            message_key=message_key,
            extra=_set_password_context(token),
            status_code=400,
        )

    result = await _require_api().set_password(token, password)
    if result.success:
        logger.info("Password set", extra={"event": "set_password", "locale": locale})
        return _redirect(f"{url_for('login', locale)}?password_set=1", status_code=303)

    if result.outcome == "error":
        return await _render_page(
            request,
            session,
            "set_password",
            locale,
            message_key="set_password_error",
            extra=_set_password_context(token),
            status_code=502,
        )
    state = "link-used" if result.outcome == "link_used" else "link-invalid"
    return await _render_page(
        request,
        session,
        "set_password",
        locale,
        extra=_set_password_context(token, state),
        status_code=400,
    )


# ---------------------------------------------------------------------------
# Admin gate
# ---------------------------------------------------------------------------


def _set_flow_cookie(response: Response, flow_id: str) -> None:
    response.set_cookie(
        ADMIN_FLOW_COOKIE,
        flow_id,
        path="/",
        httponly=True,
        samesite="strict",
        secure=get_settings().COOKIE_SECURE,
    )


async def _admin_page(request: Request, entry: RouteEntry) -> Response:
    """Render the gate for this browser's flow.  Page views never allocate a flow."""
    settings = get_settings()
    locale = entry.locale or "en"
    stored = load_admin_session(request, settings.SESSION_SECRET)
    _, gate = _require_admin_flows().peek(request.cookies.get(ADMIN_FLOW_COOKIE), stored)
    session = CookieSessionProvider(request, secure=settings.COOKIE_SECURE)

    step = gate.step
    context = _base_context(request.url.path, entry.page_id, locale, session)
    context.update(
        gate=gate,
        step=step.value,
        remember_options=list(REMEMBER_LABELS.items()),
        admin_email=gate.session.email if gate.session else "",
    )
    html = await render_template_async("admin_gate.html", context)
    response = HTMLResponse(html, headers=_NO_STORE)
    if step is AdminStep.PASSWORD_ENTRY and request.cookies.get(ADMIN_SESSION_COOKIE):
        clear_admin_session(response)
    return response


async def _admin_action(request: Request, entry: RouteEntry) -> Response:
    """Apply one admin gate transition, then redirect back (post/redirect/get)."""
    settings = get_settings()
    stored = load_admin_session(request, settings.SESSION_SECRET)
    flow_id, gate = _require_admin_flows().get(request.cookies.get(ADMIN_FLOW_COOKIE), stored)
    form = await request.form()
    action = str(form.get("step") or "")

    response = _redirect(request.url.path, status_code=303)
    try:
        if action == "password":
            await gate.submit_password(str(form.get("secret") or ""))
        elif action == "code":
            await gate.submit_code(
                str(form.get("code") or ""),
                remember_me=form.get("remember_me") in ("1", "on", "true"),
                remember_duration=str(form.get("remember_duration") or "") or None,
            )
            if gate.session is not None and gate.is_valid:
                store_admin_session(
                    response, gate.session, settings.SESSION_SECRET, secure=settings.COOKIE_SECURE
                )
        elif action == "back":
            gate.back_to_password()
        elif action == "dismiss-qr":
            gate.dismiss_qr()
        elif action == "logout":
            gate.logout()
            clear_admin_session(response)
            _require_admin_flows().discard(flow_id)
            response.delete_cookie(ADMIN_FLOW_COOKIE, path="/")
            return response
        else:
            raise HTTPException(status_code=400, detail="Unknown admin action")
    except InvalidTransition as exc:
        logger.info("Ignored admin action %r: %s", action, exc, extra={"event": "admin_invalid_transition"})

    _set_flow_cookie(response, flow_id)
    return response


# ---------------------------------------------------------------------------
# Route-table dispatch (must stay last: catch-all paths)
# ---------------------------------------------------------------------------


@app.get("/{full_path:path}")
async def site_page(full_path: str, request: Request) -> Response:
    settings = get_settings()
    path = request.url.path
    match = get_route_table(settings.ADMIN_ALIAS).match(path)
    if match is None or match.entry.locale is None:
        raise HTTPException(status_code=404, detail="Not Found")

    entry = match.entry
    if entry.redirect_to is not None:
        logger.info(
            "Legacy alias redirect",
            extra={"event": "admin_alias_redirect", "redirect_to": entry.redirect_to},
        )
        return _redirect(entry.redirect_to)

    if entry.access == "admin":
        return await _admin_page(request, entry)
    if entry.page_id == "thank_you" and entry.locale == "am":
        return await _am_thank_you(request)

    session = CookieSessionProvider(request, secure=settings.COOKIE_SECURE)
    profile = None
    if entry.access == "protected":
        gate = AuthGate(session, _require_api().fetch_profile)
        decision = await gate.mount(path)
        if decision.redirect_to is not None:
            return session.apply(_redirect(decision.redirect_to))
        if not decision.render:
            return _render_nothing(session)
        profile = gate.profile

    message_key = None
    extra: dict[str, Any] = {}
    if entry.page_id == "set_password":
        extra = _set_password_context(request.query_params.get("token", ""))
    elif entry.page_id == "login" and request.query_params.get("password_set") == "1":
        message_key = "login_password_set"

    return await _render_page(
        request,
        session,
        entry.page_id,
        entry.locale,
        params=match.params,
        profile=profile,
        message_key=message_key,
        message_class="success" if message_key else "error",
        extra=extra,
    )


@app.post("/{full_path:path}")
async def site_action(full_path: str, request: Request) -> Response:
    settings = get_settings()
    match = get_route_table(settings.ADMIN_ALIAS).match(request.url.path)
    if match is None or match.entry.access != "admin" or match.entry.redirect_to is not None:
        raise HTTPException(status_code=404, detail="Not Found")
    return await _admin_action(request, match.entry)
