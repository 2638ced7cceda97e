"""Route table: the single, enumerable list of site URLs.

Every page is declared once with its en-canonical path; the table maps
it through both locale prefixes, so each page gets an ``en`` entry and an
``am`` entry (``/`` ↔ ``/am``).  Only ``robots.txt`` and ``sitemap.xml``
are locale-agnostic.  The admin page is the one page whose ``am`` twin is
a redirect entry (``/am/admin`` → ``/am``) instead of a rendered page,
which keeps the disguised admin alias as the only Armenian admin URL.

``robots.txt`` and ``sitemap.xml`` bodies are derived from the same page
list, never from hand-written URL lists.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Literal
from xml.sax.saxutils import escape

from superengulfing.routing.locale import LOCALES, Locale, localize_path

Access = Literal["public", "protected", "admin"]

DEFAULT_ADMIN_ALIAS = "admin2admin10"

ROBOTS_PATH = "/robots.txt"
SITEMAP_PATH = "/sitemap.xml"
SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
CACHE_CONTROL = "public, max-age=3600"

_PARAM_RE = re.compile(r"\{(\w+)\}")
_ALIAS_RE = re.compile(r"^[A-Za-z0-9_-]+$")

# Served outside the route table; the admin alias must not shadow them.
FIXED_SEGMENTS = ("am", "health", "logout", "dev-login", "subscribe", "robots.txt", "sitemap.xml")


@dataclass(frozen=True)
class Page:
    """A logical page, independent of locale."""

    page_id: str
    path: str
    access: Access = "public"
    in_sitemap: bool = False
    locales: tuple[Locale, ...] = LOCALES


@dataclass(frozen=True)
class RouteEntry:
    """One concrete URL pattern.  ``locale`` is ``None`` for locale-agnostic entries."""

    pattern: str
    page_id: str
    locale: Locale | None
    access: Access = "public"
    redirect_to: str | None = None

    @property
    def is_redirect(self) -> bool:
        return self.redirect_to is not None


@dataclass(frozen=True)
class RouteMatch:
    entry: RouteEntry
    params: dict[str, str] = field(default_factory=dict)

    @property
    def page_id(self) -> str:
        return self.entry.page_id


def site_pages(admin_alias: str = DEFAULT_ADMIN_ALIAS) -> list[Page]:
    """Return the logical page list.  Sitemap order follows this order."""
    return [
        Page("home", "/", in_sitemap=True),
        Page("access", "/course-access", in_sitemap=True),
        Page("login", "/login", in_sitemap=True),
        Page("book", "/book", in_sitemap=True),
        Page("liquidityscan", "/liquidityscan", in_sitemap=True),
        Page("thank_you", "/thank-you", in_sitemap=True),
        Page("terms", "/terms", in_sitemap=True),
        Page("privacy", "/privacy", in_sitemap=True),
        Page("disclaimer", "/disclaimer", in_sitemap=True),
        Page("ls3monthoff", "/LS3MONTHOFF"),
        Page("pay_liquidityscan", "/pay/liquidityscan"),
        Page("set_password", "/set-password"),
        Page("dashboard", "/dashboard", access="protected"),
        Page("academy", "/dashboard/academy", access="protected"),
        Page("course", "/dashboard/course/{course_id}", access="protected"),
        Page("admin", "/admin", access="admin", locales=("en",)),
        Page("admin_alias", f"/{admin_alias}", access="admin"),
    ]


def reserved_segments() -> frozenset[str]:
    """First path segments the admin alias may not take."""
    taken = {page.path.strip("/").split("/")[0] for page in site_pages() if page.page_id != "admin_alias"}
    return frozenset((taken | set(FIXED_SEGMENTS)) - {""})


def validate_admin_alias(alias: str) -> str:
    """Return *alias* if it can serve as a literal, unshadowed admin URL.

    Raises:
        ValueError: The alias holds characters outside ``[A-Za-z0-9_-]`` or
            collides with a page or fixed endpoint.
    """
    if not _ALIAS_RE.match(alias):
        raise ValueError("ADMIN_ALIAS may only contain letters, digits, '-' and '_'")
    if alias in reserved_segments():
        raise ValueError(f"ADMIN_ALIAS {alias!r} collides with an existing site path")
    return alias


def _compile(pattern: str) -> re.Pattern[str]:
    parts = _PARAM_RE.split(pattern)
    # split() alternates literal text and parameter names.
    regex = "".join(
        f"(?P<{part}>[^/]+)" if i % 2 else re.escape(part)
        for i, part in enumerate(parts)
    )
    return re.compile(f"^{regex}$")


class RouteTable:
    """Bidirectional registry of ``(pattern, page_id, locale)`` entries."""

    def __init__(self, admin_alias: str = DEFAULT_ADMIN_ALIAS) -> None:
        self.admin_alias = validate_admin_alias(admin_alias)
        self.pages: list[Page] = site_pages(admin_alias)
        self._pages_by_id = {page.page_id: page for page in self.pages}

        entries: list[RouteEntry] = []
        for page in self.pages:
            for locale in page.locales:
                entries.append(
                    RouteEntry(
                        pattern=localize_path(page.path, locale),
                        page_id=page.page_id,
                        locale=locale,
                        access=page.access,
                    )
                )
        # Legacy bare alias: never renders the admin gate under /am.
        entries.append(
            RouteEntry(
                pattern=localize_path("/admin", "am"),
                page_id="admin",
                locale="am",
                access="admin",
                redirect_to=localize_path("/", "am"),
            )
        )
        entries.append(RouteEntry(ROBOTS_PATH, "robots", None))
        entries.append(RouteEntry(SITEMAP_PATH, "sitemap", None))

        self.entries: list[RouteEntry] = entries
        self._compiled = [(entry, _compile(entry.pattern)) for entry in entries]

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def match(self, path: str) -> RouteMatch | None:
        """Return the entry for a concrete *path*, or ``None`` if unmatched."""
        candidate = path.rstrip("/") or "/"
        for entry, regex in self._compiled:
            m = regex.match(candidate)
            if m is not None:
                return RouteMatch(entry=entry, params=m.groupdict())
        return None

    def url_for(self, page_id: str, locale: Locale, **params: str) -> str:
        """Build the concrete URL of *page_id* in *locale*.

        Raises:
            KeyError: Unknown page id.
        """
        page = self._pages_by_id[page_id]
        return localize_path(page.path.format(**params), locale)

    def missing_twins(self) -> list[tuple[str, Locale]]:
        """Return ``(page_id, locale)`` pairs that have no entry at all."""
        present = {(e.page_id, e.locale) for e in self.entries}
        return [
            (page.page_id, locale)
            for page in self.pages
            for locale in LOCALES
            if (page.page_id, locale) not in present
        ]

    # ------------------------------------------------------------------
    # Derived documents
    # ------------------------------------------------------------------

    def public_paths(self) -> list[str]:
        """En-canonical paths of the public pages listed in the sitemap."""
        return [p.path for p in self.pages if p.in_sitemap and p.access == "public"]

    def sitemap_urls(self, site_url: str) -> list[str]:
        """All ``en`` URLs first, then the ``am`` URLs in the same order."""
        paths = self.public_paths()
        return [
            f"{site_url}{localize_path(path, locale)}"
            for locale in LOCALES
            for path in paths
        ]

    def disallowed_paths(self) -> list[str]:
        """Paths crawlers must skip: gated pages in both locales, then ``/set-password``."""
        twins = ["/dashboard", "/admin", f"/{self.admin_alias}"]
        paths = [localize_path(path, locale) for path in twins for locale in LOCALES]
        paths.append("/set-password")
        return paths

    def render_robots_txt(self, site_url: str) -> str:
        lines = ["User-agent: *", "Allow: /"]
        lines.extend(f"Disallow: {path}" for path in self.disallowed_paths())
        lines.append("")
        lines.append(f"Sitemap: {site_url}{SITEMAP_PATH}")
        return "\n".join(lines) + "\n"

    def render_sitemap_xml(self, site_url: str) -> str:
        urls = "\n".join(
            f"  <url><loc>{escape(url)}</loc><changefreq>weekly</changefreq></url>"
            for url in self.sitemap_urls(site_url)
        )
        return (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            f'<urlset xmlns="{SITEMAP_NS}">\n'
            f"{urls}\n"
            "</urlset>"
        )
