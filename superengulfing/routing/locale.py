"""Locale resolution and locale-prefixed path building.

The active locale comes from the URL alone: ``/am`` and everything below
it is Armenian, every other path is English.  No cookies, no
``Accept-Language`` negotiation.

``localize_path`` is the only place that builds ``/am/...`` strings.
Links, form actions and redirect targets all go through it so the
``amUrl = "/am" + enUrl`` rule (with ``"/"`` ↔ ``"/am"``) cannot drift.
"""

from __future__ import annotations

from typing import Literal

Locale = Literal["en", "am"]

LOCALES: tuple[Locale, ...] = ("en", "am")
DEFAULT_LOCALE: Locale = "en"
AM_PREFIX = "/am"


def normalize_locale(value: object) -> Locale:
    """Map any value to a supported locale (``"am"`` or else ``"en"``)."""
    return "am" if value == "am" else "en"


def resolve_locale(path: str) -> Locale:
    """Return the locale implied by *path*.

    Total over all strings: empty or malformed input resolves to ``en``.
    """
    if path == AM_PREFIX or path.startswith(AM_PREFIX + "/"):
        return "am"
    return "en"


def localize_path(logical_path: str, locale: Locale) -> str:
    """Return the concrete href for an en-canonical *logical_path*.

    >>> localize_path("/dashboard", "am")
    '/am/dashboard'
    >>> localize_path("/", "am")
    '/am'
    """
    if locale != "am":
        return logical_path
    path = logical_path if logical_path.startswith("/") else f"/{logical_path}"
    if path == "/":
        return AM_PREFIX
    return AM_PREFIX + path


def strip_locale_prefix(path: str) -> str:
    """Remove a leading ``/am`` segment; ``/am`` itself becomes ``/``."""
    if resolve_locale(path) != "am":
        return path
    return path[len(AM_PREFIX):] or "/"


def switch_locale_path(path: str) -> str:
    """Return the same logical page in the other language (navbar toggle)."""
    if resolve_locale(path) == "am":
        return strip_locale_prefix(path)
    return localize_path(path, "am")
