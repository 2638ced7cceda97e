"""Internationalization module.

Provides the ``t(key, locale)`` translation helper that looks up locale
strings from ``superengulfing/i18n/locales/{locale}.py`` dictionaries.
English and Armenian are two separate sites: a page never mixes strings
from both.

Fallback behaviour:
- Unknown *locale* → falls back to English.
- Unknown *key* → returns the key itself (safe for debugging).

Usage::

    from superengulfing.i18n import t

    text = t("nav_home", "am")      # → "Գլխավոր"
    text = t("nav_home", "en")      # → "Home"
    text = t("nav_home", "fr")      # → EN fallback
    text = t("no_such_key", "en")   # → "no_such_key"
"""

from __future__ import annotations

from superengulfing.i18n.locales.am import STRINGS as AM_STRINGS
from superengulfing.i18n.locales.en import STRINGS as EN_STRINGS

# Registry of supported locales, keyed by the lower-case code used in URLs
# (``/am/...``) and in the API's ``profile.locale`` field.
_LOCALES: dict[str, dict[str, str]] = {
    "en": EN_STRINGS,
    "am": AM_STRINGS,
}

DEFAULT_LOCALE = "en"

# ``am`` is the site's URL code; the ISO 639-1 tag for Armenian is ``hy``.
_HTML_LANG: dict[str, str] = {
    "en": "en",
    "am": "hy",
}


def t(key: str, locale: str | None = None) -> str:
    """Return the localised string for *key* in *locale*.

    Parameters
    ----------
    key:
        Locale key defined in ``locales/en.py`` / ``locales/am.py``.
    locale:
        Locale code (case-insensitive).  ``None`` or an unknown code
        falls back to English.

    Returns
    -------
    str
        The translated string, or the *key* itself if not found in any
        locale.
    """
    code = (locale or DEFAULT_LOCALE).lower()

    strings = _LOCALES.get(code)
    if strings is not None:
        value = strings.get(key)
        if value is not None:
            return value

    if code != DEFAULT_LOCALE:
        value = EN_STRINGS.get(key)
        if value is not None:
            return value

    return key


def html_lang(locale: str | None) -> str:
    """Return the ``<html lang>`` value for *locale* (``hy`` for Armenian)."""
    return _HTML_LANG.get((locale or DEFAULT_LOCALE).lower(), "en")


def supported_locales() -> list[str]:
    """Return sorted list of supported locale codes."""
    return sorted(_LOCALES.keys())
