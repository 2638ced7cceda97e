"""Per-page meta tags and the canonical link.

Unknown page ids fall back to the home entry.  Gated pages are
``noindex`` so they never appear in search results even when linked.
"""

from __future__ import annotations

from dataclasses import dataclass

SITE_NAME = "SuperEngulfing.com"
DEFAULT_TITLE = f"{SITE_NAME} - Master the Liquidity Sweep"
DEFAULT_DESCRIPTION = (
    "Institutional algos hunt stops below the lows. SuperEngulfing identifies "
    "the wick grab before the reversal happens."
)


@dataclass(frozen=True)
class PageMeta:
    title: str
    description: str
    noindex: bool = False


_META: dict[str, PageMeta] = {
    "home": PageMeta(DEFAULT_TITLE, DEFAULT_DESCRIPTION),
    "access": PageMeta(
        f"Course Access | {SITE_NAME}",
        "Get free access to the full SuperEngulfing masterclass. "
        "Institutional trading systems, zero cost.",
    ),
    "login": PageMeta(f"Login | {SITE_NAME}", "Log in to your SuperEngulfing dashboard."),
    "book": PageMeta(
        f"SuperEngulfing Book | {SITE_NAME}",
        "Learn liquidity sweeps and smart money concepts.",
    ),
    "liquidityscan": PageMeta(
        f"LiquidityScan | {SITE_NAME}",
        "Advanced liquidity detection tool for traders.",
    ),
    "thank_you": PageMeta(
        f"Thank You | {SITE_NAME}",
        "Welcome to SuperEngulfing. Your resources are ready.",
    ),
    "terms": PageMeta(
        f"Terms & Conditions | {SITE_NAME}",
        "Terms and conditions for SuperEngulfing services.",
    ),
    "privacy": PageMeta(f"Privacy Policy | {SITE_NAME}", "Privacy policy for SuperEngulfing."),
    "disclaimer": PageMeta(
        f"Disclaimer | {SITE_NAME}",
        "Trading disclaimer and risk disclosure.",
    ),
    "set_password": PageMeta(f"Set Password | {SITE_NAME}", "Set your password.", noindex=True),
    "dashboard": PageMeta(f"Dashboard | {SITE_NAME}", "Your trading dashboard.", noindex=True),
    "academy": PageMeta(f"Dashboard | {SITE_NAME}", "Your trading dashboard.", noindex=True),
    "course": PageMeta(f"Dashboard | {SITE_NAME}", "Your trading dashboard.", noindex=True),
    "admin": PageMeta(f"Admin | {SITE_NAME}", "Admin panel.", noindex=True),
    "admin_alias": PageMeta(f"Admin | {SITE_NAME}", "Admin panel.", noindex=True),
}


def page_meta(page_id: str) -> PageMeta:
    return _META.get(page_id, _META["home"])


def canonical_url(site_url: str, path: str) -> str:
    """Concatenate; the current path is trusted as already canonical."""
    return f"{site_url}{path}"
