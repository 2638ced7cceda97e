"""Server-side redirect rules that run before any page renders.

- ``/am/admin`` always goes to ``/am`` (route table redirect entry).
- ``/am/thank-you`` is gated, either by ``?confirmed=1`` or by a one-time
  ``?token=`` exchanged with the API for the subscriber's locale.  Any
  failure sends the visitor to the Armenian landing page.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Literal, Mapping

from superengulfing.routing.locale import Locale, localize_path

logger = logging.getLogger(__name__)

ThankYouGate = Literal["token", "confirmed"]
TokenExchange = Callable[[str], Awaitable[Locale | None]]

AM_LANDING = localize_path("/", "am")


@dataclass(frozen=True)
class ThankYouOutcome:
    """Either a redirect, or a locale to seed the thank-you page with."""

    redirect_to: str | None = None
    locale: Locale | None = None


def confirmed_gate(query: Mapping[str, str]) -> ThankYouOutcome:
    """Render only for ``confirmed=1``; anything else redirects."""
    if query.get("confirmed") == "1":
        return ThankYouOutcome(locale="am")
    return ThankYouOutcome(redirect_to=AM_LANDING)


async def token_gate(query: Mapping[str, str], exchange: TokenExchange) -> ThankYouOutcome:
    """Exchange ``token`` for a locale; the page renders in that locale."""
    token = query.get("token")
    if not token:
        return ThankYouOutcome(redirect_to=AM_LANDING)
    locale = await exchange(token)
    if locale is None:
        return ThankYouOutcome(redirect_to=AM_LANDING)
    return ThankYouOutcome(locale=locale)


async def resolve_am_thank_you(
    mode: ThankYouGate,
    query: Mapping[str, str],
    exchange: TokenExchange,
) -> ThankYouOutcome:
    if mode == "confirmed":
        outcome = confirmed_gate(query)
    else:
        outcome = await token_gate(query, exchange)
    if outcome.redirect_to is not None:
        logger.info(
            "Thank-you access denied",
            extra={"event": "thank_you_redirect", "redirect_to": outcome.redirect_to},
        )
    return outcome
