from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class BadgeAssertion:
    """Issued badge instance, maps to an Open Badges Assertion.

    open_badge_id is the issuer's URL for the assertion.  The issuer
    returns the existing assertion when the recipient already holds the
    badge, so the same id may come back for repeated claims.
    """

    open_badge_id: str
    badge_class_id: str
    recipient_email: str
