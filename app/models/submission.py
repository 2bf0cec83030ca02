from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Submission:
    """Normalized course-completion form fields.

    Built by claim_validator; every field has already been trimmed and
    sanitized.  In the open deployment variant full_name and access_code
    may be empty.
    """

    email: str
    full_name: str
    badge_class_id: str
    access_code: str = ""


@dataclass(frozen=True, slots=True)
class ValidatedClaim:
    """A submission that passed every registry check."""

    submission: Submission
    course_id: str
