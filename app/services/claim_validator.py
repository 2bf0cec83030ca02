"""Form parsing, field normalization and registry cross-checks.

Pure functions of the submitted body and the static registries: no
network, no clock, no randomness.

NORMALIZATION
--------------
  email          trim, lowercase
  full_name      trim, drop anything but word chars/space/'/-, cap at 100
  badge_class_id trim only (ids are case-sensitive and contain _ and -)
  access_code    trim, drop anything but word chars/space/'/-

"Word chars" is the regex \\w class: letters and digits in any script
plus underscore.  Access codes such as PYSJ_415_GH rely on the
underscore surviving.

EMAIL CHECK
------------
Deliberately loose: something@something.something with no extra @.
It catches typos like a missing domain, not RFC 5322 violations.
"""

from __future__ import annotations

import hmac
import logging
import re
from urllib.parse import parse_qs

from app.core.errors import ClaimError, ConfigurationError
from app.core.registry import BadgeRegistry
from app.models.submission import Submission, ValidatedClaim

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100

_UNSAFE_CHARS = re.compile(r"[^\w\s'-]")
_EMAIL_SHAPE = re.compile(r"[^@]+@[^@]+\.[^@]+")


def sanitize_text(value: str) -> str:
    return _UNSAFE_CHARS.sub("", value.strip())


def normalize_submission(body: bytes) -> Submission:
    """Parse an x-www-form-urlencoded body into a normalized Submission.

    Unknown fields are ignored; missing fields become empty strings.
    When a field repeats, the first value wins.
    """
    fields = parse_qs(body.decode("utf-8", errors="replace"), keep_blank_values=True)

    def first(name: str) -> str:
        values = fields.get(name)
        return values[0] if values else ""

    return Submission(
        email=first("email").strip().lower(),
        full_name=sanitize_text(first("full_name"))[:MAX_NAME_LENGTH],
        badge_class_id=first("badge_class_id").strip(),
        access_code=sanitize_text(first("access_code")),
    )


def is_valid_email(email: str) -> bool:
    return _EMAIL_SHAPE.fullmatch(email) is not None


def validate_submission(
    submission: Submission,
    registry: BadgeRegistry,
    *,
    require_access_code: bool,
) -> ValidatedClaim:
    """Check required fields, email shape and the badge/access-code tables.

    Raises ClaimError (400/403) for client mistakes and ConfigurationError
    (500) when the two registries disagree about a badge class.
    """
    required = [submission.email, submission.badge_class_id]
    if require_access_code:
        required += [submission.full_name, submission.access_code]
    if any(not value.strip() for value in required):
        logger.warning(
            "Missing required fields  email=%s badge_class_id=%s",
            bool(submission.email),
            bool(submission.badge_class_id),
        )
        raise ClaimError(400, "Missing required fields")

    if not is_valid_email(submission.email):
        logger.warning("Invalid email format  email=%r", submission.email)
        raise ClaimError(400, "Invalid email format")

    course_id = registry.course_for(submission.badge_class_id)
    if course_id is None:
        logger.warning(
            "Unknown badge class  badge_class_id=%r", submission.badge_class_id
        )
        raise ClaimError(400, "Invalid badge_class_id")

    if require_access_code:
        expected = registry.access_code_for(submission.badge_class_id)
        if expected is None:
            logger.error(
                "Badge class %s has a course (%s) but no access code",
                submission.badge_class_id,
                course_id,
            )
            raise ConfigurationError()
        # Exact, case-sensitive, constant-time
        if not hmac.compare_digest(
            submission.access_code.encode("utf-8"), expected.encode("utf-8")
        ):
            logger.warning(
                "Access code mismatch  badge_class_id=%s email=%s",
                submission.badge_class_id,
                submission.email,
            )
            raise ClaimError(403, "Invalid access code")

    return ValidatedClaim(submission=submission, course_id=course_id)
