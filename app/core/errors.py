"""Exception types for the badge claim pipeline.

ClaimError and its subclasses short-circuit the request: the HTTP layer
turns them into a plain-text response with ``status_code`` and
``public_message``.  The public message is what the browser sees, so it
never carries upstream bodies or credential values; those belong in the
log line written where the error is raised.

NotificationError and SheetLogError are the non-critical failures of the
fan-out stage.  They are caught inside the fan-out and never reach the
client.
"""

from __future__ import annotations


class ClaimError(Exception):
    """A failure that ends the request with a specific status code."""

    def __init__(self, status_code: int, public_message: str) -> None:
        super().__init__(public_message)
        self.status_code = status_code
        self.public_message = public_message


class ConfigurationError(ClaimError):
    """Missing secrets or inconsistent registries.  Always 500."""

    def __init__(self, public_message: str = "Server configuration error") -> None:
        super().__init__(500, public_message)


class BadgeIssuanceError(ClaimError):
    """Token or assertion call to the badge issuer failed.  Always 500."""

    def __init__(self, public_message: str) -> None:
        super().__init__(500, public_message)


class NotificationError(Exception):
    """The transactional email could not be sent."""


class SheetLogError(Exception):
    """The claim row could not be appended to the spreadsheet."""
