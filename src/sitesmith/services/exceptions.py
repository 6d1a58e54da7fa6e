"""Errors raised by Sitesmith services."""


class SitesmithError(Exception):
    """Base class for service errors the CLI and editor report to the user."""


class FileModifiedError(SitesmithError):
    """A page file changed on disk behind the editor's back.

    Attributes:
        path: The page file
        check: Which check noticed the change
    """

    def __init__(self, path: str, check: str = "before save"):
        self.path = path
        self.check = check
        super().__init__(f"{path} was modified outside the editor ({check})")


class RecoveryQuotaExceededError(SitesmithError):
    """A recovery snapshot does not fit in the store's byte quota."""

    def __init__(self, key: str, needed: int, quota: int):
        self.key = key
        self.needed = needed
        self.quota = quota
        super().__init__(f"Recovery store quota exceeded writing {key}: {needed} > {quota} bytes")


class GenerationError(SitesmithError):
    """The LLM did not produce a usable HTML document."""
