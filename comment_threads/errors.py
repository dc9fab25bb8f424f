from __future__ import annotations

from typing import Optional


class RegistryError(Exception):
    """
    Base class for failures talking to the thread registry.

    - kind: short stable name used in build failure messages
    - status: HTTP status when the tracker answered, None for transport errors
    """

    kind = "registry_error"

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class RegistryUnavailable(RegistryError):
    """Network/transport failure, timeout, 5xx or an unreadable response."""

    kind = "registry_unavailable"


class RegistryAuth(RegistryError):
    """Credential missing, invalid, or not allowed to see/write the project."""

    kind = "registry_auth"


class RegistryRateLimited(RegistryError):
    """The tracker throttled the request; retry_after is in seconds when it says."""

    kind = "registry_rate_limited"

    def __init__(
            self,
            message: str,
            status: Optional[int] = None,
            retry_after: Optional[float] = None,
    ):
        super().__init__(message, status=status)
        self.retry_after = retry_after


class RegistryRejected(RegistryError):
    """The tracker understood the request and declined it (validation, disabled issues...)."""

    kind = "registry_rejected"


class PostError(Exception):
    """A post file could not be read or does not satisfy the input contract."""

    kind = "post_invalid"

    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path
