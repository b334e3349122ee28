"""Exception types raised while reading or writing skin data."""

from __future__ import annotations

from typing import Optional

_DEFAULT_USER_MESSAGE = "Unreadable or corrupt skin data"


class SkinDataError(Exception):
    """Base exception for skin container and feature errors."""

    def __init__(self, message: str, user_message: Optional[str] = None) -> None:
        super().__init__(message)
        self.user_message = user_message or _DEFAULT_USER_MESSAGE


class DecodeError(SkinDataError):
    """Stored data could not be decoded (bad lengths, unknown enum bytes, corrupt images)."""


class EncodeError(SkinDataError):
    """A value cannot be represented in the target encoding."""


class InvalidArgumentError(EncodeError):
    """A caller supplied a value outside its representable range."""


class InconsistentStateError(SkinDataError):
    """A feature flag disagrees with its backing data after the repair pass."""

    def __init__(self, message: str, user_message: Optional[str] = None) -> None:
        super().__init__(message, user_message or "Skin features are out of sync with their data")
