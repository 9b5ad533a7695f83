"""Errors raised by property models and their facades.

Every failure is raised synchronously to the direct caller. A rejected
write leaves the model exactly as it was.
"""

from __future__ import annotations


class PropsModelError(Exception):
    """Base class for all property-model errors."""


class DuplicateNameError(PropsModelError, ValueError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Property already defined: {name}")
        self.name = name


class NoSuchPropertyError(PropsModelError, LookupError):
    def __init__(self, name: str, message: str | None = None) -> None:
        super().__init__(message or f"No such property '{name}'")
        self.name = name


class AccessDeniedError(PropsModelError, PermissionError):
    def __init__(self, name: str, message: str | None = None) -> None:
        super().__init__(
            message or f"Requested access to property '{name}' is not allowed"
        )
        self.name = name


class ValidationRejectedError(PropsModelError, ValueError):
    """A validator rejected a proposed value.

    Validators may raise this themselves with their own message, or return
    False and let the model raise it.
    """

    def __init__(self, name: str, value: object, message: str | None = None) -> None:
        super().__init__(message or f"Invalid value for property '{name}': {value!r}")
        self.name = name
        self.value = value


class InvalidAccessModeError(PropsModelError, ValueError):
    def __init__(self, name: str, mode: object) -> None:
        super().__init__(f"Unknown access type '{mode}' specified for property '{name}'")
        self.name = name
        self.mode = mode
