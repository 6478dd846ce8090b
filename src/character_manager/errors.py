"""Exception hierarchy for the character manager console."""

from __future__ import annotations


class CharacterManagerError(Exception):
    """Base class for errors raised by this package."""


class ConfigurationError(CharacterManagerError, RuntimeError):
    pass


class RemoteCallError(CharacterManagerError):
    """The host did not produce a usable response for an outbound call."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation


class BridgeMessageError(CharacterManagerError, ValueError):
    """An inbound host message or operator command could not be decoded."""
