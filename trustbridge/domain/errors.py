"""Error taxonomy shared by the stores, services and the auth facade."""

from __future__ import annotations

import enum


class ErrorKind(str, enum.Enum):
    INVALID_INPUT = "invalid_input"
    DUPLICATE_USERNAME = "duplicate_username"
    INVALID_CREDENTIALS = "invalid_credentials"
    UNAUTHENTICATED = "unauthenticated"
    INVALID_KEY = "invalid_key"
    STORAGE_UNAVAILABLE = "storage_unavailable"


class AuthError(Exception):
    """Base class for every expected failure of a core operation."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT
    default_message = "Invalid request."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(AuthError):
    kind = ErrorKind.INVALID_INPUT
    default_message = "Invalid request."


class DuplicateUsernameError(AuthError):
    kind = ErrorKind.DUPLICATE_USERNAME
    default_message = "Username already taken."


class InvalidCredentialsError(AuthError):
    kind = ErrorKind.INVALID_CREDENTIALS
    default_message = "Incorrect username or password."


class UnauthenticatedError(AuthError):
    kind = ErrorKind.UNAUTHENTICATED
    default_message = "Not logged in."


class InvalidKeyError(AuthError):
    kind = ErrorKind.INVALID_KEY
    default_message = "txId required."


class StorageUnavailableError(AuthError):
    """Raised by a store when the backing database or file cannot be used."""

    kind = ErrorKind.STORAGE_UNAVAILABLE
    default_message = "Storage is temporarily unavailable."
