from __future__ import annotations


# Base error carrying the HTTP status the app-level handler renders as {"error": message}
class ChatBackendError(Exception):
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# Missing or malformed input, detected before any write
class ValidationError(ChatBackendError):
    status_code = 400


class AuthenticationError(ChatBackendError):
    status_code = 401


# Sender is not one of the room's two participants
class AuthorizationError(ChatBackendError):
    status_code = 403


class NotFoundError(ChatBackendError):
    status_code = 404


# Lost a uniqueness race; the room registry recovers from this internally
class ConflictError(ChatBackendError):
    status_code = 409


class RateLimitError(ChatBackendError):
    status_code = 429

    def __init__(self, message: str, wait_seconds: int = 0):
        super().__init__(message)
        self.wait_seconds = wait_seconds
