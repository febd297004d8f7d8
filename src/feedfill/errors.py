"""Custom exceptions for the feedfill client."""


class FeedFillError(Exception):
    """Base exception for feedfill errors."""
    pass


class ConnectError(FeedFillError):
    """Raised when the feed server is unreachable, refuses, or times out."""
    pass


class SessionError(FeedFillError):
    """Raised when a session's transport fails mid-cycle or is misused."""
    pass


class DecodeError(FeedFillError):
    """Raised when a frame cannot be decoded into a Record."""
    pass


class ConfigurationError(FeedFillError):
    """Raised when configuration is invalid."""
    pass


class RecoveryError(FeedFillError):
    """Base for recovery escalations."""
    pass


class RecoveryExhaustedError(RecoveryError):
    """Raised when one sequence exceeds the configured retry bound."""

    def __init__(self, sequence: int, attempts: int):
        super().__init__(f"gave up on sequence {sequence} after {attempts} attempts")
        self.sequence = sequence
        self.attempts = attempts


class RecoveryIncompleteError(RecoveryError):
    """Raised when gaps remain after recovery has stopped."""

    def __init__(self, missing: list[int]):
        preview = ", ".join(str(s) for s in missing[:10])
        if len(missing) > 10:
            preview += ", ..."
        super().__init__(f"{len(missing)} sequence(s) still missing: {preview}")
        self.missing = list(missing)
