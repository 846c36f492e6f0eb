"""Custom exceptions for the portal/careers E2E suite."""


class SuiteError(Exception):
    """Base exception for all suite-level failures."""

    pass


class SnapshotNotFoundError(SuiteError):
    """No session snapshot file exists at the requested path."""

    def __init__(self, path: str):
        super().__init__(f"No session snapshot at {path}")
        self.path = path


class SnapshotParseError(SuiteError):
    """Snapshot file exists but is not a well-formed storage state."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Malformed session snapshot at {path}: {reason}")
        self.path = path
        self.reason = reason


class OriginRestoreError(SuiteError):
    """Local storage for a single origin could not be restored."""

    def __init__(self, origin: str, reason: str):
        super().__init__(f"Could not restore origin {origin}: {reason}")
        self.origin = origin
        self.reason = reason


class PersistWriteError(SuiteError):
    """Session snapshot could not be written to disk."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Could not write session snapshot to {path}: {reason}")
        self.path = path
        self.reason = reason


class RetryExhaustedError(SuiteError):
    """Every attempt of a retried action failed."""

    def __init__(self, attempts):
        self.attempts = list(attempts)
        super().__init__(f"Test failed after {len(self.attempts)} attempts.")

    @property
    def errors(self):
        return [a.error for a in self.attempts if a.error is not None]
