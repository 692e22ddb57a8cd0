"""Custom exception classes for Locator Extractor."""


class LocatorExtractorError(Exception):
    """Base exception for Locator Extractor errors."""

    def __init__(self, message: str, code: str = "internal", detail: str = ""):
        self.message = message
        self.code = code
        self.detail = detail
        super().__init__(message)


class SessionError(LocatorExtractorError):
    """Errors related to browser session lifecycle."""

    pass


class SessionActiveError(SessionError):
    """A launch was requested while another session is still in progress."""

    def __init__(self, state: str):
        super().__init__(
            f"A browser session is already {state}; stop it before launching again",
            code="session_active",
        )


class NoActiveSessionError(SessionError):
    """An operation needs an attached browser session but none exists."""

    def __init__(self, operation: str = "this operation"):
        super().__init__(
            f"No active browser session for {operation}",
            code="no_active_session",
        )


class LaunchError(SessionError):
    """Browser launch failed; the session was torn down."""

    def __init__(self, message: str, detail: str = ""):
        super().__init__(message, code="launch_failed", detail=detail)


class PersistenceError(LocatorExtractorError):
    """Writing an output artifact failed."""

    def __init__(self, path: str, detail: str = ""):
        super().__init__(f"Failed to write {path}", code="write_failed", detail=detail)


class InvalidUrlError(LocatorExtractorError, ValueError):
    """Target URL is missing or uses an unsupported scheme."""

    def __init__(self, url: str):
        super().__init__(f"Invalid or unsafe URL: {url}", code="invalid_url")


class ConnectionLimitError(LocatorExtractorError):
    """Connection limit reached."""

    def __init__(self, limit: int):
        super().__init__(
            f"Connection limit reached: {limit} concurrent connections",
            code="connection_limit",
        )
