"""Publisher exception hierarchy."""


class PublisherError(Exception):
    """Base class for errors raised by the publish pipeline."""


class ControlFileError(PublisherError):
    """Raised when a repository control file cannot be parsed.

    Fatal for the ingest of the commit that contains it; the publish target
    record is left untouched.

    Args:
        path: Repository path of the control file.
        reason: Human-readable description of the problem.
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class EventError(PublisherError):
    """Raised when an inbound Lambda event cannot be interpreted."""
