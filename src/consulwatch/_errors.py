"""consulwatch error hierarchy.

All consulwatch-specific errors inherit from ConsulWatchError for easy catching.
"""


class ConsulWatchError(Exception):
    """Base error for all consulwatch operations."""


class ConfigError(ConsulWatchError):
    """Invalid or missing configuration."""


class TransportError(ConsulWatchError):
    """The registry could not be reached or answered with an unreadable payload."""


class WatchError(ConsulWatchError):
    """A watch loop stopped on a fatal failure.

    Carries the diagnostic context of the failed fetch cycle.  The underlying
    failure is available as ``__cause__``.

    Attributes:
        resource: Service name, key, or key prefix being watched.
        kind: Resource kind (``service``, ``key`` or ``prefix``).
        index: The cursor the failed fetch was issued with.

    """

    def __init__(self, resource: str, kind: str, index: int, message: str = "") -> None:
        self.resource = resource
        self.kind = kind
        self.index = index
        detail = f": {message}" if message else ""
        super().__init__(f"watch on {kind} {resource!r} failed at index {index}{detail}")
