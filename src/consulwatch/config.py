"""consulwatch configuration.

WatchConfig is the central configuration object, frozen after creation.
"""

from dataclasses import dataclass

from consulwatch._errors import ConfigError
from consulwatch._types import ConsistencyMode

DEFAULT_ENDPOINT = "http://localhost:8500"
DEFAULT_TOKEN = "anonymous"
DEFAULT_RETRY_DELAY = 15.0

_CONSISTENCY_MODES = frozenset({"default", "consistent", "stale"})


@dataclass(frozen=True, slots=True)
class WatchConfig:
    """Configuration for observing a registry.

    Attributes:
        endpoint: Registry HTTP address.  ``None`` or an empty string falls
            back to ``http://localhost:8500``.
        datacenter: Datacenter to query (registry default when unset).
        acl_token: ACL token sent with every request (``anonymous`` when unset).
        long_poll_max_wait: Upper bound in seconds the registry may hold a
            blocking query open.  ``None`` leaves the registry default.
        retry_delay: Seconds to wait before retrying after a 5xx response.
            ``None`` or ``0`` retries immediately.
        consistency_mode: ``default``, ``consistent`` or ``stale`` reads.

    """

    endpoint: str | None = None
    datacenter: str | None = None
    acl_token: str | None = None
    long_poll_max_wait: float | None = None
    retry_delay: float | None = DEFAULT_RETRY_DELAY
    consistency_mode: ConsistencyMode = "default"

    def __post_init__(self) -> None:
        if self.consistency_mode not in _CONSISTENCY_MODES:
            msg = (
                f"Unknown consistency mode {self.consistency_mode!r}; "
                f"expected one of {', '.join(sorted(_CONSISTENCY_MODES))}"
            )
            raise ConfigError(msg)
        for name in ("long_poll_max_wait", "retry_delay"):
            value = getattr(self, name)
            if value is not None and value < 0:
                msg = f"{name} must not be negative (got {value})"
                raise ConfigError(msg)

    @property
    def address(self) -> str:
        """Effective registry address."""
        return self.endpoint or DEFAULT_ENDPOINT

    @property
    def token(self) -> str:
        """Effective ACL token."""
        return self.acl_token or DEFAULT_TOKEN
