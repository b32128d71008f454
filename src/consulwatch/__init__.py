"""consulwatch — one consistent view of everything your service depends on.

Watches services, keys and key prefixes in a Consul-style registry through
blocking queries and folds every change into a single immutable snapshot.
Snapshots are only released once every declared dependency has been seen.

Quick start::

    from consulwatch import Dependencies, ObservableRegistry, WatchConfig

    deps = Dependencies.of(services=["web"], keys=["config/flag"])
    async with ObservableRegistry.from_config(WatchConfig()) as registry:
        async for state in registry.observe_dependencies(deps):
            print(state.get_service("web"), state.get_value("config/flag"))

Pipeline::

    WatchLoop    one long-poll per resource
    merge        fan-in of all loops
    aggregator   serialized, immutable RegistryState snapshots
    gate         only snapshots satisfying the Dependencies

"""

# PEP 703: Declare this module as free-threading safe
_Py_mod_gil = 0

__version__ = "0.1.0.dev0"
__all__ = [
    "Dependencies",
    "HttpRegistryClient",
    "ObservableRegistry",
    "RegistryState",
    "StateAggregator",
    "WatchConfig",
    "__version__",
    "load_config",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import consulwatch`` fast (httpx is only imported on demand).
    """
    if name == "WatchConfig":
        from consulwatch.config import WatchConfig

        return WatchConfig

    if name == "load_config":
        from consulwatch.config_loader import load_config

        return load_config

    if name == "Dependencies":
        from consulwatch.dependencies import Dependencies

        return Dependencies

    if name == "RegistryState":
        from consulwatch.state import RegistryState

        return RegistryState

    if name == "StateAggregator":
        from consulwatch.watch.aggregator import StateAggregator

        return StateAggregator

    if name == "ObservableRegistry":
        from consulwatch.observable import ObservableRegistry

        return ObservableRegistry

    if name == "HttpRegistryClient":
        from consulwatch.client import HttpRegistryClient

        return HttpRegistryClient

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
