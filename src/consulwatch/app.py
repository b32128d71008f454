"""Command-level entry points.

``watch()`` runs a dependency watch against a live registry and writes every
satisfied snapshot to stdout as one JSON line.
"""

from __future__ import annotations

import asyncio
import json
import sys
from contextlib import aclosing
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from consulwatch._errors import ConfigError, WatchError
from consulwatch.config_loader import load_config
from consulwatch.dependencies import Dependencies
from consulwatch.observability.collector import WatchCollector
from consulwatch.observable import ObservableRegistry

if TYPE_CHECKING:
    import httpx

    from consulwatch.config import WatchConfig


async def run_watch(
    config: WatchConfig,
    dependencies: Dependencies,
    *,
    out: TextIO,
    collector: WatchCollector | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    limit: int | None = None,
) -> int:
    """Stream gated snapshots to ``out``; returns the number written.

    Stops after ``limit`` snapshots when given, otherwise runs until
    cancelled or until a watch fails.
    """
    written = 0
    async with ObservableRegistry.from_config(
        config, collector=collector, transport=transport
    ) as registry:
        async with aclosing(registry.observe_dependencies(dependencies)) as snapshots:
            async for snapshot in snapshots:
                print(json.dumps(snapshot.to_dict(), sort_keys=True), file=out, flush=True)
                written += 1
                if limit is not None and written >= limit:
                    break
    return written


def watch(
    root: str | Path = ".",
    *,
    services: list[str] | None = None,
    keys: list[str] | None = None,
    prefixes: list[str] | None = None,
    verbose: bool = False,
    **overrides: object,
) -> int:
    """Watch the given dependencies until interrupted.

    Args:
        root: Directory holding an optional consulwatch.yaml / .toml.
        services: Service names to require.
        keys: Exact keys to require.
        prefixes: Key prefixes to require.
        verbose: Print every fetch cycle to stderr.
        **overrides: Override WatchConfig fields.

    Returns:
        Process exit code.

    """
    try:
        config = load_config(Path(root), **overrides)
    except ConfigError as exc:
        print(f"  Config error: {exc}", file=sys.stderr)
        return 2

    dependencies = Dependencies.of(services or (), keys or (), prefixes or ())
    if dependencies.is_empty:
        print("  Nothing to watch: pass --service, --key or --prefix", file=sys.stderr)
        return 2

    print(
        f"  Watching {len(dependencies)} resource(s) on {config.address}",
        file=sys.stderr,
    )
    collector = WatchCollector(verbose=verbose)
    try:
        asyncio.run(run_watch(config, dependencies, out=sys.stdout, collector=collector))
    except WatchError as exc:
        print(f"  Watch failed: {exc}", file=sys.stderr)
        if exc.__cause__ is not None:
            print(f"    caused by: {exc.__cause__}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0
