"""Watch engine — long-poll loops, fan-in merge, aggregation and gating.

Data flows::

    WatchLoop (per resource) -> merge -> StateAggregator -> gate -> consumer
"""

from consulwatch.watch.aggregator import StateAggregator, apply_observation
from consulwatch.watch.gate import gate
from consulwatch.watch.loop import WatchLoop, long_poll, next_index
from consulwatch.watch.merge import merge

__all__ = [
    "StateAggregator",
    "WatchLoop",
    "apply_observation",
    "gate",
    "long_poll",
    "merge",
    "next_index",
]
