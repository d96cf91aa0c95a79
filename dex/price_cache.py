"""
Latest-observation store for monitored pools.

Each pool keeps exactly one observation: a newer poll replaces the previous
one and nothing is expired. If a later poll fails, the older observation stays
visible; a slightly old price is preferred over no price at all.
"""

from typing import Dict, Iterator, List, Optional

from .types import PoolObservation


class PriceCache:
    """Last-write-wins map of pool_id -> PoolObservation."""

    def __init__(self):
        self._observations: Dict[str, PoolObservation] = {}

    def put(self, pool_id: str, observation: PoolObservation) -> None:
        self._observations[pool_id] = observation

    def get(self, pool_id: str) -> Optional[PoolObservation]:
        return self._observations.get(pool_id)

    def get_all(self) -> List[PoolObservation]:
        """Current observations; callers must not rely on the order."""
        return list(self._observations.values())

    def clear(self) -> None:
        self._observations.clear()

    def __len__(self) -> int:
        return len(self._observations)

    def __contains__(self, pool_id: object) -> bool:
        return pool_id in self._observations

    def __iter__(self) -> Iterator[PoolObservation]:
        return iter(self.get_all())
