"""
Fare Calculation  (Strategy Pattern)
====================================

Fares are keyed by stop pair and are symmetric: travelling Stop1 -> Stop2
costs the same as Stop2 -> Stop1.

* **Completed trip** -- fare for the (origin, destination) pair.
* **Incomplete trip** -- the *maximum* fare of any journey that starts or
  ends at the known stop, so the rider is charged the worst case.

Complexity: O(1) per ``calculate_fare``; O(P) per ``calculate_max_fare``
where P = number of priced stop pairs.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping


class UnknownStopError(Exception):
    """Raised when a fare is requested for a stop with no fare rules."""

    def __init__(self, stop_id: str):
        super().__init__(f"No fare rules for stop {stop_id!r}")
        self.stop_id = stop_id


DEFAULT_FARES: dict[tuple[str, str], float] = {
    ("Stop1", "Stop2"): 3.25,
    ("Stop2", "Stop3"): 5.50,
    ("Stop1", "Stop3"): 7.30,
}


# ── Strategy hierarchy ────────────────────────────────────────────────


class FareCalculator(ABC):
    @abstractmethod
    def calculate_fare(self, from_stop_id: str, to_stop_id: str) -> float: ...

    @abstractmethod
    def calculate_max_fare(self, stop_id: str) -> float: ...


class StopFareCalculator(FareCalculator):
    """Table-driven fares between stop pairs."""

    def __init__(self, fares: Mapping[tuple[str, str], float] | None = None):
        self._fares: dict[frozenset[str], float] = {}
        self._stops: set[str] = set()
        for (a, b), amount in (fares if fares is not None else DEFAULT_FARES).items():
            self._fares[frozenset((a, b))] = float(amount)
            self._stops.update((a, b))

    @property
    def stops(self) -> set[str]:
        return set(self._stops)

    def _check_stop(self, stop_id: str) -> None:
        if stop_id not in self._stops:
            raise UnknownStopError(stop_id)

    def calculate_fare(self, from_stop_id: str, to_stop_id: str) -> float:
        self._check_stop(from_stop_id)
        self._check_stop(to_stop_id)
        if from_stop_id == to_stop_id:
            return 0.0
        try:
            return self._fares[frozenset((from_stop_id, to_stop_id))]
        except KeyError:
            # Both stops are known but this pair was never priced
            raise UnknownStopError(to_stop_id) from None

    def calculate_max_fare(self, stop_id: str) -> float:
        self._check_stop(stop_id)
        return max(
            amount for pair, amount in self._fares.items() if stop_id in pair
        )
