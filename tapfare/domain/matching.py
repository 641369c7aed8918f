"""
Tap Pairing Algorithm
=====================

1. **Single pass** -- taps are consumed in arrival order.  Two pools of
   unmatched taps, keyed by PAN, are kept for the duration of one
   ``match`` call only.
2. **Pairing** -- an ON tap pairs with the first pooled OFF tap for the
   same PAN that is strictly later *and* on the same calendar date; an OFF
   tap pairs with the first pooled ON tap that is strictly earlier on the
   same date.  Unpaired taps go into their pool.
3. **Orphans** -- whatever is left in the pools after the pass becomes an
   INCOMPLETE trip: orphan ONs first, then orphan OFFs, each ordered by
   PAN then arrival.

Classification
--------------
* same stop       -> CANCELLED,  fare 0,                 duration 0
* different stops -> COMPLETED,  calculate_fare(on, off), elapsed seconds
* lone tap        -> INCOMPLETE, calculate_max_fare(stop), duration 0

Candidates are taken in pool-insertion order, not nearest in time.  Trips
that cross midnight are never paired.

Complexity
----------
Let N = taps, k = pooled taps for one PAN.

* Pairing:   O(N x k)   -- linear scan of one PAN's pool per tap
* Orphans:   O(P log P + N) -- P = PANs with leftovers
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from typing import Iterable, Optional

from .entities import Tap, Trip
from .enums import TapType, TripStatus
from .pricing import FareCalculator

logger = logging.getLogger(__name__)


class TripMatcher:
    """Turns a batch of taps into priced trips.

    The instance only holds the fare calculator; pooling state is local to
    each ``match`` call, so one matcher can serve many batches (or threads).
    """

    def __init__(self, fare_calculator: FareCalculator):
        self.fare_calculator = fare_calculator

    def match(self, taps: Iterable[Tap]) -> list[Trip]:
        pending_on: dict[str, list[Tap]] = defaultdict(list)
        pending_off: dict[str, list[Tap]] = defaultdict(list)
        trips: list[Trip] = []

        for tap in taps:
            logger.debug("Processing tap: %s", tap)
            if tap.tap_type == TapType.ON:
                candidate = _first_match(
                    pending_off[tap.pan], tap.timestamp, after=True
                )
                if candidate is not None:
                    pending_off[tap.pan].remove(candidate)
                    trips.append(self._pair(tap, candidate))
                else:
                    pending_on[tap.pan].append(tap)
                    logger.info(
                        "No matching OFF tap for ON tap %s at stop %s, storing for later",
                        tap.id, tap.stop_id,
                    )
            elif tap.tap_type == TapType.OFF:
                candidate = _first_match(
                    pending_on[tap.pan], tap.timestamp, after=False
                )
                if candidate is not None:
                    pending_on[tap.pan].remove(candidate)
                    trips.append(self._pair(candidate, tap))
                else:
                    pending_off[tap.pan].append(tap)
                    logger.info(
                        "No matching ON tap for OFF tap %s at stop %s, storing for later",
                        tap.id, tap.stop_id,
                    )
            else:
                logger.warning("Unknown tap type %r on tap %s, skipping", tap.tap_type, tap.id)

        for pan in sorted(pending_on):
            for tap_on in pending_on[pan]:
                trips.append(self._incomplete(tap_on=tap_on))
                logger.info("Incomplete trip for orphan ON tap %s at stop %s", tap_on.id, tap_on.stop_id)
        for pan in sorted(pending_off):
            for tap_off in pending_off[pan]:
                trips.append(self._incomplete(tap_off=tap_off))
                logger.info("Incomplete trip for orphan OFF tap %s at stop %s", tap_off.id, tap_off.stop_id)

        return trips

    # ── Trip construction ─────────────────────────────────────────────

    def _pair(self, tap_on: Tap, tap_off: Tap) -> Trip:
        if tap_on.stop_id == tap_off.stop_id:
            logger.info("Cancelled trip for PAN %s at stop %s", tap_on.pan, tap_on.stop_id)
            return _build_trip(tap_on, tap_off, 0, 0.0, TripStatus.CANCELLED)

        fare = self.fare_calculator.calculate_fare(tap_on.stop_id, tap_off.stop_id)
        duration = int((tap_off.timestamp - tap_on.timestamp).total_seconds())
        logger.info(
            "Completed trip for PAN %s from %s to %s",
            tap_on.pan, tap_on.stop_id, tap_off.stop_id,
        )
        return _build_trip(tap_on, tap_off, duration, fare, TripStatus.COMPLETED)

    def _incomplete(
        self, tap_on: Optional[Tap] = None, tap_off: Optional[Tap] = None
    ) -> Trip:
        known = tap_on or tap_off
        assert known is not None
        fare = self.fare_calculator.calculate_max_fare(known.stop_id)
        return _build_trip(tap_on, tap_off, 0, fare, TripStatus.INCOMPLETE)


def match_taps(taps: Iterable[Tap], fare_calculator: FareCalculator) -> list[Trip]:
    """Convenience wrapper: one fresh matcher per batch."""
    return TripMatcher(fare_calculator).match(taps)


def _first_match(
    pool: list[Tap], timestamp: datetime, *, after: bool
) -> Optional[Tap]:
    """First pooled tap on the same date that is strictly after/before *timestamp*."""
    for candidate in pool:
        if candidate.timestamp.date() != timestamp.date():
            continue
        if after and candidate.timestamp > timestamp:
            return candidate
        if not after and candidate.timestamp < timestamp:
            return candidate
    return None


def _build_trip(
    tap_on: Optional[Tap],
    tap_off: Optional[Tap],
    duration_secs: int,
    fare: float,
    status: TripStatus,
) -> Trip:
    # Card, operator and vehicle come from the ON tap when there is one
    source = tap_on or tap_off
    assert source is not None
    return Trip(
        started=tap_on.timestamp if tap_on else None,
        finished=tap_off.timestamp if tap_off else None,
        duration_secs=duration_secs,
        from_stop_id=tap_on.stop_id if tap_on else None,
        to_stop_id=tap_off.stop_id if tap_off else None,
        charge_amount=fare,
        company_id=source.company_id,
        bus_id=source.bus_id,
        pan=source.pan,
        status=status,
    )
