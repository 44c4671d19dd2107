from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from lanespeed.tracking.ids import VehicleIdGenerator
from lanespeed.utils.types import Trip, VehicleId

logger = logging.getLogger("lanespeed.tracking.lane")

TrackRow = Tuple[Optional[VehicleId], ...]


@dataclass(frozen=True)
class LaneTrackerState:
    track: TrackRow
    smoothing_timers: Tuple[float, ...]
    last_timestamp_ms: float
    starts: Dict[VehicleId, float] = field(default_factory=dict)
    trips: Tuple[Trip, ...] = ()

    @staticmethod
    def initial(columns: int, start_timestamp_ms: float = 0.0) -> "LaneTrackerState":
        return LaneTrackerState(
            track=(None,) * int(columns),
            smoothing_timers=(0.0,) * int(columns),
            last_timestamp_ms=float(start_timestamp_ms),
        )

    def active(self, column: int) -> bool:
        return self.smoothing_timers[column] > 0.0


def smooth_timers(
    timers: Sequence[float], occupancy: Sequence[bool], dt_ms: float, cooldown_ms: float
) -> Tuple[float, ...]:
    return tuple(
        float(cooldown_ms) if occ else max(float(t) - dt_ms, 0.0)
        for t, occ in zip(timers, occupancy)
    )


def detach_finished(
    track: TrackRow, timers: Sequence[float], finished: Optional[VehicleId]
) -> List[Optional[VehicleId]]:
    """Right-to-left sweep.

    Active clumps inherit the id to their right; every cell touching the
    finishing vehicle is cleared so nothing further left can absorb it.
    """
    last = len(track) - 1
    detached: List[Optional[VehicleId]] = [None] * len(track)
    prv: Optional[VehicleId] = None
    for i in range(last - 1, -1, -1):
        cur = track[i]
        if finished is None or (prv != finished and cur != finished):
            detached[i] = (prv or cur) if timers[i] > 0.0 else None
        else:
            detached[i] = None
        prv = detached[i]
    return detached


def propagate(
    detached: Sequence[Optional[VehicleId]], timers: Sequence[float], seed: Optional[VehicleId]
) -> TrackRow:
    """Left-to-right sweep carrying ids through contiguous active cells."""
    final: List[Optional[VehicleId]] = [seed]
    for i in range(1, len(detached)):
        final.append((final[i - 1] or detached[i]) if timers[i] > 0.0 else None)
    return tuple(final)


class LaneTracker:
    """Vehicle identity across the cells of a single lane.

    ``advance`` is a pure transition on ``LaneTrackerState``; ``update`` keeps
    the current state on the instance for callers that drive one stream.
    """

    def __init__(
        self,
        lane: int,
        columns: int,
        cooldown_ms: float,
        start_timestamp_ms: float = 0.0,
        new_id: Optional[Callable[[], VehicleId]] = None,
    ) -> None:
        if columns < 2:
            raise ValueError(f"Lane tracker needs at least 2 columns, got {columns}")
        if not cooldown_ms > 0.0:
            raise ValueError(f"cooldown_ms must be > 0, got {cooldown_ms}")
        self.lane = int(lane)
        self.columns = int(columns)
        self.cooldown_ms = float(cooldown_ms)
        self._new_id = new_id or VehicleIdGenerator()
        self._state = LaneTrackerState.initial(self.columns, start_timestamp_ms)

    @property
    def state(self) -> LaneTrackerState:
        return self._state

    @property
    def vehicle_count(self) -> int:
        return len(self._state.trips)

    @property
    def in_flight(self) -> int:
        return len(self._state.starts)

    @property
    def last_trip(self) -> Optional[Trip]:
        return self._state.trips[-1] if self._state.trips else None

    def update(self, occupancy: Sequence[bool], timestamp_ms: float) -> LaneTrackerState:
        self._state = self.advance(self._state, occupancy, timestamp_ms)
        return self._state

    def advance(self, state: LaneTrackerState, occupancy: Sequence[bool], timestamp_ms: float) -> LaneTrackerState:
        if len(occupancy) != self.columns:
            raise ValueError(f"Lane {self.lane} expects {self.columns} occupancy values, got {len(occupancy)}")
        if len(state.track) != self.columns or len(state.smoothing_timers) != self.columns:
            raise ValueError(f"Lane {self.lane} state does not match {self.columns} columns")

        occ = [bool(x) for x in occupancy]
        timestamp_ms = float(timestamp_ms)
        dt = max(timestamp_ms - state.last_timestamp_ms, 0.0)
        timers = smooth_timers(state.smoothing_timers, occ, dt, self.cooldown_ms)

        last = self.columns - 1
        finished = state.track[last - 1] if occ[last] else None

        detached_track = detach_finished(state.track, timers, finished)

        new_vehicle = self._new_id() if occ[0] and detached_track[0] is None else None

        final_track = propagate(detached_track, timers, new_vehicle or detached_track[0])

        starts = {k: v for k, v in state.starts.items() if k != finished}
        trips = state.trips
        if finished is not None:
            trip = Trip(vehicle_id=finished, lane=self.lane, start_ms=state.starts[finished], end_ms=timestamp_ms)
            trips = trips + (trip,)
            logger.info(
                "lane=%d vehicle=%s finished start_ms=%.1f end_ms=%.1f", self.lane, finished, trip.start_ms, trip.end_ms
            )
        if new_vehicle is not None:
            starts[new_vehicle] = timestamp_ms
            logger.debug("lane=%d vehicle=%s entered at %.1f ms", self.lane, new_vehicle, timestamp_ms)

        return LaneTrackerState(
            track=final_track,
            smoothing_timers=timers,
            last_timestamp_ms=timestamp_ms,
            starts=starts,
            trips=trips,
        )
