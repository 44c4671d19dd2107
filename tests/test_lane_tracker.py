from typing import List, Sequence, Tuple

import pytest

from lanespeed.tracking.ids import VehicleIdGenerator
from lanespeed.tracking.lane import LaneTracker, LaneTrackerState, detach_finished, propagate, smooth_timers

V1 = "veh-000001"
V2 = "veh-000002"


def _tracker(columns: int = 5, cooldown_ms: float = 80.0, lane: int = 0) -> LaneTracker:
    return LaneTracker(lane=lane, columns=columns, cooldown_ms=cooldown_ms, new_id=VehicleIdGenerator())


def _occ(pattern: str) -> List[bool]:
    return [c == "T" for c in pattern]


def _drive(tracker: LaneTracker, frames: Sequence[Tuple[float, str]]) -> List[LaneTrackerState]:
    return [tracker.update(_occ(p), t) for t, p in frames]


def test_scenario_a_entry_propagation_and_no_exit_without_second_to_last() -> None:
    tr = _tracker()
    s0 = tr.update(_occ("TFFFF"), 0.0)
    assert s0.track == (V1, None, None, None, None)
    assert s0.starts == {V1: 0.0}

    s1 = tr.update(_occ("TTFFF"), 40.0)
    assert s1.track == (V1, V1, None, None, None)

    s2 = tr.update(_occ("FFFFT"), 200.0)
    assert s2.trips == ()
    assert s2.track == (None,) * 5


def test_scenario_b_vehicle_crossing_produces_one_trip() -> None:
    tr = _tracker()
    states = _drive(
        tr,
        [(0.0, "TFFFF"), (20.0, "TTFFF"), (40.0, "FTTFF"), (60.0, "FFTTF")],
    )
    assert states[-1].track == (V1, V1, V1, V1, None)

    done = tr.update(_occ("FFFTT"), 80.0)
    assert len(done.trips) == 1
    trip = done.trips[0]
    assert trip.vehicle_id == V1
    assert trip.lane == 0
    assert trip.start_ms == 0.0
    assert trip.end_ms == 80.0
    assert V1 not in done.track
    assert V1 not in done.starts

    after = tr.update(_occ("FFFFT"), 100.0)
    assert len(after.trips) == 1


def test_two_vehicles_are_counted_once_each_and_never_linger_after_finishing() -> None:
    tr = _tracker(cooldown_ms=30.0)
    frames = [
        (0.0, "TFFFF"),
        (20.0, "FTFFF"),
        (40.0, "FFTFF"),
        (60.0, "TFFTF"),
        (80.0, "FTFFT"),
        (100.0, "FFTFF"),
        (120.0, "FFFTF"),
        (140.0, "FFFTT"),
    ]
    prev_trips = 0
    seen = []
    for t, p in frames:
        s = tr.update(_occ(p), t)
        assert len(s.trips) >= prev_trips
        if len(s.trips) > prev_trips:
            finished = s.trips[-1].vehicle_id
            assert finished not in s.track
            seen.append(finished)
        prev_trips = len(s.trips)
        for trip in s.trips:
            assert trip.end_ms >= trip.start_ms

    assert seen == [V1, V2]
    assert [(x.start_ms, x.end_ms) for x in tr.state.trips] == [(0.0, 80.0), (60.0, 140.0)]
    assert tr.state.starts == {}
    assert tr.vehicle_count == 2
    assert tr.last_trip is not None and tr.last_trip.vehicle_id == V2


def test_smoothing_timer_decays_to_inactive() -> None:
    tr = _tracker()
    tr.update(_occ("FFTFF"), 0.0)
    assert tr.state.smoothing_timers[2] == 80.0
    for i, expected in enumerate([60.0, 40.0, 20.0, 0.0], start=1):
        s = tr.update(_occ("FFFFF"), 20.0 * i)
        assert s.smoothing_timers[2] == expected
    assert not tr.state.active(2)


def test_smoothing_timer_resets_on_flicker() -> None:
    timers = smooth_timers([0.0, 0.0], [True, False], 20.0, 80.0)
    timers = smooth_timers(timers, [False, False], 20.0, 80.0)
    assert timers == (60.0, 0.0)
    timers = smooth_timers(timers, [True, False], 20.0, 80.0)
    assert timers == (80.0, 0.0)
    timers = smooth_timers(timers, [False, False], 20.0, 80.0)
    assert timers == (60.0, 0.0)


def test_new_ids_only_minted_at_entry_column() -> None:
    tr = _tracker()
    s = tr.update(_occ("FTTTF"), 0.0)
    assert s.starts == {}
    assert s.track == (None,) * 5

    s = tr.update(_occ("TTTTF"), 10.0)
    assert list(s.starts) == [V1]
    assert s.track == (V1, V1, V1, V1, None)

    s = tr.update(_occ("TTTTF"), 20.0)
    assert list(s.starts) == [V1]


def test_vehicle_jumping_to_last_column_is_never_finished() -> None:
    # Exit is only detected through the second-to-last column; a vehicle that
    # skips it stays in starts and produces no trip.
    tr = _tracker()
    tr.update(_occ("TFFFF"), 0.0)
    s = tr.update(_occ("FFFFT"), 200.0)
    assert s.trips == ()
    assert V1 in s.starts


def test_out_of_order_timestamp_clamps_elapsed_time() -> None:
    tr = _tracker()
    tr.update(_occ("FFTFF"), 0.0)
    s = tr.update(_occ("FFFFF"), 50.0)
    assert s.smoothing_timers[2] == 30.0
    s = tr.update(_occ("FFFFF"), 40.0)
    assert s.smoothing_timers[2] == 30.0
    assert s.last_timestamp_ms == 40.0


def test_advance_does_not_touch_tracker_state() -> None:
    tr = _tracker()
    initial = tr.state
    nxt = tr.advance(initial, _occ("TFFFF"), 0.0)
    assert tr.state is initial
    assert initial.track == (None,) * 5
    assert nxt.track[0] == V1


def test_detach_and_propagate_buffers() -> None:
    track = ("a", "a", "b", "b", None)
    timers = (10.0, 10.0, 10.0, 10.0, 10.0)
    detached = detach_finished(track, timers, finished="b")
    assert detached == ["a", "a", None, None, None]
    assert propagate(detached, timers, seed=detached[0]) == ("a", "a", "a", "a", "a")


def test_invalid_configuration_is_rejected() -> None:
    with pytest.raises(ValueError):
        LaneTracker(lane=0, columns=1, cooldown_ms=80.0)
    with pytest.raises(ValueError):
        LaneTracker(lane=0, columns=5, cooldown_ms=0.0)
    tr = _tracker()
    with pytest.raises(ValueError):
        tr.update(_occ("TFF"), 0.0)


def test_vehicle_ids_are_unique_across_lanes_sharing_a_generator() -> None:
    ids = VehicleIdGenerator()
    lanes = [LaneTracker(lane=i, columns=4, cooldown_ms=80.0, new_id=ids) for i in range(2)]
    a = lanes[0].update(_occ("TFFF"), 0.0)
    b = lanes[1].update(_occ("TFFF"), 0.0)
    assert a.track[0] != b.track[0]


def test_finishing_vehicle_covering_entry_column_is_severed_from_new_arrival() -> None:
    tr = _tracker()
    s = _drive(tr, [(0.0, "TFFFF"), (10.0, "TTFFF"), (20.0, "TTTFF"), (30.0, "TTTTF")])[-1]
    assert s.track == (V1, V1, V1, V1, None)

    s = tr.update(_occ("TTTTT"), 40.0)
    assert [(t.vehicle_id, t.start_ms, t.end_ms) for t in s.trips] == [(V1, 0.0, 40.0)]
    assert V1 not in s.track
    assert s.track == (V2,) * 5
    assert s.starts == {V2: 40.0}


def test_vehicle_spreading_back_into_entry_column_keeps_its_id() -> None:
    tr = _tracker(cooldown_ms=30.0)
    s = _drive(tr, [(0.0, "TFFFF"), (20.0, "TTFFF"), (40.0, "FTFFF"), (60.0, "FTFFF")])[-1]
    assert s.track == (None, V1, None, None, None)

    s = tr.update(_occ("TTFFF"), 70.0)
    assert s.track == (V1, V1, None, None, None)
    assert s.starts == {V1: 0.0}
