import numpy as np
import pytest

from audio.nodes import AutomationKind, InvalidStateError


def test_gain_defaults_to_unity(engine, buffer_factory):
    path = engine.create_output_path(buffer_factory())
    assert path.gain.value == 1.0
    assert path.gain.value_at(123.0) == 1.0


def test_set_value_holds_until_next_event(engine, buffer_factory):
    gain = engine.create_output_path(buffer_factory()).gain
    gain.set_value_at_time(0.5, 1.0)
    gain.set_value_at_time(0.25, 2.0)
    assert gain.value_at(0.5) == 1.0
    assert gain.value_at(1.0) == 0.5
    assert gain.value_at(1.9) == 0.5
    assert gain.value_at(5.0) == 0.25


def test_linear_ramp_interpolates_from_previous_event(engine, buffer_factory):
    gain = engine.create_output_path(buffer_factory()).gain
    gain.set_value_at_time(1.0, 1.0)
    gain.linear_ramp_to_value_at_time(0.0, 2.0)
    assert gain.value_at(1.0) == pytest.approx(1.0)
    assert gain.value_at(1.25) == pytest.approx(0.75)
    assert gain.value_at(1.5) == pytest.approx(0.5)
    assert gain.value_at(2.0) == 0.0
    assert gain.value_at(3.0) == 0.0


def test_ramp_without_anchor_starts_from_now(engine, buffer_factory):
    gain = engine.create_output_path(buffer_factory()).gain
    engine.render(100)  # t = 0.1
    gain.linear_ramp_to_value_at_time(0.0, 0.2)
    kinds = [e.kind for e in gain.events]
    assert kinds == [AutomationKind.SET, AutomationKind.LINEAR_RAMP]
    assert gain.value_at(0.15) == pytest.approx(0.5)


def test_cancel_drops_events_at_or_after_time(engine, buffer_factory):
    gain = engine.create_output_path(buffer_factory()).gain
    gain.set_value_at_time(1.0, 0.0)
    gain.set_value_at_time(1.0, 0.5)
    gain.linear_ramp_to_value_at_time(0.0, 1.0)
    gain.cancel_scheduled_values(0.5)
    assert [e.time for e in gain.events] == [0.0]
    assert gain.value_at(0.9) == 1.0


def test_render_vectorised_matches_pointwise(engine, buffer_factory):
    gain = engine.create_output_path(buffer_factory()).gain
    gain.set_value_at_time(1.0, 0.0)
    gain.set_value_at_time(1.0, 0.2)
    gain.linear_ramp_to_value_at_time(0.0, 0.4)
    times = np.linspace(0.0, 0.5, 51)
    rendered = gain.render(times)
    assert rendered == pytest.approx(np.array([gain.value_at(t) for t in times]), abs=1e-6)


def test_prune_keeps_values_from_t_onward(engine, buffer_factory):
    gain = engine.create_output_path(buffer_factory()).gain
    gain.set_value_at_time(1.0, 0.0)
    gain.set_value_at_time(1.0, 0.2)
    gain.linear_ramp_to_value_at_time(0.0, 0.4)
    before = [gain.value_at(t) for t in (0.3, 0.35, 0.5)]
    gain.prune(0.3)
    assert len(gain.events) == 2
    assert [gain.value_at(t) for t in (0.3, 0.35, 0.5)] == pytest.approx(before)


def test_path_plays_buffer_through_gain(engine, buffer_factory):
    path = engine.create_output_path(buffer_factory(seconds=0.1, value=0.5))
    path.gain.set_value_at_time(0.5, 0.0)
    path.start(0.0)
    out = engine.render(200)
    assert out[:100, 0] == pytest.approx(np.full(100, 0.25))
    assert not out[100:].any()
    assert path.ended


def test_path_start_in_future(engine, buffer_factory):
    path = engine.create_output_path(buffer_factory(seconds=0.1))
    path.start(0.05)
    out = engine.render(200)
    assert not out[:50].any()
    assert out[50:150, 0] == pytest.approx(np.ones(100))
    assert not out[150:].any()


def test_start_in_the_past_starts_now(engine, buffer_factory):
    engine.render(100)
    path = engine.create_output_path(buffer_factory(seconds=0.1))
    path.start(0.0)
    out = engine.render(100)
    assert out[:, 0] == pytest.approx(np.ones(100))


def test_stop_truncates_and_latest_stop_wins(engine, buffer_factory):
    path = engine.create_output_path(buffer_factory(seconds=1.0))
    path.start()
    path.stop(0.5)
    path.stop(0.3)
    out = engine.render(1000)
    assert out[:300, 0] == pytest.approx(np.ones(300))
    assert not out[300:].any()


def test_stop_before_start_raises(engine, buffer_factory):
    path = engine.create_output_path(buffer_factory())
    with pytest.raises(InvalidStateError):
        path.stop()


def test_start_twice_raises(engine, buffer_factory):
    path = engine.create_output_path(buffer_factory())
    path.start()
    with pytest.raises(InvalidStateError):
        path.start()


def test_stop_after_end_raises(engine, buffer_factory):
    path = engine.create_output_path(buffer_factory(seconds=0.01))
    path.start()
    engine.render(20)
    assert path.ended
    with pytest.raises(InvalidStateError):
        path.stop()
