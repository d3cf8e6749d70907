import random

import pytest

from padsampler.engine.params import DEFAULT_PARAMETERS, PARAM_RANGES, ParameterStore
from padsampler.pads import PadId


def test_defaults_when_unset(params):
    p = params.get(PadId.PAD1)
    assert (p.start, p.end, p.volume, p.pan, p.pitch) == (0.0, 1.0, 1.0, 0.0, 1.0)


@pytest.mark.parametrize(
    "field, value, expected",
    [
        ("volume", 3.0, 1.5),
        ("volume", -1.0, 0.0),
        ("pan", -4.0, -1.0),
        ("pitch", 0.1, 0.5),
        ("pitch", 9.0, 2.0),
    ],
)
def test_values_are_clamped(params, field, value, expected):
    params.set(PadId.PAD2, field, value)
    assert getattr(params.get(PadId.PAD2), field) == expected


def test_start_past_end_pushes_end(params):
    params.set(PadId.PAD1, "end", 0.5)
    p = params.set(PadId.PAD1, "start", 0.7)
    assert p.start == pytest.approx(0.7)
    assert p.end == pytest.approx(0.71)


def test_end_before_start_pulls_start(params):
    params.set(PadId.PAD1, "start", 0.4)
    p = params.set(PadId.PAD1, "end", 0.2)
    assert p.end == pytest.approx(0.2)
    assert p.start == pytest.approx(0.19)


def test_trim_bounds_at_limits(params):
    p = params.set(PadId.PAD1, "start", 1.0)
    assert p.end == 1.0
    assert p.start == pytest.approx(0.99)

    p = params.set(PadId.PAD3, "end", 0.0)
    assert p.start == 0.0
    assert p.end == pytest.approx(0.01)


def test_random_edits_keep_start_below_end(params):
    rng = random.Random(1234)
    for _ in range(2000):
        pad = rng.choice(list(PadId))
        field = rng.choice(["start", "end", "volume", "pan", "pitch"])
        params.set(pad, field, rng.uniform(-0.5, 2.5))
        p = params.get(pad)
        assert p.start < p.end
        for name, (low, high) in PARAM_RANGES.items():
            assert low <= getattr(p, name) <= high


def test_pads_are_independent(params):
    params.set(PadId.PAD1, "volume", 0.3)
    assert params.get(PadId.PAD2).volume == 1.0


def test_unknown_field_rejected(params):
    with pytest.raises(ValueError):
        params.set(PadId.PAD1, "reverb", 0.5)


def test_notifications_and_reset():
    store = ParameterStore()
    seen = []
    unsubscribe = store.subscribe(lambda pad, p: seen.append((pad, p)))

    store.set(PadId.PAD4, "pan", 0.5)
    store.reset()
    assert seen[0][0] is PadId.PAD4 and seen[0][1].pan == 0.5
    assert seen[1] == (PadId.PAD4, DEFAULT_PARAMETERS)
    assert store.get(PadId.PAD4) == DEFAULT_PARAMETERS

    unsubscribe()
    store.set(PadId.PAD4, "pan", 0.1)
    assert len(seen) == 2
