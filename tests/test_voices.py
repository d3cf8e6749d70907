import numpy as np
import pytest

from conftest import FakeOutput, make_buffer
from padsampler.engine.buffers import SoundBuffer
from padsampler.engine.params import PadParameters
from padsampler.engine.voices import VoiceManager, pan_stereo, render_voice
from padsampler.pads import PadId


@pytest.fixture()
def voices(registry, params, output) -> VoiceManager:
    return VoiceManager(registry, params, output)


def test_trim_plays_exact_slice(registry, params, voices):
    buffer = make_buffer(seconds=2.0, rate=8000)
    registry.put(PadId.PAD1, buffer)
    params.set(PadId.PAD1, "start", 0.25)
    params.set(PadId.PAD1, "end", 0.75)

    voice = voices.trigger(PadId.PAD1)

    assert voice.start_seconds == pytest.approx(0.5)
    assert voice.duration_seconds == pytest.approx(1.0)
    assert voice.frames.shape == (8000, 2)
    # frames 4000..11999 of the source, untouched at unity gain/rate/center
    np.testing.assert_allclose(voice.frames[:, 1], buffer.channel(1)[4000:12000], atol=1e-6)
    np.testing.assert_allclose(voice.frames[:, 0], buffer.channel(0)[4000:12000], atol=1e-6)


def test_trigger_without_buffer_is_inert(voices, output):
    assert voices.trigger(PadId.PAD5) is None
    assert output.played == []
    assert voices.active(PadId.PAD5) is None


def test_retrigger_replaces_voice(registry, voices, output):
    registry.put(PadId.PAD2, make_buffer())

    first = voices.trigger(PadId.PAD2)
    second = voices.trigger(PadId.PAD2)

    assert first.ended
    assert not second.ended
    assert voices.active(PadId.PAD2) is second
    assert voices.active_pads() == [PadId.PAD2]
    assert output.played == [first, second]


def test_natural_end_releases_pad(registry, voices):
    registry.put(PadId.PAD3, make_buffer(seconds=0.01))
    voice = voices.trigger(PadId.PAD3)

    while not voice.ended:
        voice.read(16)
    assert voices.active(PadId.PAD3) is None


def test_stale_end_does_not_release_newer_voice(registry, voices):
    registry.put(PadId.PAD3, make_buffer())
    old = voices.trigger(PadId.PAD3)
    new = voices.trigger(PadId.PAD3)

    old.read(10_000)
    old.stop()
    assert voices.active(PadId.PAD3) is new


def test_stop_is_idempotent(registry, voices):
    registry.put(PadId.PAD4, make_buffer())
    voice = voices.trigger(PadId.PAD4)

    voices.stop(PadId.PAD4)
    voices.stop(PadId.PAD4)
    voices.stop(PadId.PAD9)
    voice.stop()
    assert voice.ended
    assert voice.read(64).shape[0] == 0
    assert voices.active_pads() == []


def test_pads_play_concurrently(registry, voices):
    for pad in PadId:
        registry.put(pad, make_buffer())
        voices.trigger(pad)
    assert voices.active_pads() == list(PadId)

    voices.stop_all()
    assert voices.active_pads() == []


def test_pitch_changes_rate_and_length(registry, params, voices):
    registry.put(PadId.PAD1, make_buffer(seconds=1.0, rate=8000))
    params.set(PadId.PAD1, "pitch", 2.0)

    voice = voices.trigger(PadId.PAD1)
    assert voice.rate == 2.0
    assert voice.frames.shape[0] == 4000
    assert voice.duration_seconds == pytest.approx(1.0)


def test_buffer_rate_is_resampled_to_output():
    buffer = make_buffer(seconds=1.0, rate=4000)
    voice = render_voice(PadId.PAD1, buffer, PadParameters(), output_rate=8000)
    assert voice.frames.shape[0] == 8000


def test_volume_scales_signal(registry, params, voices):
    buffer = make_buffer()
    registry.put(PadId.PAD1, buffer)
    params.set(PadId.PAD1, "volume", 0.5)

    voice = voices.trigger(PadId.PAD1)
    assert voice.gain == 0.5
    np.testing.assert_allclose(voice.frames[:, 1], buffer.channel(1) * 0.5, atol=1e-6)


def test_pan_mono_equal_power():
    mono = np.ones((1, 4))
    left = pan_stereo(mono, -1.0)
    np.testing.assert_allclose(left[0], 1.0)
    np.testing.assert_allclose(left[1], 0.0, atol=1e-12)

    center = pan_stereo(mono, 0.0)
    np.testing.assert_allclose(center, np.sqrt(0.5))


def test_pan_stereo_folds_far_channel():
    signal = np.array([[0.2, 0.2], [0.6, 0.6]])
    hard_right = pan_stereo(signal, 1.0)
    np.testing.assert_allclose(hard_right[0], 0.0, atol=1e-12)
    np.testing.assert_allclose(hard_right[1], 0.8)


def test_voice_keeps_replaced_buffer(registry, voices):
    original = make_buffer()
    registry.put(PadId.PAD1, original)
    voice = voices.trigger(PadId.PAD1)

    registry.put(PadId.PAD1, SoundBuffer(np.zeros((2, 10), dtype=np.float32), 8000))
    assert voice.frames.shape[0] == original.frame_count


def test_output_rate_used(registry, params):
    output = FakeOutput(rate=16000)
    registry.put(PadId.PAD1, make_buffer(seconds=0.5, rate=8000))
    voice = VoiceManager(registry, params, output).trigger(PadId.PAD1)
    assert voice.frames.shape[0] == 8000
