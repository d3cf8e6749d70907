import struct

import numpy as np

from conftest import make_buffer
from padsampler.audio.decode import decode_wav
from padsampler.engine.buffers import SoundBuffer
from padsampler.engine.wav import HEADER_SIZE, encode_wav


def test_header_layout():
    buffer = make_buffer(seconds=0.25, rate=22050, channels=2)
    data = encode_wav(buffer)
    data_size = buffer.frame_count * 2 * 2

    fields = struct.unpack("<4sI4s4sIHHIIHH4sI", data[:HEADER_SIZE])
    assert fields == (
        b"RIFF",
        36 + data_size,
        b"WAVE",
        b"fmt ",
        16,
        1,
        2,
        22050,
        22050 * 2 * 2,
        4,
        16,
        b"data",
        data_size,
    )
    assert len(data) == HEADER_SIZE + data_size


def test_asymmetric_scaling_and_truncation():
    samples = np.array([[-1.0, -0.5, 0.0, 0.5, 1.0, 1.7, -3.0, -0.99999]], dtype=np.float32)
    data = encode_wav(SoundBuffer(samples, 8000))

    values = struct.unpack("<8h", data[HEADER_SIZE:])
    expected_tail = int(np.float64(np.float32(-0.99999)) * 32768)
    assert values == (-32768, -16384, 0, 16383, 32767, 32767, -32768, expected_tail)


def test_frames_are_interleaved():
    samples = np.array([[0.25, 0.5], [-0.25, -0.5]], dtype=np.float32)
    data = encode_wav(SoundBuffer(samples, 8000))

    # frame0ch0, frame0ch1, frame1ch0, frame1ch1
    assert struct.unpack("<4h", data[HEADER_SIZE:]) == (8191, -8192, 16383, -16384)


def test_round_trip_within_quantization_step():
    rng = np.random.default_rng(7)
    samples = rng.uniform(-1.0, 1.0, size=(2, 1000)).astype(np.float32)
    buffer = SoundBuffer(samples, 44100)

    data = encode_wav(buffer)

    # Invert the encoder's own scaling
    raw = np.frombuffer(data[HEADER_SIZE:], dtype="<i2").reshape(-1, 2).T.astype(np.float64)
    restored = np.where(raw < 0, raw / 32768, raw / 32767)
    assert np.max(np.abs(restored - samples)) <= 1 / 32768 + 1e-7

    # A standard reader divides everything by 32768
    decoded = decode_wav(data)
    assert decoded.channels == 2
    assert decoded.sample_rate == 44100
    assert decoded.frame_count == 1000
    assert np.max(np.abs(decoded.samples - samples)) <= 2 / 32768


def test_empty_buffer_encodes_header_only():
    data = encode_wav(SoundBuffer(np.zeros((1, 0), dtype=np.float32), 8000))
    assert len(data) == HEADER_SIZE
    assert struct.unpack("<I", data[40:44]) == (0,)
    assert struct.unpack("<I", data[4:8]) == (36,)
