"""Canonical 16-bit PCM WAV encoding of a SoundBuffer.

Layout: 44-byte RIFF header (PCM tag 1, 16 bits/sample) followed by
little-endian samples interleaved frame by frame. Negative samples scale
by 32768 and non-negative ones by 32767, truncated toward zero.
"""

import io
import wave

import numpy as np

from padsampler.engine.buffers import SoundBuffer

HEADER_SIZE = 44
SAMPLE_WIDTH = 2


def float_to_pcm16(samples: np.ndarray) -> np.ndarray:
    clipped = np.clip(samples.astype(np.float64), -1.0, 1.0)
    scaled = np.where(clipped < 0, clipped * 32768.0, clipped * 32767.0)
    # float -> int casts truncate toward zero
    return scaled.astype(np.int16)


def encode_wav(buffer: SoundBuffer) -> bytes:
    interleaved = float_to_pcm16(buffer.samples).T  # (frames, channels)

    out = io.BytesIO()
    with wave.open(out, "wb") as wf:
        wf.setnchannels(buffer.channels)
        wf.setsampwidth(SAMPLE_WIDTH)
        wf.setframerate(buffer.sample_rate)
        wf.setnframes(buffer.frame_count)
        wf.writeframes(np.ascontiguousarray(interleaved).tobytes())
    return out.getvalue()
