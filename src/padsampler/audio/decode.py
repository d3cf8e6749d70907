"""Decode capability: raw container bytes -> SoundBuffer."""

import io
import struct
import wave

import numpy as np

from padsampler.engine.buffers import SoundBuffer
from padsampler.errors import DecodeError


def pcm_to_float(raw_data: bytes, width: int) -> np.ndarray:
    """Convert little-endian PCM bytes to float32 -1..1."""
    if width == 2:
        # 16-bit
        audio_int16 = np.frombuffer(raw_data, dtype="<i2")
        return audio_int16.astype(np.float32) / 32768.0
    elif width == 1:
        # 8-bit unsigned
        audio_uint8 = np.frombuffer(raw_data, dtype=np.uint8)
        return (audio_uint8.astype(np.float32) - 128.0) / 128.0
    elif width == 3:
        # 24-bit signed
        raw_bytes = np.frombuffer(raw_data, dtype=np.uint8)
        chunks = raw_bytes.reshape(-1, 3)
        padded = np.pad(chunks, ((0, 0), (1, 0)), mode="constant")
        audio_int32 = np.frombuffer(padded.tobytes(), dtype="<i4")
        return audio_int32.astype(np.float32) / 2147483648.0
    elif width == 4:
        # 32-bit signed
        audio_int32 = np.frombuffer(raw_data, dtype="<i4")
        return (audio_int32.astype(np.float64) / 2147483648.0).astype(np.float32)
    raise DecodeError(f"Unsupported bit depth: {width * 8}-bit")


def decode_wav(data: bytes) -> SoundBuffer:
    """Decode an uncompressed WAV file held in memory.

    The buffer keeps the file's own channel count and sample rate;
    resampling to the output rate happens when a voice is rendered.
    """
    try:
        with wave.open(io.BytesIO(data), "rb") as wf:
            channels = wf.getnchannels()
            rate = wf.getframerate()
            width = wf.getsampwidth()
            raw_data = wf.readframes(wf.getnframes())
    except (wave.Error, EOFError, RuntimeError, struct.error, ValueError) as e:
        raise DecodeError(f"Not a readable WAV stream: {e}") from e

    if channels < 1 or rate < 1:
        raise DecodeError(f"Invalid WAV format: {channels} channels at {rate} Hz")

    usable = len(raw_data) - len(raw_data) % (width * channels)
    audio_float = pcm_to_float(raw_data[:usable], width)
    return SoundBuffer.from_frames(audio_float.reshape(-1, channels), rate)
