"""Voices: one playback of a trimmed buffer through rate, gain and pan.

``VoiceManager`` keeps at most one live voice per pad. Re-triggering a pad
stops its current voice before the new one starts.
"""

import logging
import math
import threading
from typing import Callable, Dict, Optional, Protocol

import numpy as np

from padsampler.engine.buffers import BufferRegistry, SoundBuffer
from padsampler.engine.params import PadParameters, ParameterStore
from padsampler.pads import PadId

logger = logging.getLogger(__name__)


class AudioOutput(Protocol):
    rate: int

    def play(self, voice: "Voice") -> None: ...


class Voice:
    """Rendered stereo frames plus a read cursor advanced by the output."""

    def __init__(
        self,
        pad: PadId,
        frames: np.ndarray,
        start_seconds: float,
        duration_seconds: float,
        params: PadParameters,
    ):
        self.pad = pad
        self.frames = frames  # (n, 2) float32
        self.start_seconds = start_seconds
        self.duration_seconds = duration_seconds
        self.rate = params.pitch
        self.gain = params.volume
        self.pan = params.pan
        self.position = 0
        self._ended = False
        self._lock = threading.Lock()
        self._end_callbacks: list[Callable[["Voice"], None]] = []

    @property
    def ended(self) -> bool:
        return self._ended

    def on_end(self, callback: Callable[["Voice"], None]) -> None:
        self._end_callbacks.append(callback)

    def read(self, count: int) -> np.ndarray:
        """Next block of at most ``count`` frames; finishes the voice when drained."""
        if self._ended:
            return self.frames[:0]
        block = self.frames[self.position : self.position + count]
        self.position += len(block)
        if self.position >= len(self.frames):
            self._end()
        return block

    def stop(self) -> None:
        """Stop playback. Stopping an ended voice does nothing."""
        self._end()

    def _end(self) -> None:
        with self._lock:
            if self._ended:
                return
            self._ended = True
        for callback in self._end_callbacks:
            callback(self)


def pan_stereo(signal: np.ndarray, pan: float) -> np.ndarray:
    """Equal-power panning of a (channels, n) signal to (2, n).

    Mono input is spread across both sides; stereo input folds the far
    channel into the near one, as a stereo panner node does.
    """
    if signal.shape[0] == 1:
        x = (pan + 1.0) / 2.0
        mono = signal[0]
        return np.vstack((mono * math.cos(x * math.pi / 2), mono * math.sin(x * math.pi / 2)))

    left, right = signal[0], signal[1]
    if pan <= 0:
        x = pan + 1.0
        out_left = left + right * math.cos(x * math.pi / 2)
        out_right = right * math.sin(x * math.pi / 2)
    else:
        x = pan
        out_left = left * math.cos(x * math.pi / 2)
        out_right = right + left * math.sin(x * math.pi / 2)
    return np.vstack((out_left, out_right))


def resample(segment: np.ndarray, step: float) -> np.ndarray:
    """Read a (channels, n) segment at ``step`` source frames per output frame."""
    n = segment.shape[1]
    if n == 0 or step == 1.0:
        return segment
    count = int(math.ceil(n / step))
    positions = np.arange(count) * step
    source = np.arange(n)
    return np.vstack([np.interp(positions, source, channel) for channel in segment])


def render_voice(pad: PadId, buffer: SoundBuffer, params: PadParameters, output_rate: int) -> Voice:
    """Build the trigger chain: trim slice -> rate -> gain -> pan."""
    duration = buffer.duration
    start_seconds = params.start * duration
    end_seconds = params.end * duration
    play_duration = end_seconds - start_seconds

    rate = buffer.sample_rate
    start_frame = int(round(start_seconds * rate))
    end_frame = int(round((start_seconds + play_duration) * rate))
    segment = buffer.samples[:2, start_frame:end_frame]

    step = params.pitch * rate / output_rate
    shaped = resample(segment, step) * params.volume
    frames = pan_stereo(shaped, params.pan).T.astype(np.float32)
    return Voice(pad, np.ascontiguousarray(frames), start_seconds, play_duration, params)


class VoiceManager:
    def __init__(self, registry: BufferRegistry, params: ParameterStore, output: AudioOutput):
        self.registry = registry
        self.params = params
        self.output = output
        self._voices: Dict[PadId, Voice] = {}
        self._lock = threading.Lock()

    def trigger(self, pad: PadId) -> Optional[Voice]:
        """Start ``pad`` from its trim start; silently inert without a buffer."""
        buffer = self.registry.get(pad)
        if buffer is None:
            return None

        voice = render_voice(pad, buffer, self.params.get(pad), self.output.rate)
        voice.on_end(self._release)

        self.stop(pad)
        with self._lock:
            self._voices[pad] = voice
        self.output.play(voice)
        return voice

    def stop(self, pad: PadId) -> None:
        with self._lock:
            voice = self._voices.pop(pad, None)
        if voice is not None:
            voice.stop()

    def stop_all(self) -> None:
        for pad in PadId:
            self.stop(pad)

    def active(self, pad: PadId) -> Optional[Voice]:
        with self._lock:
            return self._voices.get(pad)

    def active_pads(self) -> list[PadId]:
        with self._lock:
            return [pad for pad in PadId if pad in self._voices]

    def _release(self, voice: Voice) -> None:
        # Runs on the audio thread for natural ends
        with self._lock:
            if self._voices.get(voice.pad) is voice:
                del self._voices[voice.pad]
