import logging
from collections import deque
from typing import Callable, List

import numpy as np
import sounddevice as sd

from padsampler.engine.voices import Voice
from padsampler.errors import DeviceError

logger = logging.getLogger(__name__)


class AudioPlayer:
    """Mixes live voices into a low-latency sounddevice output stream."""

    def __init__(
        self,
        rate: int = 44100,
        channels: int = 2,
        blocksize: int = 256,
        master_gain: float = 0.7,
    ):
        self.rate = rate
        self.channels = channels
        self.master_gain = master_gain
        # Lock-free pending queue: play() appends here,
        # callback drains into its own local list each cycle.
        self._pending: deque = deque()
        self._voices: List[Voice] = []

        try:
            self.stream = sd.OutputStream(
                samplerate=rate,
                blocksize=blocksize,
                channels=channels,
                dtype="float32",
                latency="low",
                callback=self._callback,
            )
            self.stream.start()
        except sd.PortAudioError as e:
            raise DeviceError(f"Could not open audio output: {e}") from e

        logger.info("Audio output latency: %.1fms", self.stream.latency * 1000)

    def play(self, voice: Voice) -> None:
        """Queue a rendered voice for mixing (lock-free)."""
        # deque.append is atomic in CPython
        self._pending.append(voice)

    def cleanup(self) -> None:
        """Stops and closes the audio stream."""
        self.stream.stop()
        self.stream.close()

    def _callback(self, outdata: np.ndarray, frames: int, time, status):
        if status:
            logger.warning("Audio status: %s", status)

        # Drain pending voices into our local list (lock-free reads)
        while True:
            try:
                self._voices.append(self._pending.popleft())
            except IndexError:
                break

        # Zero the output buffer
        outdata[:] = 0.0

        # Mix active voices; stopped ones are dropped without reading
        i = len(self._voices) - 1
        while i >= 0:
            voice = self._voices[i]
            if not voice.ended:
                block = voice.read(frames)
                n = len(block)
                if self.channels == 2:
                    outdata[:n] += block
                else:
                    outdata[:n] += block.mean(axis=1, keepdims=True)
            if voice.ended:
                self._voices.pop(i)
            i -= 1

        # Global gain to prevent clipping when mixing multiple sounds
        outdata *= self.master_gain

        # Hard clip
        np.clip(outdata, -1.0, 1.0, out=outdata)


class _InputSession:
    def __init__(self, stream: sd.InputStream):
        self.stream = stream

    def close(self) -> None:
        self.stream.stop()
        self.stream.close()


class MicrophoneInput:
    """Default input device as a capture source for RecorderCapture."""

    def __init__(self, rate: int = 44100, channels: int = 1, device=None):
        self.rate = rate
        self.channels = channels
        self.device = device

    def open(self, on_chunk: Callable[[np.ndarray], None]) -> _InputSession:
        def callback(indata: np.ndarray, frames: int, time, status):
            if status:
                logger.warning("Input status: %s", status)
            on_chunk(indata.copy())

        try:
            stream = sd.InputStream(
                samplerate=self.rate,
                channels=self.channels,
                dtype="float32",
                device=self.device,
                callback=callback,
            )
            stream.start()
        except (sd.PortAudioError, ValueError) as e:
            raise DeviceError(f"Could not start recording: {e}") from e
        return _InputSession(stream)
