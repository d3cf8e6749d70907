"""Microphone capture into a pad's buffer slot."""

import logging
from collections import deque
from typing import Callable, Optional, Protocol

import numpy as np

from padsampler.engine.buffers import BufferRegistry, SoundBuffer
from padsampler.errors import CaptureBusyError, DecodeError
from padsampler.pads import PadId

logger = logging.getLogger(__name__)

# Where a recording goes when no pad is selected
RECORDING_FALLBACK_PAD = PadId.PAD1

RECORDED_SAMPLE_NAME = "Recorded Sample"


class CaptureHandle(Protocol):
    def close(self) -> None: ...


class CaptureDevice(Protocol):
    rate: int

    def open(self, on_chunk: Callable[[np.ndarray], None]) -> CaptureHandle:
        """Start delivering (frames, channels) float32 chunks; raises DeviceError."""
        ...


class RecorderCapture:
    def __init__(
        self,
        device: CaptureDevice,
        registry: BufferRegistry,
        target: Callable[[], Optional[PadId]] = lambda: None,
    ):
        self.device = device
        self.registry = registry
        self.target = target
        self._handle: Optional[CaptureHandle] = None
        # Appended from the device thread, drained on stop()
        self._chunks: deque = deque()

    @property
    def recording(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        if self._handle is not None:
            raise CaptureBusyError("A recording is already in progress")
        self._chunks.clear()
        self._handle = self.device.open(self._chunks.append)
        logger.info("Recording started")

    def stop(self) -> Optional[PadId]:
        """End the session and store the take. Returns the pad written to."""
        handle = self._handle
        if handle is None:
            return None
        self._handle = None
        handle.close()

        chunks = list(self._chunks)
        self._chunks.clear()
        if not chunks:
            raise DecodeError("Nothing was captured")

        frames = np.concatenate([np.asarray(chunk, dtype=np.float32) for chunk in chunks])
        buffer = SoundBuffer.from_frames(frames, self.device.rate)

        pad = self.target() or RECORDING_FALLBACK_PAD
        self.registry.put(pad, buffer)
        logger.info("Recording saved to %s (%.2fs)", pad, buffer.duration)
        return pad

    def cancel(self) -> None:
        """End the session and discard the take."""
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.close()
            logger.info("Recording discarded")
        self._chunks.clear()
