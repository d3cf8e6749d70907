"""Decoded audio buffers and the per-pad registry that owns them."""

from dataclasses import dataclass
from typing import Callable, Dict, Iterator, Optional

import numpy as np

from padsampler.pads import PadId

BufferListener = Callable[[PadId, Optional["SoundBuffer"]], None]


@dataclass(frozen=True)
class SoundBuffer:
    """Immutable decoded audio.

    ``samples`` has shape ``(channels, frames)``, dtype float32, values in
    -1..1, and is marked read-only.
    """

    samples: np.ndarray
    sample_rate: int

    def __post_init__(self):
        if self.samples.ndim != 2:
            raise ValueError("samples must be a (channels, frames) array")
        if self.sample_rate <= 0:
            raise ValueError(f"Invalid sample rate: {self.sample_rate}")
        self.samples.flags.writeable = False

    @classmethod
    def from_frames(cls, frames: np.ndarray, sample_rate: int) -> "SoundBuffer":
        """Build from interleaved ``(frames, channels)`` or mono ``(frames,)`` data."""
        data = np.asarray(frames, dtype=np.float32)
        if data.ndim == 1:
            data = data.reshape(-1, 1)
        return cls(np.ascontiguousarray(data.T), int(sample_rate))

    @property
    def channels(self) -> int:
        return self.samples.shape[0]

    @property
    def frame_count(self) -> int:
        return self.samples.shape[1]

    @property
    def duration(self) -> float:
        """Length in seconds."""
        return self.frame_count / self.sample_rate

    def channel(self, index: int) -> np.ndarray:
        return self.samples[index]


class BufferRegistry:
    """Maps each pad to its current buffer.

    Replacing a buffer only swaps the mapping; voices keep the buffer they
    started with.
    """

    def __init__(self):
        self._buffers: Dict[PadId, SoundBuffer] = {}
        self._listeners: list[BufferListener] = []

    def subscribe(self, listener: BufferListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def put(self, pad: PadId, buffer: SoundBuffer) -> None:
        self._buffers[pad] = buffer
        self._notify(pad, buffer)

    def get(self, pad: PadId) -> Optional[SoundBuffer]:
        return self._buffers.get(pad)

    def clear(self) -> None:
        cleared = list(self._buffers)
        self._buffers.clear()
        for pad in cleared:
            self._notify(pad, None)

    def items(self) -> Iterator[tuple[PadId, SoundBuffer]]:
        """Present buffers in pad1..pad9 order."""
        for pad in PadId:
            buffer = self._buffers.get(pad)
            if buffer is not None:
                yield pad, buffer

    def __contains__(self, pad: object) -> bool:
        return pad in self._buffers

    def __len__(self) -> int:
        return len(self._buffers)

    def _notify(self, pad: PadId, buffer: Optional[SoundBuffer]) -> None:
        for listener in list(self._listeners):
            listener(pad, buffer)
