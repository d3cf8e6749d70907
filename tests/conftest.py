import asyncio
from typing import Optional

import numpy as np
import pytest

from padsampler.engine.buffers import BufferRegistry, SoundBuffer
from padsampler.engine.params import ParameterStore
from padsampler.engine.wav import encode_wav
from padsampler.errors import DeviceError


def make_buffer(seconds: float = 1.0, rate: int = 8000, channels: int = 2) -> SoundBuffer:
    """Ramp per channel so every frame is distinguishable."""
    frames = int(seconds * rate)
    ramp = np.arange(frames, dtype=np.float32) / max(frames, 1)
    rows = [ramp if c % 2 == 0 else -ramp for c in range(channels)]
    return SoundBuffer(np.vstack(rows).astype(np.float32), rate)


def make_wav(seconds: float = 0.1, rate: int = 8000, channels: int = 1) -> bytes:
    return encode_wav(make_buffer(seconds, rate, channels))


class FakeOutput:
    def __init__(self, rate: int = 8000):
        self.rate = rate
        self.played = []

    def play(self, voice) -> None:
        self.played.append(voice)


class FakeStream:
    def __init__(self, chunks, total: Optional[int] = None, gate: Optional[asyncio.Event] = None):
        self.total = total
        self._chunks = list(chunks)
        self.gate = gate
        self.closed = False
        self.reading = False

    async def chunks(self):
        self.reading = True
        try:
            for chunk in self._chunks:
                if self.gate is not None:
                    await self.gate.wait()
                yield chunk
        finally:
            self.reading = False

    def close(self) -> None:
        self.closed = True


class FakeOpener:
    """Maps locators to FakeStreams, or to exceptions raised on open."""

    def __init__(self, streams: dict):
        self.streams = streams
        self.opened: list[str] = []

    async def open(self, locator: str):
        self.opened.append(locator)
        item = self.streams[locator]
        if isinstance(item, Exception):
            raise item
        return item


def split(data: bytes, parts: int) -> list[bytes]:
    size = -(-len(data) // parts)
    return [data[i : i + size] for i in range(0, len(data), size)]


class FakeCaptureDevice:
    def __init__(self, rate: int = 8000, fail: bool = False):
        self.rate = rate
        self.fail = fail
        self.on_chunk = None
        self.closed = 0

    def open(self, on_chunk):
        if self.fail:
            raise DeviceError("Permission denied")
        self.on_chunk = on_chunk
        return self

    def close(self) -> None:
        self.closed += 1

    def feed(self, frames: np.ndarray) -> None:
        self.on_chunk(frames)


@pytest.fixture()
def registry() -> BufferRegistry:
    return BufferRegistry()


@pytest.fixture()
def params() -> ParameterStore:
    return ParameterStore()


@pytest.fixture()
def output() -> FakeOutput:
    return FakeOutput()
