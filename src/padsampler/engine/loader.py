"""Progressive loading of one sound: fetch, report progress, decode.

``SampleLoader.stream`` yields ``LoadProgress`` events and finishes with
exactly one ``LoadSucceeded`` or ``LoadFailed``. Network and decode
failures end that one stream; they are never raised to the caller.
"""

import asyncio
import logging
from contextlib import aclosing
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Optional, Union

from padsampler.audio.decode import decode_wav
from padsampler.engine.buffers import SoundBuffer
from padsampler.engine.streams import LocatorOpener, StreamOpener
from padsampler.errors import DecodeError, NetworkError, SamplerError
from padsampler.pads import PadId

logger = logging.getLogger(__name__)

# Reported once when the stream has no usable length
INDETERMINATE_PROGRESS = 0.5
# Reported when all bytes are in and decoding starts
DECODE_PROGRESS = 0.95

Decoder = Callable[[bytes], SoundBuffer]


@dataclass(frozen=True)
class LoadProgress:
    value: float


@dataclass(frozen=True)
class LoadSucceeded:
    buffer: SoundBuffer


@dataclass(frozen=True)
class LoadFailed:
    error: SamplerError


LoadEvent = Union[LoadProgress, LoadSucceeded, LoadFailed]


class SampleLoader:
    def __init__(self, opener: Optional[StreamOpener] = None, decoder: Decoder = decode_wav):
        self.opener = opener or LocatorOpener()
        self.decoder = decoder

    async def stream(self, pad: PadId, locator: str) -> AsyncIterator[LoadEvent]:
        try:
            byte_stream = await self.opener.open(locator)
        except NetworkError as e:
            logger.warning("Error loading sample for %s: %s", pad, e)
            yield LoadFailed(e)
            return

        chunks: list[bytes] = []
        try:
            total = byte_stream.total
            loaded = 0
            async with aclosing(byte_stream.chunks()) as incoming:
                async for chunk in incoming:
                    first = loaded == 0
                    chunks.append(chunk)
                    loaded += len(chunk)
                    if total:
                        yield LoadProgress(min(loaded / total, DECODE_PROGRESS))
                    elif first:
                        yield LoadProgress(INDETERMINATE_PROGRESS)
        except NetworkError as e:
            logger.warning("Error loading sample for %s: %s", pad, e)
            yield LoadFailed(e)
            return
        finally:
            byte_stream.close()

        yield LoadProgress(DECODE_PROGRESS)

        try:
            buffer = await asyncio.to_thread(self.decoder, b"".join(chunks))
        except DecodeError as e:
            logger.warning("Failed to decode audio for %s (%s): %s", pad, locator, e)
            yield LoadFailed(e)
            return
        except Exception as e:  # decoders are pluggable
            error = DecodeError(f"Failed to decode audio: {e}")
            logger.warning("Failed to decode audio for %s (%s): %s", pad, locator, e)
            yield LoadFailed(error)
            return

        yield LoadProgress(1.0)
        yield LoadSucceeded(buffer)

    async def load(
        self,
        pad: PadId,
        locator: str,
        on_progress: Optional[Callable[[float], None]] = None,
    ) -> Union[SoundBuffer, SamplerError]:
        """Run ``stream`` to completion; returns the buffer or the error."""
        async for event in self.stream(pad, locator):
            if isinstance(event, LoadProgress):
                if on_progress:
                    on_progress(event.value)
            elif isinstance(event, LoadSucceeded):
                return event.buffer
            else:
                return event.error
        raise AssertionError("load stream ended without a result")
