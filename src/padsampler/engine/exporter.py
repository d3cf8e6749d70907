"""Save every loaded pad as a new preset on the preset service."""

import asyncio
import logging
from typing import Protocol, Sequence

from padsampler.engine.buffers import BufferRegistry
from padsampler.engine.wav import encode_wav
from padsampler.errors import EmptyExportError
from padsampler.pads import PadId
from padsampler.schemas.preset import PresetSummary

logger = logging.getLogger(__name__)

UploadFile = tuple[PadId, bytes, str]  # (pad, wav bytes, suggested filename)


class PresetSink(Protocol):
    def upload_preset(self, name: str, category: str, files: Sequence[UploadFile]) -> PresetSummary:
        """Raises UploadError on failure."""
        ...


class PresetExporter:
    def __init__(self, registry: BufferRegistry, sink: PresetSink):
        self.registry = registry
        self.sink = sink

    def collect(self) -> list[UploadFile]:
        return [(pad, encode_wav(buffer), f"{pad}.wav") for pad, buffer in self.registry.items()]

    async def export(self, name: str, category: str) -> PresetSummary:
        if len(self.registry) == 0:
            raise EmptyExportError()

        files = self.collect()
        logger.info("Uploading preset %r (%s) with %d sounds", name, category, len(files))
        return await asyncio.to_thread(self.sink.upload_preset, name, category, files)
