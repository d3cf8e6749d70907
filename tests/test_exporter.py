import asyncio
from unittest.mock import Mock

import pytest

from conftest import make_buffer
from padsampler.engine.exporter import PresetExporter
from padsampler.engine.wav import encode_wav
from padsampler.errors import EmptyExportError, UploadError
from padsampler.pads import PadId
from padsampler.schemas.preset import PresetSummary


def test_empty_registry_never_reaches_the_service(registry):
    sink = Mock()
    exporter = PresetExporter(registry, sink)

    with pytest.raises(EmptyExportError):
        asyncio.run(exporter.export("Nothing", "other"))
    sink.upload_preset.assert_not_called()


def test_export_encodes_every_loaded_pad(registry):
    kick, clap = make_buffer(seconds=0.1), make_buffer(seconds=0.2, channels=1)
    registry.put(PadId.PAD7, clap)
    registry.put(PadId.PAD1, kick)
    sink = Mock()
    sink.upload_preset.return_value = PresetSummary(id="new", name="Mine", category="drums")

    created = asyncio.run(PresetExporter(registry, sink).export("Mine", "drums"))

    assert created.id == "new"
    sink.upload_preset.assert_called_once()
    name, category, files = sink.upload_preset.call_args.args
    assert (name, category) == ("Mine", "drums")
    assert files == [
        (PadId.PAD1, encode_wav(kick), "pad1.wav"),
        (PadId.PAD7, encode_wav(clap), "pad7.wav"),
    ]


def test_upload_failure_surfaces(registry):
    registry.put(PadId.PAD2, make_buffer())
    sink = Mock()
    sink.upload_preset.side_effect = UploadError("Server Error during preset creation")

    with pytest.raises(UploadError, match="Server Error"):
        asyncio.run(PresetExporter(registry, sink).export("X", "other"))
