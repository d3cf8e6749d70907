"""The sampler session: wires the engine parts and owns UI-facing state.

Every input path (pointer, key, MIDI) funnels into ``press``. All methods
are meant to run on the event loop thread; device threads hand work over
with ``loop.call_soon_threadsafe`` or the UI's equivalent.
"""

import asyncio
import logging
from typing import Callable, List, Optional, Protocol, Sequence, Union

import mido

from padsampler.engine.buffers import BufferRegistry
from padsampler.engine.capture import RECORDED_SAMPLE_NAME, CaptureDevice, RecorderCapture
from padsampler.engine.coordinator import LoadCoordinator
from padsampler.engine.exporter import PresetExporter, PresetSink
from padsampler.engine.loader import SampleLoader
from padsampler.engine.params import PadParameters, ParameterStore
from padsampler.engine.voices import AudioOutput, Voice, VoiceManager
from padsampler.errors import DeviceError, NetworkError
from padsampler.midi import resolve_pad
from padsampler.pads import PadId, pad_for_key
from padsampler.schemas.preset import Preset, PresetSummary

logger = logging.getLogger(__name__)

SelectionListener = Callable[[Optional[PadId]], None]


class PresetSource(Protocol):
    def fetch_preset_list(self) -> List[PresetSummary]: ...

    def fetch_preset_sounds(self, preset_id: str) -> Preset: ...


class Sampler:
    def __init__(
        self,
        source: PresetSource,
        output: AudioOutput,
        sink: Optional[PresetSink] = None,
        capture_device: Optional[CaptureDevice] = None,
        loader: Optional[SampleLoader] = None,
        reset_params_on_switch: bool = True,
    ):
        self.source = source
        self.params = ParameterStore()
        self.registry = BufferRegistry()
        self.coordinator = LoadCoordinator(
            self.registry,
            self.params,
            loader or SampleLoader(),
            reset_params_on_switch=reset_params_on_switch,
        )
        self.voices = VoiceManager(self.registry, self.params, output)
        self.exporter = PresetExporter(self.registry, sink or source)
        self.recorder = (
            RecorderCapture(capture_device, self.registry, target=lambda: self.selected)
            if capture_device is not None
            else None
        )

        self.selected: Optional[PadId] = None
        self.presets: List[PresetSummary] = []
        self.current_preset_id: Optional[str] = None
        self._selection_listeners: list[SelectionListener] = []

    # --- Presets ---

    async def refresh_presets(self) -> List[PresetSummary]:
        self.presets = await asyncio.to_thread(self.source.fetch_preset_list)
        return self.presets

    def categories(self) -> List[str]:
        """Distinct non-empty categories, in the order presets list them."""
        seen: list[str] = []
        for preset in self.presets:
            if preset.category and preset.category not in seen:
                seen.append(preset.category)
        return seen

    def presets_in(self, category: Optional[str] = None) -> List[PresetSummary]:
        if not category:
            return list(self.presets)
        return [p for p in self.presets if p.category == category]

    async def load_initial_preset(self) -> Optional[PresetSummary]:
        """Startup policy: load the first preset the service lists."""
        if not self.presets:
            await self.refresh_presets()
        if not self.presets:
            logger.info("No presets available")
            return None
        first = self.presets[0]
        await self.load_preset_by_id(first.id)
        return first

    async def load_preset_by_id(self, preset_id: str) -> None:
        self.current_preset_id = preset_id
        preset = await asyncio.to_thread(self.source.fetch_preset_sounds, preset_id)
        if preset_id != self.current_preset_id:
            return  # another preset was picked while this one was fetched
        await self.coordinator.load_preset(preset)

    # --- Pads ---

    def subscribe_selection(self, listener: SelectionListener) -> Callable[[], None]:
        self._selection_listeners.append(listener)
        return lambda: self._selection_listeners.remove(listener)

    def select(self, pad: PadId) -> PadParameters:
        self.selected = pad
        for listener in list(self._selection_listeners):
            listener(pad)
        return self.params.get(pad)

    def press(self, pad: PadId) -> Optional[Voice]:
        """Select and trigger a pad."""
        self.select(pad)
        return self.voices.trigger(pad)

    def press_key(self, key: Optional[str]) -> Optional[PadId]:
        pad = pad_for_key(key)
        if pad is not None:
            self.press(pad)
        return pad

    def handle_midi(self, message: Union[mido.Message, Sequence[int]]) -> Optional[PadId]:
        pad = resolve_pad(message)
        if pad is not None:
            self.press(pad)
        return pad

    def set_param(self, field: str, value: float) -> Optional[PadParameters]:
        """Edit the selected pad; does nothing when no pad is selected."""
        if self.selected is None:
            return None
        return self.params.set(self.selected, field, value)

    # --- Recording ---

    @property
    def recording(self) -> bool:
        return self.recorder is not None and self.recorder.recording

    def toggle_recording(self) -> Optional[PadId]:
        """Start a take, or finish the running one and return its pad."""
        if self.recorder is None:
            raise DeviceError("Microphone not supported")
        if not self.recorder.recording:
            self.recorder.start()
            return None
        pad = self.recorder.stop()
        if pad is not None:
            self.coordinator.mark_loaded(pad, RECORDED_SAMPLE_NAME)
        return pad

    # --- Export ---

    async def save_preset(self, name: str, category: str) -> PresetSummary:
        name = name.strip()
        if not name:
            raise ValueError("Please enter a preset name")
        created = await self.exporter.export(name, category)
        try:
            await self.refresh_presets()
        except NetworkError as e:
            logger.warning("Preset saved but the list could not be refreshed: %s", e)
        return created

    def close(self) -> None:
        self.voices.stop_all()
        if self.recorder is not None and self.recorder.recording:
            self.recorder.cancel()
