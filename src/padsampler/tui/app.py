from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label
from textual.containers import Grid, Horizontal, Vertical
from functools import partial
from typing import Optional

from padsampler.engine.coordinator import LoadState, LoadStatus
from padsampler.engine.params import PadParameters
from padsampler.engine.session import Sampler
from padsampler.errors import SamplerError
from padsampler.midi import MidiListener
from padsampler.pads import GRID_ORDER, PadId

# Duration (seconds) for pad visual feedback flash
PAD_FLASH_DURATION = 0.1

# Step for keyboard parameter nudges
PARAM_STEP = 0.05


def pad_label(pad: PadId, state: LoadState) -> str:
    """Two-line pad caption: number and key, then load status."""
    head = f"{pad.number} ({pad.key})"
    if state.status is LoadStatus.LOADING:
        return f"{head}\n{round(state.progress * 100)}%"
    if state.status is LoadStatus.LOADED:
        return f"{head}\n{state.name}"
    if state.status is LoadStatus.ERROR:
        return f"{head}\nFailed to load"
    return head


def params_label(pad: Optional[PadId], params: PadParameters) -> str:
    if pad is None:
        return "No pad selected"
    if params.pan == 0:
        pan = "C"
    elif params.pan < 0:
        pan = f"L{abs(round(params.pan * 100))}"
    else:
        pan = f"R{round(params.pan * 100)}"
    return (
        f"{pad}  start {params.start:.2f}  end {params.end:.2f}  "
        f"vol {round(params.volume * 100)}%  pan {pan}  pitch {params.pitch:.2f}x"
    )


class PadButton(Button):
    """A single sample pad widget."""

    def __init__(self, pad: PadId, **kwargs):
        super().__init__(pad_label(pad, LoadState()), id=f"pad-{pad}", **kwargs)
        self.pad = pad

    def show_state(self, state: LoadState) -> None:
        self.label = pad_label(self.pad, state)
        self.set_class(state.status is LoadStatus.LOADED, "-loaded")
        self.set_class(state.status is LoadStatus.LOADING, "-loading")
        self.set_class(state.status is LoadStatus.ERROR, "-error")


class SaveScreen(ModalScreen[Optional[tuple[str, str]]]):
    """Asks for a preset name and category. Dismisses with None on cancel."""

    CSS = """
    SaveScreen {
        align: center middle;
    }
    #save-box {
        width: 50;
        height: auto;
        background: $surface;
        border: thick $primary;
        padding: 1 2;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=False),
    ]

    def compose(self) -> ComposeResult:
        with Vertical(id="save-box"):
            yield Label("Save Preset")
            yield Input(placeholder="Preset name", id="save-name")
            yield Input(value="other", placeholder="Category", id="save-category")
            with Horizontal():
                yield Button("Save", id="save-confirm", variant="primary")
                yield Button("Cancel", id="save-cancel")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if event.button.id == "save-confirm":
            name = self.query_one("#save-name", Input).value
            category = self.query_one("#save-category", Input).value
            self.dismiss((name, category))
        else:
            self.dismiss(None)

    def action_cancel(self) -> None:
        self.dismiss(None)


class SamplerApp(App):
    CSS = """
    Grid {
        grid-size: 3 3;
        grid-gutter: 1;
        padding: 1;
    }
    PadButton {
        width: 100%;
        height: 100%;
        min-height: 5;
    }
    PadButton.-loaded {
        background: $success 40%;
    }
    PadButton.-loading {
        background: $warning 30%;
    }
    PadButton.-error {
        background: $error 50%;
    }
    PadButton.-selected {
        border: tall $accent;
    }
    PadButton.-active {
        background: $accent;
    }
    #params {
        height: 1;
        padding: 0 1;
    }
    #status {
        dock: bottom;
        height: 1;
        padding: 0 1;
        background: $surface;
        color: $text-muted;
    }
    """

    BINDINGS = [
        Binding("r", "toggle_record", "Record"),
        Binding("v", "save", "Save"),
        Binding("n", "next_preset", "Next Preset"),
        Binding("g", "next_category", "Category"),
        Binding("up", "nudge('volume', 1)", "Vol +", show=False),
        Binding("down", "nudge('volume', -1)", "Vol -", show=False),
        Binding("left", "nudge('pan', -1)", "Pan L", show=False),
        Binding("right", "nudge('pan', 1)", "Pan R", show=False),
        Binding("equal,plus", "nudge('pitch', 1)", "Pitch +", show=False),
        Binding("minus", "nudge('pitch', -1)", "Pitch -", show=False),
        Binding("1", "nudge('start', -1)", "Start -", show=False),
        Binding("2", "nudge('start', 1)", "Start +", show=False),
        Binding("3", "nudge('end', -1)", "End -", show=False),
        Binding("4", "nudge('end', 1)", "End +", show=False),
    ]

    def __init__(
        self,
        sampler: Sampler,
        midi_device: Optional[str] = None,
        preset_id: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.sampler = sampler
        self.midi_device = midi_device
        self.preset_id = preset_id
        self.category: Optional[str] = None
        self.midi = MidiListener(on_pad=lambda pad: self.call_from_thread(self._press, pad))
        self._unsubscribe: list = []

    def compose(self) -> ComposeResult:
        yield Label("Sampler: loading presets...", id="title")
        with Grid():
            for pad in GRID_ORDER:
                yield PadButton(pad)
        yield Label(params_label(None, PadParameters()), id="params")
        yield Label("", id="status")

    def on_mount(self) -> None:
        self._unsubscribe = [
            self.sampler.coordinator.subscribe(self._on_load_state),
            self.sampler.params.subscribe(self._on_params),
            self.sampler.subscribe_selection(self._on_selection),
        ]
        self.midi.start(self.midi_device)
        self._set_status(f"MIDI: {self.midi.port_name or 'not connected'}")
        self.run_worker(self._initial_load(), group="presets")

    def on_unmount(self) -> None:
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self.midi.stop()
        self.sampler.close()

    # --- Notifications ---

    def _pad_widget(self, pad: PadId) -> PadButton:
        return self.query_one(f"#pad-{pad}", PadButton)

    def _on_load_state(self, pad: PadId, state: LoadState) -> None:
        self._pad_widget(pad).show_state(state)

    def _on_params(self, pad: PadId, params: PadParameters) -> None:
        if pad == self.sampler.selected:
            self.query_one("#params", Label).update(params_label(pad, params))

    def _on_selection(self, pad: Optional[PadId]) -> None:
        for widget in self.query(PadButton):
            widget.set_class(widget.pad == pad, "-selected")
        params = self.sampler.params.get(pad) if pad else PadParameters()
        self.query_one("#params", Label).update(params_label(pad, params))

    def _set_status(self, text: str) -> None:
        self.query_one("#status", Label).update(text)

    # --- Input ---

    def _press(self, pad: PadId) -> None:
        self.sampler.press(pad)
        self._flash_pad(pad)

    def _flash_pad(self, pad: PadId) -> None:
        widget = self._pad_widget(pad)
        widget.add_class("-active")
        self.set_timer(PAD_FLASH_DURATION, partial(widget.remove_class, "-active"))

    def on_key(self, event) -> None:
        """Pad keys trigger directly instead of going through widget focus."""
        if isinstance(self.screen, ModalScreen):
            return
        pad = self.sampler.press_key(event.character)
        if pad is not None:
            event.stop()
            self._flash_pad(pad)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if isinstance(event.button, PadButton):
            self._press(event.button.pad)

    def action_nudge(self, field: str, direction: int) -> None:
        pad = self.sampler.selected
        if pad is None:
            return
        current = getattr(self.sampler.params.get(pad), field)
        self.sampler.set_param(field, current + direction * PARAM_STEP)

    # --- Presets ---

    async def _initial_load(self) -> None:
        try:
            if self.preset_id:
                await self.sampler.refresh_presets()
                await self._load(self.preset_id)
            else:
                first = await self.sampler.load_initial_preset()
                self._show_preset(first.id if first else None)
        except SamplerError as e:
            self._set_status(f"Failed to load presets: {e}")

    def _show_preset(self, preset_id: Optional[str]) -> None:
        name = next((p.name for p in self.sampler.presets if p.id == preset_id), None)
        category = self.category or "all"
        self.query_one("#title", Label).update(f"Sampler: {name or '-'}  [{category}]")

    async def _load(self, preset_id: str) -> None:
        self._show_preset(preset_id)
        try:
            await self.sampler.load_preset_by_id(preset_id)
        except SamplerError as e:
            self._set_status(f"Failed to load preset: {e}")

    def action_next_preset(self) -> None:
        presets = self.sampler.presets_in(self.category)
        if not presets:
            return
        ids = [p.id for p in presets]
        current = self.sampler.current_preset_id
        index = (ids.index(current) + 1) % len(ids) if current in ids else 0
        self.run_worker(self._load(ids[index]), group="presets")

    def action_next_category(self) -> None:
        options: list[Optional[str]] = [None, *self.sampler.categories()]
        index = options.index(self.category) if self.category in options else 0
        self.category = options[(index + 1) % len(options)]
        self._show_preset(self.sampler.current_preset_id)

    # --- Recording & saving ---

    def action_toggle_record(self) -> None:
        try:
            pad = self.sampler.toggle_recording()
        except SamplerError as e:
            self._set_status(f"Recording failed: {e}")
            return
        if self.sampler.recording:
            self._set_status("Recording... (r to stop)")
        elif pad is not None:
            self._set_status(f"Recording saved to {pad}")

    def action_save(self) -> None:
        self.push_screen(SaveScreen(), callback=self._on_save_dialog)

    def _on_save_dialog(self, result: Optional[tuple[str, str]]) -> None:
        if result is None:
            return
        name, category = result
        self.run_worker(self._save(name, category), group="save")

    async def _save(self, name: str, category: str) -> None:
        try:
            await self.sampler.save_preset(name, category)
        except (SamplerError, ValueError) as e:
            self._set_status(f"Failed to save preset: {e}")
            return
        self._set_status(f'Preset "{name}" saved successfully!')
