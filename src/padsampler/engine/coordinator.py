"""Whole-preset loading scoped by a generation counter.

Network reads and decodes cannot be aborted once started, so a newer
``load_preset`` call supersedes older ones by bumping the generation;
events from an older generation are dropped on arrival.
"""

import asyncio
import logging
from contextlib import aclosing
from enum import Enum
from typing import Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict

from padsampler.engine.buffers import BufferRegistry
from padsampler.engine.loader import LoadProgress, LoadSucceeded, SampleLoader
from padsampler.engine.params import ParameterStore
from padsampler.pads import PadId
from padsampler.schemas.preset import Preset, SoundRef

logger = logging.getLogger(__name__)


class LoadStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class LoadState(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: LoadStatus = LoadStatus.IDLE
    progress: float = 0.0
    name: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def loading(cls, progress: float = 0.0) -> "LoadState":
        return cls(status=LoadStatus.LOADING, progress=progress)

    @classmethod
    def loaded(cls, name: str) -> "LoadState":
        return cls(status=LoadStatus.LOADED, progress=1.0, name=name)

    @classmethod
    def failed(cls, error: str) -> "LoadState":
        return cls(status=LoadStatus.ERROR, error=error)


IDLE = LoadState()

StateListener = Callable[[PadId, LoadState], None]


class LoadCoordinator:
    def __init__(
        self,
        registry: BufferRegistry,
        params: ParameterStore,
        loader: SampleLoader,
        reset_params_on_switch: bool = True,
    ):
        self.registry = registry
        self.params = params
        self.loader = loader
        self.reset_params_on_switch = reset_params_on_switch
        self.generation = 0
        self._states: Dict[PadId, LoadState] = {pad: IDLE for pad in PadId}
        self._listeners: list[StateListener] = []

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def state(self, pad: PadId) -> LoadState:
        return self._states[pad]

    def states(self) -> Dict[PadId, LoadState]:
        return dict(self._states)

    def mark_loaded(self, pad: PadId, name: str) -> None:
        """Record a buffer that arrived outside a preset load (e.g. a recording)."""
        self._set_state(pad, LoadState.loaded(name))

    async def load_preset(self, preset: Preset) -> None:
        self.generation += 1
        generation = self.generation
        logger.info("Loading preset %r (generation %d)", preset.name, generation)

        self.registry.clear()
        if self.reset_params_on_switch:
            self.params.reset()
        for pad in PadId:
            self._set_state(pad, IDLE)
        for sound in preset.sounds:
            self._set_state(sound.pad_id, LoadState.loading(0.0))

        await asyncio.gather(*(self._load_sound(generation, sound) for sound in preset.sounds))

        if generation == self.generation:
            logger.info("All samples loaded for %r", preset.name)

    async def _load_sound(self, generation: int, sound: SoundRef) -> None:
        pad = sound.pad_id
        async with aclosing(self.loader.stream(pad, sound.source_locator)) as events:
            async for event in events:
                if generation != self.generation:
                    logger.debug("Dropping stale result for %s (generation %d)", pad, generation)
                    return
                if isinstance(event, LoadProgress):
                    logger.debug("%s progress %.2f", pad, event.value)
                    self._set_state(pad, LoadState.loading(event.value))
                elif isinstance(event, LoadSucceeded):
                    self.registry.put(pad, event.buffer)
                    self._set_state(pad, LoadState.loaded(sound.display_name))
                else:
                    self._set_state(pad, LoadState.failed(str(event.error)))

    def _set_state(self, pad: PadId, state: LoadState) -> None:
        self._states[pad] = state
        for listener in list(self._listeners):
            listener(pad, state)
