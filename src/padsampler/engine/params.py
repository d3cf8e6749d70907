"""Per-pad playback parameters: trim, volume, pan and pitch."""

import logging
from typing import Callable, Dict

from pydantic import BaseModel, ConfigDict

from padsampler.pads import PadId

logger = logging.getLogger(__name__)

# Minimum distance kept between trim start and end
TRIM_GAP = 0.01

# field -> (min, max)
PARAM_RANGES: dict[str, tuple[float, float]] = {
    "start": (0.0, 1.0),
    "end": (0.0, 1.0),
    "volume": (0.0, 1.5),
    "pan": (-1.0, 1.0),
    "pitch": (0.5, 2.0),
}

ParamListener = Callable[[PadId, "PadParameters"], None]


class PadParameters(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: float = 0.0  # fraction of buffer duration
    end: float = 1.0
    volume: float = 1.0  # linear gain
    pan: float = 0.0  # -1 left .. 1 right
    pitch: float = 1.0  # playback rate


DEFAULT_PARAMETERS = PadParameters()


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class ParameterStore:
    """Holds parameters for each pad and keeps ``start < end``."""

    def __init__(self):
        self._params: Dict[PadId, PadParameters] = {}
        self._listeners: list[ParamListener] = []

    def subscribe(self, listener: ParamListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def get(self, pad: PadId) -> PadParameters:
        return self._params.get(pad, DEFAULT_PARAMETERS)

    def set(self, pad: PadId, field: str, value: float) -> PadParameters:
        """Clamp ``value`` into the field's range and store it.

        A trim edit that would cross the other bound pushes that bound
        ``TRIM_GAP`` away; if the other bound is already at its limit, the
        edited bound is pulled back instead.
        """
        if field not in PARAM_RANGES:
            raise ValueError(f"Unknown pad parameter: {field!r}")

        low, high = PARAM_RANGES[field]
        values = self.get(pad).model_dump()
        values[field] = clamp(float(value), low, high)

        if field == "start" and values["start"] >= values["end"]:
            values["end"] = min(1.0, values["start"] + TRIM_GAP)
            if values["start"] >= values["end"]:
                values["start"] = values["end"] - TRIM_GAP
        elif field == "end" and values["end"] <= values["start"]:
            values["start"] = max(0.0, values["end"] - TRIM_GAP)
            if values["end"] <= values["start"]:
                values["end"] = values["start"] + TRIM_GAP

        params = PadParameters(**values)
        self._params[pad] = params
        self._notify(pad, params)
        return params

    def reset(self) -> None:
        """Drop every stored value so all pads read back the defaults."""
        changed = list(self._params)
        self._params.clear()
        for pad in changed:
            self._notify(pad, DEFAULT_PARAMETERS)

    def _notify(self, pad: PadId, params: PadParameters) -> None:
        for listener in list(self._listeners):
            listener(pad, params)
