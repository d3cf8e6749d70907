from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from padsampler.pads import PadId


class SoundRef(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    pad_id: PadId = Field(alias="padId")
    name: Optional[str] = None
    source_locator: str = Field(alias="path")  # URL or file path

    @property
    def display_name(self) -> str:
        return self.name or str(self.pad_id)


class PresetSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    name: str
    category: str = ""


class Preset(PresetSummary):
    sounds: List[SoundRef] = []
