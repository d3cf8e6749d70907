"""
Master configuration for padsampler (sampler_config.toml).

Search order:
  1. --config path, when given
  2. $XDG_CONFIG_HOME/padsampler/sampler_config.toml
  3. ./sampler_config.toml  (working directory)

If not found, all defaults apply silently.
"""

import os
import tomllib
from pydantic import BaseModel
from typing import Optional


class ApiConfig(BaseModel):
    base_url: str = "http://localhost:5000"
    chunk_size: int = 64 * 1024  # bytes per streamed read


class AudioConfig(BaseModel):
    rate: int = 44100
    channels: int = 2
    blocksize: int = 256  # ~5.8ms at 44100 Hz
    master_gain: float = 0.7  # headroom when several pads overlap
    input_channels: int = 1


class LoadingConfig(BaseModel):
    reset_params_on_switch: bool = True  # clear trim/volume/pan/pitch per preset


class MidiConfig(BaseModel):
    device: Optional[str] = None  # Device name substring or index, e.g. "MPD218" or "1"


class SamplerConfig(BaseModel):
    api: ApiConfig = ApiConfig()
    audio: AudioConfig = AudioConfig()
    loading: LoadingConfig = LoadingConfig()
    midi: MidiConfig = MidiConfig()


def config_paths(override_path: str | None = None) -> list[str]:
    paths: list[str] = []

    if override_path:
        paths.append(override_path)

    # XDG_CONFIG_HOME (default ~/.config)
    xdg = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    paths.append(os.path.join(xdg, "padsampler", "sampler_config.toml"))

    # Current working directory
    paths.append(os.path.join(os.getcwd(), "sampler_config.toml"))
    return paths


def load_config(override_path: str | None = None) -> SamplerConfig:
    """
    Load sampler_config.toml from the override path, XDG config dir, or cwd.
    Returns defaults if no file is found.
    """
    for path in config_paths(override_path):
        if os.path.isfile(path):
            with open(path, "rb") as f:
                data = tomllib.load(f)
            return SamplerConfig.model_validate(data)

    return SamplerConfig()
