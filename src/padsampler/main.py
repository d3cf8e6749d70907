"""padsampler entry point.

Usage:
    padsampler                      # load the first preset, open the pad grid
    padsampler --preset <id>        # start on a specific preset
    padsampler --headless           # no UI: MIDI triggering only
"""

import argparse
import asyncio
import logging
import sys

from padsampler.api import PresetApiClient
from padsampler.audio.playback import AudioPlayer, MicrophoneInput
from padsampler.engine.loader import SampleLoader
from padsampler.engine.session import Sampler
from padsampler.engine.streams import LocatorOpener
from padsampler.errors import SamplerError
from padsampler.midi import MidiListener
from padsampler.schemas.sampler_config import SamplerConfig, load_config

logger = logging.getLogger("padsampler")


def build_sampler(config: SamplerConfig) -> tuple[Sampler, AudioPlayer]:
    client = PresetApiClient(config.api.base_url)
    player = AudioPlayer(
        rate=config.audio.rate,
        channels=config.audio.channels,
        blocksize=config.audio.blocksize,
        master_gain=config.audio.master_gain,
    )
    sampler = Sampler(
        source=client,
        output=player,
        capture_device=MicrophoneInput(rate=config.audio.rate, channels=config.audio.input_channels),
        loader=SampleLoader(LocatorOpener(client.session, config.api.chunk_size)),
        reset_params_on_switch=config.loading.reset_params_on_switch,
    )
    return sampler, player


async def run_headless(sampler: Sampler, midi_device: str | None, preset_id: str | None) -> None:
    loop = asyncio.get_running_loop()
    midi = MidiListener(on_pad=lambda pad: loop.call_soon_threadsafe(sampler.press, pad))
    if not midi.start(midi_device):
        logger.warning("MIDI: no input device configured; nothing will trigger pads")

    try:
        if preset_id:
            await sampler.load_preset_by_id(preset_id)
        else:
            await sampler.load_initial_preset()
    except SamplerError as e:
        logger.error("Failed to load presets: %s", e)

    try:
        await asyncio.Event().wait()
    finally:
        midi.stop()
        sampler.close()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="padsampler", description="Nine-pad sample player")
    parser.add_argument("--config", help="Path to sampler_config.toml")
    parser.add_argument("--preset", help="Preset id to load instead of the first one")
    parser.add_argument("--headless", action="store_true", help="Run without the pad grid UI")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)
    try:
        sampler, player = build_sampler(config)
    except SamplerError as e:
        logger.error("%s", e)
        sys.exit(1)

    try:
        if args.headless:
            try:
                asyncio.run(run_headless(sampler, config.midi.device, args.preset))
            except KeyboardInterrupt:
                pass
        else:
            from padsampler.tui.app import SamplerApp

            SamplerApp(sampler, midi_device=config.midi.device, preset_id=args.preset).run()
    finally:
        player.cleanup()


if __name__ == "__main__":
    main()
