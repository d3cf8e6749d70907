"""MIDI input for padsampler.

Note-on messages (any channel, velocity > 0) for notes 36..44 trigger
pad1..pad9. Everything else is ignored.
"""

import logging
import threading
import time
from typing import Callable, Optional, Sequence, Union

import mido

from padsampler.pads import PadId, pad_for_note

logger = logging.getLogger(__name__)

NOTE_ON_STATUS = 0x90


def pad_for_message(msg: mido.Message) -> Optional[PadId]:
    """Resolve a mido message to a pad, or None if it should be ignored."""
    if msg.type != "note_on" or msg.velocity == 0:
        return None
    return pad_for_note(msg.note)


def pad_for_bytes(data: Sequence[int]) -> Optional[PadId]:
    """Resolve a raw ``[status, note, velocity]`` triplet.

    Examples:
        pad_for_bytes([0x90, 38, 100])  -> PadId.PAD3
        pad_for_bytes([0x90, 38, 0])    -> None  (note-off by velocity)
        pad_for_bytes([0x80, 38, 100])  -> None
    """
    if len(data) < 3:
        return None
    status, note, velocity = data[0], data[1], data[2]
    if (status & 0xF0) != NOTE_ON_STATUS or velocity == 0:
        return None
    return pad_for_note(note)


def resolve_pad(message: Union[mido.Message, Sequence[int]]) -> Optional[PadId]:
    if isinstance(message, mido.Message):
        return pad_for_message(message)
    return pad_for_bytes(message)


def resolve_device(device: Optional[str], names: Sequence[str]) -> Optional[str]:
    """Resolve a configured device (index or name substring) to a port name."""
    if device is None:
        return None  # nothing configured

    if not names:
        logger.warning("MIDI: No input devices found.")
        return None

    # Try as numeric index
    try:
        idx = int(device)
        if 0 <= idx < len(names):
            return names[idx]
        logger.warning("MIDI: Device index %d out of range (0-%d).", idx, len(names) - 1)
        return None
    except ValueError:
        pass

    # Try as case-insensitive substring match
    matches = [n for n in names if device.lower() in n.lower()]
    if len(matches) == 1:
        return matches[0]
    elif len(matches) > 1:
        logger.warning("MIDI: Ambiguous device name '%s'. Matches: %s", device, ", ".join(matches))
        return None
    logger.warning("MIDI: No device matching '%s'.", device)
    return None


class MidiListener:
    """Polls a mido input port on a daemon thread and forwards pad hits."""

    def __init__(self, on_pad: Callable[[PadId], None]):
        self.on_pad = on_pad
        self.port_name: Optional[str] = None
        self._port = None
        self._thread: Optional[threading.Thread] = None
        self._running = False

    def start(self, device: Optional[str]) -> bool:
        """Open the configured device. Returns True when listening."""
        if device is None:
            return False

        try:
            names = mido.get_input_names()
        except Exception as e:  # backend may be missing entirely
            logger.warning("MIDI: Could not list input devices: %s", e)
            names = []

        port_name = resolve_device(device, names)
        if port_name is None:
            return False

        try:
            self._port = mido.open_input(port_name)
        except Exception as e:
            logger.warning("MIDI: Failed to open '%s': %s", port_name, e)
            return False

        logger.info("MIDI: Listening on '%s'", port_name)
        self.port_name = port_name
        self._running = True
        self._thread = threading.Thread(target=self._poll_loop, daemon=True, name="midi-input")
        self._thread.start()
        return True

    def dispatch(self, msg: mido.Message) -> None:
        pad = pad_for_message(msg)
        if pad is not None:
            self.on_pad(pad)

    def _poll_loop(self) -> None:
        port = self._port
        if port is None:
            return

        while self._running:
            try:
                for msg in port.iter_pending():
                    self.dispatch(msg)
            except Exception as e:
                if not self._running:
                    break
                logger.warning("MIDI: Dropped input: %s", e)
            time.sleep(0.002)  # ~2ms poll interval

    def stop(self) -> None:
        """Stop the polling thread and close the port."""
        self._running = False
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None
        if self._port is not None:
            self._port.close()
            self._port = None
        self.port_name = None
