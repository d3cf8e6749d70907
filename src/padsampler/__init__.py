"""Nine-pad sample player: engine, preset client and terminal UI."""

__version__ = "0.1.0"
