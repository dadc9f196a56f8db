"""Command history stores, history navigation, hints, edit commands and events for line editors."""

__version__ = "0.1.0"