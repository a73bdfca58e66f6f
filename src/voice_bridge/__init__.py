"""Speak the latest assistant reply of an editor session aloud."""

from .bridge import VoiceBridge

__all__ = ["VoiceBridge"]
