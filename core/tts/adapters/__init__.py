"""Playback adapters for the supported speech providers.

Importing this package registers every adapter with ``Interface``.
"""

from core.tts.adapters.azure import AzureAdapter
from core.tts.adapters.elevenlabs import ElevenLabsAdapter

__all__: list[str] = ["AzureAdapter", "ElevenLabsAdapter"]
