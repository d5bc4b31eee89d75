"""Reading services built on the playback adapters.

This package provides the state machine and its publisher, the orchestration of reading sessions,
voice management, keyboard shortcuts, service bundle lifecycle, and the command surface used by
the application.
"""

from core.reader.controller import ReaderController
from core.reader.keyboard import KeyboardDispatcher, KeyEventSource, ReaderShortcuts
from core.reader.orchestration import OrchestrationService
from core.reader.services import ServiceBundle, ServiceBundleFactory, ServiceSlot
from core.reader.state_manager import TtsStateManager
from core.reader.voice_manager import VoiceManager, VoiceManagerCallbacks

__all__: list[str] = [
    "KeyEventSource",
    "KeyboardDispatcher",
    "OrchestrationService",
    "ReaderController",
    "ReaderShortcuts",
    "ServiceBundle",
    "ServiceBundleFactory",
    "ServiceSlot",
    "TtsStateManager",
    "VoiceManager",
    "VoiceManagerCallbacks",
]
