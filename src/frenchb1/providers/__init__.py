"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Provider clients for text completion and speech synthesis.
"""

from .contracts import SpeechProvider, TextProvider
from .deepseek import DeepSeekTextProvider
from .gemini import GeminiTextProvider, map_api_error
from .speech import SPEECH_NAMESPACE, GeminiSpeechClient

__all__ = [
    "SpeechProvider",
    "TextProvider",
    "DeepSeekTextProvider",
    "GeminiTextProvider",
    "map_api_error",
    "SPEECH_NAMESPACE",
    "GeminiSpeechClient",
]
