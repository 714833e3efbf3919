"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: __init__.py.
"""

from __future__ import annotations

from .artifacts import (
    ExamBundle,
    ExamPrompts,
    Flashcard,
    MockExam,
    Phrase,
    QuizQuestion,
    ReadingExample,
    SpokenExample,
    VerbConjugation,
    WritingExample,
)
from .audio import AudioBuffer, AudioPlaybackEngine, AudioState
from .cache import ResponseCache, create_response_cache
from .errors import (
    ConfigurationMissing,
    FrenchB1Error,
    GenerationFailedError,
    MalformedResponseError,
    ProviderError,
    ProviderFailure,
    RateLimited,
    SchemaViolationError,
    SnapshotFormatError,
    SpeechSynthesisError,
    StorageError,
    TransportError,
)
from .extract import extract_json, extract_model
from .orchestrator import GenerationOrchestrator
from .profile import LearnerProfile, load_profile
from .prompts import PromptBook
from .settings import Settings

__all__ = [
    "ExamBundle",
    "ExamPrompts",
    "Flashcard",
    "MockExam",
    "Phrase",
    "QuizQuestion",
    "ReadingExample",
    "SpokenExample",
    "VerbConjugation",
    "WritingExample",
    "AudioBuffer",
    "AudioPlaybackEngine",
    "AudioState",
    "ResponseCache",
    "create_response_cache",
    "ConfigurationMissing",
    "FrenchB1Error",
    "GenerationFailedError",
    "MalformedResponseError",
    "ProviderError",
    "ProviderFailure",
    "RateLimited",
    "SchemaViolationError",
    "SnapshotFormatError",
    "SpeechSynthesisError",
    "StorageError",
    "TransportError",
    "extract_json",
    "extract_model",
    "GenerationOrchestrator",
    "LearnerProfile",
    "load_profile",
    "PromptBook",
    "Settings",
]
