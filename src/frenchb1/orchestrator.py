"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Generation orchestrator: cache, primary with retry, secondary fallback.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from .artifacts import (
    Artifact,
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
    unwrap_list,
)
from .cache.base import STORES, ResponseCache, make_cache_key
from .errors import (
    GenerationFailedError,
    MalformedResponseError,
    ProviderFailure,
    SchemaViolationError,
    StorageError,
)
from .extract import extract_json, extract_model, validate_payload
from .profile import LearnerProfile
from .prompts import PromptBook
from .providers.contracts import SpeechProvider, TextProvider
from .runtime.coalescing import RequestCoalescer
from .runtime.contracts import CoalescingPolicy, RetryPolicy, TimeoutPolicy
from .runtime.retry import RequestRetryState, call_with_retry, classify_error
from .runtime.timeouts import await_with_timeout
from .settings import Settings
from .types import JSONValue, ProviderRequest

T = TypeVar("T")

logger = logging.getLogger("frenchb1.orchestrator")

Parser = Callable[[str, str], Any]


def _plain_text(raw: str, provider: str) -> str:
    text = (raw or "").strip()
    if not text:
        raise MalformedResponseError("Empty response text", raw_text=raw, provider=provider)
    return text


def _model_parser(type_: type[T]) -> Callable[[str, str], T]:
    def parse(raw: str, provider: str) -> T:
        return extract_model(raw, type_, provider=provider)

    return parse


def _list_parser(item_type: type[T], wrapper_key: str) -> Callable[[str, str], list[T]]:
    def parse(raw: str, provider: str) -> list[T]:
        payload = unwrap_list(extract_json(raw, provider=provider), wrapper_key)
        return validate_payload(payload, list[item_type], provider=provider)

    return parse


def _to_json(value: Any) -> JSONValue:
    if isinstance(value, Artifact):
        return value.to_json()
    if isinstance(value, list):
        return [_to_json(item) for item in value]
    return value


class GenerationOrchestrator:
    """
    Single entry point for every generated artifact.

    Cached operations look up `make_cache_key(feature, *params)` first and
    write successful results through. On a miss the primary provider is
    tried under the retry policy, then the secondary provider exactly once.
    Parse and schema failures fall through to the next provider without a
    retry. When every provider fails, `GenerationFailedError` carries each
    classified failure in order.
    """

    def __init__(
        self,
        *,
        cache: ResponseCache,
        primary: TextProvider,
        secondary: TextProvider,
        speech: SpeechProvider | None = None,
        prompts: PromptBook | None = None,
        retry_policy: RetryPolicy | None = None,
        timeout_policy: TimeoutPolicy | None = None,
        coalescing_policy: CoalescingPolicy | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self.cache = cache
        self.primary = primary
        self.secondary = secondary
        self.speech = speech
        self.prompts = prompts or PromptBook()
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout_policy = timeout_policy or TimeoutPolicy()
        self._coalescer = (
            RequestCoalescer()
            if (coalescing_policy or CoalescingPolicy()).enabled
            else None
        )
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        cache: ResponseCache,
        *,
        profile: LearnerProfile | None = None,
        coalescing_policy: CoalescingPolicy | None = None,
    ) -> "GenerationOrchestrator":
        """Wire the default DeepSeek + Gemini providers from settings."""
        from .providers.deepseek import DeepSeekTextProvider
        from .providers.gemini import GeminiTextProvider
        from .providers.speech import GeminiSpeechClient

        return cls(
            cache=cache,
            primary=DeepSeekTextProvider(settings),
            secondary=GeminiTextProvider(settings),
            speech=GeminiSpeechClient(settings, cache),
            prompts=PromptBook(profile),
            retry_policy=RetryPolicy(
                max_attempts=settings.primary_max_attempts,
                backoff_base_s=settings.backoff_base_s,
            ),
            timeout_policy=TimeoutPolicy(request_timeout_s=settings.request_timeout_s),
            coalescing_policy=coalescing_policy,
        )

    async def aclose(self) -> None:
        for provider in (self.primary, self.secondary, self.speech):
            close = getattr(provider, "aclose", None)
            if close is not None:
                await close()

    # Provider pipeline

    async def _call(self, provider: TextProvider, request: ProviderRequest) -> str:
        return await await_with_timeout(
            provider.complete(request), self.timeout_policy.request_timeout_s
        )

    async def _generate(self, request: ProviderRequest, parse: Parser, *, operation: str) -> Any:
        failures: list[ProviderFailure] = []

        primary_id = self.primary.provider_id
        state = RequestRetryState()
        try:
            raw = await call_with_retry(
                lambda: self._call(self.primary, request),
                policy=self.retry_policy,
                provider=primary_id,
                state=state,
                sleep=self._sleep,
            )
            return parse(raw, primary_id)
        except ProviderFailure as exc:
            failures.append(exc)
            logger.warning(
                "%s: primary %s failed after %d attempt(s): %s; falling back to %s",
                operation,
                primary_id,
                state.attempt,
                exc,
                self.secondary.provider_id,
            )

        secondary_id = self.secondary.provider_id
        try:
            raw = await self._call(self.secondary, request)
            return parse(raw, secondary_id)
        except Exception as exc:
            failure = classify_error(exc, provider=secondary_id)
            failures.append(failure)
            logger.warning("%s: secondary %s failed: %s", operation, secondary_id, failure)
            raise GenerationFailedError(failures, operation=operation) from exc

    async def _cached(
        self,
        feature: str,
        params: tuple[str, ...],
        type_: Any,
        produce: Callable[[], Awaitable[Any]],
    ) -> Any:
        namespace = STORES[feature]
        key = make_cache_key(feature, *params)
        cached = await self.cache.get(namespace, key)
        if cached is not None:
            try:
                result = validate_payload(cached, type_)
            except SchemaViolationError as exc:
                logger.warning("Discarding invalid cached %s entry %r: %s", namespace, key, exc)
            else:
                logger.debug("Cache hit %s/%r", namespace, key)
                return result

        logger.debug("Cache miss %s/%r", namespace, key)

        async def generate_and_store() -> Any:
            result = await produce()
            if isinstance(result, list) and not result:
                # Entries never expire; an empty list would pin the topic empty.
                logger.warning("Not caching empty %s result for %r", namespace, key)
                return result
            try:
                await self.cache.put(namespace, key, _to_json(result))
            except StorageError:
                logger.exception("Write-through failed for %s/%r", namespace, key)
            return result

        if self._coalescer is None:
            return await generate_and_store()
        return await self._coalescer.run(f"{namespace}|{key}", generate_and_store)

    async def _speak(self, text: str, *, operation: str) -> str | None:
        if self.speech is None or not text.strip():
            return None
        try:
            return await self.speech.synthesize(text)
        except Exception as exc:
            logger.warning("%s: speech synthesis failed, returning without audio: %s", operation, exc)
            return None

    # Cached operations

    async def get_grammar_explanation(self, topic: str, language: str) -> str:
        return await self._cached(
            "grammar",
            (topic, language),
            str,
            lambda: self._generate(
                self.prompts.grammar(topic, language),
                _plain_text,
                operation="grammar",
            ),
        )

    async def get_verb_conjugation(self, verb: str, language: str) -> VerbConjugation:
        return await self._cached(
            "verbs",
            (verb, language),
            VerbConjugation,
            lambda: self._generate(
                self.prompts.verb(verb, language),
                _model_parser(VerbConjugation),
                operation="verbs",
            ),
        )

    async def get_quiz(self, topic: str, language: str) -> list[QuizQuestion]:
        return await self._cached(
            "quizzes",
            (topic, language),
            list[QuizQuestion],
            lambda: self._generate(
                self.prompts.quiz(topic, language),
                _list_parser(QuizQuestion, "questions"),
                operation="quizzes",
            ),
        )

    async def get_flashcards(self, category: str, language: str) -> list[Flashcard]:
        return await self._cached(
            "flashcards",
            (category, language),
            list[Flashcard],
            lambda: self._generate(
                self.prompts.flashcards(category, language),
                _list_parser(Flashcard, "cards"),
                operation="flashcards",
            ),
        )

    async def get_daily_phrases(self, topic: str, tense: str, language: str) -> list[Phrase]:
        return await self._cached(
            "phrases",
            (topic, tense, language),
            list[Phrase],
            lambda: self._generate(
                self.prompts.phrases(topic, tense, language),
                _list_parser(Phrase, "phrases"),
                operation="phrases",
            ),
        )

    # Uncached practice and exam operations

    async def get_exam_prompts(self) -> ExamPrompts:
        return await self._generate(
            self.prompts.exam_prompts(), _model_parser(ExamPrompts), operation="exam_prompts"
        )

    async def get_writing_feedback(self, prompt: str, user_text: str, language: str) -> str:
        return await self._generate(
            self.prompts.writing_feedback(prompt, user_text, language),
            _plain_text,
            operation="writing_feedback",
        )

    async def get_writing_example(self, prompt: str) -> WritingExample:
        return await self._generate(
            self.prompts.writing_example(prompt),
            _model_parser(WritingExample),
            operation="writing_example",
        )

    async def get_speaking_example(self, prompt: str, language: str) -> SpokenExample:
        text = await self._generate(
            self.prompts.speaking_example(prompt, language),
            _plain_text,
            operation="speaking_example",
        )
        audio = await self._speak(text, operation="speaking_example")
        return SpokenExample(text=text, audio=audio or "")

    async def get_listening_example(self, prompt: str) -> SpokenExample:
        text = await self._generate(
            self.prompts.listening_example(prompt),
            _plain_text,
            operation="listening_example",
        )
        audio = await self._speak(text, operation="listening_example")
        return SpokenExample(text=text, audio=audio or "")

    async def get_reading_example(self, prompt: str) -> ReadingExample:
        text = await self._generate(
            self.prompts.reading_example(prompt),
            _plain_text,
            operation="reading_example",
        )
        return ReadingExample(text=text)

    async def get_exam_bundle(self, language: str) -> ExamBundle:
        bundle: ExamBundle = await self._generate(
            self.prompts.exam_bundle(language),
            _model_parser(ExamBundle),
            operation="exam_bundle",
        )
        bundle.listening.audio = await self._speak(bundle.listening.text, operation="exam_bundle")
        return bundle

    async def get_mock_exam(self, language: str) -> MockExam:
        exam: MockExam = await self._generate(
            self.prompts.mock_exam(language),
            _model_parser(MockExam),
            operation="mock_exam",
        )
        exam.listening.audio = await self._speak(exam.listening.text, operation="mock_exam")
        return exam
