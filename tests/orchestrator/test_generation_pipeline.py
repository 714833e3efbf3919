from __future__ import annotations

import asyncio
import json

import pytest

from frenchb1.artifacts import QuizQuestion, VerbConjugation
from frenchb1.cache import InMemoryResponseCache, make_cache_key
from frenchb1.errors import (
    ConfigurationMissing,
    GenerationFailedError,
    MalformedResponseError,
    ProviderError,
    RateLimited,
    SchemaViolationError,
    StorageError,
    TransportError,
)
from frenchb1.orchestrator import GenerationOrchestrator
from frenchb1.providers import DeepSeekTextProvider
from frenchb1.runtime import CoalescingPolicy, RetryPolicy, TimeoutPolicy
from frenchb1.settings import Settings


def run_async(coro):
    return asyncio.run(coro)


class ScriptedProvider:
    """Returns (or raises) scripted outcomes in order; the last one repeats."""

    def __init__(self, provider_id: str, *outcomes) -> None:
        self.provider_id = provider_id
        self.outcomes = list(outcomes)
        self.requests = []

    async def complete(self, request):
        self.requests.append(request)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    @property
    def calls(self) -> int:
        return len(self.requests)


class NoSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _six(word: str) -> list[str]:
    return [f"{word}{i}" for i in range(6)]


VERB = {
    "verb": "être",
    "translation": "to be",
    "tenses": {
        name: _six(name)
        for name in (
            "present",
            "passeCompose",
            "imparfait",
            "futurSimple",
            "conditionnel",
            "plusQueParfait",
            "subjonctifPresent",
        )
    },
}


def _question(index: int = 1) -> dict:
    return {
        "question": "Il faut que tu ___ là.",
        "options": ["es", "sois", "seras", "étais"],
        "correctAnswerIndex": index,
        "explanation": "Subjunctive after il faut que.",
    }


def _orchestrator(primary, secondary, *, cache=None, sleep=None, **kwargs):
    return GenerationOrchestrator(
        cache=cache or InMemoryResponseCache(),
        primary=primary,
        secondary=secondary,
        sleep=sleep or NoSleep(),
        **kwargs,
    )


def test_grammar_cache_miss_then_hit_makes_one_primary_call():
    primary = ScriptedProvider("deepseek", "  ## Le Subjonctif\n\n**Formation**  ")
    secondary = ScriptedProvider("gemini", "unused")
    cache = InMemoryResponseCache()
    orchestrator = _orchestrator(primary, secondary, cache=cache)

    async def scenario():
        first = await orchestrator.get_grammar_explanation("Le Subjonctif Présent", "English")
        second = await orchestrator.get_grammar_explanation("Le Subjonctif Présent", "English")
        stored = await cache.get(
            "grammarExplanations", make_cache_key("grammar", "Le Subjonctif Présent", "English")
        )
        return first, second, stored

    first, second, stored = run_async(scenario())
    assert first == "## Le Subjonctif\n\n**Formation**"
    assert second == first
    assert stored == first
    assert primary.calls == 1
    assert secondary.calls == 0
    request = primary.requests[0]
    assert request.wants_json is False
    assert "Le Subjonctif Présent" in request.user_prompt
    assert "English" in request.user_prompt


def test_malformed_primary_falls_back_and_caches_secondary_result():
    primary = ScriptedProvider("deepseek", "Désolé, je ne peux pas.")
    secondary = ScriptedProvider("gemini", f"```json\n{json.dumps(VERB)}\n```")
    cache = InMemoryResponseCache()
    orchestrator = _orchestrator(primary, secondary, cache=cache)

    async def scenario():
        result = await orchestrator.get_verb_conjugation("être", "English")
        stored = await cache.get("verbConjugations", "verbs:être:English")
        return result, stored

    result, stored = run_async(scenario())
    assert isinstance(result, VerbConjugation)
    assert result.to_json() == VERB
    assert stored == VERB
    assert primary.calls == 1
    assert secondary.calls == 1
    assert secondary.requests[0].wants_json is True


def test_missing_primary_credential_reaches_only_secondary(monkeypatch):
    monkeypatch.delenv("DEEPSEEK_API_KEY", raising=False)
    monkeypatch.delenv("VITE_DEEPSEEK_API_KEY", raising=False)
    built = []

    def client_factory(**kwargs):
        built.append(kwargs)
        raise AssertionError("primary endpoint must not be contacted")

    primary = DeepSeekTextProvider(Settings(), client_factory=client_factory)
    secondary = ScriptedProvider("gemini", "Explication")
    sleep = NoSleep()
    orchestrator = _orchestrator(primary, secondary, sleep=sleep)

    assert run_async(orchestrator.get_grammar_explanation("Le Passé Composé", "Arabic")) == "Explication"
    assert built == []
    assert secondary.calls == 1
    assert sleep.delays == []


def test_transient_primary_failures_use_exactly_two_attempts():
    primary = ScriptedProvider("deepseek", TransportError("reset"), TransportError("reset"))
    secondary = ScriptedProvider("gemini", "texte")
    sleep = NoSleep()
    orchestrator = _orchestrator(primary, secondary, sleep=sleep)

    assert run_async(orchestrator.get_grammar_explanation("L'imparfait", "English")) == "texte"
    assert primary.calls == 2
    assert secondary.calls == 1
    assert sleep.delays == [0.5]


def test_non_2xx_primary_is_retried_before_fallback():
    primary = ScriptedProvider("deepseek", ProviderError("HTTP 500", status=500), "reprise")
    secondary = ScriptedProvider("gemini", "unused")

    result = run_async(_orchestrator(primary, secondary).get_grammar_explanation("X", "English"))

    assert result == "reprise"
    assert primary.calls == 2
    assert secondary.calls == 0


def test_hanging_primary_is_bounded_by_timeout_policy():
    class Hanging:
        provider_id = "deepseek"
        calls = 0

        async def complete(self, request):
            Hanging.calls += 1
            await asyncio.sleep(5)

    secondary = ScriptedProvider("gemini", "rescued")
    orchestrator = _orchestrator(
        Hanging(), secondary, timeout_policy=TimeoutPolicy(request_timeout_s=0.01)
    )

    assert run_async(orchestrator.get_grammar_explanation("X", "English")) == "rescued"
    assert Hanging.calls == 2


def test_both_providers_failing_raises_typed_error_and_caches_nothing():
    primary = ScriptedProvider("deepseek", RateLimited("429"))
    secondary = ScriptedProvider("gemini", ConfigurationMissing("GEMINI_API_KEY not set"))
    cache = InMemoryResponseCache()
    orchestrator = _orchestrator(primary, secondary, cache=cache)

    with pytest.raises(GenerationFailedError) as excinfo:
        run_async(orchestrator.get_flashcards("Voyage", "English"))

    error = excinfo.value
    assert error.providers == ["deepseek", "gemini"]
    assert isinstance(error.failures[0], RateLimited)
    assert isinstance(error.failures[1], ConfigurationMissing)
    assert error.rate_limited is True
    assert error.operation == "flashcards"
    assert run_async(cache.export_all())["flashcards"] == []


def test_secondary_unknown_exception_is_classified():
    primary = ScriptedProvider("deepseek", ConfigurationMissing("no key"))
    secondary = ScriptedProvider("gemini", RuntimeError("sdk bug"))

    with pytest.raises(GenerationFailedError) as excinfo:
        run_async(_orchestrator(primary, secondary).get_grammar_explanation("X", "English"))

    assert excinfo.value.failures[1].provider == "gemini"
    assert excinfo.value.rate_limited is False


def test_empty_plain_text_is_malformed_and_falls_back():
    primary = ScriptedProvider("deepseek", "   ")
    secondary = ScriptedProvider("gemini", "")

    with pytest.raises(GenerationFailedError) as excinfo:
        run_async(_orchestrator(primary, secondary).get_grammar_explanation("X", "English"))

    assert all(isinstance(f, MalformedResponseError) for f in excinfo.value.failures)
    assert primary.calls == 1


def test_quiz_schema_violation_falls_through_without_primary_retry():
    bad = json.dumps({"questions": [_question(7)]})
    good = json.dumps([_question(0), _question(3)])
    primary = ScriptedProvider("deepseek", bad)
    secondary = ScriptedProvider("gemini", good)

    quiz = run_async(_orchestrator(primary, secondary).get_quiz("Le Subjonctif", "English"))

    assert primary.calls == 1
    assert [q.correct_answer_index for q in quiz] == [0, 3]
    assert all(0 <= q.correct_answer_index < len(q.options) for q in quiz)


def test_wrapped_lists_with_unexpected_counts_are_tolerated():
    cards = json.dumps({"cards": [{"front": "Si seulement j'avais su.", "back": "If only I had known."}]})
    phrases = json.dumps({"items": [{"french": "Si j'avais le temps, je voyagerais."}] * 3})
    primary = ScriptedProvider("deepseek", cards, phrases)
    orchestrator = _orchestrator(primary, ScriptedProvider("gemini", "unused"))

    async def scenario():
        return (
            await orchestrator.get_flashcards("Exprimer le Regret (Si seulement...)", "English"),
            await orchestrator.get_daily_phrases("Si Conditionnel (If Conditional)", "Imparfait", "English"),
        )

    flashcards, phrase_list = run_async(scenario())
    assert len(flashcards) == 1
    assert flashcards[0].example == ""
    assert len(phrase_list) == 3
    assert phrase_list[0].translation == ""


def test_phrase_key_uses_topic_tense_language_order():
    primary = ScriptedProvider("deepseek", json.dumps({"phrases": [{"french": "Bonjour"}]}))
    cache = InMemoryResponseCache()
    orchestrator = _orchestrator(primary, ScriptedProvider("gemini", "unused"), cache=cache)

    run_async(orchestrator.get_daily_phrases("Logement", "Présent", "Turkish"))

    stored = run_async(cache.export_all())["phrases"]
    assert [row["id"] for row in stored] == ["phrases:Logement:Présent:Turkish"]
    assert stored[0]["value"] == [{"french": "Bonjour", "translation": "", "context": ""}]


def test_invalid_cached_entry_is_regenerated_and_overwritten():
    cache = InMemoryResponseCache()
    run_async(cache.put("quizzes", "quizzes:Le Futur:English", [{"question": "stale"}]))
    primary = ScriptedProvider("deepseek", json.dumps({"questions": [_question()]}))
    orchestrator = _orchestrator(primary, ScriptedProvider("gemini", "unused"), cache=cache)

    quiz = run_async(orchestrator.get_quiz("Le Futur", "English"))

    assert isinstance(quiz[0], QuizQuestion)
    assert primary.calls == 1
    assert run_async(cache.get("quizzes", "quizzes:Le Futur:English")) == [_question()]


def test_write_through_failure_still_returns_artifact():
    class ReadOnlyCache(InMemoryResponseCache):
        async def put(self, namespace, key, value):
            raise StorageError("read-only")

    primary = ScriptedProvider("deepseek", "Texte")
    orchestrator = _orchestrator(primary, ScriptedProvider("gemini", "x"), cache=ReadOnlyCache())

    assert run_async(orchestrator.get_grammar_explanation("X", "English")) == "Texte"


def test_coalescing_shares_identical_inflight_generation():
    class SlowProvider(ScriptedProvider):
        async def complete(self, request):
            await asyncio.sleep(0.01)
            return await super().complete(request)

    primary = SlowProvider("deepseek", "Partagé")
    orchestrator = _orchestrator(
        primary,
        ScriptedProvider("gemini", "unused"),
        coalescing_policy=CoalescingPolicy(enabled=True),
    )

    async def scenario():
        return await asyncio.gather(
            orchestrator.get_grammar_explanation("X", "English"),
            orchestrator.get_grammar_explanation("X", "English"),
        )

    assert run_async(scenario()) == ["Partagé", "Partagé"]
    assert primary.calls == 1


def test_without_coalescing_identical_requests_proceed_independently():
    class SlowProvider(ScriptedProvider):
        async def complete(self, request):
            await asyncio.sleep(0.01)
            return await super().complete(request)

    primary = SlowProvider("deepseek", "Deux fois")
    orchestrator = _orchestrator(primary, ScriptedProvider("gemini", "unused"))

    async def scenario():
        return await asyncio.gather(
            orchestrator.get_grammar_explanation("X", "English"),
            orchestrator.get_grammar_explanation("X", "English"),
        )

    assert run_async(scenario()) == ["Deux fois", "Deux fois"]
    assert primary.calls == 2


def test_retry_policy_budget_is_configurable():
    primary = ScriptedProvider("deepseek", TransportError("down"))
    secondary = ScriptedProvider("gemini", "ok")
    orchestrator = _orchestrator(
        primary, secondary, retry_policy=RetryPolicy(max_attempts=3, backoff_base_s=0.25)
    )
    sleep = orchestrator._sleep

    run_async(orchestrator.get_grammar_explanation("X", "English"))

    assert primary.calls == 3
    assert sleep.delays == [0.25, 0.5]


def test_schema_violation_from_both_providers_is_reported():
    primary = ScriptedProvider("deepseek", json.dumps({"verb": "aller"}))
    secondary = ScriptedProvider("gemini", json.dumps({"verb": "aller", "tenses": {}}))

    with pytest.raises(GenerationFailedError) as excinfo:
        run_async(_orchestrator(primary, secondary).get_verb_conjugation("aller", "English"))

    assert [type(f) for f in excinfo.value.failures] == [SchemaViolationError, SchemaViolationError]


def test_verb_with_wrong_form_count_falls_through_to_secondary():
    short = {**VERB, "tenses": {**VERB["tenses"], "imparfait": _six("étais")[:5]}}
    primary = ScriptedProvider("deepseek", json.dumps(short))
    secondary = ScriptedProvider("gemini", json.dumps(VERB))
    cache = InMemoryResponseCache()
    orchestrator = _orchestrator(primary, secondary, cache=cache)

    result = run_async(orchestrator.get_verb_conjugation("être", "English"))

    assert primary.calls == 1
    assert secondary.calls == 1
    assert all(len(forms) == 6 for forms in result.to_json()["tenses"].values())
    assert run_async(cache.get("verbConjugations", "verbs:être:English")) == VERB


@pytest.mark.parametrize("payload", [{"questions": []}, []])
def test_empty_list_result_is_returned_but_not_cached(payload):
    primary = ScriptedProvider("deepseek", json.dumps(payload), json.dumps([_question()]))
    cache = InMemoryResponseCache()
    orchestrator = _orchestrator(primary, ScriptedProvider("gemini", "unused"), cache=cache)

    async def scenario():
        first = await orchestrator.get_quiz("Le Passif", "English")
        stored = await cache.get("quizzes", "quizzes:Le Passif:English")
        second = await orchestrator.get_quiz("Le Passif", "English")
        return first, stored, second

    first, stored, second = run_async(scenario())
    assert first == []
    assert stored is None
    assert len(second) == 1
    assert primary.calls == 2
