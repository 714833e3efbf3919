from __future__ import annotations

import asyncio
import json

from frenchb1.artifacts import ExamBundle, MockExam
from frenchb1.cache import InMemoryResponseCache
from frenchb1.errors import RateLimited, SpeechSynthesisError
from frenchb1.orchestrator import GenerationOrchestrator


def run_async(coro):
    return asyncio.run(coro)


class ScriptedProvider:
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


class FakeSpeech:
    provider_id = "gemini-tts"

    def __init__(self, outcome="UENN") -> None:
        self.outcome = outcome
        self.texts: list[str] = []

    async def synthesize(self, text: str) -> str:
        self.texts.append(text)
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome


async def _no_sleep(_delay: float) -> None:
    return None


def _orchestrator(text: str, speech=None) -> tuple[GenerationOrchestrator, ScriptedProvider]:
    primary = ScriptedProvider("deepseek", text)
    orchestrator = GenerationOrchestrator(
        cache=InMemoryResponseCache(),
        primary=primary,
        secondary=ScriptedProvider("gemini", "unused"),
        speech=speech,
        sleep=_no_sleep,
    )
    return orchestrator, primary


EXAM = {
    "listening": {
        "text": "— Salut Marc ! Tu as passé un bon week-end à Liège ?",
        "questions": [
            {
                "question": "Où était Marc ?",
                "options": ["Liège", "Namur", "Gand", "Paris"],
                "correctAnswerIndex": 0,
                "explanation": "He says Liège.",
            }
        ],
    },
    "reading": {"text": "Chère Sophie, ...", "questions": []},
    "writing": {"prompt": "Racontez un souvenir d'enfance."},
    "speaking": {"continuousPrompt": "Décrivez votre quartier.", "interactionPrompt": "Réservez une table."},
}


def test_exam_bundle_attaches_listening_audio():
    speech = FakeSpeech("UENNREFUQQ==")
    orchestrator, primary = _orchestrator(json.dumps(EXAM), speech)

    bundle = run_async(orchestrator.get_exam_bundle("English"))

    assert isinstance(bundle, ExamBundle)
    assert bundle.listening.audio == "UENNREFUQQ=="
    assert speech.texts == [EXAM["listening"]["text"]]
    assert bundle.speaking.interaction_prompt == "Réservez une table."
    assert primary.requests[0].wants_json is True


def test_exam_bundle_survives_speech_failure_with_absent_audio():
    orchestrator, _ = _orchestrator(json.dumps(EXAM), FakeSpeech(RateLimited("429")))

    bundle = run_async(orchestrator.get_exam_bundle("English"))

    assert bundle.listening.audio is None
    assert bundle.writing.prompt == "Racontez un souvenir d'enfance."


def test_exam_bundle_tolerates_missing_sections():
    orchestrator, _ = _orchestrator(json.dumps({"writing": {"prompt": "Écrivez."}}), FakeSpeech())

    bundle = run_async(orchestrator.get_exam_bundle("English"))

    assert bundle.listening.text == ""
    assert bundle.listening.audio is None
    assert bundle.reading.questions == []


def test_speaking_example_returns_empty_audio_when_synthesis_fails():
    orchestrator, _ = _orchestrator("Alors, mon quartier, c'est la Citadelle.", FakeSpeech(SpeechSynthesisError("x")))

    example = run_async(orchestrator.get_speaking_example("Décrivez votre quartier.", "English"))

    assert example.text == "Alors, mon quartier, c'est la Citadelle."
    assert example.audio == ""


def test_listening_example_synthesizes_generated_dialogue():
    speech = FakeSpeech("QUJD")
    orchestrator, _ = _orchestrator("— Bonjour !\n— Bonjour, ça va ?", speech)

    example = run_async(orchestrator.get_listening_example("Un dialogue au marché."))

    assert example.audio == "QUJD"
    assert speech.texts == ["— Bonjour !\n— Bonjour, ça va ?"]


def test_reading_example_and_feedback_are_plain_text():
    orchestrator, primary = _orchestrator("  Texte de lecture.  ")

    async def scenario():
        reading = await orchestrator.get_reading_example("Un email")
        feedback = await orchestrator.get_writing_feedback("Consigne", "Mon texte", "Japanese")
        return reading, feedback

    reading, feedback = run_async(scenario())
    assert reading.text == "Texte de lecture."
    assert feedback == "Texte de lecture."
    assert "Mon texte" in primary.requests[1].user_prompt
    assert "Japanese" in primary.requests[1].user_prompt


def test_writing_example_and_exam_prompts_parse_objects():
    orchestrator, _ = _orchestrator(
        json.dumps({"modelAnswer": "Quand j'étais petit...", "analysis": "## Temps"})
    )

    example = run_async(orchestrator.get_writing_example("Racontez un souvenir."))

    assert example.model_answer == "Quand j'étais petit..."
    assert example.analysis == "## Temps"

    prompts_orchestrator, _ = _orchestrator(
        json.dumps({"listening": "L", "reading": "R", "writing": "W", "speakingContinuous": "SC", "speakingInteraction": "SI"})
    )
    prompts = run_async(prompts_orchestrator.get_exam_prompts())
    assert prompts.speaking_continuous == "SC"
    assert prompts.speaking_interaction == "SI"


def test_mock_exam_parses_answer_keys_and_attaches_audio():
    mock = {
        "listening": {"text": "Dialogue", "questions": [{"question": "Q1", "answer": "R1"}]},
        "reading": {"text": "Texte", "trueFalse": [{"statement": "A", "answer": "Vrai"}]},
        "writing": {"topicA": "A", "topicB": "B", "correctionModels": {"topicA": "pa", "topicB": "pb"}},
        "speakingInteraction": {"situation1": {"title": "Banque", "points": ["ouvrir un compte"], "rolePlayKey": "Politesse"}},
        "speakingContinuous": {"theme1": "Enfance", "theme2": "Projets", "modelPoints": {"theme1": ["football"]}},
        "grammar": {"lexicon": {"instruction": "Trouvez", "theme": "Logement", "solution": ["brique"]}},
    }
    speech = FakeSpeech("QUFB")
    orchestrator, _ = _orchestrator(json.dumps(mock), speech)

    exam = run_async(orchestrator.get_mock_exam("English"))

    assert isinstance(exam, MockExam)
    assert exam.listening.audio == "QUFB"
    assert exam.reading.true_false[0].answer == "Vrai"
    assert exam.writing.correction_models.topic_b == "pb"
    assert exam.speaking_interaction.situation1.role_play_key == "Politesse"
    assert exam.speaking_interaction.situation2.points == []
    assert exam.speaking_continuous.model_points == {"theme1": ["football"]}
    assert exam.grammar.lexicon.solution == ["brique"]
    assert exam.grammar.exercise1.sentences == []


def test_mock_exam_without_listening_text_skips_speech():
    speech = FakeSpeech()
    orchestrator, _ = _orchestrator(json.dumps({"writing": {"topicA": "A"}}), speech)

    exam = run_async(orchestrator.get_mock_exam("English"))

    assert exam.listening.audio is None
    assert speech.texts == []


def test_uncached_operations_do_not_touch_the_cache():
    orchestrator, primary = _orchestrator("Texte")

    async def scenario():
        await orchestrator.get_reading_example("Un email")
        await orchestrator.get_reading_example("Un email")
        return await orchestrator.cache.export_all()

    snapshot = run_async(scenario())
    assert len(primary.requests) == 2
    assert all(rows == [] for rows in snapshot.values())
