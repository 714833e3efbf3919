"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Pydantic models for every generated artifact kind.

Wire names are camelCase (as emitted by the models and stored in the cache);
Python attributes are snake_case. Optional nested fields carry explicit
defaults so partially populated model output never raises on access.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .types import JSONValue

PERSON_FORMS = 6
QUIZ_OPTION_COUNT = 4

PersonForms = Annotated[list[str], Field(min_length=PERSON_FORMS, max_length=PERSON_FORMS)]


class Artifact(BaseModel):
    """Base model: camelCase aliases, unknown keys ignored."""

    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", protected_namespaces=()
    )

    def to_json(self) -> dict[str, Any]:
        """Dump with wire aliases into a JSON-compatible dict."""
        return self.model_dump(by_alias=True, mode="json")


class Tenses(Artifact):
    """Exactly seven tense slots, each with six person-forms."""

    present: PersonForms
    passe_compose: PersonForms = Field(alias="passeCompose")
    imparfait: PersonForms
    futur_simple: PersonForms = Field(alias="futurSimple")
    conditionnel: PersonForms
    plus_que_parfait: PersonForms = Field(alias="plusQueParfait")
    subjonctif_present: PersonForms = Field(alias="subjonctifPresent")


class VerbConjugation(Artifact):
    verb: str
    translation: str = ""
    tenses: Tenses


class QuizQuestion(Artifact):
    """Multiple choice question with exactly four options."""

    question: str
    options: list[str] = Field(min_length=QUIZ_OPTION_COUNT, max_length=QUIZ_OPTION_COUNT)
    correct_answer_index: int = Field(alias="correctAnswerIndex")
    explanation: str = ""

    @model_validator(mode="after")
    def _index_in_range(self) -> "QuizQuestion":
        if not 0 <= self.correct_answer_index < len(self.options):
            raise ValueError(
                f"correctAnswerIndex {self.correct_answer_index} out of range "
                f"for {len(self.options)} options"
            )
        return self


class Flashcard(Artifact):
    front: str
    back: str = ""
    example: str = ""


class Phrase(Artifact):
    french: str
    translation: str = ""
    context: str = ""


class ListeningSection(Artifact):
    text: str = ""
    questions: list[QuizQuestion] = Field(default_factory=list)
    audio: str | None = None


class ReadingSection(Artifact):
    text: str = ""
    questions: list[QuizQuestion] = Field(default_factory=list)


class WritingSection(Artifact):
    prompt: str = ""


class SpeakingSection(Artifact):
    continuous_prompt: str = Field(default="", alias="continuousPrompt")
    interaction_prompt: str = Field(default="", alias="interactionPrompt")


class ExamBundle(Artifact):
    """Full practice exam assembled from one text call plus one audio call."""

    listening: ListeningSection = Field(default_factory=ListeningSection)
    reading: ReadingSection = Field(default_factory=ReadingSection)
    writing: WritingSection = Field(default_factory=WritingSection)
    speaking: SpeakingSection = Field(default_factory=SpeakingSection)


class ExamPrompts(Artifact):
    listening: str = ""
    reading: str = ""
    writing: str = ""
    speaking_continuous: str = Field(default="", alias="speakingContinuous")
    speaking_interaction: str = Field(default="", alias="speakingInteraction")


class WritingExample(Artifact):
    model_answer: str = Field(default="", alias="modelAnswer")
    analysis: str = ""


class SpokenExample(Artifact):
    """Model text with its synthesized audio; `audio` is empty when speech failed."""

    text: str
    audio: str = ""


class ReadingExample(Artifact):
    text: str


# Mock exam ("examen blanc") sections, with answer keys.


class AnswerItem(Artifact):
    question: str = ""
    answer: str = ""


class TrueFalseItem(Artifact):
    statement: str = ""
    answer: str = ""


class MockListening(Artifact):
    text: str = ""
    questions: list[AnswerItem] = Field(default_factory=list)
    audio: str | None = None


class MockReading(Artifact):
    text: str = ""
    questions: list[AnswerItem] = Field(default_factory=list)
    true_false: list[TrueFalseItem] = Field(default_factory=list, alias="trueFalse")


class CorrectionModels(Artifact):
    topic_a: str = Field(default="", alias="topicA")
    topic_b: str = Field(default="", alias="topicB")


class MockWriting(Artifact):
    topic_a: str = Field(default="", alias="topicA")
    topic_b: str = Field(default="", alias="topicB")
    correction_models: CorrectionModels = Field(
        default_factory=CorrectionModels, alias="correctionModels"
    )


class RolePlaySituation(Artifact):
    title: str = ""
    points: list[str] = Field(default_factory=list)
    role_play_key: str = Field(default="", alias="rolePlayKey")


class MockSpeakingInteraction(Artifact):
    situation1: RolePlaySituation = Field(default_factory=RolePlaySituation)
    situation2: RolePlaySituation = Field(default_factory=RolePlaySituation)


class MockSpeakingContinuous(Artifact):
    theme1: str = ""
    theme2: str = ""
    model_points: dict[str, list[str]] = Field(default_factory=dict, alias="modelPoints")


class GapSentence(Artifact):
    phrase: str = ""
    answer: str = ""


class GrammarExercise(Artifact):
    instruction: str = ""
    sentences: list[GapSentence] = Field(default_factory=list)


class LexiconExercise(Artifact):
    instruction: str = ""
    theme: str = ""
    solution: list[str] = Field(default_factory=list)


class MockGrammar(Artifact):
    exercise1: GrammarExercise = Field(default_factory=GrammarExercise)
    exercise2: GrammarExercise = Field(default_factory=GrammarExercise)
    exercise3: GrammarExercise = Field(default_factory=GrammarExercise)
    lexicon: LexiconExercise = Field(default_factory=LexiconExercise)


class MockExam(Artifact):
    """Six-section mock exam with correction keys."""

    listening: MockListening = Field(default_factory=MockListening)
    reading: MockReading = Field(default_factory=MockReading)
    writing: MockWriting = Field(default_factory=MockWriting)
    speaking_interaction: MockSpeakingInteraction = Field(
        default_factory=MockSpeakingInteraction, alias="speakingInteraction"
    )
    speaking_continuous: MockSpeakingContinuous = Field(
        default_factory=MockSpeakingContinuous, alias="speakingContinuous"
    )
    grammar: MockGrammar = Field(default_factory=MockGrammar)


def unwrap_list(value: JSONValue, preferred_key: str) -> JSONValue:
    """
    Return the item list from a list-shaped payload.

    Providers in strict-JSON mode must answer with an object, so a list may
    arrive bare or wrapped (`{"questions": [...]}`). Prefers `preferred_key`,
    then the first list-valued field. Anything else is returned unchanged and
    left for validation to reject.
    """
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        wrapped = value.get(preferred_key)
        if isinstance(wrapped, list):
            return wrapped
        for item in value.values():
            if isinstance(item, list):
                return item
    return value
