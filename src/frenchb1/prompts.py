"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Fixed prompt templates for every generation operation.

Every template is filled with the semantic request parameters only, then
suffixed with the learner context. JSON operations ask for an object (list
payloads wrapped under a named key) because strict-JSON output modes refuse
bare arrays.
"""

from __future__ import annotations

from .profile import LearnerProfile
from .types import ProviderRequest

QUIZ_QUESTIONS = 10
FLASHCARDS = 10
PHRASES = 8

SYSTEM_PROMPT = (
    "Tu es un professeur de français langue étrangère (FLE) qui prépare un "
    "apprenant adulte à l'examen de niveau B1. Tu réponds avec précision, avec "
    "un vocabulaire simple (A2-B1), et tu respectes exactement le format demandé."
)

REGRET_FLASHCARD_TOPICS = frozenset(
    {"Le Plus-que-parfait", "Exprimer le Regret (Si seulement...)"}
)
SI_CONDITIONAL_TOPIC = "Si Conditionnel (If Conditional)"
SI_SEULEMENT_TOPIC = "Si Seulement (If Only)"

_BELGIAN_SETTING = (
    "Si le sujet concerne le logement ou le quartier, situez l'action en "
    "**Belgique** (ex: Bruxelles, Liège)."
)

_VERB_SHAPE = """{{
  "verb": "{verb}",
  "translation": "translation in {language}",
  "tenses": {{
    "present": ["Je ...", "Tu ...", "Il/Elle ...", "Nous ...", "Vous ...", "Ils/Elles ..."],
    "passeCompose": ["J'ai/suis ...", "Tu as/es ...", "Il/Elle a/est ...", "Nous avons/sommes ...", "Vous avez/êtes ...", "Ils/Elles ont/sont ..."],
    "imparfait": ["Je ...", "Tu ...", "Il/Elle ...", "Nous ...", "Vous ...", "Ils/Elles ..."],
    "futurSimple": ["Je ...", "Tu ...", "Il/Elle ...", "Nous ...", "Vous ...", "Ils/Elles ..."],
    "conditionnel": ["Je ...", "Tu ...", "Il/Elle ...", "Nous ...", "Vous ...", "Ils/Elles ..."],
    "plusQueParfait": ["J'avais/étais ...", "Tu avais/étais ...", "Il/Elle avait/était ...", "Nous avions/étions ...", "Vous aviez/étiez ...", "Ils/Elles avaient/étaient ..."],
    "subjonctifPresent": ["que je ...", "que tu ...", "qu'il/elle ...", "que nous ...", "que vous ...", "qu'ils/elles ..."]
  }}
}}"""

_EXAM_SHAPE = """{{
  "listening": {{
    "text": "Un dialogue de ~120 mots entre deux personnes sur un des thèmes.",
    "questions": [{{"question": "...", "options": ["...", "...", "...", "..."], "correctAnswerIndex": 0, "explanation": "Explication en {language}"}}]
  }},
  "reading": {{
    "text": "Un texte court de ~150 mots (email, blog) sur un des thèmes.",
    "questions": [{{"question": "...", "options": ["...", "...", "...", "..."], "correctAnswerIndex": 0, "explanation": "Explication en {language}"}}]
  }},
  "writing": {{"prompt": "Un sujet qui demande de raconter une expérience passée (imparfait pour la description, passé composé pour les actions)."}},
  "speaking": {{
    "continuousPrompt": "Un sujet de production orale en continu.",
    "interactionPrompt": "Un scénario de jeu de rôle."
  }}
}}"""

_MOCK_EXAM_SHAPE = """{
  "listening": {"text": "Texte du dialogue...", "questions": [{"question": "...", "answer": "Réponse correcte..."}]},
  "reading": {
    "text": "Texte à lire...",
    "questions": [{"question": "...", "answer": "..."}],
    "trueFalse": [{"statement": "Affirmation", "answer": "Vrai ou Faux, car..."}]
  },
  "writing": {"topicA": "Sujet A...", "topicB": "Sujet B...", "correctionModels": {"topicA": "Points clés...", "topicB": "Points clés..."}},
  "speakingInteraction": {
    "situation1": {"title": "...", "points": ["..."], "rolePlayKey": "Conseils..."},
    "situation2": {"title": "...", "points": ["..."], "rolePlayKey": "Conseils..."}
  },
  "speakingContinuous": {"theme1": "...", "theme2": "...", "modelPoints": {"theme1": ["Idée 1"], "theme2": ["Idée 1"]}},
  "grammar": {
    "exercise1": {"instruction": "...", "sentences": [{"phrase": "Phrase à trou...", "answer": "Réponse complète"}]},
    "exercise2": {"instruction": "...", "sentences": [{"phrase": "Phrase à compléter...", "answer": "Réponse complète"}]},
    "exercise3": {"instruction": "...", "sentences": [{"phrase": "Phrase à transformer...", "answer": "Réponse transformée"}]},
    "lexicon": {"instruction": "...", "theme": "...", "solution": ["Mot 1", "Mot 2", "Mot 3", "Mot 4", "Mot 5"]}
  }
}"""

_SYLLABUS = """**Syllabus (strict):**
- Thèmes : logement, quartier, enfance, projets futurs, fait divers.
- Savoir : raconter un événement au passé, présenter son logement ou son quartier, exprimer des souhaits, résumer un fait divers, exprimer des actions futures.
- Langue : passé composé, imparfait, plus-que-parfait, conditionnel, futur simple et proche.
- Structures : "Si j'avais..., j'aurais...", "Si seulement..."."""


class PromptBook:
    """Builds `ProviderRequest`s for one learner."""

    def __init__(self, profile: LearnerProfile | None = None) -> None:
        self.profile = profile or LearnerProfile()
        self._context = self.profile.render_context()

    def _request(self, body: str, *, wants_json: bool) -> ProviderRequest:
        return ProviderRequest(
            user_prompt=f"{body.strip()}\n\n{self._context}",
            system_prompt=SYSTEM_PROMPT,
            wants_json=wants_json,
        )

    def grammar(self, topic: str, language: str) -> ProviderRequest:
        return self._request(
            f'Explain the French B1 grammar topic: "{topic}".\n'
            f"Provide the explanation in {language}.\n"
            "Structure the response with clear headings, bullet points, and plenty of examples.\n"
            "Focus on usage, formation, and common mistakes.\n"
            "Format the entire response using simple Markdown. Use #, ## or ### for headings, "
            "* for bullet points, and ** for important words. Do not use any other Markdown "
            "features like blockquotes or code blocks.\n"
            "Use a double newline to separate paragraphs.",
            wants_json=False,
        )

    def verb(self, verb: str, language: str) -> ProviderRequest:
        return self._request(
            f'Conjugate the French verb "{verb}" for a B1 student.\n'
            f"Provide the translation in {language}.\n"
            "Every tense must list exactly six forms, in person order.\n"
            "Return ONLY a valid JSON object with this exact structure:\n"
            + _VERB_SHAPE.format(verb=verb, language=language),
            wants_json=True,
        )

    def quiz(self, topic: str, language: str) -> ProviderRequest:
        return self._request(
            f"Generate exactly {QUIZ_QUESTIONS} multiple-choice questions for the French B1 "
            f'grammar topic: "{topic}".\n'
            "The questions and options must be in French; each question has exactly four options.\n"
            f"The explanation for the correct answer must be in {language}.\n"
            "Return ONLY a valid JSON object with this structure:\n"
            '{"questions": [{"question": "question text in French", '
            '"options": ["option1", "option2", "option3", "option4"], '
            '"correctAnswerIndex": 0, '
            f'"explanation": "explanation in {language}"}}]}}',
            wants_json=True,
        )

    def flashcards(self, category: str, language: str) -> ProviderRequest:
        if category in REGRET_FLASHCARD_TOPICS:
            focus = (
                f'Generate {FLASHCARDS} French B1 flashcards for the topic: "{category}".\n'
                'The flashcards should primarily focus on using the structure "Si seulement..." '
                'to express regret (e.g., front: "Si seulement j\'avais su.", back: "If only I had known.").\n'
            )
        else:
            focus = (
                f'Generate {FLASHCARDS} French B1 flashcards for the category/topic: "{category}".\n'
            )
        return self._request(
            focus
            + f"The back of the card must be the translation in {language}.\n"
            "Return ONLY a valid JSON object with this structure:\n"
            '{"cards": [{"front": "French phrase", "back": "translation", '
            '"example": "example sentence"}]}',
            wants_json=True,
        )

    def phrases(self, topic: str, tense: str, language: str) -> ProviderRequest:
        if topic == SI_CONDITIONAL_TOPIC:
            focus = (
                f'Generate {PHRASES} useful French conditional ("if...then...") sentences.\n'
                f'The "si" clause should use the "{tense}" tense.\n'
                "The main clause should use the grammatically correct corresponding tense "
                "(e.g., Futur Simple for Présent, Conditionnel for Imparfait, Conditionnel "
                "Passé for Plus-que-parfait).\n"
            )
        elif topic == SI_SEULEMENT_TOPIC:
            focus = (
                f"Generate {PHRASES} useful French sentences expressing a wish or regret "
                'using "Si seulement...".\n'
                f'The verb following "Si seulement" should be in the "{tense}" tense.\n'
                "Use Imparfait for present wishes and Plus-que-parfait for past regrets.\n"
            )
        else:
            focus = (
                f'Generate {PHRASES} useful French sentences for the topic: "{topic}", '
                f'primarily using the "{tense}" tense.\n'
                "Use common B1 vocabulary and grammatical structures (subjunctive, "
                "conditional, relative pronouns where appropriate).\n"
            )
        return self._request(
            focus
            + "These sentences should be ideal for a B1 level learner.\n"
            f"Provide a clear translation and a simple context in {language}.\n"
            "Return a valid JSON object with this structure:\n"
            '{"phrases": [{"french": "sentence", "translation": "translation", '
            '"context": "context"}]}',
            wants_json=True,
        )

    def exam_prompts(self) -> ProviderRequest:
        return self._request(
            "Générez 5 sujets de pratique pour le Français B1. Le vocabulaire doit être "
            "STRICTEMENT de niveau A2-B1. Retournez un seul objet JSON valide.\n\n"
            f"{_SYLLABUS}\n\n"
            "**Structure JSON:**\n"
            '{"listening": "Un court texte ou dialogue (environ 100 mots) pour la compréhension orale.", '
            '"reading": "Un court texte (environ 150 mots) pour la compréhension écrite.", '
            '"writing": "Un sujet de production écrite (80-100 mots).", '
            '"speakingContinuous": "Un sujet de monologue (1-2 minutes).", '
            '"speakingInteraction": "Un scénario de jeu de rôle."}\n'
            f"{_BELGIAN_SETTING}",
            wants_json=True,
        )

    def writing_feedback(self, prompt: str, user_text: str, language: str) -> ProviderRequest:
        return self._request(
            "En tant que professeur de FLE, évaluez la production écrite suivante pour un niveau B1.\n"
            f'Consigne: "{prompt}"\n'
            f'Texte de l\'étudiant: "{user_text}"\n\n'
            f"Fournissez un feedback constructif et encourageant en {language} incluant:\n"
            "1. Une appréciation globale.\n"
            "2. Les points forts (vocabulaire, grammaire).\n"
            "3. Les points à améliorer.\n"
            "4. Une proposition de correction pour les erreurs majeures.\n"
            "Utilisez le Markdown pour la mise en forme (##, *, **).",
            wants_json=False,
        )

    def writing_example(self, prompt: str) -> ProviderRequest:
        return self._request(
            f'Pour la consigne de niveau B1 suivante: "{prompt}", générez un objet JSON contenant:\n'
            "1. Un texte modèle ('modelAnswer') en français qui répond parfaitement à la consigne. "
            f"Utilisez un vocabulaire simple et courant (niveau A2-B1). {_BELGIAN_SETTING} "
            "Incluez des ** pour mettre en évidence les mots grammaticaux clés.\n"
            "2. Une brève analyse ('analysis') en français expliquant pourquoi le texte est un bon "
            "exemple pour le niveau B1 (temps, vocabulaire, connecteurs), en Markdown simple "
            "avec des titres (##) et des listes (*).\n"
            'Structure JSON: {"modelAnswer": "...", "analysis": "..."}',
            wants_json=True,
        )

    def speaking_example(self, prompt: str, language: str) -> ProviderRequest:
        return self._request(
            "Générez une réponse modèle en français pour un étudiant B1 pour le sujet de "
            f'conversation suivant: "{prompt}". La réponse doit être naturelle, comme si '
            "quelqu'un parlait, et faire environ 1 minute de parole, avec des temps et du "
            f"vocabulaire simples (niveau A2-B1). {_BELGIAN_SETTING} "
            f"Répondez uniquement avec le texte à prononcer, sans traduction en {language}.",
            wants_json=False,
        )

    def listening_example(self, prompt: str) -> ProviderRequest:
        return self._request(
            f'Pour la consigne de compréhension orale suivante: "{prompt}", générez un dialogue '
            "naturel en français (niveau B1) entre deux personnes. Le vocabulaire doit être "
            "simple et courant. Si le sujet s'y prête, utilisez un contexte belge.",
            wants_json=False,
        )

    def reading_example(self, prompt: str) -> ProviderRequest:
        return self._request(
            f'Pour la consigne de compréhension écrite suivante: "{prompt}", générez un court '
            "texte en français (niveau B1) d'environ 150 mots. Il peut s'agir d'un email, d'un "
            "article de blog, ou d'une histoire. Le vocabulaire doit être simple. Si le sujet "
            "s'y prête, utilisez un contexte belge.",
            wants_json=False,
        )

    def exam_bundle(self, language: str) -> ProviderRequest:
        return self._request(
            "Créez un examen complet de français niveau B1. Le vocabulaire doit être "
            "STRICTEMENT adapté au niveau A2-B1. Retournez un seul objet JSON valide.\n\n"
            f"{_SYLLABUS}\n\n"
            "Chaque section listening et reading contient 4 questions à quatre options.\n"
            "**Structure JSON de sortie:**\n"
            + _EXAM_SHAPE.format(language=language)
            + f"\n{_BELGIAN_SETTING}",
            wants_json=True,
        )

    def mock_exam(self, language: str) -> ProviderRequest:
        return self._request(
            "Créez un EXAMEN BLANC complet (type B1 FLE) en six sections: compréhension de "
            "l'oral (dialogue ~1 min), compréhension de l'écrit (~150 mots), production écrite "
            "(2 sujets au choix), interaction orale (2 situations de jeu de rôle), production "
            "orale en continu (2 thèmes), grammaire et lexique (exercices à trous, "
            "transformations).\n\n"
            f"{_SYLLABUS}\n"
            f"{_BELGIAN_SETTING}\n"
            f"Les conseils et corrigés peuvent être rédigés en {language}.\n\n"
            "**Format de sortie JSON (avec corrigés):**\n" + _MOCK_EXAM_SHAPE,
            wants_json=True,
        )
