"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Learner profile used to personalize every generation prompt.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from jinja2 import Environment, StrictUndefined
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import FrenchB1Error

logger = logging.getLogger("frenchb1.profile")

MODEL_TEXT_SENTENCES = (8, 10)

_CONTEXT_TEMPLATE = """\
**Profil de l'étudiant (à utiliser pour personnaliser les exemples) :**
- **Nom :** {{ p.name }}
- **Âge :** {{ p.age }} ans, {{ p.status }}
- **Situation actuelle :** Vit à {{ p.residence.city }}, dans le quartier de la **{{ p.residence.neighborhood }}** ({{ p.residence.country }}) depuis {{ p.residence.years_living }} ans.
- **Famille :** {{ p.friend }}, {{ p.family }}
- **Profession :** {{ p.career.profession }}, {{ p.career.current_status }}
- **Objectif professionnel :** Trouver un emploi dans une {{ p.career.goal_sector }}
- **Projets personnels :** {{ p.career.projects | join(', ') }}
- **Enfance :** Vivait dans un {{ p.childhood.location }}, {{ p.childhood.activities }}
- **Souvenir marquant :** {{ p.childhood.memorable_event }}
- **Nostalgie :** {{ p.childhood.feelings }}

**Instructions grammaticales prioritaires :**
Utilisez les temps suivants : {{ p.grammar_emphasis | join(', ') }}.
Incorporez des phrases avec "Si seulement..." pour exprimer des regrets.

**COMPORTEMENT DE L'IA :**
- Utilisez les informations sur l'**enfance** UNIQUEMENT pour les sujets portant sur le passé lointain.
- Utilisez les informations sur le **logement et le quartier** UNIQUEMENT pour les sujets sur la vie actuelle.
- Adaptez le vocabulaire pour qu'il soit simple et naturel (niveau A2-B1). Évitez les phrases trop complexes ou littéraires.

**CONTRAINTES DE LONGUEUR :**
Tous les textes modèles (modelAnswer, text) doivent être CONCIS : faites exactement **{{ low }} à {{ high }} phrases**. Pas plus, pas moins."""

_context = Environment(undefined=StrictUndefined, autoescape=False).from_string(_CONTEXT_TEMPLATE)


class ProfileError(FrenchB1Error, ValueError):
    """Learner profile file could not be read or validated."""


class Residence(BaseModel):
    city: str = "Liège"
    neighborhood: str = "Citadelle"
    country: str = "Belgium"
    years_living: int = 3


class Career(BaseModel):
    profession: str = "ingénieur informatique"
    current_status: str = "cherche un emploi"
    goal_sector: str = "entreprise de télécommunications"
    french_level: str = "niveau B1 - en cours d'apprentissage"
    projects: list[str] = Field(
        default_factory=lambda: [
            "Application web intelligente pour générer des CV avec l'IA (terminée)",
            "Outil d'IA pour le service client (en développement)",
        ]
    )
    future_goal: str = "Créer une entreprise en Belgique pour commercialiser mes outils"


class Childhood(BaseModel):
    location: str = "village au Liban"
    activities: str = "jouais toujours au football"
    memorable_event: str = (
        "Une fois, je suis tombé et je me suis blessé à la main en jouant au football. "
        "Je suis allé à l'hôpital où ils ont recousu la plaie."
    )
    feelings: str = (
        "J'étais heureux quand j'étais enfant. "
        "Si seulement je pouvais retourner à ces jours-là !"
    )


class LearnerProfile(BaseModel):
    """
    Who the content is written for.

    Defaults describe the built-in learner; a JSON file with the same
    (snake_case) fields may override any subset of them.
    """

    model_config = ConfigDict(extra="ignore")

    name: str = "Ahmad"
    age: int = 43
    status: str = "célibataire"
    residence: Residence = Field(default_factory=Residence)
    friend: str = "1 ami à Liège"
    family: str = "Ma sœur vit en Allemagne avec son mari et ses 2 filles"
    career: Career = Field(default_factory=Career)
    childhood: Childhood = Field(default_factory=Childhood)
    grammar_emphasis: list[str] = Field(
        default_factory=lambda: [
            "présent",
            "passé composé",
            "imparfait",
            "plus-que-parfait",
            "conditionnel",
            "négation complexe",
            "structures avec 'si seulement'",
        ]
    )

    def render_context(self) -> str:
        """Render the personalization block appended to user prompts."""
        low, high = MODEL_TEXT_SENTENCES
        return _context.render(p=self, low=low, high=high)


def load_profile(path: str | Path | None = None) -> LearnerProfile:
    """
    Load a learner profile from JSON, or the built-in one when `path` is None.

    Raises:
        ProfileError: When the file is unreadable, not JSON, or invalid.
    """
    if path is None:
        return LearnerProfile()
    resolved = Path(path).expanduser()
    try:
        raw = resolved.read_text(encoding="utf-8")
    except OSError as exc:
        raise ProfileError(f"Cannot read learner profile '{resolved}': {exc}") from exc
    try:
        profile = LearnerProfile.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ProfileError(f"Invalid learner profile '{resolved}': {exc}") from exc
    logger.debug("Loaded learner profile for %s from %s", profile.name, resolved)
    return profile
