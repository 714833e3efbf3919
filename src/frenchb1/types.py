"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

This module defines common provider-agnostic types used by the generation core.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, TypeAlias

JSONPrimitive: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONObject: TypeAlias = dict[str, JSONValue]

Role = Literal["user", "assistant", "system"]

# Display languages offered to learners; explanations/translations use one of these.
Language: TypeAlias = str
LANGUAGES: tuple[str, ...] = (
    "English",
    "Arabic",
    "Ukrainian",
    "Turkish",
    "Japanese",
    "French",
    "Tigrinya",
)


@dataclass(frozen=True, slots=True)
class Message:
    """Normalized chat message payload."""

    role: Role
    content: str


@dataclass(frozen=True, slots=True)
class ProviderRequest:
    """
    One semantic generation request, identical for every provider.

    Attributes:
        user_prompt: Instruction built from a fixed template plus learner context.
        system_prompt: Optional system instruction.
        wants_json: Whether the provider should run in strict-JSON output mode.
    """

    user_prompt: str
    system_prompt: str | None = None
    wants_json: bool = False

    def messages(self) -> list[Message]:
        """Render request as an ordered chat message list."""
        out: list[Message] = []
        if self.system_prompt:
            out.append(Message(role="system", content=self.system_prompt))
        out.append(Message(role="user", content=self.user_prompt))
        return out
