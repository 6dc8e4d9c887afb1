"""
skill_loader.errors

One exception type per failure category. Each carries a ``kind`` tag plus a structured
``context`` payload so callers can diagnose a failure without re-running with verbose logs.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any


class ResolutionErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"
    MALFORMED = "malformed"


class RetrievalErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    HTTP_STATUS = "http_status"
    TRANSPORT = "transport"
    EXHAUSTED = "exhausted"


class ParseErrorKind(str, Enum):
    EMPTY = "empty"
    INVALID_YAML = "invalid_yaml"
    NOT_A_MAPPING = "not_a_mapping"
    MISSING_FIELD = "missing_field"


class SkillLoaderError(Exception):
    """Base for all skill loader failures."""

    category = "error"

    def __init__(
        self, message: str, kind: Enum, context: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.context: dict[str, Any] = dict(context or {})

    def suggestions(self) -> list[str]:
        return []

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.category,
            "kind": self.kind.value,
            "message": self.message,
            "context": self.context,
        }

    def user_message(self) -> str:
        """
        function_purpose: Render the error with its context and recovery suggestions.
        """
        lines = [f"{self.category}: {self.message}"]
        if self.context:
            lines.append(
                "Context: " + json.dumps(self.context, default=str, ensure_ascii=False)
            )
        hints = self.suggestions()
        if hints:
            lines.append("Suggestions:")
            lines.extend(f"- {hint}" for hint in hints)
        return "\n".join(lines)


class ResolutionError(SkillLoaderError):
    category = "Skill Resolution Error"

    def __init__(
        self,
        message: str,
        kind: ResolutionErrorKind,
        identifier: str,
        suggestions: list[str] | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        payload = {"identifier": identifier, "suggestions": list(suggestions or [])}
        payload.update(context or {})
        super().__init__(message, kind, payload)
        self.identifier = identifier
        self.candidates: list[str] = list(suggestions or [])

    def suggestions(self) -> list[str]:
        return self.candidates + [
            "Try using owner/repo format (e.g., anthropics/skills/pdf)",
            "Search skills.sh for available skills",
        ]


class RetrievalError(SkillLoaderError):
    category = "Network Error"

    def __init__(
        self,
        message: str,
        kind: RetrievalErrorKind,
        url: str,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"url": url, "status_code": status_code}
        payload.update(context or {})
        super().__init__(message, kind, payload)
        self.url = url
        self.status_code = status_code

    @property
    def is_not_found(self) -> bool:
        return self.kind is RetrievalErrorKind.NOT_FOUND

    @property
    def attempted_refs(self) -> list[str]:
        return list(self.context.get("attempted_refs", []))

    def suggestions(self) -> list[str]:
        if self.is_not_found:
            return [
                "Verify the skill name is correct",
                "Check if the repository exists on GitHub",
                "Try using owner/repo format instead",
            ]
        if self.status_code == 403:
            return [
                "You may have hit GitHub rate limits",
                "Wait a few minutes and try again",
            ]
        if self.status_code is not None and self.status_code >= 500:
            return ["The server is experiencing issues", "Try again in a few minutes"]
        return [
            "Check your internet connection",
            "Verify you can access GitHub",
            "Try again in a few moments",
        ]


class ParseError(SkillLoaderError):
    category = "Parsing Error"

    def __init__(
        self,
        message: str,
        kind: ParseErrorKind,
        line_number: int | None = None,
        snippet: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        payload: dict[str, Any] = {}
        if line_number is not None:
            payload["line_number"] = line_number
        if snippet is not None:
            payload["snippet"] = snippet
        payload.update(context or {})
        super().__init__(message, kind, payload)
        self.line_number = line_number
        self.snippet = snippet

    def suggestions(self) -> list[str]:
        if self.kind is ParseErrorKind.EMPTY:
            return ["Verify the skill file is not empty"]
        return [
            "Verify the skill follows the Agent Skills standard",
            "Check YAML syntax (indentation, colons, quotes)",
            "Ensure frontmatter is enclosed in --- markers",
        ]


class ValidationError(ParseError):
    """Frontmatter parsed but is missing a required field."""

    category = "Validation Error"

    def __init__(self, message: str, field: str) -> None:
        super().__init__(message, ParseErrorKind.MISSING_FIELD, context={"field": field})
        self.field = field
