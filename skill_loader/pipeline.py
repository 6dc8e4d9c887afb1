"""
skill_loader.pipeline

The import workflow: resolve -> fetch -> validate (skippable) -> convert.

Every step failure ends the run in the FAILED state with the step's message; nothing is
raised to the caller and no partial output is returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from skill_loader import converter, validator
from skill_loader.config import (
    POWER_TARGET_TEMPLATE,
    SERVER_NAME,
    STEERING_TARGET_TEMPLATE,
)
from skill_loader.errors import SkillLoaderError
from skill_loader.fetcher import Fetcher
from skill_loader.models import Coordinate, OutputDocument, OutputFormat, Verdict
from skill_loader.resolver import Resolver

logger = logging.getLogger(f"{SERVER_NAME}.pipeline")


class PipelineState(str, Enum):
    RESOLVING = "resolving"
    FETCHING = "fetching"
    VALIDATING = "validating"
    CONVERTING = "converting"
    DONE = "done"
    FAILED = "failed"


def target_path(document: OutputDocument) -> str:
    """Conventional install location for a converted document; never written here."""
    if document.kind is OutputFormat.POWER:
        return POWER_TARGET_TEMPLATE.format(name=document.name)
    return STEERING_TARGET_TEMPLATE.format(filename=document.filename)


@dataclass(frozen=True)
class ImportResult:
    success: bool
    state: PipelineState
    identifier: str
    output_format: str
    document: OutputDocument | None = None
    target_path: str = ""
    coordinate: Coordinate | None = None
    source_url: str = ""
    verdict: Verdict | None = None
    error: str | None = None
    failed_step: PipelineState | None = None

    @property
    def skill_name(self) -> str:
        """Frontmatter name for steering output, kebab power name for power output."""
        if self.document is None:
            return self.identifier
        if self.document.kind is OutputFormat.STEERING:
            return str(self.document.metadata.get("original_skill", self.document.name))
        return self.document.name

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "content": self.document.content if self.document else "",
            "filename": self.document.filename if self.document else "",
            "target_path": self.target_path,
            "metadata": {
                "skill_name": self.skill_name,
                "source_url": self.source_url,
                "output_format": self.output_format,
                "validation_result": self.verdict.to_dict() if self.verdict else None,
            },
        }
        if self.error is not None:
            data["error"] = self.error
            data["failed_step"] = self.failed_step.value if self.failed_step else None
        return data


class ImportPipeline:
    def __init__(self, resolver: Resolver, fetcher: Fetcher) -> None:
        self.resolver = resolver
        self.fetcher = fetcher

    def run(
        self,
        identifier: str,
        output_format: str | OutputFormat = OutputFormat.STEERING,
        skip_validation: bool = False,
    ) -> ImportResult:
        fmt_name = getattr(output_format, "value", output_format)

        def failed(
            step: PipelineState,
            message: str,
            coordinate: Coordinate | None = None,
            source_url: str = "",
            verdict: Verdict | None = None,
        ) -> ImportResult:
            logger.error("Import of '%s' failed while %s: %s", identifier, step.value, message)
            return ImportResult(
                success=False,
                state=PipelineState.FAILED,
                identifier=identifier,
                output_format=str(fmt_name),
                coordinate=coordinate,
                source_url=source_url,
                verdict=verdict,
                error=message,
                failed_step=step,
            )

        if not identifier or not identifier.strip():
            return failed(PipelineState.RESOLVING, "Skill identifier is required")
        try:
            fmt = OutputFormat(fmt_name)
        except ValueError:
            return failed(
                PipelineState.RESOLVING, 'Output format must be "steering" or "power"'
            )

        state = PipelineState.RESOLVING
        try:
            coordinate = self.resolver.resolve(identifier)
        except SkillLoaderError as exc:
            return failed(state, exc.message)

        state = PipelineState.FETCHING
        try:
            raw = self.fetcher.fetch(coordinate)
        except SkillLoaderError as exc:
            return failed(state, exc.message, coordinate)

        verdict: Verdict | None = None
        if skip_validation:
            logger.warning("Security validation skipped for %s", raw.url)
        else:
            state = PipelineState.VALIDATING
            verdict = validator.validate(raw.text, raw.url)
            if not verdict.is_valid:
                descriptions = ", ".join(issue.description for issue in verdict.issues)
                return failed(
                    state,
                    f"Security validation failed: {descriptions}",
                    coordinate,
                    raw.url,
                    verdict,
                )

        state = PipelineState.CONVERTING
        try:
            parsed = converter.parse(raw.text)
        except SkillLoaderError as exc:
            return failed(state, exc.message, coordinate, raw.url, verdict)
        document = converter.convert(parsed, fmt, source_url=raw.url)

        logger.info("Imported %s as %s (%s)", raw.url, fmt.value, document.filename)
        return ImportResult(
            success=True,
            state=PipelineState.DONE,
            identifier=identifier,
            output_format=fmt.value,
            document=document,
            target_path=target_path(document),
            coordinate=coordinate,
            source_url=raw.url,
            verdict=verdict,
        )
