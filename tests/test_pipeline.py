from __future__ import annotations

import logging

import pytest

from skill_loader.cache import DirectoryCache
from skill_loader.directory import SkillDirectory
from skill_loader.fetcher import Fetcher
from skill_loader.models import OutputFormat, Severity
from skill_loader.pipeline import ImportPipeline, PipelineState
from skill_loader.resolver import Resolver

MAIN = "https://raw.githubusercontent.com/anthropics/skills/main/skills/pdf/SKILL.md"

UNSAFE_MD = """---
name: cleaner
description: Cleans build output
---

# Cleaner

Run `rm -rf build/` then `sudo make install`.
"""


def _no_sleep(_: float) -> None:
    pass


def _pipeline(web) -> ImportPipeline:
    client = web.client()
    directory = SkillDirectory(client, cache=DirectoryCache(), sleep=_no_sleep)
    return ImportPipeline(Resolver(directory), Fetcher(client, sleep=_no_sleep))


def test_import_as_steering(make_web, skill_md: str) -> None:
    result = _pipeline(make_web({MAIN: skill_md})).run("anthropics/skills/pdf")

    assert result.success is True
    assert result.state is PipelineState.DONE
    assert result.document is not None
    assert result.document.filename == "pdf.md"
    assert result.target_path == ".kiro/steering/pdf.md"
    assert result.source_url == MAIN
    assert result.verdict is not None and result.verdict.severity is Severity.SAFE

    data = result.to_dict()
    assert data["success"] is True
    assert data["filename"] == "pdf.md"
    assert data["metadata"]["skill_name"] == "pdf"
    assert data["metadata"]["output_format"] == "steering"
    assert data["metadata"]["validation_result"]["severity"] == "safe"
    assert "error" not in data


def test_import_as_power_by_short_name(
    make_web, skill_md: str, directory_html: str
) -> None:
    web = make_web({"https://skills.sh": directory_html, MAIN: skill_md})

    result = _pipeline(web).run("pdf", OutputFormat.POWER)

    assert result.success is True
    assert result.document is not None
    assert result.document.filename == "POWER.md"
    assert result.target_path == "~/.kiro/powers/pdf/POWER.md"
    assert result.coordinate is not None and result.coordinate.installs == 30400


def test_unsafe_skill_is_blocked(make_web) -> None:
    result = _pipeline(make_web({MAIN: UNSAFE_MD})).run("anthropics/skills/pdf")

    assert result.success is False
    assert result.state is PipelineState.FAILED
    assert result.failed_step is PipelineState.VALIDATING
    assert result.document is None
    assert result.error == (
        "Security validation failed: Dangerous recursive delete command (rm -rf), "
        "Elevated privilege command (sudo)"
    )
    data = result.to_dict()
    assert data["content"] == ""
    assert data["failed_step"] == "validating"
    assert data["metadata"]["validation_result"]["is_valid"] is False


def test_skip_validation_imports_unsafe_skill(
    make_web, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.WARNING):
        result = _pipeline(make_web({MAIN: UNSAFE_MD})).run(
            "anthropics/skills/pdf", "steering", skip_validation=True
        )

    assert result.success is True
    assert result.verdict is None
    assert result.document is not None and result.document.filename == "cleaner.md"
    assert "Security validation skipped" in caplog.text


def test_fetch_failure_reports_step(make_web) -> None:
    result = _pipeline(make_web()).run("anthropics/skills/pdf")

    assert result.success is False
    assert result.failed_step is PipelineState.FETCHING
    assert result.error == "Skill not found at anthropics/skills/skills/pdf"
    assert result.coordinate is not None


def test_unknown_short_name_fails_while_resolving(make_web, directory_html: str) -> None:
    result = _pipeline(make_web({"https://skills.sh": directory_html})).run("docx")

    assert result.failed_step is PipelineState.RESOLVING
    assert result.error == 'Skill "docx" not found in skills.sh directory'


def test_missing_frontmatter_field_fails_while_converting(make_web) -> None:
    web = make_web({MAIN: "---\nname: half\n---\n# Half\n"})

    result = _pipeline(web).run("anthropics/skills/pdf")

    assert result.failed_step is PipelineState.CONVERTING
    assert result.error == "Skill frontmatter missing required field: description"


@pytest.mark.parametrize(
    ("identifier", "fmt", "message"),
    [
        ("", "steering", "Skill identifier is required"),
        ("   ", "power", "Skill identifier is required"),
        ("anthropics/skills/pdf", "pdf", 'Output format must be "steering" or "power"'),
    ],
)
def test_bad_input_fails_before_any_request(
    make_web, identifier: str, fmt: str, message: str
) -> None:
    web = make_web()

    result = _pipeline(web).run(identifier, fmt)

    assert result.success is False
    assert result.failed_step is PipelineState.RESOLVING
    assert result.error == message
    assert web.requests == []


def test_identifier_with_control_character_fails_cleanly(make_web) -> None:
    web = make_web()

    result = _pipeline(web).run("owner/repo/my\tskill")

    assert result.success is False
    assert result.state is PipelineState.FAILED
    assert result.failed_step is PipelineState.RESOLVING
    assert result.error == "Identifier contains control characters"
    assert web.requests == []


@pytest.mark.parametrize(
    ("fmt", "skill_name"), [("steering", "PDF Tools"), ("power", "pdf-tools")]
)
def test_reported_skill_name_depends_on_format(
    make_web, fmt: str, skill_name: str
) -> None:
    web = make_web({MAIN: "---\nname: PDF Tools\ndescription: Read PDFs\n---\n# PDF\n"})

    data = _pipeline(web).run("anthropics/skills/pdf", fmt).to_dict()

    assert data["success"] is True
    assert data["metadata"]["skill_name"] == skill_name
