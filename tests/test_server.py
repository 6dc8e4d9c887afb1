from __future__ import annotations

import logging
from pathlib import Path

import pytest

from skill_loader.cache import DirectoryCache
from skill_loader.config import SERVER_NAME
from skill_loader.directory import SkillDirectory
from skill_loader.errors import ParseError, ResolutionError
from skill_loader.fetcher import Fetcher
from skill_loader.resolver import Resolver
from skill_loader.server import (
    _entries_markdown,
    configure_logging,
    convert_content,
    fetch_skill_content,
    leaderboard,
    list_directory,
    search_directory,
    validate_content,
)

MAIN = "https://raw.githubusercontent.com/anthropics/skills/main/skills/pdf/SKILL.md"


def _directory(web) -> SkillDirectory:
    return SkillDirectory(web.client(), cache=DirectoryCache(), sleep=lambda _: None)


@pytest.fixture
def isolated_logger(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "logs" / "test.log"))
    logger = logging.getLogger(SERVER_NAME)
    saved = logger.handlers[:]
    logger.handlers.clear()
    yield tmp_path / "logs" / "test.log"
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = saved


def test_configure_logging_is_idempotent(isolated_logger: Path) -> None:
    logger = configure_logging()
    handlers = list(logger.handlers)
    again = configure_logging()

    assert again is logger
    assert again.handlers == handlers
    assert len(handlers) == 2
    assert isolated_logger.exists()


def test_list_directory_paginates(make_web, directory_html: str) -> None:
    directory = _directory(make_web({"https://skills.sh": directory_html}))

    first = list_directory(directory, page=1, page_size=2)
    second = list_directory(directory, page=2, page_size=2)

    assert first["total"] == 3
    assert [s["name"] for s in first["skills"]] == ["pdf", "pdf-extractor"]
    assert [s["name"] for s in second["skills"]] == ["react-best-practices"]
    assert list_directory(directory, page=0, page_size=500)["page_size"] == 100


def test_search_directory_adds_relevance(make_web, directory_html: str) -> None:
    directory = _directory(make_web({"https://skills.sh": directory_html}))

    result = search_directory(directory, "pdf", limit=1)

    assert result["count"] == 2
    assert [(s["name"], s["relevance"]) for s in result["skills"]] == [("pdf", 2)]
    with pytest.raises(ValueError):
        search_directory(directory, " ")


def test_leaderboard_ranks_entries(make_web, directory_html: str) -> None:
    directory = _directory(make_web({"https://skills.sh/trending": directory_html}))

    result = leaderboard(directory, "24h", limit=2)

    assert [s["rank"] for s in result["skills"]] == [1, 2]
    assert all(s["trending"] for s in result["skills"])
    assert result["count"] == 3


def test_fetch_skill_content_reports_provenance(make_web, skill_md: str) -> None:
    web = make_web({MAIN: skill_md})
    client = web.client()
    directory = SkillDirectory(client, cache=DirectoryCache())

    result = fetch_skill_content(
        Resolver(directory), Fetcher(client, sleep=lambda _: None), "anthropics/skills/pdf"
    )

    assert result["content"] == skill_md
    assert result["url"] == MAIN
    assert result["metadata"]["name"] == "pdf"
    assert result["metadata"]["origin"] == "github"
    assert result["metadata"]["skill_path"] == "skills/pdf"


def test_fetch_skill_content_propagates_resolution_errors(make_web) -> None:
    web = make_web()
    client = web.client()

    with pytest.raises(ResolutionError):
        fetch_skill_content(
            Resolver(SkillDirectory(client, cache=DirectoryCache())),
            Fetcher(client),
            "owner/",
        )


def test_validate_content_defaults_url_to_unknown() -> None:
    result = validate_content("# Fine\n", "")

    assert result["severity"] == "unsafe"
    assert result["issues"][0]["location"] == "unknown"
    with pytest.raises(ValueError):
        validate_content("   ")


def test_convert_content_formats(skill_md: str) -> None:
    steering = convert_content(skill_md, "steering", MAIN)
    power = convert_content(skill_md, "power")

    assert steering["filename"] == "pdf.md"
    assert steering["metadata"]["source_url"] == MAIN
    assert power["filename"] == "POWER.md"
    assert power["kind"] == "power"
    with pytest.raises(ValueError):
        convert_content(skill_md, "html")
    with pytest.raises(ParseError):
        convert_content("---\n[1, 2]\n---\n", "power")


def test_entries_markdown() -> None:
    skills = [
        {
            "name": "pdf",
            "description": "pdf from anthropics/skills",
            "owner": "anthropics",
            "repo": "skills",
            "installs": 30400,
            "trending": True,
            "rank": 1,
        }
    ]

    text = _entries_markdown("Leaderboard (24h)", skills)

    assert text.startswith("# Leaderboard (24h)\n")
    assert "## 1. pdf\n" in text
    assert "**Installs:** 30,400" in text
    assert "**Trending:** yes" in text
    assert "No skills found." in _entries_markdown("Empty", [])
