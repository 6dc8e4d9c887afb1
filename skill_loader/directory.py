"""
skill_loader.directory

Access to the skills.sh directory listing: HTML download, row extraction, caching,
search and leaderboard views.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Callable

import httpx

from skill_loader.cache import DirectoryCache
from skill_loader.config import DIRECTORY_URL, SERVER_NAME, TRENDING_URL
from skill_loader.fetcher import http_get_text
from skill_loader.models import DirectoryEntry
from skill_loader.retry import RetryPolicy, call_with_retry

logger = logging.getLogger(f"{SERVER_NAME}.directory")

# Primary: a skill card link with display name, repo path and install count.
_CARD_PATTERN = re.compile(
    r'<a[^>]*href="/([^/]+)/([^/]+)/([^"]+)"[^>]*>[\s\S]*?'
    r"<h3[^>]*>([^<]+)</h3>[\s\S]*?"
    r"<p[^>]*>([^<]+)</p>[\s\S]*?"
    r"<span[^>]*>([^<]+)</span>"
)
# Fallback: bare links paired positionally with monospace install counts.
_HREF_PATTERN = re.compile(r'href="/([^/]+)/([^/]+)/([^"]+)"')
_INSTALLS_PATTERN = re.compile(r"<span[^>]*font-mono[^>]*>([0-9.KM]+)</span>")
_LEADING_NUMBER = re.compile(r"^\d+(?:\.\d+)?")
_LEADING_INT = re.compile(r"^-?\d+")

# Process-wide listing cache shared by every resolver built by the server.
DIRECTORY_CACHE = DirectoryCache()


def parse_install_count(text: str) -> int:
    """
    Convert a human readable install count to an integer.

    "30.4K" -> 30400, "1.5M" -> 1500000, "973" -> 973, unparseable -> 0.
    """
    cleaned = text.strip().replace(",", "")
    for suffix, factor in (("K", 1_000), ("M", 1_000_000)):
        if cleaned.endswith(suffix):
            match = _LEADING_NUMBER.match(cleaned[:-1])
            if not match:
                return 0
            whole, _, frac = match.group(0).partition(".")
            # exact decimal scaling: "30.4K" is 30400
            scale = 10 ** len(frac)
            return (int(whole) * scale + int(frac or 0)) * factor // scale
    match = _LEADING_INT.match(cleaned)
    return int(match.group(0)) if match else 0


def parse_directory_html(html: str, trending: bool = False) -> list[DirectoryEntry]:
    """
    function_purpose: Extract directory rows from a skills.sh page.

    Tries the card pattern first; when it yields nothing, falls back to pairing
    links with install counts in document order.
    """
    entries: list[DirectoryEntry] = []
    for match in _CARD_PATTERN.finditer(html):
        owner, repo, name, display_name, repo_path, installs = match.groups()
        entries.append(
            DirectoryEntry(
                name=name,
                owner=owner,
                repo=repo,
                installs=parse_install_count(installs),
                description=f"{display_name.strip()} from {repo_path.strip()}",
                trending=trending,
            )
        )
    if entries:
        return entries

    links = [
        (owner, repo, name)
        for owner, repo, name in _HREF_PATTERN.findall(html)
        if "?" not in name and "#" not in name
    ]
    counts = [parse_install_count(c) for c in _INSTALLS_PATTERN.findall(html)]
    for (owner, repo, name), installs in zip(links, counts):
        entries.append(
            DirectoryEntry(
                name=name,
                owner=owner,
                repo=repo,
                installs=installs,
                description=f"{name} from {owner}/{repo}",
                trending=trending,
            )
        )
    if not entries:
        logger.warning("No skills could be extracted from directory page")
    return entries


class SkillDirectory:
    """The remote skills.sh catalog, read through a shared time-boxed cache."""

    def __init__(
        self,
        client: httpx.Client,
        cache: DirectoryCache | None = None,
        clock: Callable[[], float] = time.monotonic,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.cache = cache if cache is not None else DIRECTORY_CACHE
        self.clock = clock
        self.policy = policy or RetryPolicy()
        self.sleep = sleep

    def _download(self, url: str, trending: bool = False) -> list[DirectoryEntry]:
        html, _ = call_with_retry(
            lambda: http_get_text(self.client, url), self.policy, self.sleep
        )
        entries = parse_directory_html(html, trending=trending)
        logger.info("Fetched %d directory entries from %s", len(entries), url)
        return entries

    def entries(self) -> list[DirectoryEntry]:
        now = self.clock()
        cached = self.cache.get(now)
        if cached is not None:
            return cached
        return self.cache.refresh(now, lambda: self._download(DIRECTORY_URL))

    def search(self, query: str) -> list[DirectoryEntry]:
        """Case-insensitive substring match on name, description, owner or repo; most installed first."""
        q = (query or "").strip().lower()
        if not q:
            return []
        results = [
            entry
            for entry in self.entries()
            if q in entry.name.lower()
            or q in (entry.description or "").lower()
            or q in entry.owner.lower()
            or q in entry.repo.lower()
        ]
        results.sort(key=lambda e: e.installs, reverse=True)
        return results

    def leaderboard(self, timeframe: str = "all") -> list[DirectoryEntry]:
        if timeframe not in ("all", "24h"):
            raise ValueError('timeframe must be "all" or "24h"')
        if timeframe == "24h":
            return self._download(TRENDING_URL, trending=True)
        return self._download(DIRECTORY_URL)
