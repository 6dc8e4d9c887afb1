"""
skill_loader.fetcher

Retrieves SKILL.md content from raw GitHub URLs.

Repositories disagree on their default branch name, so each candidate ref is tried in
turn. A 404 moves straight to the next ref; any other failure is retried with
exponential backoff before moving on.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable

import httpx

from skill_loader.config import CANDIDATE_REFS, SERVER_NAME
from skill_loader.errors import RetrievalError, RetrievalErrorKind
from skill_loader.models import Coordinate, RawDocument, raw_content_url
from skill_loader.retry import RetryPolicy, call_with_retry

logger = logging.getLogger(f"{SERVER_NAME}.fetcher")


def http_get_text(client: httpx.Client, url: str) -> str:
    """
    function_purpose: GET a URL and return its decoded body, mapping every failure to RetrievalError.

    - 404 -> kind NOT_FOUND
    - other non-2xx -> kind HTTP_STATUS
    - connection/timeout/protocol errors and unusable URLs -> kind TRANSPORT
    """
    try:
        response = client.get(url, follow_redirects=True)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise RetrievalError(
            "Failed to fetch URL",
            RetrievalErrorKind.TRANSPORT,
            url,
            context={"original_error": str(exc)},
        ) from exc

    if response.status_code == 404:
        raise RetrievalError(
            "Resource not found", RetrievalErrorKind.NOT_FOUND, url, status_code=404
        )
    if not response.is_success:
        raise RetrievalError(
            f"HTTP {response.status_code}: {response.reason_phrase}",
            RetrievalErrorKind.HTTP_STATUS,
            url,
            status_code=response.status_code,
        )
    return response.text


class Fetcher:
    """Fetch raw skill documents, falling back across candidate refs."""

    def __init__(
        self,
        client: httpx.Client,
        refs: tuple[str, ...] = CANDIDATE_REFS,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.refs = refs
        self.policy = policy or RetryPolicy()
        self.sleep = sleep

    def fetch(self, coordinate: Coordinate) -> RawDocument:
        attempted_refs: list[str] = []
        ref_errors: list[RetrievalError] = []
        url = coordinate.url

        for ref in self.refs:
            url = raw_content_url(coordinate.owner, coordinate.repo, ref, coordinate.path)
            attempted_refs.append(ref)
            try:
                text, retries = call_with_retry(
                    lambda: http_get_text(self.client, url), self.policy, self.sleep
                )
            except RetrievalError as exc:
                ref_errors.append(exc)
                if exc.is_not_found:
                    logger.info("Not found on ref '%s': %s", ref, url)
                else:
                    logger.warning(
                        "Giving up on ref '%s' after %s attempt(s): %s",
                        ref,
                        exc.context.get("attempts", 1),
                        exc.message,
                    )
                continue

            logger.info(
                "Fetched %s/%s/%s from ref '%s' (%d retries)",
                coordinate.owner,
                coordinate.repo,
                coordinate.path,
                ref,
                retries,
            )
            return RawDocument(
                text=text,
                url=url,
                fetched_at=datetime.now(timezone.utc),
                coordinate=coordinate,
            )

        location = f"{coordinate.owner}/{coordinate.repo}/{coordinate.path}"
        # not_found only when every ref answered 404
        all_missing = bool(ref_errors) and all(e.is_not_found for e in ref_errors)
        # report the most recent non-404 failure when there was one
        cause = next(
            (e for e in reversed(ref_errors) if not e.is_not_found),
            ref_errors[-1] if ref_errors else None,
        )
        error = RetrievalError(
            f"Skill not found at {location}"
            if all_missing
            else f"Failed to fetch skill from {location}",
            RetrievalErrorKind.NOT_FOUND if all_missing else RetrievalErrorKind.EXHAUSTED,
            url,
            status_code=cause.status_code if cause else None,
            context={
                "attempted_refs": attempted_refs,
                "last_error": cause.message if cause else "Unknown error",
            },
        )
        logger.error("%s (tried refs: %s)", error.message, ", ".join(attempted_refs))
        raise error
