from __future__ import annotations

from typing import Any

import httpx
import pytest


SKILL_MD = """---
name: pdf
description: Extract text and tables from PDF files for analysis
dependencies:
  - pdfplumber
  - pypdf
---

# PDF Processing

Use pdfplumber to read pages.

## Example

```python
# open the document
import pdfplumber
```
"""

DIRECTORY_HTML = """
<html><body>
<a href="/anthropics/skills/pdf" class="card"><div>
  <h3 class="title">pdf</h3><p class="repo">anthropics/skills</p>
  <span class="font-mono">30.4K</span>
</div></a>
<a href="/acme/tools/pdf-extractor" class="card"><div>
  <h3 class="title">pdf-extractor</h3><p class="repo">acme/tools</p>
  <span class="font-mono">1.2K</span>
</div></a>
<a href="/vercel-labs/agent-skills/react-best-practices" class="card"><div>
  <h3 class="title">react-best-practices</h3><p class="repo">vercel-labs/agent-skills</p>
  <span class="font-mono">1.5M</span>
</div></a>
</body></html>
"""


class FakeWeb:
    """
    httpx MockTransport handler keyed by URL.

    A route maps to an HTTP status (int), a 200 body (str), an exception to raise, or a list
    of those consumed in order (the last one repeats). Unknown URLs answer 404.
    """

    def __init__(self, routes: dict[str, Any] | None = None) -> None:
        self.routes: dict[str, Any] = {
            k.rstrip("/"): v for k, v in (routes or {}).items()
        }
        self.requests: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url).rstrip("/")
        self.requests.append(url)
        outcome = self.routes.get(url, 404)
        if isinstance(outcome, list):
            outcome = outcome.pop(0) if len(outcome) > 1 else outcome[0]
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, int):
            return httpx.Response(outcome)
        return httpx.Response(200, text=outcome)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))

    def count(self, url: str) -> int:
        return self.requests.count(url.rstrip("/"))


@pytest.fixture
def skill_md() -> str:
    return SKILL_MD


@pytest.fixture
def directory_html() -> str:
    return DIRECTORY_HTML


@pytest.fixture
def make_web() -> type[FakeWeb]:
    return FakeWeb
