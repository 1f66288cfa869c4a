"""Shared fixtures: a fake GitHub REST API and a fake assessment client."""

import base64
from typing import Callable, Optional, Union

import httpx
import pytest

from analysis.schemas import AssessmentResult
from config import Settings

API_BASE = "https://api.github.test"
REPO = "/repos/octo/demo"

Route = Union[Callable[[httpx.Request], httpx.Response], tuple[int, object]]


def b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class FakeGitHub:
    """Routes requests by URL path; records every request it sees."""

    def __init__(self):
        self.routes: dict[str, Route] = {}
        self.requests: list[httpx.Request] = []

    def add(self, path: str, payload: object = None, status: int = 200) -> "FakeGitHub":
        self.routes[path] = (status, payload)
        return self

    def add_handler(self, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> "FakeGitHub":
        self.routes[path] = handler
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if callable(route):
            return route(request)
        status, payload = route
        if payload is None:
            return httpx.Response(status)
        return httpx.Response(status, json=payload)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]


SAMPLE_APP = "\n".join(
    ["def main():"]
    + ["    if x:", "        pass"] * 3
    + ["    for item in items:", "        pass"]
    + ["    return 0"] * 31
)  # 3 x if, 1 x for, 40 lines

SAMPLE_STYLE = "\n".join(["body { margin: 0; }"] * 250)  # 250 lines, no keywords


def commit_activity(active_weeks: int, weeks: int = 52) -> list[dict]:
    return [
        {"week": 1700000000 + i * 604800, "total": 3 if i < active_weeks else 0, "days": [0] * 7}
        for i in range(weeks)
    ]


def populate_repository(fake: FakeGitHub) -> FakeGitHub:
    """A small healthy repository on branch 'develop'."""
    fake.add(REPO, {"full_name": "octo/demo", "default_branch": "develop", "updated_at": "2026-01-02T03:04:05Z"})
    fake.add(f"{REPO}/stats/commit_activity", commit_activity(10))
    fake.add(f"{REPO}/languages", {"Python": 1200, "CSS": 300})
    fake.add(
        f"{REPO}/pulls",
        [{"number": n, "state": state} for n, state in enumerate(["closed", "open", "closed", "open", "closed"], 1)],
    )
    fake.add(
        f"{REPO}/git/trees/develop",
        {
            "sha": "abc",
            "truncated": False,
            "tree": [
                {"path": "README.md", "type": "blob", "size": 120},
                {"path": "src", "type": "tree"},
                {"path": "src/app.py", "type": "blob", "size": 900},
                {"path": "src/generated.js", "type": "blob", "size": 700_000},
                {"path": "static/style.css", "type": "blob", "size": 5000},
                {"path": "tests", "type": "tree"},
                {"path": "tests/notes.txt", "type": "blob", "size": 10},
            ],
        },
    )
    fake.add(f"{REPO}/contents/src/app.py", {"encoding": "base64", "content": b64(SAMPLE_APP)})
    fake.add(f"{REPO}/contents/static/style.css", {"encoding": "base64", "content": b64(SAMPLE_STYLE)})
    fake.add(f"{REPO}/readme", {"encoding": "base64", "content": b64("# Demo\n\nA demo project.")})
    return fake


class FakeAssessor:
    """Stands in for AssessmentClient; returns a fixed result or raises."""

    def __init__(self, result: Optional[AssessmentResult] = None, error: Optional[Exception] = None):
        self.result = result or AssessmentResult(
            score=72,
            rating_tier="Intermediate",
            summary="Consistent commits; few tests.",
            roadmap=["Add unit tests", "Expand the README", "Set up CI"],
        )
        self.error = error
        self.prompts: list[str] = []

    async def assess(self, prompt: str) -> AssessmentResult:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def settings() -> Settings:
    return Settings(
        github_token="test-token",
        gemini_api_key="test-key",
        github_api_url=API_BASE,
    )


@pytest.fixture
def fake_github() -> FakeGitHub:
    return populate_repository(FakeGitHub())


@pytest.fixture
def fake_assessor() -> FakeAssessor:
    return FakeAssessor()
