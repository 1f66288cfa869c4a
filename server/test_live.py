"""
Live smoke test against a running server.

Skipped unless REPO_MIRROR_LIVE_URL points at one, e.g.

    REPO_MIRROR_LIVE_URL=http://127.0.0.1:3000 pytest server/test_live.py

The server needs real GITHUB_PAT and GEMINI_API_KEY values in its .env.
"""

import os

import httpx
import pytest

LIVE_URL = os.getenv("REPO_MIRROR_LIVE_URL")
LIVE_REPOSITORY = os.getenv("REPO_MIRROR_LIVE_REPOSITORY", "https://github.com/octocat/Hello-World")

pytestmark = pytest.mark.skipif(not LIVE_URL, reason="REPO_MIRROR_LIVE_URL not set")


def test_live_health():
    response = httpx.get(f"{LIVE_URL}/", timeout=10.0)

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_live_analyze():
    # fetching from GitHub and waiting on Gemini can take a while
    response = httpx.post(
        f"{LIVE_URL}/api/analyze",
        json={"repositoryReference": LIVE_REPOSITORY},
        timeout=120.0,
    )

    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert 0 <= data["score"] <= 100
    assert data["rating_tier"] in {"Beginner", "Intermediate", "Advanced"}
    assert 3 <= len(data["roadmap"]) <= 5
    assert data["default_branch"]
