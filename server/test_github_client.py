"""Tests for the GitHub REST client: headers, status mapping and pagination."""

import httpx
import pytest

from conftest import API_BASE, REPO, FakeGitHub
from errors import UpstreamAPIError, UpstreamNotFoundError
from services.github import ACCEPT_HEADER, USER_AGENT, GitHubRESTClient


def make_client(fake: FakeGitHub, token="test-token") -> GitHubRESTClient:
    return GitHubRESTClient(token, base_url=API_BASE, transport=fake.transport)


@pytest.mark.asyncio
async def test_every_request_carries_identifying_headers(fake_github):
    async with make_client(fake_github) as github:
        await github.get_repository("octo/demo")
        await github.get_languages("octo/demo")

    assert len(fake_github.requests) == 2
    for request in fake_github.requests:
        assert request.headers["Authorization"] == "Bearer test-token"
        assert request.headers["User-Agent"] == USER_AGENT
        assert request.headers["Accept"] == ACCEPT_HEADER


@pytest.mark.asyncio
async def test_missing_token_sends_no_authorization(fake_github):
    async with make_client(fake_github, token=None) as github:
        await github.get_repository("octo/demo")

    assert "Authorization" not in fake_github.requests[0].headers


@pytest.mark.asyncio
async def test_404_raises_not_found():
    fake = FakeGitHub()
    async with make_client(fake) as github:
        with pytest.raises(UpstreamNotFoundError) as excinfo:
            await github.get_repository("octo/missing")

    assert excinfo.value.status_code == 404
    assert "octo/missing" in str(excinfo.value)


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [401, 403, 422, 500, 503])
async def test_other_statuses_raise_api_error(status):
    fake = FakeGitHub().add(REPO, {"message": "nope"}, status=status)
    async with make_client(fake) as github:
        with pytest.raises(UpstreamAPIError) as excinfo:
            await github.get_repository("octo/demo")

    assert excinfo.value.status_code == status
    assert not isinstance(excinfo.value, UpstreamNotFoundError)


@pytest.mark.asyncio
async def test_transport_failure_raises_api_error():
    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    fake = FakeGitHub().add_handler(REPO, boom)
    async with make_client(fake) as github:
        with pytest.raises(UpstreamAPIError) as excinfo:
            await github.get_repository("octo/demo")

    assert excinfo.value.status_code is None


@pytest.mark.asyncio
async def test_commit_activity_being_computed_is_empty():
    fake = FakeGitHub().add(f"{REPO}/stats/commit_activity", None, status=202)
    async with make_client(fake) as github:
        assert await github.get_commit_activity("octo/demo") == []


@pytest.mark.asyncio
async def test_pull_requests_follow_next_links():
    def pulls(request):
        page = int(request.url.params.get("page", "1"))
        assert request.url.params["state"] == "all"
        assert request.url.params["per_page"] == "100"
        headers = {}
        if page < 3:
            headers["Link"] = f'<{API_BASE}{REPO}/pulls?state=all&per_page=100&page={page + 1}>; rel="next"'
        return httpx.Response(200, json=[{"number": page, "state": "closed"}], headers=headers)

    fake = FakeGitHub().add_handler(f"{REPO}/pulls", pulls)
    async with make_client(fake) as github:
        prs = await github.get_pull_requests("octo/demo")

    assert [pr["number"] for pr in prs] == [1, 2, 3]
    assert len(fake.requests) == 3


@pytest.mark.asyncio
async def test_pull_requests_stop_at_page_limit():
    def pulls(request):
        page = int(request.url.params.get("page", "1"))
        link = f'<{API_BASE}{REPO}/pulls?state=all&per_page=100&page={page + 1}>; rel="next"'
        return httpx.Response(200, json=[{"number": page, "state": "open"}], headers={"Link": link})

    fake = FakeGitHub().add_handler(f"{REPO}/pulls", pulls)
    async with make_client(fake) as github:
        prs = await github.get_pull_requests("octo/demo", max_pages=2)

    assert len(prs) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, content=b"<html>oops</html>", headers={"Content-Type": "text/html"}),
        httpx.Response(200, json={"message": "not a list"}),
    ],
)
async def test_pull_request_page_must_be_a_json_array(response):
    fake = FakeGitHub().add_handler(f"{REPO}/pulls", lambda request: response)
    async with make_client(fake) as github:
        with pytest.raises(UpstreamAPIError) as excinfo:
            await github.get_pull_requests("octo/demo")

    assert excinfo.value.status_code == 200
    assert excinfo.value.path == f"{REPO}/pulls"


@pytest.mark.asyncio
async def test_file_content_requests_branch(fake_github):
    async with make_client(fake_github) as github:
        payload = await github.get_file_content("octo/demo", "src/app.py", "develop")

    assert payload["encoding"] == "base64"
    request = fake_github.requests[0]
    assert request.url.path == f"{REPO}/contents/src/app.py"
    assert request.url.params["ref"] == "develop"


@pytest.mark.asyncio
async def test_client_requires_context_manager():
    github = GitHubRESTClient("t", base_url=API_BASE)
    with pytest.raises(RuntimeError):
        await github.get_repository("octo/demo")
