"""
Data Extractor for Repo Mirror

Gathers raw repository signals from the GitHub REST API and reduces them to
phase reports. This module extracts data only; scoring is left to the
assessment.
"""

import asyncio
import base64
import binascii
import logging
from pathlib import PurePosixPath
from typing import Any, Awaitable

from errors import UpstreamAPIError, UpstreamError
from services.github import GitHubRESTClient
from services.metrics import MetricsCalculator
from .schemas import (
    README_FALLBACK,
    ComplexityReport,
    RepositoryIdentity,
    RepositoryMetadata,
    SampleFile,
    StructureReport,
    TreeEntry,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

DEFAULT_BRANCH = "main"

# Files at or above this size are never sampled
MAX_FILE_SIZE = 500_000

MAX_SAMPLE_FILES = 10
MAX_CONCURRENT_FETCHES = 10

# Recognized source/markup extensions, matched case-sensitively
CODE_EXTENSIONS = frozenset({
    ".js", ".ts", ".py", ".go", ".java",
    ".c", ".cpp", ".rb", ".php",
    ".html", ".css",
})

TEST_FOLDER_PREFIXES = ("test/", "tests/")


# =============================================================================
# SHARED HELPER FUNCTIONS
# =============================================================================

def is_code_file(entry: TreeEntry) -> bool:
    """A blob under the size cap whose extension is in CODE_EXTENSIONS."""
    if entry.type != "blob":
        return False
    if entry.size is None or entry.size >= MAX_FILE_SIZE:
        return False
    return PurePosixPath(entry.path).suffix in CODE_EXTENSIONS


def is_test_path(path: str) -> bool:
    return path.startswith(TEST_FOLDER_PREFIXES)


def decode_content(payload: dict, errors: str = "replace") -> str:
    """Decode the base64 'content' field of a contents/readme response."""
    encoded = (payload or {}).get("content")
    if not encoded:
        return ""
    raw = base64.b64decode(encoded)
    return raw.decode("utf-8", errors=errors)


async def join_all(*aws: Awaitable[Any]) -> list[Any]:
    """
    Await all awaitables concurrently, failing fast.

    The first exception propagates and every sibling still running is
    cancelled, so no partial result escapes.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        # Let cancelled siblings unwind before the error leaves this scope
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


# =============================================================================
# PHASES
# =============================================================================

async def gather_metadata(
    github: GitHubRESTClient, identity: RepositoryIdentity, pr_page_limit: int = 10
) -> RepositoryMetadata:
    """Fetch repository details, commit activity, languages and PRs concurrently."""
    full_name = identity.full_name
    logger.info(f"[API] Fetching metadata for {full_name}...")

    repo_details, commit_activity, languages, pull_requests = await join_all(
        github.get_repository(full_name),
        github.get_commit_activity(full_name),
        github.get_languages(full_name),
        github.get_pull_requests(full_name, max_pages=pr_page_limit),
    )

    return RepositoryMetadata(
        default_branch=repo_details.get("default_branch") or DEFAULT_BRANCH,
        commit_consistency_score=MetricsCalculator.calculate_commit_consistency(commit_activity),
        total_commits=MetricsCalculator.calculate_total_commits(commit_activity),
        language_usage=languages,
        total_prs=len(pull_requests),
        pr_ratio=MetricsCalculator.calculate_pr_ratio(pull_requests),
        updated_at=repo_details.get("updated_at"),
    )


async def analyze_structure(
    github: GitHubRESTClient, identity: RepositoryIdentity, branch: str
) -> StructureReport:
    """Read the recursive tree, classify code files and pick the sample."""
    logger.info(f"[API] Fetching file tree for {identity.full_name}@{branch}...")
    tree = [TreeEntry.model_validate(item) for item in await github.get_tree(identity.full_name, branch)]

    code_files = [entry for entry in tree if is_code_file(entry)]

    return StructureReport(
        total_files=len(tree),
        total_code_files=len(code_files),
        has_tests_folder=any(is_test_path(entry.path) for entry in tree),
        # Listing order, not weighted by size or content
        sample=code_files[:MAX_SAMPLE_FILES],
    )


async def fetch_sample_files(
    github: GitHubRESTClient,
    identity: RepositoryIdentity,
    branch: str,
    sample: list[TreeEntry],
    max_concurrency: int = MAX_CONCURRENT_FETCHES,
) -> list[SampleFile]:
    """Fetch the content of every sampled file; any failure fails the batch."""
    logger.info(f"[API] Fetching content for {len(sample)} sample files...")
    semaphore = asyncio.Semaphore(max_concurrency)

    async def fetch(entry: TreeEntry) -> SampleFile:
        async with semaphore:
            payload = await github.get_file_content(identity.full_name, entry.path, branch)
        if not isinstance(payload, dict):
            raise UpstreamAPIError(entry.path, "contents response is not a file object")
        try:
            content = decode_content(payload)
        except (binascii.Error, ValueError) as e:
            raise UpstreamAPIError(entry.path, f"content is not valid base64: {e}") from e
        return SampleFile(path=entry.path, size_bytes=entry.size or 0, content=content)

    return await join_all(*(fetch(entry) for entry in sample))


def estimate_complexity(samples: list[SampleFile]) -> ComplexityReport:
    contents = [sample.content for sample in samples]
    return ComplexityReport(
        total_loc=sum(MetricsCalculator.count_lines(c) for c in contents),
        avg_complexity=MetricsCalculator.calculate_average_complexity(contents),
    )


async def fetch_readme(github: GitHubRESTClient, identity: RepositoryIdentity) -> str:
    """README text, or README_FALLBACK when it cannot be fetched or decoded."""
    try:
        payload = await github.get_readme(identity.full_name)
        if not isinstance(payload, dict):
            raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
        content = decode_content(payload, errors="strict")
    except (UpstreamError, binascii.Error, UnicodeDecodeError, ValueError) as e:
        logger.warning(f"README unavailable for {identity.full_name}: {e}")
        return README_FALLBACK

    if not content:
        return README_FALLBACK
    return content
