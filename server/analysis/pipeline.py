"""
Repository Analysis Pipeline

Parse the reference, gather metadata / structure / README from GitHub,
estimate complexity over the sample, ask Gemini for the assessment and merge
everything into one AnalysisOutcome.

Every phase except the README aborts the pipeline on failure; no partial
outcome is ever returned.
"""

import asyncio
import logging
from typing import Optional

import httpx

from config import Settings
from errors import AnalysisError, UpstreamError
from services.gemini import AssessmentClient
from services.github import GitHubRESTClient
from .data_extractor import (
    analyze_structure,
    estimate_complexity,
    fetch_readme,
    fetch_sample_files,
    gather_metadata,
)
from .identity import parse_repo_url
from .prompt import build_prompt
from .schemas import (
    AnalysisOutcome,
    AssessmentResult,
    ComplexityReport,
    MetricsBundle,
    RepositoryIdentity,
    RepositoryMetadata,
    StructureReport,
)

logger = logging.getLogger(__name__)


class MetricsBuilder:
    """
    Collects phase reports and yields the MetricsBundle once all are in.

    build() refuses to run while any contributing phase has not reported,
    so the prompt can never see a half-filled bundle.
    """

    PHASES = ("metadata", "structure", "readme", "complexity")

    def __init__(self):
        self._metadata: Optional[RepositoryMetadata] = None
        self._structure: Optional[StructureReport] = None
        self._readme: Optional[str] = None
        self._complexity: Optional[ComplexityReport] = None

    def record_metadata(self, metadata: RepositoryMetadata) -> "MetricsBuilder":
        self._metadata = metadata
        return self

    def record_structure(self, structure: StructureReport) -> "MetricsBuilder":
        self._structure = structure
        return self

    def record_readme(self, readme_content: str) -> "MetricsBuilder":
        self._readme = readme_content
        return self

    def record_complexity(self, complexity: ComplexityReport) -> "MetricsBuilder":
        self._complexity = complexity
        return self

    def missing_phases(self) -> list[str]:
        reported = {
            "metadata": self._metadata,
            "structure": self._structure,
            "readme": self._readme,
            "complexity": self._complexity,
        }
        return [phase for phase in self.PHASES if reported[phase] is None]

    def build(self) -> MetricsBundle:
        missing = self.missing_phases()
        if missing:
            raise RuntimeError(f"Metrics incomplete, missing phases: {', '.join(missing)}")

        return MetricsBundle(
            default_branch=self._metadata.default_branch,
            commit_consistency_score=self._metadata.commit_consistency_score,
            total_commits=self._metadata.total_commits,
            language_usage=self._metadata.language_usage,
            total_prs=self._metadata.total_prs,
            pr_ratio=self._metadata.pr_ratio,
            updated_at=self._metadata.updated_at,
            total_files=self._structure.total_files,
            total_code_files=self._structure.total_code_files,
            has_tests_folder=self._structure.has_tests_folder,
            sampled_files=[entry.path for entry in self._structure.sample],
            readme_content=self._readme,
            total_loc=self._complexity.total_loc,
            avg_complexity=self._complexity.avg_complexity,
        )


def failure_context(identity: RepositoryIdentity, error: AnalysisError) -> dict:
    """Log `extra` for a failed invocation; see logging_config.CONTEXT_FIELDS."""
    context = {"repository": identity.full_name, "error_type": type(error).__name__}
    if isinstance(error, UpstreamError):
        context["upstream_path"] = error.path
        context["status_code"] = error.status_code
    return context


def aggregate_outcome(assessment: AssessmentResult, metrics: MetricsBundle) -> AnalysisOutcome:
    """Merge assessment over metrics; the single success exit of the pipeline."""
    return AnalysisOutcome(**{**metrics.model_dump(), **assessment.model_dump()})


async def collect_metrics(
    github: GitHubRESTClient, identity: RepositoryIdentity, settings: Settings
) -> MetricsBundle:
    builder = MetricsBuilder()

    # README runs alongside everything else and degrades instead of failing
    readme_task = asyncio.create_task(fetch_readme(github, identity))
    try:
        metadata = await gather_metadata(github, identity, settings.pr_page_limit)
        builder.record_metadata(metadata)

        structure = await analyze_structure(github, identity, metadata.default_branch)
        builder.record_structure(structure)

        samples = await fetch_sample_files(
            github, identity, metadata.default_branch, structure.sample
        )
        builder.record_complexity(estimate_complexity(samples))

        builder.record_readme(await readme_task)
    finally:
        if not readme_task.done():
            readme_task.cancel()
            await asyncio.gather(readme_task, return_exceptions=True)

    return builder.build()


async def analyze_repository(
    repo_url: str,
    settings: Settings,
    assessor: AssessmentClient,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AnalysisOutcome:
    """
    Run the full pipeline for one repository reference.

    Raises:
        InvalidReferenceError: no owner/name in repo_url (before any network call)
        UpstreamNotFoundError / UpstreamAPIError: a GitHub call failed
        AssessmentSynthesisError: the Gemini reply was unusable
    """
    identity = parse_repo_url(repo_url)
    logger.info(f"Starting analysis of {identity.full_name}", extra={"repository": identity.full_name})

    try:
        async with GitHubRESTClient(
            settings.github_token,
            base_url=settings.github_api_url,
            timeout=settings.github_timeout,
            transport=transport,
        ) as github:
            metrics = await collect_metrics(github, identity, settings)

        prompt = build_prompt(identity.owner, identity.name, metrics)
        assessment = await assessor.assess(prompt)
    except AnalysisError as e:
        logger.error(f"Analysis failed: {e}", extra=failure_context(identity, e))
        raise

    outcome = aggregate_outcome(assessment, metrics)
    logger.info(
        f"Analysis of {identity.full_name} complete: {outcome.score} ({outcome.rating_tier.value})",
        extra={"repository": identity.full_name},
    )
    return outcome
