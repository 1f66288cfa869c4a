"""
Repo Mirror Schema Definitions

Pydantic models for the analysis pipeline and the API contract.
"""

import math
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

README_FALLBACK = "No README.md found or could not be read."


# =============================================================================
# ENUMS
# =============================================================================

class RatingTier(str, Enum):
    """Skill tier assigned by the assessment"""
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


# =============================================================================
# IDENTITY & SAMPLES
# =============================================================================

class RepositoryIdentity(BaseModel):
    """Owner/name pair parsed from the input URL"""
    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


class SampleFile(BaseModel):
    """A sampled source file and its decoded content"""
    path: str
    size_bytes: int = Field(..., ge=0, lt=500_000)
    content: str = ""


# =============================================================================
# PHASE REPORTS
# =============================================================================

class RepositoryMetadata(BaseModel):
    """Output of the metadata gathering phase"""
    model_config = ConfigDict(frozen=True)

    default_branch: str
    commit_consistency_score: float = Field(..., ge=0, le=100)
    total_commits: int = Field(0, ge=0)
    language_usage: dict[str, int] = Field(default_factory=dict)
    total_prs: int = Field(..., ge=0)
    pr_ratio: float = Field(..., ge=0, le=1)
    updated_at: Optional[str] = None


class TreeEntry(BaseModel):
    """One entry of the recursive git tree listing"""
    path: str
    type: str
    size: Optional[int] = None


class StructureReport(BaseModel):
    """Output of the structural analysis phase"""
    model_config = ConfigDict(frozen=True)

    total_files: int = Field(..., ge=0)
    total_code_files: int = Field(..., ge=0)
    has_tests_folder: bool
    sample: list[TreeEntry] = Field(default_factory=list, max_length=10)


class ComplexityReport(BaseModel):
    """Output of complexity estimation over the sample"""
    model_config = ConfigDict(frozen=True)

    total_loc: int = Field(..., ge=0)
    avg_complexity: float = Field(..., ge=0)


# =============================================================================
# METRICS & ASSESSMENT
# =============================================================================

class MetricsBundle(BaseModel):
    """All heuristic metrics for one repository, fixed once built"""
    model_config = ConfigDict(frozen=True)

    default_branch: str = Field(..., description="Branch the tree was read from")
    commit_consistency_score: float = Field(..., ge=0, le=100, description="% of weeks with commits")
    total_commits: int = Field(0, ge=0, description="Commits over the trailing 52 weeks")
    language_usage: dict[str, int] = Field(default_factory=dict, description="Language -> bytes mapping")
    total_prs: int = Field(..., ge=0)
    pr_ratio: float = Field(..., ge=0, le=1, description="Closed PRs / total PRs")
    total_files: int = Field(..., ge=0)
    total_code_files: int = Field(..., ge=0)
    has_tests_folder: bool
    readme_content: str = Field(README_FALLBACK)
    total_loc: int = Field(..., ge=0, description="Lines across the sampled files")
    avg_complexity: float = Field(..., ge=0)
    sampled_files: list[str] = Field(default_factory=list, max_length=10)
    updated_at: Optional[str] = Field(None, description="Repository last update timestamp")


class AssessmentResult(BaseModel):
    """Structured reply of the generative assessment"""
    model_config = ConfigDict(frozen=True)

    score: int = Field(..., ge=0, le=100)
    rating_tier: RatingTier
    summary: str = Field(..., min_length=1)
    roadmap: list[str] = Field(..., min_length=3, max_length=5)

    @field_validator("score", mode="before")
    @classmethod
    def round_score(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError("score must be a number")
        if isinstance(v, float):
            if not math.isfinite(v):
                raise ValueError("score must be finite")
            return round(v)
        return v

    @field_validator("rating_tier", mode="before")
    @classmethod
    def normalize_tier(cls, v: Any) -> Any:
        if isinstance(v, str):
            for tier in RatingTier:
                if tier.value.lower() == v.strip().lower():
                    return tier
        return v


class AnalysisOutcome(MetricsBundle):
    """Metrics merged with the assessment; assessment fields win on clashes"""
    score: int = Field(..., ge=0, le=100)
    rating_tier: RatingTier
    summary: str
    roadmap: list[str]


# =============================================================================
# REQUEST / RESPONSE MODELS
# =============================================================================

class AnalyzeRequest(BaseModel):
    """Request body for POST /api/analyze"""
    repository_reference: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("repositoryReference", "githubLink", "repository_reference"),
        description="Full GitHub URL to analyze (e.g., https://github.com/user/repo)",
    )


class AnalyzeSuccess(BaseModel):
    success: bool = True
    data: AnalysisOutcome


class AnalyzeFailure(BaseModel):
    success: bool = False
    error: str
