"""
Prompt construction for the repository assessment.

Pure functions: same metrics in, same prompt out.
"""

from .schemas import MetricsBundle

README_EXCERPT_CHARS = 1000

COMPLEXITY_SKIPPED = (
    "Complexity analysis skipped/failed (no code files found or complexity "
    "metric could not be calculated)."
)


def format_languages(language_usage: dict[str, int]) -> str:
    return ", ".join(f"{lang}: {size} bytes" for lang, size in language_usage.items())


def format_complexity(metrics: MetricsBundle) -> str:
    if metrics.total_code_files == 0:
        return COMPLEXITY_SKIPPED
    return (
        f"Average Simulated Code Complexity: {metrics.avg_complexity:.2f} "
        f"(Based on control flow and function length in {metrics.total_code_files} files)"
    )


def format_tests_verdict(has_tests_folder: bool) -> str:
    if has_tests_folder:
        return "YES (Strong indication of testing)"
    return "NO (Weakness in maintainability)"


def readme_excerpt(readme_content: str) -> str:
    return readme_content[:README_EXCERPT_CHARS]


def build_prompt(owner: str, repo: str, metrics: MetricsBundle) -> str:
    """Render the assessment request for owner/repo from a complete MetricsBundle."""
    return f"""You are an AI Code Mentor tasked with evaluating a student's GitHub repository.
Analyze the provided metrics and the README content for the project: {owner}/{repo}.

**Instructions:**
1. Generate a Score (0-100) and a Rating Tier (Beginner/Intermediate/Advanced).
2. Write a professional Summary highlighting 1-2 strengths and 1-2 weaknesses.
3. Create a Personalized Roadmap (3-5 actionable steps).
4. Your final output MUST be a single JSON object matching the required schema.

**Repository Metrics:**
- Total Files (Including docs/config): {metrics.total_files}
- Total Code Files Analyzed: {metrics.total_code_files}
- Estimated LOC (Sampled): {metrics.total_loc}
- Primary Languages: {format_languages(metrics.language_usage)}
- Commit Consistency (Annual): {metrics.commit_consistency_score:.1f}% (Percentage of weeks with commits)
- {format_complexity(metrics)}
- Has Tests Folder/Files: {format_tests_verdict(metrics.has_tests_folder)}
- Total Pull Requests: {metrics.total_prs}

**README Content (for Documentation Quality):**
---
{readme_excerpt(metrics.readme_content)}
---

Evaluate the project structure, documentation clarity, maintainability (via complexity), and development consistency.
"""
