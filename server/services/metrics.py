import re
from typing import Iterable, Optional

WEEKS_PER_YEAR = 52

# Control-flow vocabulary used as a proxy for cyclomatic complexity
CONTROL_KEYWORDS = ("if", "for", "while", "switch", "catch", "do", "else if")
_KEYWORD_PATTERNS = tuple(
    re.compile(rf"\b{re.escape(keyword)}\b") for keyword in CONTROL_KEYWORDS
)

LENGTH_PENALTY_LINES = 100


class MetricsCalculator:

    @staticmethod
    def calculate_commit_consistency(commit_activity: Optional[list[dict]]) -> float:
        """Percentage of the 52 trailing weeks that saw at least one commit."""
        if not commit_activity:
            return 0.0

        active_weeks = sum(1 for week in commit_activity if (week.get("total") or 0) > 0)
        score = active_weeks / WEEKS_PER_YEAR * 100
        return min(100.0, score)

    @staticmethod
    def calculate_total_commits(commit_activity: Optional[list[dict]]) -> int:
        if not commit_activity:
            return 0
        return sum(week.get("total") or 0 for week in commit_activity)

    @staticmethod
    def calculate_pr_ratio(pull_requests: Optional[list[dict]]) -> float:
        """Share of pull requests that are closed (merged or not)."""
        if not pull_requests:
            return 0.0
        closed = sum(1 for pr in pull_requests if pr.get("state") == "closed")
        return closed / len(pull_requests)

    @staticmethod
    def count_lines(content: Optional[str]) -> int:
        if not content:
            return 0
        return len(content.split("\n"))

    @staticmethod
    def estimate_complexity(content: Optional[str]) -> int:
        """
        Heuristic complexity of a single file.

        Starts at 1, adds one per whole-word control keyword occurrence and
        floor(lines / 100) for files longer than 100 lines. Empty content is 0.
        """
        if not content:
            return 0

        complexity = 1
        for pattern in _KEYWORD_PATTERNS:
            complexity += len(pattern.findall(content))

        lines = MetricsCalculator.count_lines(content)
        if lines > LENGTH_PENALTY_LINES:
            complexity += lines // LENGTH_PENALTY_LINES

        return complexity

    @staticmethod
    def calculate_average_complexity(contents: Iterable[Optional[str]]) -> float:
        scores = [MetricsCalculator.estimate_complexity(c) for c in contents]
        if not scores:
            return 0.0
        return sum(scores) / len(scores)
