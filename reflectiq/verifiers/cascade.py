"""Cascading filter for validation issues."""

from typing import Dict, List

from .models import IssueType, ValidationIssue


# Cascade level constants
FATAL = 0  # No exit or a loop - nothing downstream is meaningful
CRITICAL = 1  # Physics replay mismatches
HIGH = 2  # Competing solutions
LOW = 3  # Informational

ISSUE_LEVELS: Dict[IssueType, int] = {
    "no_solution": FATAL,
    "infinite_loop": FATAL,
    "physics_violation": CRITICAL,
    "multiple_solutions": HIGH,
}


def cascade_level(issue: ValidationIssue) -> int:
    if issue.severity == "info":
        return LOW
    return ISSUE_LEVELS.get(issue.type, LOW)


def filter_cascading_issues(
    issues: List[ValidationIssue],
    max_issues: int = 5
) -> List[ValidationIssue]:
    """
    Filter out issues that are consequences of a more fundamental one.

    Filtering rules:
    - Level 0 (FATAL) present → Show ONLY Level 0 issues
    - Level 1 (CRITICAL) present → Show Level 1 + Level 2 issues
    - Otherwise → Show all issues

    Args:
        issues: Validation issues to filter
        max_issues: Maximum number of issues to return (default 5)

    Returns:
        Filtered list of issues, limited to max_issues
    """
    if not issues:
        return issues

    by_level: Dict[int, List[ValidationIssue]] = {}
    for issue in issues:
        by_level.setdefault(cascade_level(issue), []).append(issue)

    if FATAL in by_level:
        result = by_level[FATAL]
    elif CRITICAL in by_level:
        result = by_level[CRITICAL] + by_level.get(HIGH, [])
    else:
        result = list(issues)

    if len(result) > max_issues:
        kept = result[:max_issues - 1]
        num_hidden = len(result) - len(kept)
        kept.append(ValidationIssue(
            type=result[0].type,
            message=f"... and {num_hidden} more issue{'s' if num_hidden > 1 else ''}",
            severity=result[0].severity,
        ))
        return kept

    return result


def summarize_issues(issues: List[ValidationIssue], max_issues: int = 3) -> str:
    """One-line summary of the most relevant issues, for logs and attempt records."""
    filtered = filter_cascading_issues(issues, max_issues=max_issues)
    return "; ".join(f"{issue.type}: {issue.message}" for issue in filtered)
