"""
Assignment groups parser: turns LMS-shaped course JSON into grade engine records.

Canvas keys (group_weight, rules.drop_lowest, ...) and flat keys (weight,
drop_lowest, ...) are both accepted. Assignments that do not count toward the
final grade (unpublished or omitted) are removed here, so the engine never sees
them.
"""

import logging
import math

from grade_engine.errors import CourseDataError
from grade_engine.models import (
    Assignment,
    AssignmentGroup,
    ScoreStatistics,
    Submission,
)

logger = logging.getLogger(__name__)


def _to_float(value, default=None):
    """Coerce a JSON number or numeric string to float; anything else -> default."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def _to_count(value) -> int:
    number = _to_float(value, 0.0)
    return max(0, int(number))


def _require_id(raw: dict, kind: str):
    raw_id = raw.get("id")
    if raw_id is None or isinstance(raw_id, bool):
        raise CourseDataError(f"{kind} is missing an id: {raw.get('name', '?')!r}")
    try:
        return int(raw_id)
    except (TypeError, ValueError):
        raise CourseDataError(f"{kind} id {raw_id!r} is not an integer.")


def parse_submission(raw) -> Submission:
    if not isinstance(raw, dict):
        raise CourseDataError(f"Submission must be an object, got {type(raw).__name__}.")
    return Submission(
        workflow_state=str(raw.get("workflow_state") or "unsubmitted"),
        score=_to_float(raw.get("score")),
        late=bool(raw.get("late", False)),
        missing=bool(raw.get("missing", False)),
    )


def parse_score_statistics(raw):
    if not isinstance(raw, dict):
        return None
    mean, low, high = (_to_float(raw.get(k)) for k in ("mean", "min", "max"))
    if mean is None or low is None or high is None:
        return None
    return ScoreStatistics(
        mean=mean,
        min=low,
        max=high,
        median=_to_float(raw.get("median")),
        upper_q=_to_float(raw.get("upper_q")),
        lower_q=_to_float(raw.get("lower_q")),
    )


def counts_toward_grade(raw: dict) -> bool:
    """Unpublished and omitted assignments never count. A missing published flag means published."""
    return raw.get("published", True) is not False and not raw.get("omit_from_final_grade", False)


def parse_assignment(raw) -> Assignment:
    if not isinstance(raw, dict):
        raise CourseDataError(f"Assignment must be an object, got {type(raw).__name__}.")

    assignment_id = _require_id(raw, "Assignment")
    points_possible = _to_float(raw.get("points_possible"), 0.0)
    if points_possible < 0:
        raise CourseDataError(f"Assignment {assignment_id} has negative points possible.")

    submission = raw.get("submission")
    return Assignment(
        id=assignment_id,
        name=str(raw.get("name") or f"Assignment {assignment_id}"),
        points_possible=points_possible,
        due_at=raw.get("due_at"),
        submission=parse_submission(submission) if submission is not None else None,
        score_statistics=parse_score_statistics(raw.get("score_statistics")),
    )


def parse_assignment_group(raw) -> AssignmentGroup:
    if not isinstance(raw, dict):
        raise CourseDataError(f"Assignment group must be an object, got {type(raw).__name__}.")

    group_id = _require_id(raw, "Assignment group")
    rules = raw.get("rules") or {}
    if not isinstance(rules, dict):
        raise CourseDataError(f"Assignment group {group_id} rules must be an object.")

    raw_assignments = raw.get("assignments") or []
    if not isinstance(raw_assignments, list):
        raise CourseDataError(f"Assignment group {group_id} assignments must be a list.")

    assignments = []
    skipped = 0
    for item in raw_assignments:
        if isinstance(item, dict) and not counts_toward_grade(item):
            skipped += 1
            continue
        assignments.append(parse_assignment(item))

    if skipped:
        logger.debug("group %s: skipped %d unpublished/omitted assignment(s)", group_id, skipped)

    weight = _to_float(raw.get("group_weight", raw.get("weight")), 0.0)
    if weight < 0:
        raise CourseDataError(f"Assignment group {group_id} has negative weight.")

    return AssignmentGroup(
        id=group_id,
        name=str(raw.get("name") or f"Group {group_id}"),
        weight=weight,
        position=int(_to_float(raw.get("position"), 0.0)),
        drop_lowest=_to_count(rules.get("drop_lowest", raw.get("drop_lowest"))),
        drop_highest=_to_count(rules.get("drop_highest", raw.get("drop_highest"))),
        assignments=tuple(assignments),
    )


def parse_assignment_groups(raw_groups) -> list:
    """
    Main entry point for course data parsing.

    raw_groups: list of assignment group dicts with nested assignments and
        submissions

    Returns a list of AssignmentGroup ordered by position.
    Raises CourseDataError.
    """
    if not isinstance(raw_groups, list):
        raise CourseDataError("assignment_groups must be a list.")

    groups = [parse_assignment_group(g) for g in raw_groups]
    return sorted(groups, key=lambda g: g.position)


def parse_hypothetical_scores(raw) -> dict:
    """
    Build a {assignment_id: score} overlay.

    Accepts either [{assignment_id, score}, ...] or {assignment_id: score}.
    """
    if raw is None:
        return {}

    if isinstance(raw, dict):
        pairs = list(raw.items())
    elif isinstance(raw, list):
        pairs = []
        for entry in raw:
            if not isinstance(entry, dict) or "assignment_id" not in entry:
                raise CourseDataError(f"Hypothetical score entry {entry!r} needs an assignment_id.")
            pairs.append((entry["assignment_id"], entry.get("score")))
    else:
        raise CourseDataError("hypothetical_scores must be a list or an object.")

    overlay = {}
    for raw_id, raw_score in pairs:
        score = _to_float(raw_score)
        if score is None:
            raise CourseDataError(f"Hypothetical score for assignment {raw_id} is not a number.")
        try:
            overlay[int(raw_id)] = score
        except (TypeError, ValueError):
            raise CourseDataError(f"Assignment id {raw_id!r} is not an integer.")
    return overlay
