"""
Future-zero deflation detection.

Some gradebooks record future-dated assignments as 0 before they are due. This
makes a student's score look lower than their actual performance.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence

from grade_engine.grade_calculator import is_graded, round_half_up
from grade_engine.models import AssignmentGroup

logger = logging.getLogger(__name__)

# Points of difference between reported and adjusted score worth warning about.
DEFLATION_THRESHOLD = 5


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, treating a trailing Z or a naive value as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def detect_grade_deflation(
    groups: Sequence[AssignmentGroup],
    now: datetime,
    current_score: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Find graded zeros on assignments due after `now` and the score without them.

    current_score: the score the gradebook reports. If it differs from the
        adjusted score by more than DEFLATION_THRESHOLD points, a warning is added.

    Returns:
        total_earned, total_possible, future_zero_count, future_zero_possible,
        adjusted_score, deflation_warning
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    total_earned = 0.0
    total_possible = 0.0
    future_zero_count = 0
    future_zero_possible = 0.0

    for group in groups:
        for a in group.assignments:
            if not is_graded(a):
                continue

            score = a.submission.score
            total_earned += score
            total_possible += a.points_possible

            if score == 0 and a.due_at and parse_timestamp(a.due_at) > now:
                future_zero_count += 1
                future_zero_possible += a.points_possible

    adjusted_score = None
    deflation_warning = None

    if future_zero_count:
        adjusted_possible = total_possible - future_zero_possible
        if adjusted_possible > 0:
            adjusted_score = round_half_up(total_earned / adjusted_possible * 100, 2)

        if (
            current_score is not None
            and adjusted_score is not None
            and abs(current_score - adjusted_score) > DEFLATION_THRESHOLD
        ):
            deflation_warning = (
                f"{future_zero_count} future-dated assignment(s) graded as 0 may be deflating "
                f"your score. The gradebook shows {current_score:g}% but excluding future "
                f"zeros gives {adjusted_score:g}%."
            )
            logger.info("grade deflation detected: %s%% vs %s%%", current_score, adjusted_score)

    return {
        "total_earned": total_earned,
        "total_possible": total_possible,
        "future_zero_count": future_zero_count,
        "future_zero_possible": future_zero_possible,
        "adjusted_score": adjusted_score,
        "deflation_warning": deflation_warning,
    }
