"""
Shared test fixtures for the grade engine.
Courses are built in memory; nothing touches the network or disk.
"""
import copy
import itertools

import pytest

from grade_engine.models import Assignment, AssignmentGroup, Submission


@pytest.fixture
def make_assignment():
    """Factory: a score means a graded submission; state overrides the workflow state."""
    def _make(id, points=100, score=None, state=None, name=None, due_at=None, late=False, missing=False):
        submission = None
        if score is not None or state is not None:
            submission = Submission(
                workflow_state=state or "graded",
                score=score,
                late=late,
                missing=missing,
            )
        return Assignment(
            id=id,
            name=name or f"Assignment {id}",
            points_possible=points,
            due_at=due_at,
            submission=submission,
        )
    return _make


@pytest.fixture
def make_group():
    counter = itertools.count(1)

    def _make(assignments, name=None, weight=0, drop_lowest=0, drop_highest=0, position=0):
        group_id = next(counter)
        return AssignmentGroup(
            id=group_id,
            name=name or f"Group {group_id}",
            weight=weight,
            position=position,
            drop_lowest=drop_lowest,
            drop_highest=drop_highest,
            assignments=tuple(assignments),
        )
    return _make


@pytest.fixture
def two_assignment_course(make_assignment, make_group):
    """A: 80/100 graded, B: 100 points ungraded, one unweighted group."""
    return [
        make_group(
            [
                make_assignment(1, points=100, score=80, name="A"),
                make_assignment(2, points=100, name="B"),
            ],
            name="Assignments",
        )
    ]


@pytest.fixture
def weighted_course(make_assignment, make_group):
    """
    Participation (w0, pos 0): 10/10
    Homework (w40, pos 1): 90/100 graded, one 100-point ungraded
    Exams (w60, pos 2): one 100-point final, ungraded
    Groups are listed out of position order on purpose.
    """
    homework = make_group(
        [
            make_assignment(11, points=100, score=90, name="HW 1"),
            make_assignment(12, points=100, name="HW 2"),
        ],
        name="Homework", weight=40, position=1,
    )
    exams = make_group(
        [make_assignment(21, points=100, name="Final")],
        name="Exams", weight=60, position=2,
    )
    participation = make_group(
        [make_assignment(31, points=10, score=10, name="Attendance")],
        name="Participation", weight=0, position=0,
    )
    return [exams, homework, participation]


RAW_GROUPS = [
    {
        "id": 7,
        "name": "Assignments",
        "position": 1,
        "group_weight": 0,
        "rules": {},
        "assignments": [
            {
                "id": 1,
                "name": "A",
                "points_possible": 100,
                "published": True,
                "omit_from_final_grade": False,
                "due_at": "2024-02-01T23:59:00Z",
                "submission": {"workflow_state": "graded", "score": 80, "late": False, "missing": False},
            },
            {
                "id": 2,
                "name": "B",
                "points_possible": 100,
                "published": True,
                "due_at": None,
                "submission": {"workflow_state": "unsubmitted", "score": None},
            },
            {"id": 3, "name": "Draft", "points_possible": 50, "published": False},
            {"id": 4, "name": "Practice", "points_possible": 10, "omit_from_final_grade": True},
            {"id": 5, "name": "Bonus survey", "points_possible": 0, "published": True},
        ],
    }
]


@pytest.fixture
def raw_groups():
    return copy.deepcopy(RAW_GROUPS)


@pytest.fixture
def client():
    from app import app
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c
