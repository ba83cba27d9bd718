"""
Test: Flask JSON routes.
"""

import pytest


def _body(raw_groups, **extra):
    return {"assignment_groups": raw_groups, "uses_weights": False, **extra}


class TestGradeBreakdownRoute:
    def test_ok(self, client, raw_groups):
        resp = client.post("/api/grade-breakdown", json=_body(raw_groups))
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["current_grade"] == 80.0
        assert data["analysis"]["ungraded_points_remaining"] == 100
        assert data["analysis"]["grade_if_perfect"] == 90.0
        assert [a["id"] for a in data["groups"][0]["assignments"]] == [1, 2, 5]

    def test_with_reference_time(self, client, raw_groups):
        resp = client.post(
            "/api/grade-breakdown",
            json=_body(raw_groups, now="2024-03-01T00:00:00Z", current_score=80.0),
        )
        assert resp.status_code == 200
        deflation = resp.get_json()["data"]["analysis"]["deflation"]
        assert deflation["future_zero_count"] == 0

    def test_missing_body(self, client):
        resp = client.post("/api/grade-breakdown", data="not json", content_type="text/plain")
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "INVALID_BODY"

    def test_missing_fields(self, client, raw_groups):
        resp = client.post("/api/grade-breakdown", json={"assignment_groups": raw_groups})
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "MISSING_DATA"

    def test_unparseable_course(self, client):
        resp = client.post("/api/grade-breakdown", json=_body([{"name": "no id"}]))
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "COURSE_NOT_PARSEABLE"

    def test_bad_timestamp(self, client, raw_groups):
        resp = client.post("/api/grade-breakdown", json=_body(raw_groups, now="yesterday"))
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "INVALID_BODY"

    @pytest.mark.parametrize("uses_weights", ["false", 0, None])
    def test_uses_weights_must_be_boolean(self, client, raw_groups, uses_weights):
        body = _body(raw_groups)
        body["uses_weights"] = uses_weights
        resp = client.post("/api/grade-breakdown", json=body)
        assert resp.status_code == 400
        assert resp.get_json() == {
            "status": "error",
            "code": "INVALID_BODY",
            "message": "uses_weights must be a boolean.",
        }

    @pytest.mark.parametrize("grade_scale", [{"A": "90"}, {"A": True}, ["A", 90], "A"])
    def test_bad_grade_scale(self, client, raw_groups, grade_scale):
        resp = client.post("/api/grade-breakdown", json=_body(raw_groups, grade_scale=grade_scale))
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "INVALID_BODY"

    def test_custom_grade_scale(self, client, raw_groups):
        resp = client.post(
            "/api/grade-breakdown",
            json=_body(raw_groups, grade_scale={"Pass": 70, "Fail": 0}),
        )
        assert resp.status_code == 200
        assert resp.get_json()["data"]["letter_grade"] == "Pass"

    def test_non_object_rules(self, client, raw_groups):
        raw_groups[0]["rules"] = [1]
        resp = client.post("/api/grade-breakdown", json=_body(raw_groups))
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "COURSE_NOT_PARSEABLE"

    def test_negative_group_weight(self, client, raw_groups):
        raw_groups[0]["group_weight"] = -20
        resp = client.post("/api/grade-breakdown", json=_body(raw_groups, uses_weights=True))
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "COURSE_NOT_PARSEABLE"


class TestWhatIfRoute:
    def test_ok(self, client, raw_groups):
        resp = client.post(
            "/api/what-if",
            json=_body(raw_groups, hypothetical_scores=[{"assignment_id": 2, "score": 160}]),
        )
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["current_grade"] == 80.0
        assert data["projected_grade"] == 120.0
        assert len(data["warnings"]) == 1
        assert data["scenarios_applied"][0]["assignment"] == "B"

    def test_unpublished_assignment_is_not_applied(self, client, raw_groups):
        resp = client.post(
            "/api/what-if",
            json=_body(raw_groups, hypothetical_scores=[{"assignment_id": 3, "score": 50}]),
        )
        data = resp.get_json()["data"]
        assert data["scenarios_applied"] == []
        assert data["projected_grade"] == 80.0

    def test_bad_overlay(self, client, raw_groups):
        resp = client.post(
            "/api/what-if",
            json=_body(raw_groups, hypothetical_scores=[{"score": 10}]),
        )
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "COURSE_NOT_PARSEABLE"

    def test_string_uses_weights(self, client, raw_groups):
        body = _body(raw_groups, hypothetical_scores=[])
        body["uses_weights"] = "false"
        resp = client.post("/api/what-if", json=body)
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "INVALID_BODY"


class TestTargetScoreRoute:
    def test_ok(self, client, raw_groups):
        resp = client.post("/api/target-score", json=_body(raw_groups, target_grade=90, assignment_id=2))
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["needed_score"] == 100.0
        assert data["achievable"] is True

    def test_unknown_assignment(self, client, raw_groups):
        resp = client.post("/api/target-score", json=_body(raw_groups, target_grade=90, assignment_id=3))
        assert resp.status_code == 404
        assert resp.get_json()["code"] == "ASSIGNMENT_NOT_FOUND"

    def test_zero_point_assignment(self, client, raw_groups):
        resp = client.post("/api/target-score", json=_body(raw_groups, target_grade=90, assignment_id=5))
        assert resp.status_code == 422
        assert resp.get_json()["code"] == "INVALID_TARGET"

    def test_target_out_of_range(self, client, raw_groups):
        resp = client.post("/api/target-score", json=_body(raw_groups, target_grade=120, assignment_id=2))
        assert resp.status_code == 422

    def test_missing_target(self, client, raw_groups):
        resp = client.post("/api/target-score", json=_body(raw_groups, assignment_id=2))
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "MISSING_DATA"

    def test_non_integer_assignment_id(self, client, raw_groups):
        resp = client.post("/api/target-score", json=_body(raw_groups, target_grade=90, assignment_id="abc"))
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "INVALID_BODY"

    def test_string_uses_weights(self, client, raw_groups):
        body = _body(raw_groups, target_grade=90, assignment_id=2)
        body["uses_weights"] = "true"
        resp = client.post("/api/target-score", json=body)
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "INVALID_BODY"
