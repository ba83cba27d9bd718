"""
Grade Analysis API: Flask application over the grade engine.
"""

import logging
import os

from dotenv import load_dotenv
from flask import Flask, jsonify, request

from course_parser.assignment_groups_parser import (
    parse_assignment_groups,
    parse_hypothetical_scores,
)
from grade_engine.breakdown import build_grade_breakdown
from grade_engine.deflation import parse_timestamp
from grade_engine.errors import (
    AssignmentNotFoundError,
    CourseDataError,
    InvalidTargetError,
)
from grade_engine.target_solver import solve_target_score
from grade_engine.what_if import calculate_what_if

load_dotenv()

HOST = os.getenv("GRADE_API_HOST", "127.0.0.1")
PORT = int(os.getenv("GRADE_API_PORT", "5000"))
DEBUG = os.getenv("GRADE_API_DEBUG", "false").lower() in ("1", "true", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(16 * 1024 * 1024)))  # 16 MB

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = MAX_CONTENT_LENGTH


def _ok(data):
    return jsonify({"status": "ok", "data": data}), 200


def _err(code: str, message: str, status: int, **extra):
    body = {"status": "error", "code": code, "message": message, **extra}
    return jsonify(body), status


def _check_course_fields(body: dict):
    """Error response for absent or mistyped shared course fields, else None."""
    if body.get("assignment_groups") is None or "uses_weights" not in body:
        return _err("MISSING_DATA", "assignment_groups and uses_weights are required.", 400)
    if not isinstance(body["uses_weights"], bool):
        return _err("INVALID_BODY", "uses_weights must be a boolean.", 400)
    return None


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _valid_grade_scale(scale) -> bool:
    """None, or a {letter: min_percentage} object."""
    if scale is None:
        return True
    return isinstance(scale, dict) and all(_is_number(v) for v in scale.values())


# ── Routes ────────────────────────────────────────────────────────────────────


@app.route("/api/grade-breakdown", methods=["POST"])
def grade_breakdown():
    body = request.get_json(silent=True)
    if not isinstance(body, dict) or not body:
        return _err("INVALID_BODY", "JSON body required.", 400)

    error = _check_course_fields(body)
    if error:
        return error

    current_score = body.get("current_score")
    if current_score is not None and not _is_number(current_score):
        return _err("INVALID_BODY", "current_score must be a number.", 400)
    grade_scale = body.get("grade_scale")
    if not _valid_grade_scale(grade_scale):
        return _err("INVALID_BODY", "grade_scale must map letters to numbers.", 400)

    try:
        groups = parse_assignment_groups(body["assignment_groups"])
        now = parse_timestamp(str(body["now"])) if body.get("now") else None

        result = build_grade_breakdown(
            groups,
            body["uses_weights"],
            grade_scale=grade_scale,
            now=now,
            current_score=current_score,
        )
        return _ok(result)
    except CourseDataError as e:
        logger.warning("grade breakdown rejected: %s", e)
        return _err("COURSE_NOT_PARSEABLE", str(e), 400)
    except ValueError as e:
        logger.warning("grade breakdown rejected: %s", e)
        return _err("INVALID_BODY", str(e), 400)
    except Exception as e:
        logger.exception("grade breakdown failed")
        return _err("CALCULATION_ERROR", str(e), 500)


@app.route("/api/what-if", methods=["POST"])
def what_if():
    body = request.get_json(silent=True)
    if not isinstance(body, dict) or not body:
        return _err("INVALID_BODY", "JSON body required.", 400)

    error = _check_course_fields(body)
    if error:
        return error

    try:
        groups = parse_assignment_groups(body["assignment_groups"])
        overlay = parse_hypothetical_scores(body.get("hypothetical_scores", []))
        result = calculate_what_if(groups, body["uses_weights"], overlay)
        return _ok(result)
    except CourseDataError as e:
        logger.warning("what-if rejected: %s", e)
        return _err("COURSE_NOT_PARSEABLE", str(e), 400)
    except Exception as e:
        logger.exception("what-if calculation failed")
        return _err("CALCULATION_ERROR", str(e), 500)


@app.route("/api/target-score", methods=["POST"])
def target_score():
    body = request.get_json(silent=True)
    if not isinstance(body, dict) or not body:
        return _err("INVALID_BODY", "JSON body required.", 400)

    if body.get("target_grade") is None or body.get("assignment_id") is None:
        return _err("MISSING_DATA", "target_grade and assignment_id are required.", 400)

    error = _check_course_fields(body)
    if error:
        return error

    try:
        assignment_id = int(body["assignment_id"])
    except (TypeError, ValueError):
        return _err("INVALID_BODY", "assignment_id must be an integer.", 400)

    try:
        groups = parse_assignment_groups(body["assignment_groups"])
        result = solve_target_score(groups, body["uses_weights"], body["target_grade"], assignment_id)
        return _ok(result)
    except CourseDataError as e:
        logger.warning("target score rejected: %s", e)
        return _err("COURSE_NOT_PARSEABLE", str(e), 400)
    except AssignmentNotFoundError as e:
        logger.warning("target score rejected: %s", e)
        return _err("ASSIGNMENT_NOT_FOUND", str(e), 404)
    except InvalidTargetError as e:
        logger.warning("target score rejected: %s", e)
        return _err("INVALID_TARGET", str(e), 422)
    except Exception as e:
        logger.exception("target score calculation failed")
        return _err("CALCULATION_ERROR", str(e), 500)


if __name__ == "__main__":
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.run(host=HOST, port=PORT, debug=DEBUG)
