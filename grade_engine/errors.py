class GradeAnalysisError(Exception):
    """Base class for grade engine errors."""


class AssignmentNotFoundError(GradeAnalysisError, LookupError):
    """Raised when a referenced assignment id is not in the course data."""


class InvalidTargetError(GradeAnalysisError, ValueError):
    """Raised when a target grade or target assignment cannot be solved for."""


class CourseDataError(GradeAnalysisError, ValueError):
    """Raised when a course payload cannot be interpreted."""
