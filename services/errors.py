"""
Error types raised by Glacier Watch services
"""

from typing import Optional


class GlacierWatchError(Exception):
    """Base class for all service errors"""


class LakeServiceError(GlacierWatchError):
    """The lake-report service refused a request or returned an unusable payload"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotAuthenticatedError(GlacierWatchError):
    """An operation needs a signed-in official"""


class TriageError(GlacierWatchError):
    """A verify/decline action was not accepted"""

    def __init__(self, report_id: int, message: str):
        super().__init__(f"Report {report_id}: {message}")
        self.report_id = report_id
        self.message = message
