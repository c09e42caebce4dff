"""
API v1 route modules
"""
from . import applications, assignments, submissions, question_bank

__all__ = [
    "applications",
    "assignments",
    "submissions",
    "question_bank",
]
