"""
CRUD module
"""
from .application import application_crud
from .assignment import assignment_crud
from .submission import submission_crud
from .reference import student_crud, internship_crud, test_crud

__all__ = [
    "application_crud",
    "assignment_crud",
    "submission_crud",
    "student_crud",
    "internship_crud",
    "test_crud",
]
