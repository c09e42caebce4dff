"""
API routes
"""
from fastapi import APIRouter

from .v1 import applications, assignments, submissions, question_bank

# Main router
api_router = APIRouter()

api_router.include_router(
    applications.internship_router,
    prefix="/internships",
    tags=["Applications"]
)
api_router.include_router(
    applications.router,
    prefix="/applications",
    tags=["Applications"]
)
api_router.include_router(
    assignments.router,
    prefix="/assignments",
    tags=["Test assignments"]
)
api_router.include_router(
    submissions.router,
    prefix="/submissions",
    tags=["Quiz submissions"]
)
api_router.include_router(
    question_bank.router,
    prefix="/tests",
    tags=["Test bank"]
)
