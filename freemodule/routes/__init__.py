"""
freemodule/routes/__init__.py
Route registration
"""
from fastapi import APIRouter

from freemodule.routes import (
    auth,
    comments,
    courses,
    experience,
    health,
    notes,
    qa,
    ratings,
    subjects,
    survival,
    users,
)

router = APIRouter()

router.include_router(health.router)
router.include_router(auth.router)
router.include_router(users.router)
router.include_router(notes.router)
router.include_router(comments.router)
router.include_router(ratings.router)
router.include_router(courses.router)
router.include_router(subjects.router)
router.include_router(experience.router)
router.include_router(qa.router)
router.include_router(survival.router)
