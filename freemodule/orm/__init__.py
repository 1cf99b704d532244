from .base import Base

from .user import User
from .course import Course
from .subject import Subject
from .note import Note
from .comment import Comment
from .rating import Rating
from .experience_post import ExperiencePost
from .qa import QAPost, QAAnswer
from .survival_guide import SurvivalGuide

__all__ = [
    "Base",
    "User",
    "Course",
    "Subject",
    "Note",
    "Comment",
    "Rating",
    "ExperiencePost",
    "QAPost",
    "QAAnswer",
    "SurvivalGuide",
]
