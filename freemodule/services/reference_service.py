"""
freemodule/services/reference_service.py
Courses and subjects

Reference data has no owner: any authenticated caller may maintain it.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from freemodule.orm.course import Course
from freemodule.orm.subject import Subject
from freemodule.services.crud import CrudService

courses = CrudService(
    Course,
    "Course",
    order_by=[Course.course_code.asc(), Course.id.asc()],
    owned=False,
    conflict_message="Course code already exists",
)

subjects = CrudService(
    Subject,
    "Subject",
    order_by=[Subject.subject_name.asc(), Subject.id.asc()],
    owned=False,
    conflict_message="Subject name already exists for this course",
    reference_message="Invalid course_id (course does not exist)",
)


async def list_subjects_for_course(db: AsyncSession, course_id: int, limit: int, offset: int):
    return await subjects.list(db, limit, offset, filters={"course_id": course_id})
