"""Teachers module - read-only access to teacher profiles."""

from app.modules.teachers.models import Teacher, TeacherStatus
from app.modules.teachers.repository import IdentityResolver, TeacherProfile, TeacherRepository

__all__ = ["Teacher", "TeacherStatus", "TeacherProfile", "IdentityResolver", "TeacherRepository"]
