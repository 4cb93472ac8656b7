"""
Seed Vacancies

Creates a handful of teachers and open vacancies for local development.
Safe to run more than once: existing rows are left alone.

Usage:
    python scripts/seed_vacancies.py
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy import select

from app.core.database import async_session_maker, close_db
from app.modules.teachers.models import Teacher, TeacherStatus
from app.modules.vacancies.models import Vacancy, VacancyStatus

TEACHERS = [
    ("Aminata Kamara", "aminata.kamara@example.com", ["Mathematics", "Physics"]),
    ("Joseph Sesay", "joseph.sesay@example.com", ["English"]),
    ("Fatmata Bangura", "fatmata.bangura@example.com", ["Chemistry", "Biology"]),
]

VACANCIES = [
    ("Home tutor for JSS3 Mathematics", "Mathematics", True),
    ("WASSCE English revision", "English", False),
    ("Evening Chemistry lessons", "Chemistry", False),
]


async def seed() -> None:
    async with async_session_maker() as db:
        for full_name, email, subjects in TEACHERS:
            existing = await db.execute(select(Teacher).where(Teacher.email == email))
            if existing.scalar_one_or_none():
                print(f"Teacher already exists: {email}")
                continue
            db.add(
                Teacher(
                    full_name=full_name,
                    email=email,
                    subjects=subjects,
                    status=TeacherStatus.APPROVED,
                )
            )
            print(f"Created teacher: {email}")

        for title, subject, featured in VACANCIES:
            existing = await db.execute(select(Vacancy).where(Vacancy.title == title))
            if existing.scalar_one_or_none():
                print(f"Vacancy already exists: {title}")
                continue
            db.add(
                Vacancy(
                    title=title,
                    subject=subject,
                    featured=featured,
                    status=VacancyStatus.OPEN,
                )
            )
            print(f"Created vacancy: {title}")

        await db.commit()

    await close_db()


if __name__ == "__main__":
    asyncio.run(seed())
