"""
Vacancies Router

Teacher-facing endpoints for browsing and applying to tuition vacancies.
All endpoints require a bearer token identifying a teacher.

Endpoints:
- GET /vacancies/available - Open vacancies the caller can still apply to
- GET /vacancies/featured - Open featured vacancies
- GET /vacancies/my-applications - The caller's applications
- POST /vacancies/{id}/apply - Apply to a vacancy

Security:
- Rate limiting on apply, keyed by teacher id
- The applicant is always the authenticated teacher, never a body field
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.auth import CurrentUser, get_current_teacher
from app.core.config import settings
from app.core.rate_limit import enforce_rate_limit
from app.modules.vacancies.dependencies import get_vacancy_service
from app.modules.vacancies.entities import VacancySnapshot
from app.modules.vacancies.errors import VacancyServiceError
from app.modules.vacancies.schemas import (
    ApplicationResponse,
    ApplyResponse,
    TeacherApplicationListResponse,
    TeacherApplicationResponse,
    VacancyListResponse,
    VacancyResponse,
)
from app.modules.vacancies.service import VacancyLifecycleService

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Helper Functions
# ============================================


def _handle_service_error(e: VacancyServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
        },
    ) from e


def _vacancy_list(vacancies: list[VacancySnapshot]) -> VacancyListResponse:
    items = [VacancyResponse.model_validate(v) for v in vacancies]
    return VacancyListResponse(vacancies=items, total=len(items))


# ============================================
# Endpoints
# ============================================


@router.get(
    "/available",
    response_model=VacancyListResponse,
    summary="List Available Vacancies",
    description="""
List vacancies the authenticated teacher can apply to.

A vacancy is listed only if it is open, has fewer than five applications
and the teacher has not applied to it yet.
""",
)
async def list_available_vacancies(
    teacher: CurrentUser = Depends(get_current_teacher),
    vacancy_service: VacancyLifecycleService = Depends(get_vacancy_service),
) -> VacancyListResponse:
    vacancies = await vacancy_service.list_available(teacher.id)
    return _vacancy_list(vacancies)


@router.get(
    "/featured",
    response_model=VacancyListResponse,
    summary="List Featured Vacancies",
)
async def list_featured_vacancies(
    _teacher: CurrentUser = Depends(get_current_teacher),
    vacancy_service: VacancyLifecycleService = Depends(get_vacancy_service),
) -> VacancyListResponse:
    """Open vacancies marked as featured."""
    return _vacancy_list(await vacancy_service.list_featured())


@router.get(
    "/my-applications",
    response_model=TeacherApplicationListResponse,
    summary="List My Applications",
    description="List the authenticated teacher's applications, newest first.",
)
async def list_my_applications(
    teacher: CurrentUser = Depends(get_current_teacher),
    vacancy_service: VacancyLifecycleService = Depends(get_vacancy_service),
) -> TeacherApplicationListResponse:
    views = await vacancy_service.list_teacher_applications(teacher.id)
    return TeacherApplicationListResponse(
        applications=[
            TeacherApplicationResponse(
                id=view.application.id,
                status=view.application.status,
                applied_at=view.application.applied_at,
                vacancy=VacancyResponse.model_validate(view.vacancy),
            )
            for view in views
        ]
    )


@router.post(
    "/{vacancy_id}/apply",
    response_model=ApplyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Apply to Vacancy",
    description="""
Apply the authenticated teacher to a vacancy.

**Rules:**
- One application per teacher per vacancy
- At most five applications per vacancy; the fifth closes it
- Closed vacancies accept no applications

**Response:**
Returns the new application, every application on the vacancy and the
vacancy status after the write.
""",
    responses={
        201: {"description": "Application submitted", "model": ApplyResponse},
        404: {"description": "Vacancy not found"},
        409: {
            "description": "Duplicate application, vacancy closed or vacancy full",
            "content": {
                "application/json": {
                    "example": {
                        "detail": {
                            "error": "DUPLICATE_APPLICATION",
                            "message": "You have already applied for this vacancy",
                        }
                    }
                }
            },
        },
        429: {"description": "Rate limit exceeded"},
        503: {"description": "Too much concurrent activity on the vacancy, retry later"},
    },
)
async def apply_to_vacancy(
    vacancy_id: UUID,
    teacher: CurrentUser = Depends(get_current_teacher),
    vacancy_service: VacancyLifecycleService = Depends(get_vacancy_service),
) -> ApplyResponse:
    await enforce_rate_limit(
        f"vacancies:apply:{teacher.id}",
        settings.apply_rate_limit,
        settings.apply_rate_window_seconds,
    )

    try:
        result = await vacancy_service.apply(vacancy_id, teacher.id)
    except VacancyServiceError as e:
        _handle_service_error(e)

    return ApplyResponse(
        vacancy_id=result.vacancy_id,
        vacancy_status=result.vacancy_status,
        application=ApplicationResponse.model_validate(result.application),
        applications=[ApplicationResponse.model_validate(a) for a in result.applications],
    )
