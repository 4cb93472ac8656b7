"""
Vacancies Admin Router

Reviewer endpoints for deciding on applications and managing vacancy status.
All endpoints require a bearer token with the admin or reviewer role.

Endpoints:
- GET /admin/vacancies/{id}/applicants - Applications with applicant profiles
- PUT /admin/vacancies/{id}/applications/{application_id}/status - Accept or reject
- PATCH /admin/vacancies/{id}/status - Open or close a vacancy by hand

Security:
- Every decision is logged with the reviewer id
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from app.core.auth import CurrentUser, get_current_reviewer
from app.modules.vacancies.dependencies import get_vacancy_service
from app.modules.vacancies.errors import VacancyServiceError
from app.modules.vacancies.models import ApplicationStatus
from app.modules.vacancies.schemas import (
    ApplicantListResponse,
    ApplicantResponse,
    ApplicationResponse,
    ApplicationStatusUpdateRequest,
    ApplicationStatusUpdateResponse,
    VacancyResponse,
    VacancyStatusUpdateRequest,
)
from app.modules.vacancies.service import ApplicantView, VacancyLifecycleService

logger = logging.getLogger(__name__)

router = APIRouter()


def _handle_service_error(e: VacancyServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise HTTPException(
        status_code=e.status_code,
        detail={"error": e.error_code, "message": e.message},
    ) from e


def _applicant_to_response(view: ApplicantView) -> ApplicantResponse:
    application = view.application
    profile = view.teacher
    if profile is None:
        return ApplicantResponse(
            application_id=application.id,
            teacher_id=application.teacher_id,
            status=application.status,
            applied_at=application.applied_at,
            decided_at=application.decided_at,
        )
    return ApplicantResponse(
        application_id=application.id,
        teacher_id=application.teacher_id,
        status=application.status,
        applied_at=application.applied_at,
        decided_at=application.decided_at,
        full_name=profile.full_name,
        email=profile.email,
        phone=profile.phone,
        subjects=list(profile.subjects),
        fees=profile.fees,
        cv_url=profile.cv_url,
    )


@router.get(
    "/{vacancy_id}/applicants",
    response_model=ApplicantListResponse,
    summary="List Vacancy Applicants",
    description="""
List every application on a vacancy, oldest first, with the applicant's
profile. Applicants without a profile are listed with empty profile fields.
""",
)
async def list_applicants(
    vacancy_id: UUID,
    reviewer: CurrentUser = Depends(get_current_reviewer),
    vacancy_service: VacancyLifecycleService = Depends(get_vacancy_service),
) -> ApplicantListResponse:
    try:
        listing = await vacancy_service.list_applicants(vacancy_id)
    except VacancyServiceError as e:
        _handle_service_error(e)

    logger.info(
        f"Reviewer {reviewer.id} listed {len(listing.applicants)} applicants "
        f"of vacancy {vacancy_id}"
    )

    return ApplicantListResponse(
        vacancy_id=vacancy_id,
        vacancy_status=listing.vacancy.status,
        applicants=[_applicant_to_response(view) for view in listing.applicants],
    )


@router.put(
    "/{vacancy_id}/applications/{application_id}/status",
    response_model=ApplicationStatusUpdateResponse,
    summary="Accept or Reject Application",
    description="""
Set a pending application to accepted or rejected.

**Accepting** also rejects every other pending application on the vacancy
and closes it, in one step. **Rejecting** changes only that application.

Decided applications are final: any further change returns 409.
""",
    responses={
        404: {"description": "Vacancy or application not found"},
        409: {"description": "Application already decided or invalid target status"},
        503: {"description": "Too much concurrent activity on the vacancy, retry later"},
    },
)
async def set_application_status(
    vacancy_id: UUID,
    application_id: UUID,
    request: ApplicationStatusUpdateRequest,
    reviewer: CurrentUser = Depends(get_current_reviewer),
    vacancy_service: VacancyLifecycleService = Depends(get_vacancy_service),
) -> ApplicationStatusUpdateResponse:
    logger.info(
        f"Reviewer {reviewer.id} setting application {application_id} "
        f"to {request.status.value}"
    )

    try:
        result = await vacancy_service.set_application_status(
            vacancy_id, application_id, request.status
        )
    except VacancyServiceError as e:
        _handle_service_error(e)

    if request.status == ApplicationStatus.ACCEPTED:
        message = "Application accepted. Other pending applications were rejected."
    else:
        message = "Application rejected."

    return ApplicationStatusUpdateResponse(
        message=message,
        vacancy_id=result.vacancy_id,
        vacancy_status=result.vacancy_status,
        application=ApplicationResponse.model_validate(result.application),
        applications=[ApplicationResponse.model_validate(a) for a in result.applications],
        rejected_application_ids=list(result.rejected_application_ids),
    )


@router.patch(
    "/{vacancy_id}/status",
    response_model=VacancyResponse,
    summary="Open or Close Vacancy",
    description="""
Open or close a vacancy by hand.

A vacancy with an accepted application cannot be reopened. Reopening a full
vacancy is allowed, but it still refuses new applications.
""",
)
async def update_vacancy_status(
    vacancy_id: UUID,
    request: VacancyStatusUpdateRequest,
    reviewer: CurrentUser = Depends(get_current_reviewer),
    vacancy_service: VacancyLifecycleService = Depends(get_vacancy_service),
) -> VacancyResponse:
    try:
        vacancy = await vacancy_service.override_vacancy_status(vacancy_id, request.status)
    except VacancyServiceError as e:
        _handle_service_error(e)

    logger.info(f"Reviewer {reviewer.id} set vacancy {vacancy_id} to {request.status.value}")
    return VacancyResponse.model_validate(vacancy)
