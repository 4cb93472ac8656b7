"""
API tests for the vacancy routers.

The lifecycle service runs against the in-memory store; authentication
dependencies are overridden except where the auth behavior itself is tested.
"""

import asyncio
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.core.auth import CurrentUser, get_current_reviewer, get_current_teacher
from app.core.rate_limit import reset_memory_store
from app.main import app
from app.modules.vacancies.admin_router import list_applicants as list_applicants_endpoint
from app.modules.vacancies.dependencies import get_vacancy_service
from app.modules.vacancies.models import ApplicationStatus, VacancyStatus

P = ApplicationStatus.PENDING
A = ApplicationStatus.ACCEPTED

TEACHER_ID = uuid4()
REVIEWER_ID = uuid4()


@pytest.fixture
def client(service):
    reset_memory_store()
    app.dependency_overrides[get_vacancy_service] = lambda: service
    app.dependency_overrides[get_current_teacher] = lambda: CurrentUser(
        id=TEACHER_ID, role="teacher"
    )
    app.dependency_overrides[get_current_reviewer] = lambda: CurrentUser(
        id=REVIEWER_ID, role="admin"
    )
    yield TestClient(app)
    app.dependency_overrides.clear()
    reset_memory_store()


class TestTeacherEndpoints:
    def test_apply(self, client, seed_vacancy):
        """Apply should return the new pending application and the vacancy rows."""
        vacancy = seed_vacancy([P, P])

        response = client.post(f"/api/v1/vacancies/{vacancy.id}/apply")

        assert response.status_code == 201
        body = response.json()
        assert body["vacancy_status"] == "open"
        assert body["application"]["teacher_id"] == str(TEACHER_ID)
        assert body["application"]["status"] == "pending"
        assert len(body["applications"]) == 3

    def test_fifth_apply_closes(self, client, seed_vacancy):
        """Fifth apply should report the vacancy as closed."""
        vacancy = seed_vacancy([P] * 4)

        response = client.post(f"/api/v1/vacancies/{vacancy.id}/apply")

        assert response.status_code == 201
        assert response.json()["vacancy_status"] == "closed"

    def test_duplicate_apply(self, client, seed_vacancy):
        """Duplicate apply should map to 409 DUPLICATE_APPLICATION."""
        vacancy = seed_vacancy([P], teacher_ids=[TEACHER_ID])

        response = client.post(f"/api/v1/vacancies/{vacancy.id}/apply")

        assert response.status_code == 409
        assert response.json()["detail"] == {
            "error": "DUPLICATE_APPLICATION",
            "message": "You have already applied for this vacancy",
        }

    def test_apply_to_full_vacancy(self, client, seed_vacancy):
        """Full vacancy should map to 409 CAPACITY_EXCEEDED."""
        vacancy = seed_vacancy([P] * 5, status=VacancyStatus.CLOSED)

        response = client.post(f"/api/v1/vacancies/{vacancy.id}/apply")

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "CAPACITY_EXCEEDED"

    def test_apply_to_closed_vacancy(self, client, seed_vacancy):
        """Closed vacancy with space should map to 409 VACANCY_CLOSED."""
        vacancy = seed_vacancy([P], status=VacancyStatus.CLOSED)

        response = client.post(f"/api/v1/vacancies/{vacancy.id}/apply")

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "VACANCY_CLOSED"

    def test_apply_to_unknown_vacancy(self, client):
        """Unknown vacancy should map to 404."""
        response = client.post(f"/api/v1/vacancies/{uuid4()}/apply")

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "VACANCY_NOT_FOUND"

    def test_apply_is_rate_limited(self, client, seed_vacancy, monkeypatch):
        """Applies past the rate limit should get 429."""
        from app.core.config import settings

        monkeypatch.setattr(settings, "apply_rate_limit", 2)
        vacancies = [seed_vacancy() for _ in range(3)]

        codes = [client.post(f"/api/v1/vacancies/{v.id}/apply").status_code for v in vacancies]

        assert codes == [201, 201, 429]

    def test_list_available(self, client, seed_vacancy):
        """Available listing should hide closed and already applied vacancies."""
        available = seed_vacancy([P])
        seed_vacancy([P], teacher_ids=[TEACHER_ID])
        seed_vacancy([P], status=VacancyStatus.CLOSED)

        response = client.get("/api/v1/vacancies/available")

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["vacancies"][0]["id"] == str(available.id)
        assert body["vacancies"][0]["application_count"] == 1

    def test_my_applications(self, client, seed_vacancy):
        """Teacher should see only their own applications."""
        vacancy = seed_vacancy([P], teacher_ids=[TEACHER_ID])
        seed_vacancy([P])

        response = client.get("/api/v1/vacancies/my-applications")

        assert response.status_code == 200
        applications = response.json()["applications"]
        assert len(applications) == 1
        assert applications[0]["vacancy"]["id"] == str(vacancy.id)

    def test_featured(self, client, seed_vacancy):
        """Featured listing should return only featured vacancies."""
        featured = seed_vacancy(featured=True)
        seed_vacancy()

        response = client.get("/api/v1/vacancies/featured")

        assert [v["id"] for v in response.json()["vacancies"]] == [str(featured.id)]


class TestReviewerEndpoints:
    def test_accept_cascades(self, client, seed_vacancy):
        """Accepting should reject siblings and close the vacancy."""
        vacancy = seed_vacancy([P, P, P])
        target = vacancy.applications[0]

        response = client.put(
            f"/api/v1/admin/vacancies/{vacancy.id}/applications/{target.id}/status",
            json={"status": "accepted"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["vacancy_status"] == "closed"
        assert body["application"]["status"] == "accepted"
        assert [a["status"] for a in body["applications"]] == ["accepted", "rejected", "rejected"]
        assert len(body["rejected_application_ids"]) == 2

    def test_reject(self, client, seed_vacancy):
        """Rejecting should leave the vacancy open."""
        vacancy = seed_vacancy([P, P])
        target = vacancy.applications[1]

        response = client.put(
            f"/api/v1/admin/vacancies/{vacancy.id}/applications/{target.id}/status",
            json={"status": "rejected"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["vacancy_status"] == "open"
        assert [a["status"] for a in body["applications"]] == ["pending", "rejected"]

    def test_decided_application(self, client, seed_vacancy):
        """Changing a decided application should map to 409 INVALID_TRANSITION."""
        vacancy = seed_vacancy([A, P], status=VacancyStatus.CLOSED)

        response = client.put(
            f"/api/v1/admin/vacancies/{vacancy.id}/applications/{vacancy.applications[0].id}/status",
            json={"status": "rejected"},
        )

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "INVALID_TRANSITION"

    def test_unknown_status_value(self, client, seed_vacancy):
        """Unknown status values should fail validation."""
        vacancy = seed_vacancy([P])

        response = client.put(
            f"/api/v1/admin/vacancies/{vacancy.id}/applications/{vacancy.applications[0].id}/status",
            json={"status": "withdrawn"},
        )

        assert response.status_code == 422

    def test_unknown_application(self, client, seed_vacancy):
        """Unknown application should map to 404."""
        vacancy = seed_vacancy([P])

        response = client.put(
            f"/api/v1/admin/vacancies/{vacancy.id}/applications/{uuid4()}/status",
            json={"status": "accepted"},
        )

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "APPLICATION_NOT_FOUND"

    def test_list_applicants(self, client, seed_vacancy, identity):
        """Applicants should carry profile fields when the teacher is known."""
        known = uuid4()
        identity.add(known, full_name="Joseph Sesay")
        vacancy = seed_vacancy([P, P], teacher_ids=[known, uuid4()])

        response = client.get(f"/api/v1/admin/vacancies/{vacancy.id}/applicants")

        assert response.status_code == 200
        applicants = response.json()["applicants"]
        assert applicants[0]["full_name"] == "Joseph Sesay"
        assert applicants[0]["subjects"] == ["Mathematics"]
        assert applicants[1]["full_name"] is None

    def test_close_and_reopen(self, client, seed_vacancy):
        """Reviewer should be able to close and reopen a vacancy."""
        vacancy = seed_vacancy([P])

        closed = client.patch(
            f"/api/v1/admin/vacancies/{vacancy.id}/status", json={"status": "closed"}
        )
        reopened = client.patch(
            f"/api/v1/admin/vacancies/{vacancy.id}/status", json={"status": "open"}
        )

        assert closed.json()["status"] == "closed"
        assert reopened.json()["status"] == "open"

    def test_reopen_with_accepted_application(self, client, seed_vacancy):
        """Reopening with an accepted application should map to 409."""
        vacancy = seed_vacancy([A], status=VacancyStatus.CLOSED)

        response = client.patch(
            f"/api/v1/admin/vacancies/{vacancy.id}/status", json={"status": "open"}
        )

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "VACANCY_STATUS_CONFLICT"


class TestAuthGating:
    @pytest.fixture
    def auth_client(self, service):
        reset_memory_store()
        app.dependency_overrides[get_vacancy_service] = lambda: service
        yield TestClient(app)
        app.dependency_overrides.clear()

    def test_missing_token(self, auth_client):
        """Requests without a bearer token should be refused."""
        response = auth_client.get("/api/v1/vacancies/available")
        assert response.status_code in (401, 403)

    def test_development_uuid_token_is_a_teacher(self, auth_client):
        """Development UUID tokens should authenticate as a teacher."""
        response = auth_client.get(
            "/api/v1/vacancies/available", headers={"Authorization": f"Bearer {uuid4()}"}
        )
        assert response.status_code == 200

    def test_teacher_cannot_review(self, auth_client, seed_vacancy):
        """Teachers should get 403 on reviewer endpoints."""
        vacancy = seed_vacancy([P])

        response = auth_client.get(
            f"/api/v1/admin/vacancies/{vacancy.id}/applicants",
            headers={"Authorization": f"Bearer {uuid4()}"},
        )

        assert response.status_code == 403
        assert response.json()["detail"]["error"] == "REVIEWER_ACCESS_REQUIRED"


class TestApplicantListingConsistency:
    """Applicant listing racing a reviewer decision."""

    @pytest.mark.asyncio
    async def test_listing_during_acceptance_is_consistent(self, service, seed_vacancy):
        """Listed vacancy status should agree with the listed application statuses."""
        vacancy = seed_vacancy([P, P, P])
        first = vacancy.applications[0]
        reviewer = CurrentUser(id=REVIEWER_ID, role="admin")

        listing, decision = await asyncio.gather(
            list_applicants_endpoint(vacancy.id, reviewer, service),
            service.set_application_status(vacancy.id, first.id, A),
        )

        statuses = [a.status for a in listing.applicants]
        assert decision.vacancy_status == VacancyStatus.CLOSED
        if listing.vacancy_status == VacancyStatus.OPEN:
            assert statuses == [P, P, P]
        else:
            assert statuses == [A, ApplicationStatus.REJECTED, ApplicationStatus.REJECTED]

    @pytest.mark.asyncio
    async def test_listing_reads_vacancy_once(self, service, seed_vacancy, store, monkeypatch):
        """Handler should build status and rows from a single store read."""
        vacancy = seed_vacancy([P, P])
        reads = []
        original_get = store.get

        async def counting_get(vacancy_id):
            reads.append(vacancy_id)
            return await original_get(vacancy_id)

        monkeypatch.setattr(store, "get", counting_get)

        response = await list_applicants_endpoint(
            vacancy.id, CurrentUser(id=REVIEWER_ID, role="admin"), service
        )

        assert reads == [vacancy.id]
        assert response.vacancy_status == VacancyStatus.OPEN
        assert len(response.applicants) == 2


class TestHealth:
    def test_health(self):
        """Health endpoint should report healthy."""
        assert TestClient(app).get("/health").json() == {"status": "healthy"}
