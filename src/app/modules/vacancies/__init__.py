"""
Vacancies Module

Handles teacher applications to tuition vacancies:
1. Apply with duplicate detection and a five-application capacity
2. Vacancy closes automatically on its fifth application
3. Reviewer accepts or rejects pending applications
4. Accepting one application rejects its pending siblings and closes the vacancy

API Endpoints:
- GET /vacancies/available - Vacancies the teacher can still apply to
- GET /vacancies/featured - Open featured vacancies
- GET /vacancies/my-applications - The teacher's own applications
- POST /vacancies/{id}/apply - Apply to a vacancy
- GET /admin/vacancies/{id}/applicants - Applicants with profiles
- PUT /admin/vacancies/{id}/applications/{application_id}/status - Accept or reject
- PATCH /admin/vacancies/{id}/status - Open or close by hand

Consistency:
- Every write is a conditional write against a versioned snapshot
- Lost races are retried a bounded number of times (tenacity)
- Updates are broadcast on a Redis channel after each committed write
"""

from .admin_router import router as admin_router
from .router import router

__all__ = ["router", "admin_router"]
