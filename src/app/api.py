from fastapi import APIRouter

from app.modules.vacancies import admin_router as admin_vacancies_router
from app.modules.vacancies import router as vacancies_router

api_router = APIRouter()

api_router.include_router(vacancies_router, prefix="/vacancies", tags=["Vacancies"])

api_router.include_router(
    admin_vacancies_router,
    prefix="/admin/vacancies",
    tags=["Admin - Vacancies"],
)
