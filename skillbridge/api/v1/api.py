from fastapi import APIRouter

from skillbridge.api.v1.endpoints import admin, student, tutor

api_router = APIRouter()

# Role-scoped surfaces
api_router.include_router(student.router, prefix="/student", tags=["student"])
api_router.include_router(tutor.router, prefix="/tutor", tags=["tutor"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
