"""API v1 router."""
from fastapi import APIRouter

from app.api.v1 import admin, auth, companies, quiz, registration

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(registration.router, tags=["Registration"])
api_router.include_router(quiz.router, prefix="/quiz", tags=["Quiz"])
api_router.include_router(admin.router, prefix="/admin", tags=["Quiz Administration"])
api_router.include_router(companies.router, tags=["Companies"])
