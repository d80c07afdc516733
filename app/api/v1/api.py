from fastapi import APIRouter
from app.api.v1.endpoints import users, questions, forms, responses, dashboards

api_router = APIRouter()
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(questions.router, prefix="/questions", tags=["questions"])
api_router.include_router(forms.router, prefix="/forms", tags=["forms"])
api_router.include_router(responses.router, prefix="/responses", tags=["responses"])
api_router.include_router(dashboards.router, prefix="/dashboards", tags=["dashboards"])
