# backend/app/api/v1/endpoints/dashboards.py

from fastapi import APIRouter, Depends
from app.schemas.dashboard import FormAnalysis, FormExport, FormResponses, QuestionAnalysisResult
from app.schemas.user import User
from app.api import deps
from app.services.dashboard_service import DashboardService

router = APIRouter()

analysts = deps.require_roles("admin", "teacher_analyst")

@router.get(
    "/analysis/{form_id}/{question_id}",
    response_model=QuestionAnalysisResult,
    response_model_exclude_none=True,
)
def analyze_question(
    form_id: str,
    question_id: str,
    current_user: User = Depends(analysts),
    dashboards: DashboardService = Depends(deps.get_dashboard_service),
):
    return dashboards.analyze_question(form_id, question_id)

@router.get("/full-analysis/{form_id}", response_model=FormAnalysis, response_model_exclude_none=True)
def analyze_form(
    form_id: str,
    current_user: User = Depends(analysts),
    dashboards: DashboardService = Depends(deps.get_dashboard_service),
):
    return dashboards.analyze_form(form_id)

@router.get("/export/{form_id}", response_model=FormExport)
def export_form(
    form_id: str,
    current_user: User = Depends(analysts),
    dashboards: DashboardService = Depends(deps.get_dashboard_service),
):
    return dashboards.export_form(form_id)

@router.get("/{form_id}", response_model=FormResponses)
def list_form_responses(
    form_id: str,
    current_user: User = Depends(analysts),
    dashboards: DashboardService = Depends(deps.get_dashboard_service),
):
    return dashboards.list_form_responses(form_id)
