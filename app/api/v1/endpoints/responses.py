# backend/app/api/v1/endpoints/responses.py

from fastapi import APIRouter, Depends
from datetime import tzinfo
from typing import List, Optional
from app.schemas.response import CanRespond, DraftSave, Response, ResponseSubmit
from app.schemas.user import User
from app.api import deps
from app.services.response_service import ResponseService

router = APIRouter()

@router.post("/", response_model=Response, status_code=201)
def submit_response(
    submission: ResponseSubmit,
    current_user: User = Depends(deps.get_current_user),
    responses: ResponseService = Depends(deps.get_response_service),
    tz: tzinfo = Depends(deps.get_timezone),
):
    return responses.submit(submission.form_id, current_user.id, submission.answers, tz)

@router.put("/drafts/{form_id}", response_model=Response)
def save_draft(
    form_id: str,
    draft: DraftSave,
    current_user: User = Depends(deps.get_current_user),
    responses: ResponseService = Depends(deps.get_response_service),
):
    return responses.save_draft(form_id, current_user.id, draft.answers)

@router.get("/drafts/{form_id}", response_model=Optional[Response])
def get_draft(
    form_id: str,
    current_user: User = Depends(deps.get_current_user),
    responses: ResponseService = Depends(deps.get_response_service),
):
    return responses.get_draft(form_id, current_user.id)

@router.delete("/drafts/{form_id}")
def delete_draft(
    form_id: str,
    current_user: User = Depends(deps.get_current_user),
    responses: ResponseService = Depends(deps.get_response_service),
):
    responses.delete_draft(form_id, current_user.id)
    return {"detail": "Draft deleted successfully"}

@router.get("/can-respond/{form_id}", response_model=CanRespond)
def can_respond_today(
    form_id: str,
    current_user: User = Depends(deps.get_current_user),
    responses: ResponseService = Depends(deps.get_response_service),
    tz: tzinfo = Depends(deps.get_timezone),
):
    return CanRespond(form_id=form_id, can_respond=responses.can_respond_today(form_id, current_user.id, tz))

@router.get("/me", response_model=List[Response])
def list_my_responses(
    current_user: User = Depends(deps.get_current_user),
    responses: ResponseService = Depends(deps.get_response_service),
):
    return responses.list_for_user(current_user.id)

@router.get("/", response_model=List[Response])
def list_responses(
    current_user: User = Depends(deps.require_roles("admin", "teacher_analyst")),
    responses: ResponseService = Depends(deps.get_response_service),
):
    return responses.list()

@router.get("/{response_id}", response_model=Response)
def get_response(
    response_id: str,
    current_user: User = Depends(deps.require_roles("admin", "teacher_analyst")),
    responses: ResponseService = Depends(deps.get_response_service),
):
    return responses.get(response_id)

@router.delete("/{response_id}")
def delete_response(
    response_id: str,
    current_user: User = Depends(deps.require_roles("admin")),
    responses: ResponseService = Depends(deps.get_response_service),
):
    responses.delete(response_id)
    return {"detail": "Response deleted successfully"}
