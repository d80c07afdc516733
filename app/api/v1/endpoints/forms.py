# backend/app/api/v1/endpoints/forms.py

from fastapi import APIRouter, Depends
from datetime import tzinfo
from typing import List
from app.schemas.form import AssignmentUpdate, AvailableForm, Form, FormCreate, FormUpdate
from app.schemas.user import User
from app.api import deps
from app.services.form_service import FormService
from app.services.response_service import ResponseService

router = APIRouter()

@router.post("/", response_model=Form, status_code=201)
def create_form(
    form: FormCreate,
    current_user: User = Depends(deps.require_roles("admin")),
    forms: FormService = Depends(deps.get_form_service),
):
    created = forms.create(form, created_by=current_user.id)
    return forms.resolve(created)

@router.get("/", response_model=List[Form])
def list_forms(
    current_user: User = Depends(deps.get_current_user),
    forms: FormService = Depends(deps.get_form_service),
):
    return [forms.resolve(form) for form in forms.list()]

@router.get("/available", response_model=List[AvailableForm])
def list_available_forms(
    current_user: User = Depends(deps.get_current_user),
    responses: ResponseService = Depends(deps.get_response_service),
    tz: tzinfo = Depends(deps.get_timezone),
):
    return [responses.forms.resolve(form) for form in responses.available_forms(current_user.id, tz)]

@router.get("/{form_id}", response_model=Form)
def get_form(
    form_id: str,
    current_user: User = Depends(deps.get_current_user),
    forms: FormService = Depends(deps.get_form_service),
):
    return forms.resolve(forms.get(form_id))

@router.put("/{form_id}", response_model=Form)
def update_form(
    form_id: str,
    form_update: FormUpdate,
    current_user: User = Depends(deps.require_roles("admin")),
    forms: FormService = Depends(deps.get_form_service),
):
    return forms.resolve(forms.update(form_id, form_update))

@router.put("/{form_id}/assignments", response_model=Form)
def update_form_assignments(
    form_id: str,
    assignment: AssignmentUpdate,
    current_user: User = Depends(deps.require_roles("admin")),
    forms: FormService = Depends(deps.get_form_service),
):
    return forms.resolve(forms.set_assignments(form_id, assignment.assigned_users))

@router.delete("/{form_id}")
def delete_form(
    form_id: str,
    current_user: User = Depends(deps.require_roles("admin")),
    forms: FormService = Depends(deps.get_form_service),
):
    forms.delete(form_id)
    return {"detail": "Form deleted successfully"}
