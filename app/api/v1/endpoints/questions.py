# backend/app/api/v1/endpoints/questions.py

from fastapi import APIRouter, Depends
from typing import List
from app.schemas.question import Question, QuestionCreate, QuestionUpdate
from app.schemas.user import User
from app.api import deps
from app.services.question_service import QuestionService

router = APIRouter()

@router.post("/", response_model=Question, status_code=201)
def create_question(
    question: QuestionCreate,
    current_user: User = Depends(deps.require_roles("admin")),
    questions: QuestionService = Depends(deps.get_question_service),
):
    return questions.create(question, created_by=current_user.id)

@router.get("/", response_model=List[Question])
def list_questions(
    current_user: User = Depends(deps.get_current_user),
    questions: QuestionService = Depends(deps.get_question_service),
):
    return questions.list()

@router.get("/{question_id}", response_model=Question)
def get_question(
    question_id: str,
    current_user: User = Depends(deps.get_current_user),
    questions: QuestionService = Depends(deps.get_question_service),
):
    return questions.get(question_id)

@router.put("/{question_id}", response_model=Question)
def update_question(
    question_id: str,
    question_update: QuestionUpdate,
    current_user: User = Depends(deps.require_roles("admin")),
    questions: QuestionService = Depends(deps.get_question_service),
):
    return questions.update(question_id, question_update)

@router.delete("/{question_id}")
def delete_question(
    question_id: str,
    current_user: User = Depends(deps.require_roles("admin")),
    questions: QuestionService = Depends(deps.get_question_service),
):
    questions.delete(question_id)
    return {"detail": "Question deleted successfully"}
