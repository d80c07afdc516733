# backend/app/schemas/form.py

from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime

from app.schemas.question import Question

FormMode = Literal["form", "diary"]

class FormQuestionIn(BaseModel):
    question_id: str
    order: Optional[int] = None
    required: bool = False

class FormCreate(BaseModel):
    title: str
    description: Optional[str] = None
    mode: FormMode = "form"
    questions: List[FormQuestionIn]
    assigned_users: List[str] = Field(default_factory=list)
    is_active: bool = True

class FormUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    mode: Optional[FormMode] = None
    questions: Optional[List[FormQuestionIn]] = None
    assigned_users: Optional[List[str]] = None
    is_active: Optional[bool] = None

class AssignmentUpdate(BaseModel):
    assigned_users: List[str]

class FormQuestion(BaseModel):
    question_id: str
    order: int
    required: bool = False
    question: Optional[Question] = None

class Form(BaseModel):
    id: str
    title: str
    description: str = ""
    mode: FormMode = "form"
    questions: List[FormQuestion]
    assigned_users: List[str] = Field(default_factory=list)
    is_active: bool
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

class AvailableForm(Form):
    can_respond: bool
