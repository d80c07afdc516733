# backend/app/schemas/question.py

from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime

QuestionType = Literal["text", "multiple_choice", "checkbox", "dropdown", "scale", "date"]

class QuestionOption(BaseModel):
    label: str
    value: str

class QuestionValidation(BaseModel):
    required: bool = False
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None

class QuestionCreate(BaseModel):
    title: str
    type: QuestionType
    options: List[QuestionOption] = Field(default_factory=list)
    validation: Optional[QuestionValidation] = None

class QuestionUpdate(BaseModel):
    title: Optional[str] = None
    type: Optional[QuestionType] = None
    options: Optional[List[QuestionOption]] = None
    validation: Optional[QuestionValidation] = None

class Question(BaseModel):
    id: str
    title: str
    type: QuestionType
    options: List[QuestionOption] = Field(default_factory=list)
    validation: QuestionValidation = Field(default_factory=QuestionValidation)
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
