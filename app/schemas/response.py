# backend/app/schemas/response.py

from pydantic import BaseModel
from typing import Any, Optional, List, Union
from datetime import datetime

AnswerValue = Union[str, List[str]]

class ResponseSubmit(BaseModel):
    form_id: str
    # Shape is checked by the ledger so each rule reports its own reason
    answers: Any = None

class DraftSave(BaseModel):
    answers: Any = None

class Answer(BaseModel):
    question_id: str
    answer: AnswerValue

class Response(BaseModel):
    id: str
    form_id: str
    user_id: str
    answers: List[Answer]
    is_draft: bool
    submitted_at: Optional[datetime] = None
    last_modified: Optional[datetime] = None

class CanRespond(BaseModel):
    form_id: str
    can_respond: bool
