# backend/app/schemas/dashboard.py

from pydantic import BaseModel
from typing import Any, Dict, List, Optional, Union
from datetime import datetime

from app.schemas.question import QuestionType
from app.schemas.response import AnswerValue

class DateRange(BaseModel):
    earliest: datetime
    latest: datetime

class QuestionAnalysis(BaseModel):
    type: QuestionType
    total_answers: int
    answers: Optional[List[AnswerValue]] = None
    sample_answers: Optional[List[AnswerValue]] = None
    distribution: Optional[Dict[Union[int, str], int]] = None
    average: Optional[Union[str, int]] = None
    min: Optional[int] = None
    max: Optional[int] = None
    earliest: Optional[datetime] = None
    latest: Optional[datetime] = None
    range: Optional[DateRange] = None
    skipped_answers: Optional[int] = None

class FormQuestionAnalysis(QuestionAnalysis):
    question_id: str
    title: str

class QuestionAnalysisResult(BaseModel):
    question: str
    question_type: QuestionType
    analysis: QuestionAnalysis

class FormAnalysis(BaseModel):
    form_title: str
    total_responses: int
    questions_analysis: List[FormQuestionAnalysis]

class FormExport(BaseModel):
    form_title: str
    total_responses: int
    rows: List[Dict[str, Any]]

class RespondentSummary(BaseModel):
    id: str
    name: str
    email: Optional[str] = None

class ResolvedAnswer(BaseModel):
    question_id: str
    title: str
    type: QuestionType
    answer: AnswerValue

class ResolvedResponse(BaseModel):
    id: str
    respondent: RespondentSummary
    submitted_at: Optional[datetime] = None
    answers: List[ResolvedAnswer]

class FormResponses(BaseModel):
    form_title: str
    total_responses: int
    responses: List[ResolvedResponse]
