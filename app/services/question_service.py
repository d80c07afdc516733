# backend/app/services/question_service.py

import logging
import re
import uuid
from typing import Any, Dict, List, Optional

from app.core.errors import FormValidationError, NotFoundError
from app.db.store import DocumentStore, In
from app.schemas.question import QuestionCreate, QuestionOption, QuestionUpdate, QuestionValidation
from app.utils.time_windows import to_iso, utcnow

logger = logging.getLogger(__name__)

QUESTIONS = "questions"
TYPES_WITH_OPTIONS = ("multiple_choice", "checkbox", "dropdown", "scale")


def is_valid_id(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def _check_title(title: str) -> str:
    title = (title or "").strip()
    if not title:
        raise FormValidationError("Question title is required")
    if len(title) < 3:
        raise FormValidationError("Question title must have at least 3 characters")
    if len(title) > 500:
        raise FormValidationError("Question title must have at most 500 characters")
    return title


def _check_options(question_type: str, options: List[QuestionOption]) -> None:
    if question_type not in TYPES_WITH_OPTIONS:
        if options:
            raise FormValidationError(f'Questions of type "{question_type}" must not have options')
        return

    if not options:
        raise FormValidationError(f'Questions of type "{question_type}" need options')
    if question_type != "scale" and len(options) < 2:
        raise FormValidationError(f'Questions of type "{question_type}" need at least 2 options')

    seen = set()
    for index, option in enumerate(options, start=1):
        if not option.label.strip():
            raise FormValidationError(f'Option {index}: "label" must not be empty')
        if not option.value.strip():
            raise FormValidationError(f'Option {index}: "value" must not be empty')
        if option.value in seen:
            raise FormValidationError(f'Duplicate option value "{option.value}". Each option needs a unique value')
        seen.add(option.value)


def _check_validation(question_type: str, validation: Optional[QuestionValidation]) -> None:
    if validation is None:
        return
    has_text_rules = (
        validation.min_length is not None
        or validation.max_length is not None
        or validation.pattern is not None
    )
    if question_type != "text":
        if has_text_rules:
            raise FormValidationError("min_length, max_length and pattern are only valid for text questions")
        return

    if validation.min_length is not None and validation.min_length < 0:
        raise FormValidationError("min_length must be greater than or equal to 0")
    if validation.max_length is not None:
        if validation.max_length <= 0:
            raise FormValidationError("max_length must be greater than 0")
        if validation.min_length and validation.max_length <= validation.min_length:
            raise FormValidationError("max_length must be greater than min_length")
    if validation.pattern:
        try:
            re.compile(validation.pattern)
        except re.error:
            raise FormValidationError("pattern must be a valid regular expression")


class QuestionService:
    """Reusable question definitions shared by every form."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def get(self, question_id: str) -> Dict[str, Any]:
        if not is_valid_id(question_id):
            raise NotFoundError("Question not found")
        question = self.store.find_one(QUESTIONS, {"id": question_id})
        if not question:
            raise NotFoundError("Question not found")
        return question

    def list(self) -> List[Dict[str, Any]]:
        return self.store.find(QUESTIONS, order_by="created_at", descending=True)

    def create(self, data: QuestionCreate, created_by: str) -> Dict[str, Any]:
        title = _check_title(data.title)
        _check_options(data.type, data.options)
        _check_validation(data.type, data.validation)

        question = {
            "id": str(uuid.uuid4()),
            "title": title,
            "type": data.type,
            "options": [option.model_dump() for option in data.options],
            "validation": (data.validation or QuestionValidation()).model_dump(),
            "deleted": False,
            "created_by": created_by,
            "created_at": to_iso(utcnow()),
        }
        created = self.store.insert(QUESTIONS, question)
        logger.info(f"Question {created['id']} created by {created_by}")
        return created

    def update(self, question_id: str, data: QuestionUpdate) -> Dict[str, Any]:
        current = self.get(question_id)
        final_type = data.type or current["type"]
        patch: Dict[str, Any] = {}

        if data.title is not None:
            patch["title"] = _check_title(data.title)

        if data.type is not None or data.options is not None:
            if data.options is not None:
                options = data.options
            elif final_type not in TYPES_WITH_OPTIONS:
                options = []
            else:
                options = [QuestionOption(**option) for option in current.get("options") or []]
            _check_options(final_type, options)
            patch["options"] = [option.model_dump() for option in options]

        if data.type is not None:
            patch["type"] = data.type

        if data.validation is not None:
            _check_validation(final_type, data.validation)
            patch["validation"] = data.validation.model_dump()

        if not patch:
            return current

        # Forms keep pointing at this question; a type change alters how its
        # past answers are aggregated.
        if data.type is not None and data.type != current["type"]:
            logger.warning(f"Question {question_id} type changed from {current['type']} to {data.type}")

        updated = self.store.update(QUESTIONS, {"id": question_id, "deleted": False}, patch)
        return updated[0] if updated else {**current, **patch}

    def delete(self, question_id: str) -> None:
        self.get(question_id)
        self.store.update(QUESTIONS, {"id": question_id}, {"deleted": True})
        logger.info(f"Question {question_id} soft deleted")

    def resolve(self, question_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        """Live question definitions keyed by id; deleted or unknown ids are absent."""
        if not question_ids:
            return {}
        rows = self.store.find(QUESTIONS, {"id": In(list(dict.fromkeys(question_ids)))})
        return {row["id"]: row for row in rows}
