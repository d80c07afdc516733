# backend/app/services/form_service.py

import logging
import uuid
from typing import Any, Dict, List, Optional

from app.core.config import settings
from app.core.errors import FormValidationError, ForbiddenError, InvalidStateError, NotFoundError
from app.db.store import DocumentStore, In
from app.schemas.form import FormCreate, FormQuestionIn, FormUpdate
from app.services.question_service import QuestionService, is_valid_id
from app.utils.time_windows import to_iso, utcnow

logger = logging.getLogger(__name__)

FORMS = "forms"
USERS = "users"


def ordered_questions(form: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Form question entries by ``order``; equal orders keep their stored position."""
    entries = form.get("questions") or []
    return [
        entry
        for _, entry in sorted(
            enumerate(entries),
            key=lambda pair: (pair[1].get("order", pair[0]), pair[0]),
        )
    ]


def required_question_ids(form: Dict[str, Any]) -> List[str]:
    return [entry["question_id"] for entry in ordered_questions(form) if entry.get("required")]


def uses_assignments() -> bool:
    return settings.FORM_ACTIVATION_MODE == "assignment"


def is_eligible(form: Optional[Dict[str, Any]], user_id: str) -> bool:
    """
    Whether ``user_id`` may answer ``form`` right now.

    Role and anonymity play no part here; they only govern who may edit forms.
    """
    if not form or form.get("deleted") or not form.get("is_active"):
        return False
    if uses_assignments():
        return user_id in (form.get("assigned_users") or [])
    return True


def _check_title(title: str) -> str:
    title = (title or "").strip()
    if not title:
        raise FormValidationError("Form title must not be empty")
    if len(title) < 3:
        raise FormValidationError("Form title must have at least 3 characters")
    if len(title) > 200:
        raise FormValidationError("Form title must have at most 200 characters")
    return title


class FormService:
    """
    Builds forms out of catalog questions and decides who may answer them.

    In ``single_active`` mode activating a form deactivates every other one
    in the same store operation. In ``assignment`` mode forms are activated
    independently and answered only by their assigned users.
    """

    def __init__(self, store: DocumentStore, questions: Optional[QuestionService] = None):
        self.store = store
        self.questions = questions or QuestionService(store)

    def get(self, form_id: str) -> Dict[str, Any]:
        if not is_valid_id(form_id):
            raise NotFoundError("Form not found")
        form = self.store.find_one(FORMS, {"id": form_id})
        if not form:
            raise NotFoundError("Form not found")
        return form

    def list(self) -> List[Dict[str, Any]]:
        return self.store.find(FORMS, order_by="created_at", descending=True)

    def resolve(self, form: Dict[str, Any]) -> Dict[str, Any]:
        """Copy of ``form`` with each entry carrying its live question; deleted questions are dropped."""
        entries = ordered_questions(form)
        definitions = self.questions.resolve([entry["question_id"] for entry in entries])
        resolved = []
        for entry in entries:
            question = definitions.get(entry["question_id"])
            if question is None:
                continue
            resolved.append({**entry, "question": question})
        return {**form, "questions": resolved}

    def check_answerable(self, form_id: str, user_id: str) -> Dict[str, Any]:
        """Form the caller may respond to, or the reason they may not."""
        form = self.get(form_id)
        if not form.get("is_active"):
            raise InvalidStateError("Form is not active")
        if not is_eligible(form, user_id):
            raise ForbiddenError("You are not assigned to this form")
        return form

    def _build_questions(self, entries: List[FormQuestionIn]) -> List[Dict[str, Any]]:
        if not entries:
            raise FormValidationError("A form must contain at least one question")

        for index, entry in enumerate(entries, start=1):
            if not is_valid_id(entry.question_id):
                raise FormValidationError(f"Question {index}: question_id is not a valid id")
            if entry.order is not None and entry.order < 0:
                raise FormValidationError(f'Question {index}: "order" must be a number greater than or equal to 0')

        question_ids = [entry.question_id for entry in entries]
        if len(set(question_ids)) != len(question_ids):
            raise FormValidationError("A question can only appear once in a form")

        found = self.questions.resolve(question_ids)
        if len(found) != len(question_ids):
            raise FormValidationError("One or more questions were not found")

        return [
            {
                "question_id": entry.question_id,
                "order": entry.order if entry.order is not None else index,
                "required": entry.required,
            }
            for index, entry in enumerate(entries)
        ]

    def _check_assigned_users(self, user_ids: List[str]) -> List[str]:
        for index, user_id in enumerate(user_ids, start=1):
            if not is_valid_id(user_id):
                raise FormValidationError(f'User {index}: id "{user_id}" is not valid')
        if len(set(user_ids)) != len(user_ids):
            raise FormValidationError("The user list must not contain duplicate ids")
        if user_ids:
            found = self.store.find(USERS, {"id": In(user_ids)})
            if len(found) != len(user_ids):
                raise FormValidationError("One or more assigned users were not found")
        return list(user_ids)

    def create(self, data: FormCreate, created_by: str) -> Dict[str, Any]:
        title = _check_title(data.title)
        questions = self._build_questions(data.questions)
        assigned_users = self._check_assigned_users(data.assigned_users)
        exclusive = data.is_active and not uses_assignments()

        form = {
            "id": str(uuid.uuid4()),
            "title": title,
            "description": (data.description or "").strip(),
            "mode": data.mode,
            "questions": questions,
            "assigned_users": assigned_users,
            # activated below so two forms are never active at once
            "is_active": data.is_active and not exclusive,
            "deleted": False,
            "created_by": created_by,
            "created_at": to_iso(utcnow()),
        }
        created = self.store.insert(FORMS, form)
        if exclusive:
            self.store.activate_exclusive(FORMS, created["id"])
            created = self.get(created["id"])
        logger.info(f"Form {created['id']} created by {created_by} (mode={data.mode}, active={data.is_active})")
        return created

    def update(self, form_id: str, data: FormUpdate) -> Dict[str, Any]:
        self.get(form_id)
        patch: Dict[str, Any] = {}

        if data.title is not None:
            patch["title"] = _check_title(data.title)
        if data.description is not None:
            patch["description"] = data.description.strip()
        if data.mode is not None:
            patch["mode"] = data.mode
        if data.questions is not None:
            patch["questions"] = self._build_questions(data.questions)
        if data.assigned_users is not None:
            patch["assigned_users"] = self._check_assigned_users(data.assigned_users)

        exclusive = data.is_active is True and not uses_assignments()
        if data.is_active is not None and not exclusive:
            patch["is_active"] = data.is_active

        if patch:
            self.store.update(FORMS, {"id": form_id, "deleted": False}, patch)
        if exclusive:
            self.store.activate_exclusive(FORMS, form_id)
        logger.info(f"Form {form_id} updated: {sorted(patch) + (['is_active'] if exclusive else [])}")
        return self.get(form_id)

    def set_assignments(self, form_id: str, user_ids: List[str]) -> Dict[str, Any]:
        self.get(form_id)
        assigned_users = self._check_assigned_users(user_ids)
        self.store.update(FORMS, {"id": form_id, "deleted": False}, {"assigned_users": assigned_users})
        logger.info(f"Form {form_id} assigned to {len(assigned_users)} users")
        return self.get(form_id)

    def delete(self, form_id: str) -> None:
        self.get(form_id)
        self.store.update(FORMS, {"id": form_id}, {"deleted": True, "is_active": False})
        logger.info(f"Form {form_id} soft deleted")
