# backend/app/services/response_service.py

import logging
import uuid
from datetime import datetime, tzinfo
from typing import Any, Callable, Dict, List, Optional

from app.core.errors import ConflictError, DuplicateKeyError, FormValidationError, NotFoundError
from app.db.store import Between, Contains, DocumentStore
from app.services.form_service import FORMS, FormService, is_eligible, required_question_ids, uses_assignments
from app.services.question_service import is_valid_id
from app.utils.answers import parse_answer
from app.utils.time_windows import day_key, day_window, resolve_timezone, to_iso, utcnow

logger = logging.getLogger(__name__)

RESPONSES = "responses"
# submission_slot of a final response to a regular form; diary responses use the local date
ONCE = "once"

ALREADY_ANSWERED = "You have already answered this form"
ALREADY_ANSWERED_TODAY = "You have already answered this form today"


class ResponseService:
    """
    Response ledger.

    Per (form, user) a response moves NONE -> DRAFT -> FINAL. Drafts can be
    overwritten or deleted; a final response is never changed afterwards.
    Regular forms take one final response per user, diary forms one per user
    per calendar day.
    """

    def __init__(
        self,
        store: DocumentStore,
        forms: Optional[FormService] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.forms = forms or FormService(store)
        self.clock = clock

    # -- lookups ---------------------------------------------------------

    def _find_draft(self, form_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        return self.store.find_one(RESPONSES, {"form_id": form_id, "user_id": user_id, "is_draft": True})

    def _has_final(self, form_id: str, user_id: str) -> bool:
        return self.store.find_one(
            RESPONSES, {"form_id": form_id, "user_id": user_id, "is_draft": False}
        ) is not None

    def _answered_on(self, form_id: str, user_id: str, moment: datetime, tz: tzinfo) -> bool:
        start, end = day_window(moment, tz)
        return self.store.find_one(
            RESPONSES,
            {
                "form_id": form_id,
                "user_id": user_id,
                "is_draft": False,
                "submitted_at": Between(to_iso(start), to_iso(end)),
            },
        ) is not None

    def _can_respond(self, form: Dict[str, Any], user_id: str, tz: tzinfo) -> bool:
        if not is_eligible(form, user_id):
            return False
        if form.get("mode") == "diary":
            return not self._answered_on(form["id"], user_id, self.clock(), tz)
        return not self._has_final(form["id"], user_id)

    # -- answer validation -----------------------------------------------

    def _normalize_answers(self, form: Dict[str, Any], answers: Any, complete: bool) -> List[Dict[str, Any]]:
        if not isinstance(answers, list):
            raise FormValidationError("Invalid answers format, expected a list")

        for item in answers:
            if not isinstance(item, dict) or not is_valid_id(item.get("question_id")):
                raise FormValidationError("One or more question ids are invalid")

        form_question_ids = {entry["question_id"] for entry in form.get("questions") or []}
        for item in answers:
            if item["question_id"] not in form_question_ids:
                raise FormValidationError("One or more questions do not belong to this form")

        answered_ids = [item["question_id"] for item in answers]
        if len(set(answered_ids)) != len(answered_ids):
            raise FormValidationError("The same question cannot be answered more than once")

        normalized = []
        for item in answers:
            try:
                answer = parse_answer(item.get("answer"))
            except ValueError as e:
                raise FormValidationError(str(e))
            if answer is None or answer.is_empty():
                if complete:
                    raise FormValidationError("Every answer must have a value")
                # drafts simply leave the question unanswered
                continue
            normalized.append({"question_id": item["question_id"], "answer": answer.to_raw()})

        if complete:
            self._check_required(form, set(answered_ids))
        return normalized

    def _check_required(self, form: Dict[str, Any], answered_ids: set) -> None:
        required = required_question_ids(form)
        if not required:
            return
        # Read fresh so edits to a form apply to the next submission
        definitions = self.forms.questions.resolve(required)
        for question_id in required:
            question = definitions.get(question_id)
            if question is None:
                # deleted from the catalog; it can no longer be answered
                continue
            if question_id not in answered_ids:
                raise FormValidationError(f'Question "{question["title"]}" is required')

    # -- drafts ----------------------------------------------------------

    def save_draft(self, form_id: str, user_id: str, answers: Any) -> Dict[str, Any]:
        form = self.forms.check_answerable(form_id, user_id)
        normalized = self._normalize_answers(form, answers, complete=False)
        if form.get("mode") != "diary" and self._has_final(form_id, user_id):
            raise ConflictError(ALREADY_ANSWERED)

        now = to_iso(self.clock())
        draft = self._find_draft(form_id, user_id)
        if draft is None:
            try:
                created = self.store.insert(RESPONSES, {
                    "id": str(uuid.uuid4()),
                    "form_id": form_id,
                    "user_id": user_id,
                    "answers": normalized,
                    "is_draft": True,
                    "submission_slot": None,
                    "submitted_at": None,
                    "last_modified": now,
                    "deleted": False,
                })
                logger.info(f"Draft {created['id']} created for form {form_id} by user {user_id}")
                return created
            except DuplicateKeyError:
                # a concurrent save won the insert; overwrite it instead
                draft = self._find_draft(form_id, user_id)
                if draft is None:
                    raise

        updated = self.store.update(
            RESPONSES,
            {"id": draft["id"], "is_draft": True, "deleted": False},
            {"answers": normalized, "last_modified": now},
        )
        logger.info(f"Draft {draft['id']} updated for form {form_id} by user {user_id}")
        return updated[0] if updated else {**draft, "answers": normalized, "last_modified": now}

    def get_draft(self, form_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        self.forms.get(form_id)
        return self._find_draft(form_id, user_id)

    def delete_draft(self, form_id: str, user_id: str) -> None:
        self.forms.get(form_id)
        draft = self._find_draft(form_id, user_id)
        if draft is None:
            raise NotFoundError("Draft not found")
        self.store.update(RESPONSES, {"id": draft["id"]}, {"deleted": True})
        logger.info(f"Draft {draft['id']} deleted for form {form_id} by user {user_id}")

    # -- final responses -------------------------------------------------

    def submit(self, form_id: str, user_id: str, answers: Any, tz: Optional[tzinfo] = None) -> Dict[str, Any]:
        """
        Validate and store a final response.

        Checks run in a fixed order and the first failure is raised. Nothing
        is written until every check has passed; the draft is then retired
        and the final response inserted in one store operation.
        """
        tz = tz or resolve_timezone()
        form = self.forms.check_answerable(form_id, user_id)
        now = self.clock()
        diary = form.get("mode") == "diary"

        if diary and self._answered_on(form_id, user_id, now, tz):
            raise ConflictError(ALREADY_ANSWERED_TODAY)

        normalized = self._normalize_answers(form, answers, complete=True)

        if not diary and self._has_final(form_id, user_id):
            raise ConflictError(ALREADY_ANSWERED)

        draft = self._find_draft(form_id, user_id)
        response = {
            "id": str(uuid.uuid4()),
            "form_id": form_id,
            "user_id": user_id,
            "answers": normalized,
            "is_draft": False,
            "submission_slot": day_key(now, tz) if diary else ONCE,
            "submitted_at": to_iso(now),
            "last_modified": to_iso(now),
            "deleted": False,
        }
        try:
            created = self.store.supersede_and_insert(RESPONSES, [draft["id"]] if draft else [], response)
        except DuplicateKeyError:
            logger.warning(f"Concurrent submission rejected for form {form_id} by user {user_id}")
            raise ConflictError(ALREADY_ANSWERED_TODAY if diary else ALREADY_ANSWERED)

        logger.info(f"Response {created['id']} submitted for form {form_id} by user {user_id}")
        return created

    def can_respond_today(self, form_id: str, user_id: str, tz: Optional[tzinfo] = None) -> bool:
        form = self.forms.get(form_id)
        return self._can_respond(form, user_id, tz or resolve_timezone())

    def available_forms(self, user_id: str, tz: Optional[tzinfo] = None) -> List[Dict[str, Any]]:
        tz = tz or resolve_timezone()
        filters: Dict[str, Any] = {"is_active": True}
        if uses_assignments():
            filters["assigned_users"] = Contains(user_id)
        forms = self.store.find(FORMS, filters, order_by="created_at", descending=True)
        return [{**form, "can_respond": self._can_respond(form, user_id, tz)} for form in forms]

    def list(self) -> List[Dict[str, Any]]:
        return self.store.find(RESPONSES, {"is_draft": False}, order_by="submitted_at", descending=True)

    def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        return self.store.find(
            RESPONSES, {"user_id": user_id, "is_draft": False}, order_by="submitted_at", descending=True
        )

    def get(self, response_id: str) -> Dict[str, Any]:
        if not is_valid_id(response_id):
            raise NotFoundError("Response not found")
        # drafts are only reachable by their owner through the draft routes
        response = self.store.find_one(RESPONSES, {"id": response_id, "is_draft": False})
        if not response:
            raise NotFoundError("Response not found")
        return response

    def delete(self, response_id: str) -> None:
        self.get(response_id)
        self.store.update(RESPONSES, {"id": response_id}, {"deleted": True})
        logger.info(f"Response {response_id} soft deleted")
