# backend/app/services/dashboard_service.py

import logging
from collections import Counter
from typing import Any, Dict, List, Optional, Tuple

from app.core.config import settings
from app.core.errors import NotFoundError
from app.db.store import DocumentStore, In
from app.services.form_service import FormService
from app.services.response_service import RESPONSES
from app.utils.answers import Answer, parse_answer
from app.utils.time_windows import parse_timestamp

logger = logging.getLogger(__name__)

USERS = "users"
ANONYMOUS = "Anonymous"
EXPORT_FIXED_COLUMNS = ("respondent", "email", "submitted_at")


def _scale_summary(answers: List[Answer]) -> Dict[str, Any]:
    values = []
    skipped = 0
    for answer in answers:
        try:
            values.append(int(answer.as_text().strip()))
        except ValueError:
            skipped += 1
            logger.warning(f"Skipping non-numeric scale answer: {answer.as_text()!r}")

    summary: Dict[str, Any] = {"skipped_answers": skipped}
    if not values:
        summary.update(average=0, distribution={})
        return summary

    summary.update(
        average=f"{sum(values) / len(values):.2f}",
        min=min(values),
        max=max(values),
        distribution=dict(Counter(values)),
    )
    return summary


def _date_summary(answers: List[Answer], full_view: bool) -> Dict[str, Any]:
    parsed = []
    skipped = 0
    for position, answer in enumerate(answers):
        try:
            parsed.append((parse_timestamp(answer.as_text()), position))
        except ValueError:
            skipped += 1
            logger.warning(f"Skipping unparseable date answer: {answer.as_text()!r}")

    # ties keep response order
    parsed.sort()
    earliest = parsed[0][0] if parsed else None
    latest = parsed[-1][0] if parsed else None

    summary: Dict[str, Any] = {"skipped_answers": skipped}
    if full_view:
        summary["range"] = {"earliest": earliest, "latest": latest} if parsed else None
    else:
        summary.update(earliest=earliest, latest=latest, answers=[answer.to_raw() for answer in answers])
    return summary


def summarize_question(
    question_type: str,
    answers: List[Answer],
    full_view: bool = False,
    sample_size: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Statistics for the answers one question received.

    ``full_view`` selects the shape used by the whole-form analysis: text
    answers are sampled and date answers are reported as a range.
    """
    analysis: Dict[str, Any] = {"type": question_type}

    if question_type == "text":
        raw = [answer.to_raw() for answer in answers]
        if full_view:
            limit = settings.TEXT_SAMPLE_SIZE if sample_size is None else sample_size
            analysis["sample_answers"] = raw[:limit]
        else:
            analysis["answers"] = raw

    elif question_type in ("multiple_choice", "dropdown"):
        analysis["distribution"] = dict(Counter(answer.as_text() for answer in answers))

    elif question_type == "checkbox":
        analysis["distribution"] = dict(Counter(
            option for answer in answers for option in answer.selections()
        ))

    elif question_type == "scale":
        analysis.update(_scale_summary(answers))

    elif question_type == "date":
        analysis.update(_date_summary(answers, full_view))

    analysis["total_answers"] = len(answers)
    return analysis


def collect_answers(responses: List[Dict[str, Any]], question_id: str) -> List[Answer]:
    """One answer per response that answered ``question_id``, in response order."""
    collected = []
    for response in responses:
        for item in response.get("answers") or []:
            if item.get("question_id") != question_id:
                continue
            try:
                answer = parse_answer(item.get("answer"))
            except ValueError:
                logger.warning(f"Skipping malformed stored answer in response {response.get('id')}")
                answer = None
            if answer is not None:
                collected.append(answer)
            break
    return collected


def export_columns(entries: List[Dict[str, Any]]) -> Dict[str, str]:
    """Column name per question id. Titles that clash with a fixed column or an
    earlier question get the question id appended."""
    taken = set(EXPORT_FIXED_COLUMNS)
    columns = {}
    for entry in entries:
        title = entry["question"]["title"]
        column = title if title not in taken else f"{title} ({entry['question_id']})"
        taken.add(column)
        columns[entry["question_id"]] = column
    return columns


class DashboardService:
    """
    Aggregates the final responses of a form.

    Only live data counts: drafts, deleted responses, responses from deleted
    users and answers to deleted questions are all left out.
    """

    def __init__(self, store: DocumentStore, forms: Optional[FormService] = None):
        self.store = store
        self.forms = forms or FormService(store)

    def _final_responses(self, form_id: str) -> Tuple[List[Dict[str, Any]], Dict[str, Dict[str, Any]]]:
        responses = self.store.find(
            RESPONSES, {"form_id": form_id, "is_draft": False}, order_by="submitted_at"
        )
        user_ids = list(dict.fromkeys(response["user_id"] for response in responses))
        users = {user["id"]: user for user in self.store.find(USERS, {"id": In(user_ids)})} if user_ids else {}
        return [response for response in responses if response["user_id"] in users], users

    @staticmethod
    def _respondent(user: Dict[str, Any]) -> Tuple[str, Optional[str]]:
        if user.get("anonymous"):
            return ANONYMOUS, None
        return user.get("name", ""), user.get("email")

    def analyze_question(self, form_id: str, question_id: str) -> Dict[str, Any]:
        form = self.forms.get(form_id)
        question = self.forms.questions.get(question_id)
        if question_id not in {entry["question_id"] for entry in form.get("questions") or []}:
            raise NotFoundError("Question not found in this form")

        responses, _ = self._final_responses(form_id)
        answers = collect_answers(responses, question_id)
        return {
            "question": question["title"],
            "question_type": question["type"],
            "analysis": summarize_question(question["type"], answers),
        }

    def analyze_form(self, form_id: str) -> Dict[str, Any]:
        form = self.forms.resolve(self.forms.get(form_id))
        responses, _ = self._final_responses(form_id)

        questions_analysis = []
        for entry in form["questions"]:
            question = entry["question"]
            answers = collect_answers(responses, question["id"])
            analysis = summarize_question(question["type"], answers, full_view=True)
            questions_analysis.append({"question_id": question["id"], "title": question["title"], **analysis})

        return {
            "form_title": form["title"],
            "total_responses": len(responses),
            "questions_analysis": questions_analysis,
        }

    def export_form(self, form_id: str) -> Dict[str, Any]:
        form = self.forms.resolve(self.forms.get(form_id))
        responses, users = self._final_responses(form_id)

        columns = export_columns(form["questions"])

        rows = []
        for response in responses:
            name, email = self._respondent(users[response["user_id"]])
            row: Dict[str, Any] = {
                "respondent": name,
                "email": email,
                "submitted_at": response.get("submitted_at"),
            }
            for entry in form["questions"]:
                answers = collect_answers([response], entry["question_id"])
                if answers:
                    row[columns[entry["question_id"]]] = answers[0].as_text()
            rows.append(row)

        return {"form_title": form["title"], "total_responses": len(rows), "rows": rows}

    def list_form_responses(self, form_id: str) -> Dict[str, Any]:
        form = self.forms.get(form_id)
        responses, users = self._final_responses(form_id)
        question_ids = [item["question_id"] for response in responses for item in response.get("answers") or []]
        questions = self.forms.questions.resolve(question_ids)

        resolved = []
        for response in responses:
            user = users[response["user_id"]]
            name, email = self._respondent(user)
            answers = []
            for item in response.get("answers") or []:
                question = questions.get(item["question_id"])
                if question is None:
                    continue
                answers.append({
                    "question_id": question["id"],
                    "title": question["title"],
                    "type": question["type"],
                    "answer": item["answer"],
                })
            resolved.append({
                "id": response["id"],
                "respondent": {"id": user["id"], "name": name, "email": email},
                "submitted_at": response.get("submitted_at"),
                "answers": answers,
            })

        return {"form_title": form["title"], "total_responses": len(resolved), "responses": resolved}
