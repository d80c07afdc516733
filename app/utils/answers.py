# backend/app/utils/answers.py

"""
Answer values arrive either as a single string or as a list of strings
(checkbox questions). They are normalized into one of two tagged shapes at
the ledger boundary so the aggregator never has to branch on raw JSON types.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple, Union


@dataclass(frozen=True)
class SingleAnswer:
    value: str

    def is_empty(self) -> bool:
        return self.value == ""

    def selections(self) -> List[str]:
        # Checkbox answers sent as "a, b, c"
        return [part.strip() for part in self.value.split(",") if part.strip()]

    def as_text(self) -> str:
        return self.value

    def to_raw(self) -> str:
        return self.value


@dataclass(frozen=True)
class MultipleAnswer:
    values: Tuple[str, ...]

    def is_empty(self) -> bool:
        return len(self.values) == 0

    def selections(self) -> List[str]:
        return list(self.values)

    def as_text(self) -> str:
        return ", ".join(self.values)

    def to_raw(self) -> List[str]:
        return list(self.values)


Answer = Union[SingleAnswer, MultipleAnswer]


def parse_answer(raw: Any) -> Optional[Answer]:
    """Normalize a stored or submitted answer. ``None`` means "no answer"."""
    if raw is None:
        return None
    if isinstance(raw, str):
        return SingleAnswer(raw)
    if isinstance(raw, bool):
        raise ValueError("answer must be text or a list of text")
    if isinstance(raw, (int, float)):
        return SingleAnswer(str(raw))
    if isinstance(raw, (list, tuple)):
        if not all(isinstance(item, (str, int, float)) and not isinstance(item, bool) for item in raw):
            raise ValueError("answer list must only contain text")
        return MultipleAnswer(tuple(str(item) for item in raw))
    raise ValueError("answer must be text or a list of text")
