# backend/tests/test_utils.py

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from app.core.errors import FormValidationError
from app.utils.answers import MultipleAnswer, SingleAnswer, parse_answer
from app.utils.time_windows import day_key, day_window, parse_timestamp, resolve_timezone, to_iso

SAO_PAULO = ZoneInfo("America/Sao_Paulo")


def test_parse_answer_shapes():
    assert parse_answer(None) is None
    assert parse_answer("yes") == SingleAnswer("yes")
    assert parse_answer(4) == SingleAnswer("4")
    assert parse_answer(["a", "b"]) == MultipleAnswer(("a", "b"))


@pytest.mark.parametrize("raw", [True, {"value": "x"}, ["a", None]])
def test_parse_answer_rejects_other_types(raw):
    with pytest.raises(ValueError):
        parse_answer(raw)


def test_comma_separated_selections():
    assert SingleAnswer(" a , b,,c ").selections() == ["a", "b", "c"]
    assert MultipleAnswer(("a", "b")).as_text() == "a, b"


def test_day_window_covers_the_local_day():
    start, end = day_window(datetime(2026, 3, 11, 1, 30, tzinfo=timezone.utc), SAO_PAULO)

    assert to_iso(start) == "2026-03-10T03:00:00.000+00:00"
    assert to_iso(end) == "2026-03-11T02:59:59.999+00:00"


def test_day_key_uses_local_date():
    moment = datetime(2026, 3, 11, 1, 30, tzinfo=timezone.utc)
    assert day_key(moment, SAO_PAULO) == "2026-03-10"
    assert day_key(moment, timezone.utc) == "2026-03-11"


def test_resolve_timezone():
    assert resolve_timezone("Asia/Tokyo") == ZoneInfo("Asia/Tokyo")
    assert resolve_timezone() == SAO_PAULO
    with pytest.raises(FormValidationError):
        resolve_timezone("Nowhere/Special")


def test_parse_timestamp():
    assert parse_timestamp("2026-03-10T10:00:00Z") == datetime(2026, 3, 10, 10, tzinfo=timezone.utc)
    assert parse_timestamp("2026-03-10") == datetime(2026, 3, 10, tzinfo=timezone.utc)
