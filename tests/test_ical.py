"""Tests for the iCalendar reminder builder."""

from datetime import date, datetime, timezone

from app.core.ical import due_date_event


def _event(description: str) -> str:
    return due_date_event(
        "utility-bill-7@crediflow",
        date(2025, 4, 10),
        "Electricity Due - Colombo 03",
        description,
        stamp=datetime(2025, 4, 1, 9, 30, tzinfo=timezone.utc),
    )


def test_short_lines_are_not_folded():
    body = _event("Amount: 18450")
    assert "DESCRIPTION:Amount: 18450\r\n" in body
    assert "\r\n " not in body


def test_long_description_folds_at_75_octets():
    description = "Notes: " + "කොළඹ branch meter, " * 60
    body = _event(description)

    lines = body.split("\r\n")
    assert lines[-1] == ""
    for line in lines[:-1]:
        assert len(line.encode("utf-8")) <= 75, line

    start = next(i for i, line in enumerate(lines) if line.startswith("DESCRIPTION:"))
    assert lines[start + 1].startswith(" ")
    assert lines[-3] == "END:VEVENT"

    unfolded = body.replace("\r\n ", "")
    expected = description.replace(",", "\\,")
    assert f"DESCRIPTION:{expected}\r\n" in unfolded
