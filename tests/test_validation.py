from csvsync.models import Table
from csvsync.validation import missing_required_columns, validate_advanced, validate_structure

HEADERS = ["phone", "template_title", "reply_message_text"]


def test_structure_accepts_any_case():
    assert validate_structure(Table(headers=["Phone", "TEMPLATE_TITLE", "Reply_Message_Text"]))


def test_structure_accepts_substring_headers():
    assert validate_structure(Table(headers=["contact_phone", "template_title_v2", "reply_message_text"]))


def test_structure_rejects_missing_message_column():
    t = Table(headers=["phone", "template_title"])
    assert not validate_structure(t)
    assert missing_required_columns(t) == ["reply_message_text"]


def test_advanced_clean_table_is_valid():
    t = Table(headers=HEADERS, rows=[["11987654321", "t", "m"], ["21987654321", "t", "m"]])
    result = validate_advanced(t)
    assert result.is_valid
    assert result.issues == []


def test_advanced_flags_each_problem():
    t = Table(headers=HEADERS, rows=[
        ["11987654321", "t", "m"],
        ["123", "t", "m"],
        ["011987654321", "t"],
    ])
    result = validate_advanced(t)

    assert not result.is_valid
    assert [i.issue for i in result.issues] == ["invalid_phone", "row_width_mismatch", "duplicate_phone"]
    assert result.messages[0] == "Row 3: invalid phone number '123'"
    assert "first seen on row 2" in result.messages[2]


def test_advanced_missing_headers():
    result = validate_advanced(Table())
    assert not result.is_valid
    assert result.messages == ["CSV has no headers"]


def test_advanced_reports_missing_required_column():
    result = validate_advanced(Table(headers=["phone", "template_title"], rows=[["11987654321", "t"]]))
    assert [i.issue for i in result.issues] == ["missing_column"]
