from csvsync.columns import cell_at, find_column, resolve_columns


def test_exact_match_beats_substring():
    headers = ["phone_backup", "Phone", "x"]
    assert find_column(headers, ("phone",)) == 1


def test_substring_fallback_leftmost():
    headers = ["name", "mobile_phone", "home_phone"]
    assert find_column(headers, ("phone",)) == 1


def test_alias_priority():
    roles = resolve_columns(["mensagem", "reply_message_text", "telefone"])
    assert roles.message == 1
    assert roles.phone == 2
    assert roles.template is None


def test_cell_at_tolerates_short_rows():
    assert cell_at(["a"], 3) == ""
    assert cell_at(["a"], None) == ""
    assert cell_at(["a", "b"], 1) == "b"
