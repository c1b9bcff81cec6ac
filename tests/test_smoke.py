import base64

from fastapi.testclient import TestClient
from csvsync.main import app

client = TestClient(app)

SAMPLE = (
    "phone,template_title,reply_message_text\n"
    "(11) 98765-4321,promo,Oi\n"
    "011987654321,promo,\n"
    "21 3333-4444,boas-vindas,Bem vindo\n"
)


def upload(raw: bytes, name: str = "contacts.csv"):
    return client.post("/upload", files={"file": (name, raw, "text/csv")})


def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_upload_parses_and_analyzes():
    r = upload(SAMPLE.encode("utf-8"))
    assert r.status_code == 200

    data = r.json()
    assert data["table"]["headers"] == ["phone", "template_title", "reply_message_text"]
    assert data["table"]["row_count"] == 3
    assert data["stats"]["total_records"] == 3
    assert data["stats"]["duplicate_phone_numbers"] == 1
    assert data["stats"]["empty_messages"] == 1
    assert data["validation"]["is_valid"] is False


def test_upload_latin1_with_accents():
    # Include Latin-1 characters to force non-ASCII handling
    raw = 'phone,template_title,reply_message_text\n11987654321,promoção,"Olá, tudo bem?"\n'
    r = upload(raw.encode("latin-1"))
    assert r.status_code == 200
    assert r.json()["table"]["rows"][0][2] == "Olá, tudo bem?"


def test_upload_strips_utf8_bom():
    r = upload(b"\xef\xbb\xbf" + SAMPLE.encode("utf-8"))
    assert r.status_code == 200
    assert r.json()["table"]["headers"][0] == "phone"


def test_upload_rejects_non_csv_name():
    r = upload(SAMPLE.encode("utf-8"), name="contacts.txt")
    assert r.status_code == 422


def test_upload_rejects_missing_columns():
    r = upload(b"phone,template_title\n11987654321,promo\n")
    assert r.status_code == 422
    assert r.json()["detail"]["missing_columns"] == ["reply_message_text"]


def test_upload_rejects_empty_file():
    r = upload(b"\n\n")
    assert r.status_code == 422


def test_upload_records_recent_file():
    upload(SAMPLE.encode("utf-8"), name="recent-check.csv")
    r = client.get("/recent")
    assert r.status_code == 200
    assert r.json()[0]["name"] == "recent-check.csv"
    assert r.json()[0]["rows"] == 3


def test_filter_then_export_zenvia():
    table = upload(SAMPLE.encode("utf-8")).json()["table"]

    r = client.post("/filter", json={
        "table": table,
        "spec": {"phone_numbers": {"fix_format": True, "remove_duplicates": True}},
    })
    assert r.status_code == 200
    filtered = r.json()
    assert filtered["table"]["row_count"] == 2
    assert filtered["stats"]["corrected_phone_numbers"] == 3

    r = client.post("/export", json={
        "table": filtered["table"],
        "options": {"format": "zenvia", "sms_text": "Oi", "theme": "black friday"},
    })
    assert r.status_code == 200
    data = r.json()
    content = base64.b64decode(data["exported_csv"]["content_b64"]).decode("utf-8")
    assert content == "celular;sms\n5511987654321;Oi\n552133334444;Oi"
    assert data["filename"].startswith("CSV_ZENVIA_DISPARO_")
    assert "_BLACK-FRIDAY_GERADO-" in data["filename"]
    assert data["sms_status"] == "ok"


def test_export_without_phone_column_is_rejected():
    r = client.post("/export", json={
        "table": {"headers": ["name"], "rows": [["Ana"]]},
        "options": {"format": "omnichat"},
    })
    assert r.status_code == 422
    assert r.json()["detail"]["missing_columns"] == ["phone"]


def test_export_history_roundtrip():
    r = client.post("/export", json={
        "table": {"headers": ["phone"], "rows": [["11987654321"]]},
        "options": {"format": "omnichat"},
    })
    record_id = r.json()["record"]["id"]

    history = client.get("/history").json()
    assert history[0]["id"] == record_id
    assert history[0]["type"] == "omnichat"

    assert client.delete(f"/history/{record_id}").status_code == 200
    assert client.delete(f"/history/{record_id}").status_code == 404


def test_split_endpoint():
    rows = [[str(11900000000 + i), "t", "m"] for i in range(5)]
    r = client.post("/split", json={
        "table": {"headers": ["phone", "template_title", "reply_message_text"], "rows": rows},
        "max_rows_per_part": 2,
    })
    assert r.status_code == 200
    assert [p["row_count"] for p in r.json()["parts"]] == [2, 2, 1]


def test_filter_ignores_client_supplied_roles():
    r = client.post("/filter", json={
        "table": {
            "headers": ["phone"],
            "rows": [["11987654321"]],
            "roles": {"phone": 0, "template": 4, "message": 7},
        },
        "spec": {"show_only_main_columns": True},
    })
    assert r.status_code == 200
    assert r.json()["table"]["headers"] == ["phone"]
    assert r.json()["table"]["rows"] == [["11987654321"]]
