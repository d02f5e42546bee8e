import io
from datetime import datetime, timezone
from urllib.parse import quote

from openpyxl import load_workbook

from stureg.schemas.student import StudentSubmit
from stureg.utils import records
from stureg.utils.excel_export import HEADERS, SHEET_TITLE, content_disposition, export_filename


def _load(resp):
    return load_workbook(io.BytesIO(resp.content))


def test_empty_export_is_header_only(client, auth_headers):
    resp = client.get("/api/export-excel", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )

    wb = _load(resp)
    assert wb.sheetnames == [SHEET_TITLE]
    ws = wb.active
    assert ws.max_row == 1
    assert [c.value for c in ws[1]] == HEADERS


def test_export_rows_follow_header_order(client, db, auth_headers, make_payload):
    first = StudentSubmit.model_validate(make_payload(studentId="1", idCard="A1", name="First")).model_dump()
    second = StudentSubmit.model_validate(make_payload(studentId="2", idCard="A2", name="Second")).model_dump()
    records.insert_student(db, first, now=datetime(2026, 1, 2, 3, 4, 5))
    records.insert_student(db, second, now=datetime(2026, 1, 3, 3, 4, 5))

    ws = _load(client.get("/api/export-excel", headers=auth_headers)).active
    rows = list(ws.iter_rows(min_row=2, values_only=True))

    assert len(rows) == 2
    assert rows[0][HEADERS.index("姓名")] == "Second"
    assert rows[1][HEADERS.index("学号")] == "1"
    assert rows[1][HEADERS.index("身份证号")] == "A1"
    assert rows[1][HEADERS.index("提交时间")] == "2026-01-02 03:04:05"


def test_export_filename_has_date(client, auth_headers):
    resp = client.get("/api/export-excel", headers=auth_headers)
    disposition = resp.headers["content-disposition"]
    today = datetime.now(timezone.utc).strftime("%Y-%m-%d")

    assert disposition.startswith("attachment;")
    assert f"students_{today}.xlsx" in disposition
    assert quote(f"学生信息汇总_{today}.xlsx") in disposition


def test_content_disposition_is_latin1_safe():
    header = content_disposition(datetime(2026, 10, 19))
    header.encode("latin-1")
    assert export_filename(datetime(2026, 10, 19)) == "学生信息汇总_2026-10-19.xlsx"


def test_export_requires_token(client):
    resp = client.get("/api/export-excel")
    assert resp.status_code == 401
    assert resp.headers["content-type"].startswith("application/json")


def test_control_characters_do_not_break_export(client, auth_headers, make_payload):
    resp = client.post("/api/submit", json=make_payload(specialty="chess\x07", homeAddress="Line1\x0bLine2"))
    assert resp.status_code == 200, resp.text

    resp = client.get("/api/export-excel", headers=auth_headers)
    assert resp.status_code == 200

    row = next(_load(resp).active.iter_rows(min_row=2, values_only=True))
    assert row[HEADERS.index("特长")] == "chess"
    assert row[HEADERS.index("家庭住址")] == "Line1Line2"


def test_formula_like_values_stay_text(client, auth_headers, make_payload):
    assert client.post("/api/submit", json=make_payload(specialty="=1+1", name="=HYPERLINK(\"x\")")).status_code == 200

    ws = _load(client.get("/api/export-excel", headers=auth_headers)).active
    specialty = ws.cell(row=2, column=HEADERS.index("特长") + 1)
    name = ws.cell(row=2, column=HEADERS.index("姓名") + 1)

    assert specialty.value == "=1+1"
    assert specialty.data_type == "s"
    assert name.value == "=HYPERLINK(\"x\")"
    assert name.data_type == "s"
