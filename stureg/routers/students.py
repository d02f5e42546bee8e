from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from stureg.database import get_db
from stureg.schemas.student import StudentDetail, StudentList, StudentOut, StudentSubmit, SubmitResult
from stureg.utils import excel_export, records
from stureg.utils.auth import get_current_admin

router = APIRouter(prefix="/api", tags=["Students"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.post("/submit", response_model=SubmitResult)
def submit(payload: StudentSubmit, db: Session = Depends(get_db)):
    """
    Публичная отправка анкеты. Время отправки ставит сервер.
    """
    student = records.insert_student(db, payload.model_dump())
    return SubmitResult(message="提交成功，感谢您的配合", id=student.id)


@router.get("/students", response_model=StudentList, response_model_exclude_none=True)
def list_students(
    request: Request,
    search: Optional[str] = None,
    major: Optional[str] = None,
    order: str = "submitTime",
    tz: Optional[str] = Query(None, description="IANA-зона клиента для todayCount"),
    db: Session = Depends(get_db),
    _admin: str = Depends(get_current_admin),
):
    """
    Список анкет (с фильтрами) и сводка:
    - total: сколько записей в ответе
    - todayCount: сколько отправлено за текущие сутки клиента
    - lastSubmissionTime: время самой свежей анкеты (нет поля, если анкет нет)
    """
    zone = records.resolve_timezone(tz or request.app.state.settings.timezone)
    students = records.list_students(db, search=search, major=major, order=order)
    start, end = records.day_bounds(zone)

    return StudentList(
        students=[StudentOut.model_validate(s) for s in students],
        total=len(students),
        today_count=records.count_submitted_between(db, start, end),
        last_submission_time=records.last_submission_time(db),
    )


@router.get("/students/{record_id}", response_model=StudentDetail)
def get_student(record_id: str, db: Session = Depends(get_db), _admin: str = Depends(get_current_admin)):
    return StudentDetail(student=StudentOut.model_validate(records.get_student(db, record_id)))


@router.get("/export-excel")
def export_excel(request: Request, db: Session = Depends(get_db), _admin: str = Depends(get_current_admin)):
    zone = records.resolve_timezone(request.app.state.settings.timezone)
    students = records.list_students(db)
    content = excel_export.build_workbook(students, zone)

    today = datetime.now(timezone.utc).astimezone(zone)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": excel_export.content_disposition(today)},
    )
