# stureg/utils/records.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from uuid import uuid4

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from stureg.errors import DuplicateKey, NotFound, StorageError, ValidationError
from stureg.models.student import Student, utcnow

logger = logging.getLogger(__name__)

SEARCH_COLUMNS = (
    Student.name,
    Student.student_id,
    Student.major,
    Student.nationality,
    Student.id_card,
)

ORDERINGS = {
    "submitTime": (Student.submit_time.desc(),),
    "serialNumber": (Student.serial_number.asc(), Student.submit_time.desc()),
}

# имя ограничения (PostgreSQL) или "таблица.столбец" (SQLite)
DUPLICATE_MARKERS = {
    "idCard": ("uq_students_id_card", "students.id_card"),
    "studentId": ("uq_students_student_id", "students.student_id"),
}


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _duplicate_field(err: IntegrityError) -> Optional[str]:
    """
    По тексту ошибки драйвера определяет, какое ограничение сработало.
    SQLite: "UNIQUE constraint failed: students.id_card"
    PostgreSQL: 'duplicate key ... "uq_students_id_card"'
    """
    # первая строка без DETAIL, где PostgreSQL печатает сами значения
    lines = str(err.orig).splitlines()
    text = lines[0] if lines else ""
    for field, markers in DUPLICATE_MARKERS.items():
        if any(marker in text for marker in markers):
            return field
    return None


def insert_student(db: Session, data: Dict[str, Any], now: Optional[datetime] = None) -> Student:
    """
    Один INSERT без предварительной проверки: дубликаты ловит
    уникальное ограничение БД, при ошибке сессия откатывается.
    """
    student = Student(id=str(uuid4()), submit_time=now or utcnow(), **data)
    db.add(student)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        field = _duplicate_field(e)
        if field is None:
            logger.error("Integrity error on student insert: %s", e.orig)
            raise StorageError() from e
        logger.info("Duplicate submission rejected (%s)", field)
        raise DuplicateKey(field) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to insert student record")
        raise StorageError() from e
    db.refresh(student)
    return student


def list_students(
    db: Session,
    search: Optional[str] = None,
    major: Optional[str] = None,
    order: str = "submitTime",
) -> List[Student]:
    """
    Все анкеты, по умолчанию свежие сверху.
    search: подстрока без учёта регистра по имени, номерам, специальности и национальности;
    major: точное совпадение специальности.
    """
    if order not in ORDERINGS:
        raise ValidationError(f"不支持的排序方式 '{order}'，可选: {', '.join(ORDERINGS)}")

    q = db.query(Student)
    if search and search.strip():
        pattern = f"%{_escape_like(search.strip())}%"
        q = q.filter(or_(*(col.ilike(pattern, escape="\\") for col in SEARCH_COLUMNS)))
    if major and major.strip():
        q = q.filter(Student.major == major.strip())
    return q.order_by(*ORDERINGS[order]).all()


def get_student(db: Session, record_id: str) -> Student:
    student = db.get(Student, record_id)
    if not student:
        raise NotFound("未找到该学生信息")
    return student


def count_students(db: Session) -> int:
    return db.query(func.count(Student.id)).scalar() or 0


def count_submitted_between(db: Session, start: datetime, end: datetime) -> int:
    """Количество анкет с submit_time в [start, end); границы в наивном UTC."""
    return (
        db.query(func.count(Student.id))
        .filter(Student.submit_time >= start, Student.submit_time < end)
        .scalar()
        or 0
    )


def last_submission_time(db: Session) -> Optional[datetime]:
    return db.query(func.max(Student.submit_time)).scalar()


def resolve_timezone(name: str) -> tzinfo:
    if name.strip().upper() in ("UTC", "Z"):
        return timezone.utc
    try:
        return ZoneInfo(name.strip())
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValidationError(f"未知时区 '{name}'") from e


def day_bounds(tz: tzinfo, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    Начало и конец текущих календарных суток в зоне tz,
    переведённые в наивное UTC для сравнения с submit_time.
    """
    now = now or datetime.now(timezone.utc)
    local = now.astimezone(tz)
    start = datetime(local.year, local.month, local.day, tzinfo=tz)
    end = start + timedelta(days=1)
    return (
        start.astimezone(timezone.utc).replace(tzinfo=None),
        end.astimezone(timezone.utc).replace(tzinfo=None),
    )
