import io
import logging
from datetime import datetime, timezone, tzinfo
from typing import Iterable, List, Tuple
from urllib.parse import quote

from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter
from openpyxl.workbook import Workbook

from stureg.models.student import Student

logger = logging.getLogger(__name__)

SHEET_TITLE = "学生信息"
FILENAME_PREFIX = "学生信息汇总"

# (атрибут модели, заголовок столбца); порядок столбцов фиксирован
COLUMNS: List[Tuple[str, str]] = [
    ("serial_number", "序号"),
    ("name", "姓名"),
    ("major", "专业"),
    ("class_name", "所在班级"),
    ("student_id", "学号"),
    ("gender", "性别"),
    ("nationality", "民族"),
    ("id_card", "身份证号"),
    ("birth_date", "出生年月"),
    ("dormitory", "宿舍"),
    ("economic_status", "家庭经济情况"),
    ("household_type", "户籍性质"),
    ("native_place", "籍贯"),
    ("home_address", "家庭住址"),
    ("phone", "手机号"),
    ("father_name", "父亲名字"),
    ("father_phone", "父亲手机号"),
    ("mother_name", "母亲姓名"),
    ("mother_phone", "母亲手机号"),
    ("qq", "QQ号"),
    ("political_status", "政治面貌"),
    ("specialty", "特长"),
    ("religion", "宗教信仰"),
    ("submit_time", "提交时间"),
]

HEADERS = [title for _, title in COLUMNS]


def format_submit_time(value: datetime, tz: tzinfo) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz).strftime("%Y-%m-%d %H:%M:%S")


def clean_text(value: str) -> str:
    # управляющие символы XML в ячейку записать нельзя
    return ILLEGAL_CHARACTERS_RE.sub("", value)


def student_row(student: Student, tz: tzinfo) -> List[str]:
    row = []
    for attr, _ in COLUMNS:
        value = getattr(student, attr)
        if attr == "submit_time":
            value = format_submit_time(value, tz)
        row.append(clean_text(value))
    return row


def build_workbook(students: Iterable[Student], tz: tzinfo) -> bytes:
    """
    Один лист: строка заголовков + по строке на анкету.
    Пустой список даёт книгу только с заголовками.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE

    ws.append(HEADERS)
    for cell in ws[1]:
        cell.font = Font(bold=True)
        cell.alignment = Alignment(horizontal="center")

    count = 0
    for student in students:
        ws.append(student_row(student, tz))
        # "=..." из анкеты остаётся текстом, а не формулой
        for cell in ws[ws.max_row]:
            cell.data_type = "s"
        count += 1

    # ширина столбцов по самому длинному значению
    for idx, column in enumerate(ws.iter_cols(min_row=1, max_row=ws.max_row), start=1):
        max_length = max(len(str(cell.value)) for cell in column if cell.value is not None)
        ws.column_dimensions[get_column_letter(idx)].width = min(max_length * 2 + 2, 50)

    ws.freeze_panes = "A2"

    buffer = io.BytesIO()
    wb.save(buffer)
    logger.info("Built export workbook with %d rows", count)
    return buffer.getvalue()


def export_filename(today: datetime) -> str:
    return f"{FILENAME_PREFIX}_{today:%Y-%m-%d}.xlsx"


def content_disposition(today: datetime) -> str:
    # заголовки HTTP только latin-1, поэтому имя на китайском идёт через filename*
    fallback = f"students_{today:%Y-%m-%d}.xlsx"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(export_filename(today))}"
