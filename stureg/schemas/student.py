from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel


class StudentBase(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    serial_number: str
    name: str
    major: str
    class_name: str
    student_id: str
    gender: str
    nationality: str
    id_card: str
    birth_date: str
    dormitory: str
    economic_status: str
    household_type: str
    native_place: str
    home_address: str
    phone: str
    father_name: str
    father_phone: str
    mother_name: str
    mother_phone: str
    qq: str
    political_status: str
    specialty: str
    religion: str


class StudentSubmit(StudentBase):
    """
    Тело POST /api/submit. Набор полей фиксирован:
    лишние ключи отклоняются, пустые строки считаются отсутствующими.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
        str_min_length=1,
        coerce_numbers_to_str=True,
    )


class StudentOut(StudentBase):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    submit_time: datetime

    @field_serializer("submit_time")
    def _as_utc(self, value: datetime) -> str:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()


class StudentList(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    students: List[StudentOut]
    total: int
    today_count: int
    last_submission_time: Optional[datetime] = None

    @field_serializer("last_submission_time")
    def _as_utc(self, value: Optional[datetime]) -> Optional[str]:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()


class StudentDetail(BaseModel):
    success: bool = True
    student: StudentOut


class SubmitResult(BaseModel):
    success: bool = True
    message: str
    id: str
