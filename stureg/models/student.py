from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, UniqueConstraint
from stureg.database import Base


def utcnow() -> datetime:
    # в БД храним наивное UTC-время
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Student(Base):
    """
    Анкета студента. Создаётся один раз через /api/submit,
    после этого не изменяется и не удаляется.
    """
    __tablename__ = "students"
    __table_args__ = (
        UniqueConstraint("student_id", name="uq_students_student_id"),
        UniqueConstraint("id_card", name="uq_students_id_card"),
    )

    id = Column(String, primary_key=True, index=True)
    serial_number = Column(String, nullable=False)
    name = Column(String, nullable=False)
    major = Column(String, nullable=False, index=True)
    class_name = Column(String, nullable=False)
    student_id = Column(String, nullable=False)           # учебный номер, уникален
    gender = Column(String, nullable=False)
    nationality = Column(String, nullable=False)          # национальность
    id_card = Column(String, nullable=False)              # номер паспорта/ID, уникален
    birth_date = Column(String, nullable=False)
    dormitory = Column(String, nullable=False)
    economic_status = Column(String, nullable=False)
    household_type = Column(String, nullable=False)
    native_place = Column(String, nullable=False)
    home_address = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    father_name = Column(String, nullable=False)
    father_phone = Column(String, nullable=False)
    mother_name = Column(String, nullable=False)
    mother_phone = Column(String, nullable=False)
    qq = Column(String, nullable=False)
    political_status = Column(String, nullable=False)
    specialty = Column(String, nullable=False)
    religion = Column(String, nullable=False)

    submit_time = Column(DateTime, default=utcnow, nullable=False, index=True)
