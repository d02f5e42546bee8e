from stureg.models.admin import Admin
from stureg.models.student import Student

__all__ = ["Admin", "Student"]
