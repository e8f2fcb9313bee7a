# hr/models/__init__.py
from .department import Department
from .job import Job
from .employee import Employee

__all__ = [
    "Department",
    "Job",
    "Employee",
]
