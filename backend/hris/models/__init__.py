# backend/hris/models/__init__.py
from hris.db import Base

# import all model modules so tables get registered on Base.metadata
from .user import User
from .company import Company
from .employee import Employee
from .vacation_request import VacationRequest

# entity kind -> model class
MODELS = {
    "user": User,
    "company": Company,
    "employee": Employee,
    "vacation_request": VacationRequest,
}


__all__ = [
    "Base",
    "User",
    "Company",
    "Employee",
    "VacationRequest",
    "MODELS",
]
