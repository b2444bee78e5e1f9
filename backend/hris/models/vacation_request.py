import uuid
from datetime import datetime, date, timezone
from sqlalchemy import String, ForeignKey, Date, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from hris.db import Base

class VacationRequest(Base):
    __tablename__ = "vacation_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date:   Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(255), nullable=False)
    employee_id: Mapped[str | None] = mapped_column(ForeignKey("employees.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    employee = relationship("Employee", back_populates="vacation_request")

# helpful index for queries
Index("ix_vacation_requests_employee_range", VacationRequest.employee_id, VacationRequest.start_date, VacationRequest.end_date)
