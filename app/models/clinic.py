"""
Modelo Clinic — Clínica dentro de un complejo.
"""

import uuid
from datetime import datetime

from sqlalchemy import String, DateTime, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Clinic(Base):
    __tablename__ = "clinics"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    organization_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("organizations.id"), nullable=True, index=True,
    )
    complex_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("complexes.id"), nullable=True, index=True,
        comment="Complejo al que pertenece (null = clínica independiente)"
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    specialty_type: Mapped[str | None] = mapped_column(
        String(100), comment="general, dental, obstetric, ophthalmic, etc."
    )
    timezone: Mapped[str] = mapped_column(String(50), default="America/Lima")
    is_active: Mapped[bool] = mapped_column(default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # ── Relaciones ───────────────────────────────────
    complex: Mapped["Complex | None"] = relationship(  # noqa: F821
        "Complex", back_populates="clinics"
    )
    users: Mapped[list["User"]] = relationship(  # noqa: F821
        "User", back_populates="clinic"
    )

    def __repr__(self) -> str:
        return f"<Clinic {self.name}>"
