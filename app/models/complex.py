"""
Modelo Complex — Complejo médico (sede física) que agrupa clínicas
de una misma organización.
"""

import uuid
from datetime import datetime

from sqlalchemy import String, DateTime, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Complex(Base):
    __tablename__ = "complexes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    organization_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("organizations.id"), nullable=True, index=True,
        comment="Organización dueña (null = complejo independiente)"
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[str | None] = mapped_column(String(500))
    is_active: Mapped[bool] = mapped_column(default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # ── Relaciones ───────────────────────────────────
    organization: Mapped["Organization | None"] = relationship(  # noqa: F821
        "Organization", back_populates="complexes"
    )
    clinics: Mapped[list["Clinic"]] = relationship(  # noqa: F821
        "Clinic", back_populates="complex"
    )

    def __repr__(self) -> str:
        return f"<Complex {self.name}>"
