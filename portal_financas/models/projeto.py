"""Projeto model: research project owning workpackages."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from portal_financas.database import Base
from portal_financas.utils.constants import ESTADO_RASCUNHO


class Projeto(Base):
    """Project with a date range, lifecycle state and optional funding program.

    Attributes:
        id: Primary key.
        nome: Project name.
        inicio: Start date.
        fim: End date.
        estado: ``RASCUNHO``, ``PENDENTE``, ``APROVADO``,
            ``EM_DESENVOLVIMENTO`` or ``CONCLUIDO``.
        financiamento_id: Optional FK to Financiamento.
        created_at: Record creation timestamp.
    """

    __tablename__ = "projeto"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nome = Column(String(255), nullable=False)
    inicio = Column(Date, nullable=True)
    fim = Column(Date, nullable=True)
    estado = Column(String(30), default=ESTADO_RASCUNHO, nullable=False)
    financiamento_id = Column(Integer, ForeignKey("financiamento.id"), nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    # Relationships
    financiamento = relationship("Financiamento", back_populates="projetos", lazy="select")
    workpackages = relationship(
        "Workpackage",
        back_populates="projeto",
        lazy="select",
        cascade="all, delete-orphan",
        order_by="Workpackage.id",
    )
