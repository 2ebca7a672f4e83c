"""Financiamento model: funding program that prices a project's effort."""

from sqlalchemy import Column, Integer, Numeric, String
from sqlalchemy.orm import relationship

from portal_financas.database import Base


class Financiamento(Base):
    """Funding program parameters shared by zero or more projects.

    ``tipo_calculo_previsto`` fixes the costing model for every project that
    references this program: ``"ETI_DB"`` prices occupancy with ``valor_eti``,
    ``"DETALHADO"`` prices it with each user's salary.

    Attributes:
        id: Primary key.
        nome: Unique display name (compared case-insensitively).
        overhead: Overhead percentage (0–100).
        taxa_financiamento: Financing rate percentage (0–100).
        valor_eti: Cost of one full-time-equivalent month.
        tipo_calculo_previsto: Costing model, ``"ETI_DB"`` or ``"DETALHADO"``.
    """

    __tablename__ = "financiamento"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nome = Column(String(255), unique=True, nullable=False)
    overhead = Column(Numeric(5, 2), default=0, nullable=False)
    taxa_financiamento = Column(Numeric(5, 2), default=0, nullable=False)
    valor_eti = Column(Numeric(15, 2), default=0, nullable=False)
    tipo_calculo_previsto = Column(String(20), default="DETALHADO", nullable=False)
    # "ETI_DB", "DETALHADO"

    # Relationships
    projetos = relationship("Projeto", back_populates="financiamento", lazy="select")
