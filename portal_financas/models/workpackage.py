"""Workpackage model: unit of work that allocations and materials hang from."""

from sqlalchemy import Column, Date, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from portal_financas.database import Base


class Workpackage(Base):
    """Workpackage belonging to exactly one Projeto.

    Attributes:
        id: Primary key.
        projeto_id: FK to Projeto.
        nome: Workpackage name.
        inicio: Start date (required before a snapshot can be taken).
        fim: End date (required before a snapshot can be taken).
    """

    __tablename__ = "workpackage"

    id = Column(Integer, primary_key=True, autoincrement=True)
    projeto_id = Column(Integer, ForeignKey("projeto.id"), nullable=False, index=True)
    nome = Column(String(255), nullable=False)
    inicio = Column(Date, nullable=True)
    fim = Column(Date, nullable=True)

    # Relationships
    projeto = relationship("Projeto", back_populates="workpackages", lazy="select")
    alocacoes = relationship(
        "AlocacaoRecurso",
        back_populates="workpackage",
        lazy="select",
        cascade="all, delete-orphan",
    )
    materiais = relationship(
        "Material",
        back_populates="workpackage",
        lazy="select",
        cascade="all, delete-orphan",
    )
    snapshots = relationship(
        "OrcamentoSnapshot",
        back_populates="workpackage",
        lazy="select",
        cascade="all, delete-orphan",
        order_by="OrcamentoSnapshot.versao",
    )
