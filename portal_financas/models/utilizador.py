"""Utilizador model: only the cost-relevant fields of a portal user."""

from sqlalchemy import Column, Integer, Numeric, String
from sqlalchemy.orm import relationship

from portal_financas.database import Base


class Utilizador(Base):
    """Portal user as seen by the financial core.

    A user with no ``salario`` contributes zero realized cost in the
    detailed costing model even when allocated.

    Attributes:
        id: Primary key.
        nome: Display name.
        email: Unique email address.
        salario: Monthly salary, or ``None`` when unknown.
        regime: ``"INTEGRAL"`` or ``"PARCIAL"``.
    """

    __tablename__ = "utilizador"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nome = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    salario = Column(Numeric(15, 2), nullable=True)
    regime = Column(String(20), default="INTEGRAL", nullable=False)

    # Relationships
    alocacoes = relationship("AlocacaoRecurso", back_populates="utilizador", lazy="select")
