"""Material model: priced material or service line of a workpackage."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from portal_financas.database import Base


class Material(Base):
    """Material cost line. Cost = ``preco × quantidade``.

    The whole cost is attributed to ``ano_utilizacao``; ``mes`` places it
    in the monthly series when known.

    Attributes:
        id: Primary key.
        workpackage_id: FK to Workpackage.
        nome: Description.
        preco: Unit price.
        quantidade: Number of units.
        rubrica: Cost rubric, e.g. ``"MATERIAIS"`` or ``"SERVICOS_TERCEIROS"``.
        ano_utilizacao: Year the material is used.
        mes: Optional month of use (1–12).
        estado: Whether the material has already been acquired.
    """

    __tablename__ = "material"

    id = Column(Integer, primary_key=True, autoincrement=True)
    workpackage_id = Column(Integer, ForeignKey("workpackage.id"), nullable=False, index=True)
    nome = Column(String(255), nullable=False)
    preco = Column(Numeric(15, 2), nullable=False)
    quantidade = Column(Integer, default=1, nullable=False)
    rubrica = Column(String(50), default="MATERIAIS", nullable=False)
    ano_utilizacao = Column(Integer, nullable=False)
    mes = Column(Integer, nullable=True)
    estado = Column(Boolean, default=False, nullable=False)

    # Relationships
    workpackage = relationship("Workpackage", back_populates="materiais", lazy="select")
