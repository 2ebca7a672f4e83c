"""AlocacaoRecurso model: monthly occupancy of a user on a workpackage."""

from sqlalchemy import Column, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship

from portal_financas.database import Base


class AlocacaoRecurso(Base):
    """Occupancy fraction of one user on one workpackage for one month.

    Two parallel tracks live in the same table: ``"real"`` (actual) and
    ``"submetido"`` (officially reported). The natural key
    ``(utilizador_id, workpackage_id, mes, ano, tipo)`` is unique so that
    writes are upserts.

    Attributes:
        id: Primary key.
        utilizador_id: FK to Utilizador.
        workpackage_id: FK to Workpackage.
        mes: Month number (1 = January, 12 = December).
        ano: Calendar year.
        ocupacao: Occupancy fraction; values above 1 are allowed.
        tipo: ``"real"`` or ``"submetido"``.
    """

    __tablename__ = "alocacao_recurso"
    __table_args__ = (
        UniqueConstraint(
            "utilizador_id", "workpackage_id", "mes", "ano", "tipo",
            name="uq_alocacao_recurso_chave",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    utilizador_id = Column(Integer, ForeignKey("utilizador.id"), nullable=False, index=True)
    workpackage_id = Column(Integer, ForeignKey("workpackage.id"), nullable=False, index=True)
    mes = Column(Integer, nullable=False)  # 1–12
    ano = Column(Integer, nullable=False)
    ocupacao = Column(Numeric(6, 4), default=0, nullable=False)
    tipo = Column(String(20), default="real", nullable=False)  # "real", "submetido"

    # Relationships
    utilizador = relationship("Utilizador", back_populates="alocacoes", lazy="select")
    workpackage = relationship("Workpackage", back_populates="alocacoes", lazy="select")
