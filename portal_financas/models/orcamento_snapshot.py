"""OrcamentoSnapshot model: frozen planned budget of a workpackage."""

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from portal_financas.database import Base


class OrcamentoSnapshot(Base):
    """Immutable baseline of a workpackage's planned cost.

    Rows are append-only: a re-snapshot inserts ``versao + 1`` and the row
    with the highest ``versao`` is the current baseline. Exactly one shape
    is filled depending on ``modelo_custo``:

    - ``"ETI_DB"``: ``orcamento_previsto_eti``.
    - ``"DETALHADO"``: ``previsto_recursos`` and ``previsto_materiais``.

    ``previsto_por_ano`` keeps the same figures split by year, as strings,
    e.g. ``{"2024": {"recursos": "600.00", "materiais": "0"}}``.

    Attributes:
        id: Primary key.
        workpackage_id: FK to Workpackage.
        versao: 1 for the first snapshot, incremented by every re-snapshot.
        modelo_custo: Costing model the baseline was computed under.
        orcamento_previsto_eti: ETI-based planned budget.
        previsto_recursos: Planned human-resources cost.
        previsto_materiais: Planned materials cost.
        previsto_por_ano: Per-year split of the planned figures.
        tirado_em: UTC timestamp of the snapshot.
    """

    __tablename__ = "orcamento_snapshot"
    __table_args__ = (
        UniqueConstraint("workpackage_id", "versao", name="uq_orcamento_snapshot_versao"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    workpackage_id = Column(Integer, ForeignKey("workpackage.id"), nullable=False, index=True)
    versao = Column(Integer, nullable=False)
    modelo_custo = Column(String(20), nullable=False)
    orcamento_previsto_eti = Column(Numeric(15, 2), nullable=True)
    previsto_recursos = Column(Numeric(15, 2), nullable=True)
    previsto_materiais = Column(Numeric(15, 2), nullable=True)
    previsto_por_ano = Column(JSON, nullable=False, default=dict)
    tirado_em = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    workpackage = relationship("Workpackage", back_populates="snapshots", lazy="select")
