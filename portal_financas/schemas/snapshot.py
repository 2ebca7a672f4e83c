"""
Pydantic v2 schemas for the budget snapshot endpoints (``/api/snapshots``).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class SnapshotResponse(BaseModel):
    """One frozen baseline of a workpackage.

    Only the fields of ``modelo_custo``'s shape are filled: ``ETI_DB``
    sets ``orcamento_previsto_eti``; ``DETALHADO`` sets
    ``previsto_recursos`` and ``previsto_materiais``.

    Attributes:
        id: Snapshot primary key.
        workpackage_id: Workpackage the baseline belongs to.
        versao: 1 for the first snapshot, +1 per re-snapshot.
        modelo_custo: Costing model used to compute the figures.
        orcamento_previsto_eti: ETI-based planned budget.
        previsto_recursos: Planned human-resources cost.
        previsto_materiais: Planned materials cost.
        previsto_por_ano: The same figures split per calendar year.
        tirado_em: UTC timestamp of the snapshot.
        alocacoes_fora_do_periodo: Submitted allocations ignored because
            they fall outside the workpackage's dates (write responses only).
    """

    id: int
    workpackage_id: int
    versao: int = Field(..., ge=1)
    modelo_custo: str
    orcamento_previsto_eti: Decimal | None = None
    previsto_recursos: Decimal | None = None
    previsto_materiais: Decimal | None = None
    previsto_por_ano: dict[int, dict[str, Decimal]] = Field(default_factory=dict)
    tirado_em: datetime
    alocacoes_fora_do_periodo: int = Field(0, ge=0)

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 12,
                "workpackage_id": 3,
                "versao": 1,
                "modelo_custo": "ETI_DB",
                "orcamento_previsto_eti": "600.00",
                "previsto_recursos": None,
                "previsto_materiais": None,
                "previsto_por_ano": {"2024": {"orcamento_eti": "600.00"}},
                "tirado_em": "2024-01-15T09:30:00Z",
                "alocacoes_fora_do_periodo": 0,
            }
        },
    )


class AprovacaoResponse(BaseModel):
    """Result of approving a project: its new state and the baselines taken."""

    projeto_id: int
    estado: str
    snapshots: list[SnapshotResponse] = Field(default_factory=list)
