"""
Pydantic v2 schemas for the dashboard projections (``/api/dashboard``).

These are thin reshapes of the financial panels for list and card
widgets; no figure here is computed outside the aggregator.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class AlertaOrcamentoItem(BaseModel):
    """Workpackage whose budget consumption crossed a threshold.

    Attributes:
        nivel: ``"AMARELO"`` above ``LIMIAR_RISCO``, ``"VERMELHO"`` above
            ``LIMIAR_CRITICO``. Workpackages with realized cost and no
            baseline are reported as ``"VERMELHO"`` with ``sem_baseline``.
        razao: Unclamped realized/planned ratio.
        dias_restantes: Days until ``fim``; None when undated.
    """

    workpackage_id: int
    workpackage_nome: str
    projeto_id: int
    projeto_nome: str
    modelo_custo: str
    nivel: str
    percent: Decimal
    razao: Decimal
    orcamento: Decimal
    realizado: Decimal
    sem_baseline: bool = False
    fim: date | None = None
    dias_restantes: int | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "workpackage_id": 3,
                "workpackage_nome": "WP1 Levantamento",
                "projeto_id": 1,
                "projeto_nome": "Observatório Costeiro",
                "modelo_custo": "ETI_DB",
                "nivel": "AMARELO",
                "percent": "80.00",
                "razao": "0.8000",
                "orcamento": "600.00",
                "realizado": "480.00",
                "sem_baseline": False,
                "fim": "2024-06-30",
                "dias_restantes": 21,
            }
        }
    )


class AlertaPrazoItem(BaseModel):
    """Workpackage ending within the configured warning window."""

    workpackage_id: int
    workpackage_nome: str
    projeto_id: int
    projeto_nome: str
    fim: date
    dias_restantes: int = Field(..., ge=0)


class OcupacaoUtilizadorItem(BaseModel):
    """Total occupancy of one user in one month, across workpackages."""

    utilizador_id: int
    nome: str
    ocupacao_total: Decimal
    n_workpackages: int = Field(..., ge=0)
    sobrealocado: bool = False


class ResumoProjetosResponse(BaseModel):
    """Project counts per budget health class."""

    total: int = Field(..., ge=0)
    saudavel: int = Field(..., ge=0)
    em_risco: int = Field(..., ge=0)
    critico: int = Field(..., ge=0)
    sem_baseline: int = Field(..., ge=0)


class ProgressoWorkpackageItem(BaseModel):
    """Progress bar of a workpackage: display percent plus semaphore colour."""

    workpackage_id: int
    workpackage_nome: str
    inicio: date | None = None
    fim: date | None = None
    percent: Decimal
    razao: Decimal
    nivel: str
    sem_baseline: bool = False
