"""
Pydantic v2 schemas for the financial panels (``/api/financas``).

Workpackage and project panels are a tagged union on ``modelo_custo``:
an ``ETI_DB`` panel only carries ``orcamento_previsto_com_eti`` and a
``DETALHADO`` panel only carries the two rubric baselines. Callers switch
on the tag instead of probing optional fields.

Money fields are ``Decimal`` and serialise as JSON strings.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Realized breakdown
# ---------------------------------------------------------------------------


class DetalheRecurso(BaseModel):
    """Realized human-resources cost of one user within the panel scope.

    Attributes:
        utilizador_id: User primary key.
        ocupacao: Sum of occupancy fractions over the scope.
        horas: Implied hours (potential hours × occupancy, summed per month).
        custo: Resolved cost.
    """

    utilizador_id: int
    ocupacao: Decimal
    horas: Decimal
    custo: Decimal


class DetalheRubrica(BaseModel):
    """Realized materials cost of one rubric."""

    rubrica: str
    total: Decimal


class DetalheRealizado(BaseModel):
    """Drill-down of the realized figures of a panel."""

    recursos: list[DetalheRecurso] = Field(default_factory=list)
    materiais_por_rubrica: list[DetalheRubrica] = Field(default_factory=list)


class CustosConcluidos(BaseModel):
    """Committed cost: closed months of the "real" track plus acquired materials.

    Attributes:
        recursos: Resolved cost of allocations in months before the current one.
        materiais: Cost of materials marked as acquired (``estado``).
        total: ``recursos + materiais``.
    """

    recursos: Decimal = Decimal("0")
    materiais: Decimal = Decimal("0")
    total: Decimal = Decimal("0")


# ---------------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------------


class TotaisPainel(BaseModel):
    """Planned vs realized totals shared by every panel shape.

    Attributes:
        orcamento: Frozen baseline total (0 when there is no baseline).
        realizado_recursos: Live human-resources cost ("real" track).
        realizado_materiais: Live materials cost.
        realizado: ``realizado_recursos + realizado_materiais``.
        restante: ``orcamento - realizado``; negative on overrun.
    """

    orcamento: Decimal
    realizado_recursos: Decimal
    realizado_materiais: Decimal
    realizado: Decimal
    restante: Decimal


class _PainelBase(BaseModel):
    """Fields common to ETI and detailed workpackage panels.

    ``percent`` is clamped to [0, 100] for display; ``razao`` keeps the
    unclamped realized/planned ratio so overruns stay visible.
    """

    workpackage_id: int
    workpackage_nome: str
    projeto_id: int
    ano: int | None = Field(None, description="Ano filtrado; None = todo o período.")
    totais: TotaisPainel
    percent: Decimal = Field(..., ge=0, le=100, description="Percentagem consumida (0–100).")
    razao: Decimal = Field(..., description="Razão realizado/orçamento sem limite superior.")
    sem_baseline: bool = Field(False, description="Ainda não existe snapshot.")
    estado_inconsistente: bool = Field(
        False, description="Snapshot incompatível com o modelo de custo, ou custo sem baseline."
    )
    sobre_orcamento: bool = Field(False, description="Alguma razão ultrapassa 100%.")
    custos_concluidos: CustosConcluidos = Field(default_factory=CustosConcluidos)
    snapshot_versao: int | None = None
    snapshot_tirado_em: datetime | None = None
    detalhe_realizado: DetalheRealizado = Field(default_factory=DetalheRealizado)


class PainelEti(_PainelBase):
    """Workpackage panel under the ETI costing model."""

    modelo_custo: Literal["ETI_DB"] = "ETI_DB"
    valor_eti: Decimal
    orcamento_previsto_com_eti: Decimal

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "modelo_custo": "ETI_DB",
                "workpackage_id": 3,
                "workpackage_nome": "WP1 Levantamento",
                "projeto_id": 1,
                "valor_eti": "1200.00",
                "orcamento_previsto_com_eti": "600.00",
                "totais": {
                    "orcamento": "600.00",
                    "realizado_recursos": "480.00",
                    "realizado_materiais": "0",
                    "realizado": "480.00",
                    "restante": "120.00",
                },
                "percent": "80.00",
                "razao": "0.8000",
            }
        }
    )


class PainelDetalhado(_PainelBase):
    """Workpackage panel under the detailed (salary + materials) costing model."""

    modelo_custo: Literal["DETALHADO"] = "DETALHADO"
    previsto_recursos_snapshot: Decimal
    previsto_materiais_snapshot: Decimal
    rh_percent: Decimal = Field(..., ge=0, le=100)
    rh_razao: Decimal
    mat_percent: Decimal = Field(..., ge=0, le=100)
    mat_razao: Decimal


PainelWorkpackage = Annotated[
    Union[PainelEti, PainelDetalhado],
    Field(discriminator="modelo_custo"),
]


# ---------------------------------------------------------------------------
# Project panel
# ---------------------------------------------------------------------------


class FinanciamentoResumo(BaseModel):
    """Funding parameters echoed on the project panel.

    ``overhead`` and ``taxa_financiamento`` are reported as stored; the
    panels never multiply them into the figures.
    """

    id: int
    nome: str
    overhead: Decimal
    taxa_financiamento: Decimal
    valor_eti: Decimal


class _PainelProjetoBase(BaseModel):
    projeto_id: int
    projeto_nome: str
    ano: int | None = None
    financiamento: FinanciamentoResumo | None = None
    totais: TotaisPainel
    percent: Decimal = Field(..., ge=0, le=100)
    razao: Decimal
    sobre_orcamento: bool = False
    workpackages_sem_baseline: int = Field(0, ge=0)
    custos_concluidos: CustosConcluidos = Field(default_factory=CustosConcluidos)
    detalhes_por_workpackage: list[PainelWorkpackage] = Field(default_factory=list)


class PainelProjetoEti(_PainelProjetoBase):
    modelo_custo: Literal["ETI_DB"] = "ETI_DB"
    orcamento_previsto_com_eti: Decimal


class PainelProjetoDetalhado(_PainelProjetoBase):
    modelo_custo: Literal["DETALHADO"] = "DETALHADO"
    previsto_recursos_snapshot: Decimal
    previsto_materiais_snapshot: Decimal
    rh_percent: Decimal = Field(..., ge=0, le=100)
    rh_razao: Decimal
    mat_percent: Decimal = Field(..., ge=0, le=100)
    mat_razao: Decimal


PainelProjeto = Annotated[
    Union[PainelProjetoEti, PainelProjetoDetalhado],
    Field(discriminator="modelo_custo"),
]


# ---------------------------------------------------------------------------
# Time series
# ---------------------------------------------------------------------------


class GastoMensalItem(BaseModel):
    """One month of realized expenses across every project.

    Attributes:
        mes: Month number (1–12).
        rotulo: Month label shown on the X-axis (e.g. ``"Jan"``).
        custo_recursos: Realized human-resources cost of the month.
        custo_materiais: Materials cost placed in the month.
        acumulado_recursos: Running total of ``custo_recursos``.
        acumulado_materiais: Running total of ``custo_materiais``.
    """

    mes: int = Field(..., ge=1, le=12)
    rotulo: str
    custo_recursos: Decimal
    custo_materiais: Decimal
    acumulado_recursos: Decimal
    acumulado_materiais: Decimal

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "mes": 3,
                "rotulo": "Mar",
                "custo_recursos": "500.00",
                "custo_materiais": "0",
                "acumulado_recursos": "1500.00",
                "acumulado_materiais": "250.00",
            }
        }
    )


class ResumoAnualItem(BaseModel):
    """Planned vs realized totals of a project for one calendar year."""

    ano: int
    orcamento: Decimal
    realizado_recursos: Decimal
    realizado_materiais: Decimal
    realizado: Decimal
    percent: Decimal = Field(..., ge=0, le=100)
    razao: Decimal
    custos_concluidos: CustosConcluidos = Field(default_factory=CustosConcluidos)
