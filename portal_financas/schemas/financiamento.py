"""
Pydantic v2 schemas for funding programs (``/api/financiamentos``).
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class FinanciamentoBase(BaseModel):
    nome: str = Field(..., min_length=1, max_length=255)
    overhead: Decimal = Field(Decimal("0"), description="Overhead em percentagem (0–100).")
    taxa_financiamento: Decimal = Field(Decimal("0"), description="Taxa de financiamento (0–100).")
    valor_eti: Decimal = Field(Decimal("0"), description="Custo de um ETI mensal.")
    tipo_calculo_previsto: str = Field("DETALHADO", description="'ETI_DB' ou 'DETALHADO'.")


class FinanciamentoCreate(FinanciamentoBase):
    pass


class FinanciamentoUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value."""

    nome: str | None = Field(None, min_length=1, max_length=255)
    overhead: Decimal | None = None
    taxa_financiamento: Decimal | None = None
    valor_eti: Decimal | None = None
    tipo_calculo_previsto: str | None = None


class FinanciamentoResponse(FinanciamentoBase):
    """Funding program with the number of projects that reference it."""

    id: int
    n_projetos: int = 0

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "nome": "FCT 2024",
                "overhead": "25.00",
                "taxa_financiamento": "85.00",
                "valor_eti": "1200.00",
                "tipo_calculo_previsto": "ETI_DB",
                "n_projetos": 3,
            }
        },
    )
