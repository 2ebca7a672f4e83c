"""
Pydantic v2 schemas for allocation writes (``/api/alocacoes``).

Range checks (month, year, occupancy, track) are done by the service so
that they surface as ``400`` with the domain error body, like every
other validation failure of the financial core.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class AlocacaoUpsert(BaseModel):
    """Occupancy of a user on a workpackage for one month and track."""

    utilizador_id: int
    workpackage_id: int
    mes: int = Field(..., description="Mês (1–12).")
    ano: int = Field(..., description="Ano civil.")
    ocupacao: Decimal = Field(..., description="Fração de ocupação; valores acima de 1 são aceites.")
    tipo: str = Field("real", description="'real' ou 'submetido'.")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "utilizador_id": 4,
                "workpackage_id": 3,
                "mes": 3,
                "ano": 2024,
                "ocupacao": "0.25",
                "tipo": "submetido",
            }
        }
    )


class AlocacaoResponse(BaseModel):
    """Stored allocation row.

    Attributes:
        ocupacao_total_mes: Sum of the user's occupancy across every
            workpackage for the same month, year and track (write responses).
        sobrealocado: ``ocupacao_total_mes > 1``. Flagged, never rejected.
    """

    utilizador_id: int
    workpackage_id: int
    mes: int
    ano: int
    ocupacao: Decimal
    tipo: str
    ocupacao_total_mes: Decimal | None = None
    sobrealocado: bool = False

    model_config = ConfigDict(from_attributes=True)
