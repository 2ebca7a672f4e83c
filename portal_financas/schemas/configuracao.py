"""
Pydantic v2 schemas for monthly configuration (``/api/configuracoes-mensais``).
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class ConfiguracaoCreate(BaseModel):
    mes: int
    ano: int
    dias_uteis: int = Field(..., ge=0, le=31)
    horas_potenciais: Decimal = Field(..., ge=0)


class ConfiguracaoUpdate(BaseModel):
    dias_uteis: int | None = Field(None, ge=0, le=31)
    horas_potenciais: Decimal | None = Field(None, ge=0)


class ConfiguracaoResponse(BaseModel):
    """Working days and potential hours of a month.

    ``padrao`` is True (and ``id`` None) when no row exists and the
    settings defaults are reported instead.
    """

    id: int | None = None
    mes: int
    ano: int
    dias_uteis: int
    horas_potenciais: Decimal
    padrao: bool = False

    model_config = ConfigDict(from_attributes=True)
