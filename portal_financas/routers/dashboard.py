"""
Dashboard projections router.

Mounts under ``/api/dashboard`` (prefix set in ``main.py``).

Endpoints
---------
GET /alertas-orcamento               Workpackages above a consumption threshold.
GET /alertas-prazo                   Workpackages ending soon.
GET /ocupacao                        Monthly occupancy per user.
GET /resumo-projetos                 Project counts per budget health class.
GET /projetos/{projeto_id}/progresso Workpackage progress bars of a project.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from portal_financas.database import get_db
from portal_financas.schemas.common import ErroResponse
from portal_financas.schemas.dashboard import (
    AlertaOrcamentoItem,
    AlertaPrazoItem,
    OcupacaoUtilizadorItem,
    ProgressoWorkpackageItem,
    ResumoProjetosResponse,
)
from portal_financas.services import dashboard_service
from portal_financas.utils.constants import ANO_MAX, ANO_MIN

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Dashboard"])

_HOJE = Query(description="Data de referência; omitir para hoje.")


@router.get(
    "/alertas-orcamento",
    response_model=list[AlertaOrcamentoItem],
    summary="Alertas de orçamento",
    description=(
        "Workpackages com consumo acima de LIMIAR_RISCO (AMARELO) ou LIMIAR_CRITICO "
        "(VERMELHO), e workpackages com custo sem baseline. Ordenados pelo prazo."
    ),
)
def get_alertas_orcamento(
    db: Annotated[Session, Depends(get_db)],
    hoje: Annotated[date | None, _HOJE] = None,
) -> list[AlertaOrcamentoItem]:
    return dashboard_service.get_alertas_orcamento(db, hoje)


@router.get(
    "/alertas-prazo",
    response_model=list[AlertaPrazoItem],
    summary="Alertas de prazo",
)
def get_alertas_prazo(
    db: Annotated[Session, Depends(get_db)],
    hoje: Annotated[date | None, _HOJE] = None,
) -> list[AlertaPrazoItem]:
    return dashboard_service.get_alertas_prazo(db, hoje)


@router.get(
    "/ocupacao",
    response_model=list[OcupacaoUtilizadorItem],
    summary="Ocupação mensal por utilizador",
    responses={400: {"model": ErroResponse, "description": "Mês ou tipo inválidos."}},
)
def get_ocupacao(
    ano: Annotated[int, Query(ge=ANO_MIN, le=ANO_MAX)],
    mes: Annotated[int, Query(description="Mês (1–12).")],
    db: Annotated[Session, Depends(get_db)],
    tipo: Annotated[str, Query(description="'real' ou 'submetido'.")] = "real",
) -> list[OcupacaoUtilizadorItem]:
    logger.debug("GET /dashboard/ocupacao %02d/%d tipo=%s", mes, ano, tipo)
    return dashboard_service.get_ocupacao_utilizadores(db, ano, mes, tipo)


@router.get(
    "/resumo-projetos",
    response_model=ResumoProjetosResponse,
    summary="Resumo da saúde orçamental dos projetos",
)
def get_resumo_projetos(db: Annotated[Session, Depends(get_db)]) -> ResumoProjetosResponse:
    return dashboard_service.get_resumo_projetos(db)


@router.get(
    "/projetos/{projeto_id}/progresso",
    response_model=list[ProgressoWorkpackageItem],
    summary="Progresso dos workpackages",
    responses={404: {"model": ErroResponse, "description": "Projeto inexistente."}},
)
def get_progresso(
    projeto_id: Annotated[int, Path(ge=1)],
    db: Annotated[Session, Depends(get_db)],
) -> list[ProgressoWorkpackageItem]:
    return dashboard_service.get_progresso_workpackages(db, projeto_id)
