"""
Financial panels router.

Mounts under ``/api/financas`` (prefix set in ``main.py``).

Authorization is handled upstream; these endpoints trust the caller.

Endpoints
---------
GET /workpackages/{workpackage_id}/painel  Planned vs realized panel of a workpackage.
GET /projetos/{projeto_id}/painel          Project panel with per-workpackage detail.
GET /projetos/{projeto_id}/resumo-anual    Planned vs realized per calendar year.
GET /gastos-mensais                        Monthly realized expenses across projects.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from portal_financas.database import get_db
from portal_financas.schemas.financas import (
    GastoMensalItem,
    PainelProjeto,
    PainelWorkpackage,
    ResumoAnualItem,
)
from portal_financas.services import financas_service
from portal_financas.utils.constants import ANO_MAX, ANO_MIN

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Finanças"])

_ANO_FILTRO = Query(
    description="Restringir ao ano civil indicado. Omitir para todo o período.",
    ge=ANO_MIN,
    le=ANO_MAX,
)
_HOJE = Query(description="Data de referência dos custos concluídos; omitir para hoje.")


# ---------------------------------------------------------------------------
# GET /workpackages/{workpackage_id}/painel
# ---------------------------------------------------------------------------


@router.get(
    "/workpackages/{workpackage_id}/painel",
    response_model=PainelWorkpackage,
    summary="Painel financeiro do workpackage",
    description=(
        "Compara o orçamento congelado no snapshot atual com o custo realizado "
        "(alocações 'real' e materiais). A forma da resposta depende de "
        "`modelo_custo`: `ETI_DB` ou `DETALHADO`."
    ),
    responses={
        200: {"description": "Painel calculado."},
        404: {"description": "Workpackage inexistente."},
    },
)
def get_painel_workpackage(
    workpackage_id: Annotated[int, Path(ge=1)],
    db: Annotated[Session, Depends(get_db)],
    ano: Annotated[int | None, _ANO_FILTRO] = None,
    hoje: Annotated[date | None, _HOJE] = None,
):
    """Return the planned-vs-realized panel of one workpackage.

    Args:
        workpackage_id: Workpackage primary key.
        db: Database session injected by ``get_db``.
        ano: Optional calendar year.
        hoje: Reference date for the committed costs.

    Returns:
        A ``PainelEti`` or ``PainelDetalhado``.
    """
    logger.debug("GET /financas/workpackages/%d/painel ano=%s", workpackage_id, ano)
    return financas_service.get_painel_workpackage(db, workpackage_id, ano, hoje)


# ---------------------------------------------------------------------------
# GET /projetos/{projeto_id}/painel
# ---------------------------------------------------------------------------


@router.get(
    "/projetos/{projeto_id}/painel",
    response_model=PainelProjeto,
    summary="Painel financeiro do projeto",
    description=(
        "Totais do projeto obtidos pela soma dos painéis dos seus workpackages, "
        "devolvidos também em `detalhes_por_workpackage`."
    ),
    responses={
        200: {"description": "Painel calculado."},
        404: {"description": "Projeto inexistente."},
    },
)
def get_painel_projeto(
    projeto_id: Annotated[int, Path(ge=1)],
    db: Annotated[Session, Depends(get_db)],
    ano: Annotated[int | None, _ANO_FILTRO] = None,
    hoje: Annotated[date | None, _HOJE] = None,
):
    logger.debug("GET /financas/projetos/%d/painel ano=%s", projeto_id, ano)
    return financas_service.get_painel_projeto(db, projeto_id, ano, hoje)


# ---------------------------------------------------------------------------
# GET /projetos/{projeto_id}/resumo-anual
# ---------------------------------------------------------------------------


@router.get(
    "/projetos/{projeto_id}/resumo-anual",
    response_model=list[ResumoAnualItem],
    summary="Resumo anual do projeto",
    responses={
        200: {"description": "Um item por ano com atividade ou orçamento."},
        404: {"description": "Projeto inexistente."},
    },
)
def get_resumo_anual(
    projeto_id: Annotated[int, Path(ge=1)],
    db: Annotated[Session, Depends(get_db)],
    hoje: Annotated[date | None, _HOJE] = None,
) -> list[ResumoAnualItem]:
    logger.debug("GET /financas/projetos/%d/resumo-anual", projeto_id)
    return financas_service.get_resumo_anual(db, projeto_id, hoje)


# ---------------------------------------------------------------------------
# GET /gastos-mensais
# ---------------------------------------------------------------------------


@router.get(
    "/gastos-mensais",
    response_model=list[GastoMensalItem],
    summary="Gastos mensais realizados",
    description=(
        "Série de `limite` meses a partir de janeiro, com meses sem gastos a zero "
        "e totais acumulados. Inclui todos os projetos."
    ),
    responses={
        200: {"description": "Série mensal."},
        400: {"description": "`limite` fora de 1–12."},
    },
)
def get_gastos_mensais(
    ano: Annotated[int, Query(description="Ano civil, ex. 2024.", ge=ANO_MIN, le=ANO_MAX)],
    db: Annotated[Session, Depends(get_db)],
    limite: Annotated[int, Query(description="Número de meses (1–12).")] = 12,
) -> list[GastoMensalItem]:
    """Return the zero-filled monthly expense series of a year.

    ``limite`` is checked by the service so that an out-of-range value is
    reported as ``400`` with the domain error body.
    """
    logger.debug("GET /financas/gastos-mensais ano=%d limite=%d", ano, limite)
    return financas_service.get_gastos_mensais(db, ano, limite)
