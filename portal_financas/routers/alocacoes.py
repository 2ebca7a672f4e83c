"""
Resource allocations router.

Mounts under ``/api/alocacoes`` (prefix set in ``main.py``).

Endpoints
---------
PUT /                                 Idempotent upsert of one allocation.
GET /workpackages/{workpackage_id}    Allocations of a workpackage for one track.
GET /utilizadores/{utilizador_id}     Allocations of a user across workpackages.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from portal_financas.database import get_db
from portal_financas.schemas.alocacao import AlocacaoResponse, AlocacaoUpsert
from portal_financas.schemas.common import ErroResponse
from portal_financas.services import alocacao_service
from portal_financas.utils.constants import ANO_MAX, ANO_MIN

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Alocações"])


@router.put(
    "/",
    response_model=AlocacaoResponse,
    summary="Gravar alocação",
    description=(
        "Insere ou substitui a ocupação de um utilizador num workpackage para um "
        "mês e trilho ('real' ou 'submetido'). Repetir o pedido deixa uma única "
        "linha. Sobrealocação (> 100% no mês) é sinalizada, não rejeitada."
    ),
    responses={
        400: {"model": ErroResponse, "description": "Mês, ano, ocupação ou tipo inválidos."},
        404: {"model": ErroResponse, "description": "Utilizador ou workpackage inexistente."},
    },
)
def upsert_alocacao(
    payload: AlocacaoUpsert,
    db: Annotated[Session, Depends(get_db)],
) -> AlocacaoResponse:
    logger.debug(
        "PUT /alocacoes u=%d wp=%d %02d/%d tipo=%s",
        payload.utilizador_id, payload.workpackage_id, payload.mes, payload.ano, payload.tipo,
    )
    return alocacao_service.upsert_alocacao(db, payload)


@router.get(
    "/workpackages/{workpackage_id}",
    response_model=list[AlocacaoResponse],
    summary="Alocações do workpackage",
    responses={
        400: {"model": ErroResponse, "description": "Tipo inválido."},
        404: {"model": ErroResponse, "description": "Workpackage inexistente."},
    },
)
def listar_alocacoes(
    workpackage_id: Annotated[int, Path(ge=1)],
    db: Annotated[Session, Depends(get_db)],
    tipo: Annotated[str, Query(description="'real' ou 'submetido'.")] = "real",
    ano: Annotated[int | None, Query(ge=ANO_MIN, le=ANO_MAX)] = None,
) -> list[AlocacaoResponse]:
    return alocacao_service.listar_alocacoes_workpackage(db, workpackage_id, tipo, ano)


@router.get(
    "/utilizadores/{utilizador_id}",
    response_model=list[AlocacaoResponse],
    summary="Alocações do utilizador",
    description="Alocações de um utilizador em todos os workpackages, por ano e mês.",
    responses={
        400: {"model": ErroResponse, "description": "Tipo inválido."},
        404: {"model": ErroResponse, "description": "Utilizador inexistente."},
    },
)
def listar_alocacoes_utilizador(
    utilizador_id: Annotated[int, Path(ge=1)],
    db: Annotated[Session, Depends(get_db)],
    ano: Annotated[int | None, Query(ge=ANO_MIN, le=ANO_MAX)] = None,
    tipo: Annotated[str | None, Query(description="'real' ou 'submetido'; omitido = ambos.")] = None,
) -> list[AlocacaoResponse]:
    return alocacao_service.listar_alocacoes_utilizador(db, utilizador_id, ano, tipo)
