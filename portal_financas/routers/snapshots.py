"""
Budget snapshots router.

Mounts under ``/api/snapshots`` (prefix set in ``main.py``).

Endpoints
---------
POST /workpackages/{workpackage_id}        Take the first baseline (400 if one exists).
PUT  /workpackages/{workpackage_id}        Re-snapshot: new version supersedes the current one.
GET  /workpackages/{workpackage_id}        Snapshot history, newest first.
POST /projetos/{projeto_id}/aprovar        Approve a project and baseline its workpackages.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from portal_financas.database import get_db
from portal_financas.schemas.common import ErroResponse
from portal_financas.schemas.snapshot import AprovacaoResponse, SnapshotResponse
from portal_financas.services import snapshot_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Snapshots"])

_ERROS = {
    400: {"model": ErroResponse, "description": "Dados insuficientes ou snapshot já existente."},
    404: {"model": ErroResponse, "description": "Workpackage inexistente."},
    409: {"model": ErroResponse, "description": "Snapshot gravado em simultâneo."},
}


@router.post(
    "/workpackages/{workpackage_id}",
    response_model=SnapshotResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Tirar snapshot do orçamento",
    description=(
        "Congela o orçamento previsto do workpackage a partir das alocações "
        "'submetido' dentro das suas datas e dos materiais atuais. Falha se já "
        "existir um snapshot; use PUT para substituir."
    ),
    responses=_ERROS,
)
def tirar_snapshot(
    workpackage_id: Annotated[int, Path(ge=1)],
    db: Annotated[Session, Depends(get_db)],
) -> SnapshotResponse:
    logger.debug("POST /snapshots/workpackages/%d", workpackage_id)
    return snapshot_service.tirar_snapshot(db, workpackage_id)


@router.put(
    "/workpackages/{workpackage_id}",
    response_model=SnapshotResponse,
    summary="Refazer snapshot do orçamento",
    description="Grava uma nova versão; a anterior mantém-se no histórico.",
    responses=_ERROS,
)
def refazer_snapshot(
    workpackage_id: Annotated[int, Path(ge=1)],
    db: Annotated[Session, Depends(get_db)],
) -> SnapshotResponse:
    logger.debug("PUT /snapshots/workpackages/%d", workpackage_id)
    return snapshot_service.refazer_snapshot(db, workpackage_id)


@router.get(
    "/workpackages/{workpackage_id}",
    response_model=list[SnapshotResponse],
    summary="Histórico de snapshots",
    responses={404: {"model": ErroResponse, "description": "Workpackage inexistente."}},
)
def historico_snapshots(
    workpackage_id: Annotated[int, Path(ge=1)],
    db: Annotated[Session, Depends(get_db)],
) -> list[SnapshotResponse]:
    return snapshot_service.historico_snapshots(db, workpackage_id)


@router.post(
    "/projetos/{projeto_id}/aprovar",
    response_model=AprovacaoResponse,
    summary="Aprovar projeto",
    description=(
        "Tira o snapshot de cada workpackage ainda sem baseline e muda o estado "
        "do projeto para APROVADO, ou EM_DESENVOLVIMENTO se já tiver começado. "
        "Tudo ou nada."
    ),
    responses={
        400: {"model": ErroResponse, "description": "Algum workpackage não pode ser congelado."},
        404: {"model": ErroResponse, "description": "Projeto inexistente."},
    },
)
def aprovar_projeto(
    projeto_id: Annotated[int, Path(ge=1)],
    db: Annotated[Session, Depends(get_db)],
    hoje: Annotated[date | None, Query(description="Data de referência; omitir para hoje.")] = None,
) -> AprovacaoResponse:
    logger.debug("POST /snapshots/projetos/%d/aprovar", projeto_id)
    return snapshot_service.aprovar_projeto(db, projeto_id, hoje)
