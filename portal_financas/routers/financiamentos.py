"""
Funding programs router.

Mounts under ``/api/financiamentos`` (prefix set in ``main.py``).

Endpoints
---------
GET    /                      List funding programs.
GET    /{financiamento_id}    One funding program.
POST   /                      Create (name unique, case-insensitive).
PUT    /{financiamento_id}    Partial update.
DELETE /{financiamento_id}    Delete when no project uses it.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session

from portal_financas.database import get_db
from portal_financas.schemas.common import ErroResponse, MessageResponse
from portal_financas.schemas.financiamento import (
    FinanciamentoCreate,
    FinanciamentoResponse,
    FinanciamentoUpdate,
)
from portal_financas.services import financiamento_service

router = APIRouter(tags=["Financiamentos"])

_404 = {404: {"model": ErroResponse, "description": "Financiamento inexistente."}}


@router.get("/", response_model=list[FinanciamentoResponse], summary="Listar financiamentos")
def listar(db: Annotated[Session, Depends(get_db)]) -> list[FinanciamentoResponse]:
    return financiamento_service.listar_financiamentos(db)


@router.get(
    "/{financiamento_id}",
    response_model=FinanciamentoResponse,
    summary="Obter financiamento",
    responses=_404,
)
def obter(
    financiamento_id: Annotated[int, Path(ge=1)],
    db: Annotated[Session, Depends(get_db)],
) -> FinanciamentoResponse:
    return financiamento_service.get_financiamento(db, financiamento_id)


@router.post(
    "/",
    response_model=FinanciamentoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Criar financiamento",
    responses={
        400: {"model": ErroResponse, "description": "Valores fora do intervalo."},
        409: {"model": ErroResponse, "description": "Nome já existente."},
    },
)
def criar(
    data: FinanciamentoCreate,
    db: Annotated[Session, Depends(get_db)],
) -> FinanciamentoResponse:
    return financiamento_service.create_financiamento(db, data)


@router.put(
    "/{financiamento_id}",
    response_model=FinanciamentoResponse,
    summary="Atualizar financiamento",
    responses={
        **_404,
        400: {"model": ErroResponse, "description": "Valores fora do intervalo."},
        409: {"model": ErroResponse, "description": "Nome já existente, ou mudança de modelo num financiamento em uso."},
    },
)
def atualizar(
    financiamento_id: Annotated[int, Path(ge=1)],
    data: FinanciamentoUpdate,
    db: Annotated[Session, Depends(get_db)],
) -> FinanciamentoResponse:
    return financiamento_service.update_financiamento(db, financiamento_id, data)


@router.delete(
    "/{financiamento_id}",
    response_model=MessageResponse,
    summary="Eliminar financiamento",
    responses={
        **_404,
        409: {"model": ErroResponse, "description": "Financiamento em uso por projetos."},
    },
)
def eliminar(
    financiamento_id: Annotated[int, Path(ge=1)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    financiamento_service.delete_financiamento(db, financiamento_id)
    return MessageResponse(message=f"Financiamento {financiamento_id} eliminado")
