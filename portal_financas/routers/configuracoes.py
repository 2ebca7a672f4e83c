"""
Monthly configuration router.

Mounts under ``/api/configuracoes-mensais`` (prefix set in ``main.py``).

Endpoints
---------
GET  /?ano=                     Stored configurations of a year.
GET  /{ano}/{mes}               Configuration in effect (defaults when unset).
POST /                          Create one month.
PUT  /{configuracao_id}         Partial update.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from portal_financas.database import get_db
from portal_financas.schemas.common import ErroResponse
from portal_financas.schemas.configuracao import (
    ConfiguracaoCreate,
    ConfiguracaoResponse,
    ConfiguracaoUpdate,
)
from portal_financas.services import configuracao_service
from portal_financas.utils.constants import ANO_MAX, ANO_MIN

router = APIRouter(tags=["Configurações Mensais"])


@router.get("/", response_model=list[ConfiguracaoResponse], summary="Configurações do ano")
def listar(
    ano: Annotated[int, Query(ge=ANO_MIN, le=ANO_MAX)],
    db: Annotated[Session, Depends(get_db)],
) -> list[ConfiguracaoResponse]:
    return configuracao_service.listar_configuracoes(db, ano)


@router.get(
    "/{ano}/{mes}",
    response_model=ConfiguracaoResponse,
    summary="Configuração em vigor",
    description="Devolve a linha guardada ou os valores por omissão com `padrao = true`.",
    responses={400: {"model": ErroResponse, "description": "Mês ou ano inválidos."}},
)
def resolver(
    ano: Annotated[int, Path()],
    mes: Annotated[int, Path()],
    db: Annotated[Session, Depends(get_db)],
) -> ConfiguracaoResponse:
    return configuracao_service.resolver_configuracao(db, mes, ano)


@router.post(
    "/",
    response_model=ConfiguracaoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Criar configuração mensal",
    responses={
        400: {"model": ErroResponse, "description": "Mês ou ano inválidos."},
        409: {"model": ErroResponse, "description": "Mês já configurado."},
    },
)
def criar(
    data: ConfiguracaoCreate,
    db: Annotated[Session, Depends(get_db)],
) -> ConfiguracaoResponse:
    return configuracao_service.create_configuracao(db, data)


@router.put(
    "/{configuracao_id}",
    response_model=ConfiguracaoResponse,
    summary="Atualizar configuração mensal",
    responses={404: {"model": ErroResponse, "description": "Configuração inexistente."}},
)
def atualizar(
    configuracao_id: Annotated[int, Path(ge=1)],
    data: ConfiguracaoUpdate,
    db: Annotated[Session, Depends(get_db)],
) -> ConfiguracaoResponse:
    return configuracao_service.update_configuracao(db, configuracao_id, data)
