"""
Allocation write service layer.

Allocations are keyed by ``(utilizador_id, workpackage_id, mes, ano,
tipo)``; writing the same key twice leaves one row holding the last
value. Over-allocation (a user above 100% in a month) is reported on the
response and logged, never rejected.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from portal_financas.core.tipos import AlocacaoRow
from portal_financas.exceptions import NaoEncontradoError, ValidacaoError
from portal_financas.models.utilizador import Utilizador
from portal_financas.repositories import Repositorios
from portal_financas.schemas.alocacao import AlocacaoResponse, AlocacaoUpsert
from portal_financas.utils.constants import ANO_MAX, ANO_MIN, TIPOS_ALOCACAO

logger = logging.getLogger(__name__)

_OCUPACAO_PLENA = Decimal("1")


def _resposta(a: AlocacaoRow) -> AlocacaoResponse:
    return AlocacaoResponse(
        utilizador_id=a.utilizador_id,
        workpackage_id=a.workpackage_id,
        mes=a.mes,
        ano=a.ano,
        ocupacao=a.ocupacao,
        tipo=a.tipo,
    )


def _validar(payload: AlocacaoUpsert) -> None:
    if not 1 <= payload.mes <= 12:
        raise ValidacaoError(f"Mês inválido: {payload.mes}")
    if not ANO_MIN <= payload.ano <= ANO_MAX:
        raise ValidacaoError(f"Ano fora do intervalo {ANO_MIN}–{ANO_MAX}: {payload.ano}")
    if payload.ocupacao < 0:
        raise ValidacaoError(f"Ocupação não pode ser negativa: {payload.ocupacao}")
    if payload.tipo not in TIPOS_ALOCACAO:
        raise ValidacaoError(f"Tipo de alocação inválido: {payload.tipo!r}")


def upsert_alocacao(db: Session, payload: AlocacaoUpsert) -> AlocacaoResponse:
    """Insert or replace one allocation.

    Args:
        db: Active SQLAlchemy session.
        payload: Allocation key and occupancy.

    Returns:
        The stored allocation with the user's total occupancy for that
        month/year/track and the ``sobrealocado`` flag.

    Raises:
        ValidacaoError: Month, year, occupancy or track out of range.
        NaoEncontradoError: Unknown user or workpackage.
    """
    _validar(payload)

    repos = Repositorios.de_sessao(db)
    if db.get(Utilizador, payload.utilizador_id) is None:
        raise NaoEncontradoError("Utilizador", payload.utilizador_id)
    if repos.workpackages.get(payload.workpackage_id) is None:
        raise NaoEncontradoError("Workpackage", payload.workpackage_id)

    repos.alocacoes.upsert(
        payload.utilizador_id,
        payload.workpackage_id,
        payload.mes,
        payload.ano,
        payload.tipo,
        payload.ocupacao,
    )
    db.commit()

    row = repos.alocacoes.get(
        payload.utilizador_id, payload.workpackage_id, payload.mes, payload.ano, payload.tipo
    )
    total = repos.alocacoes.ocupacao_total(payload.utilizador_id, payload.mes, payload.ano, payload.tipo)
    sobrealocado = total > _OCUPACAO_PLENA
    if sobrealocado:
        logger.warning(
            "Utilizador %d sobrealocado em %02d/%d (%s): ocupação total %s",
            payload.utilizador_id, payload.mes, payload.ano, payload.tipo, total,
        )

    return AlocacaoResponse(
        utilizador_id=row.utilizador_id,
        workpackage_id=row.workpackage_id,
        mes=row.mes,
        ano=row.ano,
        ocupacao=row.ocupacao,
        tipo=row.tipo,
        ocupacao_total_mes=total,
        sobrealocado=sobrealocado,
    )


def listar_alocacoes_workpackage(
    db: Session,
    workpackage_id: int,
    tipo: str,
    ano: int | None = None,
) -> list[AlocacaoResponse]:
    """Allocations of one workpackage and track, ordered by year, month, user.

    Raises:
        ValidacaoError: Unknown track.
        NaoEncontradoError: Unknown workpackage.
    """
    if tipo not in TIPOS_ALOCACAO:
        raise ValidacaoError(f"Tipo de alocação inválido: {tipo!r}")

    repos = Repositorios.de_sessao(db)
    if repos.workpackages.get(workpackage_id) is None:
        raise NaoEncontradoError("Workpackage", workpackage_id)

    return [_resposta(a) for a in repos.alocacoes.list_by_workpackage(workpackage_id, tipo, ano)]


def listar_alocacoes_utilizador(
    db: Session,
    utilizador_id: int,
    ano: int | None = None,
    tipo: str | None = None,
) -> list[AlocacaoResponse]:
    """Allocations of one user across every workpackage, ordered by year and month.

    Both tracks are returned unless ``tipo`` narrows them.

    Raises:
        ValidacaoError: Unknown track.
        NaoEncontradoError: Unknown user.
    """
    if tipo is not None and tipo not in TIPOS_ALOCACAO:
        raise ValidacaoError(f"Tipo de alocação inválido: {tipo!r}")
    if db.get(Utilizador, utilizador_id) is None:
        raise NaoEncontradoError("Utilizador", utilizador_id)

    repos = Repositorios.de_sessao(db)
    return [_resposta(a) for a in repos.alocacoes.list_by_utilizador(utilizador_id, ano, tipo)]
