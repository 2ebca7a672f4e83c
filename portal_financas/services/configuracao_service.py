"""
Monthly configuration service layer (``/api/configuracoes-mensais``).

One row per ``(mes, ano)`` holding working days and potential hours.
Months with no row resolve to the settings defaults.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from portal_financas.exceptions import ConflitoError, NaoEncontradoError, ValidacaoError
from portal_financas.models.configuracao_mensal import ConfiguracaoMensal
from portal_financas.repositories import SqlMonthlyConfigStore
from portal_financas.schemas.configuracao import (
    ConfiguracaoCreate,
    ConfiguracaoResponse,
    ConfiguracaoUpdate,
)
from portal_financas.utils.constants import ANO_MAX, ANO_MIN

logger = logging.getLogger(__name__)


def _validar_periodo(mes: int, ano: int) -> None:
    if not 1 <= mes <= 12:
        raise ValidacaoError(f"Mês inválido: {mes}")
    if not ANO_MIN <= ano <= ANO_MAX:
        raise ValidacaoError(f"Ano fora do intervalo {ANO_MIN}–{ANO_MAX}: {ano}")


def listar_configuracoes(db: Session, ano: int) -> list[ConfiguracaoResponse]:
    """Stored configurations of a year, ordered by month."""
    rows = (
        db.query(ConfiguracaoMensal)
        .filter(ConfiguracaoMensal.ano == ano)
        .order_by(ConfiguracaoMensal.mes)
        .all()
    )
    return [ConfiguracaoResponse.model_validate(r) for r in rows]


def resolver_configuracao(db: Session, mes: int, ano: int) -> ConfiguracaoResponse:
    """Configuration in effect for a month, falling back to the defaults."""
    _validar_periodo(mes, ano)
    row = (
        db.query(ConfiguracaoMensal)
        .filter(ConfiguracaoMensal.mes == mes, ConfiguracaoMensal.ano == ano)
        .first()
    )
    if row is not None:
        return ConfiguracaoResponse.model_validate(row)

    config = SqlMonthlyConfigStore(db).get(mes, ano)
    return ConfiguracaoResponse(
        mes=config.mes,
        ano=config.ano,
        dias_uteis=config.dias_uteis,
        horas_potenciais=config.horas_potenciais,
        padrao=config.padrao,
    )


def create_configuracao(db: Session, data: ConfiguracaoCreate) -> ConfiguracaoResponse:
    """Create the configuration of one month.

    Raises:
        ValidacaoError: Month or year out of range.
        ConflitoError: A row for ``(mes, ano)`` already exists.
    """
    _validar_periodo(data.mes, data.ano)
    existente = (
        db.query(ConfiguracaoMensal.id)
        .filter(ConfiguracaoMensal.mes == data.mes, ConfiguracaoMensal.ano == data.ano)
        .first()
    )
    if existente is not None:
        raise ConflitoError(f"Configuração de {data.mes:02d}/{data.ano} já existe")

    row = ConfiguracaoMensal(**data.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)

    logger.info("create_configuracao: %02d/%d horas=%s", row.mes, row.ano, row.horas_potenciais)
    return ConfiguracaoResponse.model_validate(row)


def update_configuracao(db: Session, configuracao_id: int, data: ConfiguracaoUpdate) -> ConfiguracaoResponse:
    """Partial update of a stored configuration.

    Only future computations see the new values; snapshots keep the
    figures they were taken with.

    Raises:
        NaoEncontradoError: Unknown configuration.
    """
    row = db.get(ConfiguracaoMensal, configuracao_id)
    if row is None:
        raise NaoEncontradoError("ConfiguracaoMensal", configuracao_id)

    dados = data.model_dump(exclude_unset=True, exclude_none=True)
    for campo, valor in dados.items():
        setattr(row, campo, valor)
    db.commit()
    db.refresh(row)

    logger.info("update_configuracao: id=%d fields=%s", configuracao_id, list(dados.keys()))
    return ConfiguracaoResponse.model_validate(row)
