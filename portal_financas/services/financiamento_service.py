"""
Funding program service layer (``/api/financiamentos``).

A funding program fixes the costing model of every project that points
at it. Names are unique regardless of case, and a program referenced by
any project cannot be deleted.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from portal_financas.exceptions import ConflitoError, NaoEncontradoError, ValidacaoError
from portal_financas.models.financiamento import Financiamento
from portal_financas.models.projeto import Projeto
from portal_financas.schemas.financiamento import (
    FinanciamentoCreate,
    FinanciamentoResponse,
    FinanciamentoUpdate,
)
from portal_financas.utils.constants import MODELOS_CUSTO

logger = logging.getLogger(__name__)

_CEM = Decimal("100")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _validar_valores(dados: dict) -> None:
    for campo in ("overhead", "taxa_financiamento"):
        valor = dados.get(campo)
        if valor is not None and not 0 <= valor <= _CEM:
            raise ValidacaoError(f"{campo} deve estar entre 0 e 100: {valor}")
    valor_eti = dados.get("valor_eti")
    if valor_eti is not None and valor_eti < 0:
        raise ValidacaoError(f"valor_eti não pode ser negativo: {valor_eti}")
    tipo = dados.get("tipo_calculo_previsto")
    if tipo is not None and tipo not in MODELOS_CUSTO:
        raise ValidacaoError(f"tipo_calculo_previsto inválido: {tipo!r}")


def _nome_em_uso(db: Session, nome: str, excluir_id: int | None = None) -> bool:
    q = db.query(Financiamento.id).filter(func.lower(Financiamento.nome) == nome.strip().lower())
    if excluir_id is not None:
        q = q.filter(Financiamento.id != excluir_id)
    return q.first() is not None


def _n_projetos(db: Session, financiamento_id: int) -> int:
    return db.query(func.count(Projeto.id)).filter(Projeto.financiamento_id == financiamento_id).scalar()


def _build_response(db: Session, fin: Financiamento) -> FinanciamentoResponse:
    return FinanciamentoResponse(
        id=fin.id,
        nome=fin.nome,
        overhead=fin.overhead,
        taxa_financiamento=fin.taxa_financiamento,
        valor_eti=fin.valor_eti,
        tipo_calculo_previsto=fin.tipo_calculo_previsto,
        n_projetos=_n_projetos(db, fin.id),
    )


def _obter(db: Session, financiamento_id: int) -> Financiamento:
    fin = db.get(Financiamento, financiamento_id)
    if fin is None:
        raise NaoEncontradoError("Financiamento", financiamento_id)
    return fin


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------


def listar_financiamentos(db: Session) -> list[FinanciamentoResponse]:
    """All funding programs ordered by name."""
    return [_build_response(db, f) for f in db.query(Financiamento).order_by(Financiamento.nome).all()]


def get_financiamento(db: Session, financiamento_id: int) -> FinanciamentoResponse:
    return _build_response(db, _obter(db, financiamento_id))


def create_financiamento(db: Session, data: FinanciamentoCreate) -> FinanciamentoResponse:
    """Create a funding program.

    Raises:
        ValidacaoError: Percentages outside 0–100, negative ``valor_eti`` or
            unknown costing model.
        ConflitoError: Another program already uses the name (case-insensitive).
    """
    dados = data.model_dump()
    dados["nome"] = dados["nome"].strip()
    _validar_valores(dados)
    if _nome_em_uso(db, dados["nome"]):
        raise ConflitoError(f"Já existe um financiamento com o nome {dados['nome']!r}")

    fin = Financiamento(**dados)
    db.add(fin)
    db.commit()
    db.refresh(fin)

    logger.info("create_financiamento: id=%d nome=%r modelo=%s", fin.id, fin.nome, fin.tipo_calculo_previsto)
    return _build_response(db, fin)


def update_financiamento(
    db: Session,
    financiamento_id: int,
    data: FinanciamentoUpdate,
) -> FinanciamentoResponse:
    """Apply a partial update to a funding program.

    ``tipo_calculo_previsto`` can only change while no project references
    the program; baselines already frozen under the old model would no
    longer match the panels.

    Raises:
        NaoEncontradoError: Unknown program.
        ValidacaoError: Invalid values.
        ConflitoError: Name already used by another program, or a model
            change on a program in use.
    """
    fin = _obter(db, financiamento_id)
    dados = data.model_dump(exclude_unset=True, exclude_none=True)
    if "nome" in dados:
        dados["nome"] = dados["nome"].strip()
    _validar_valores(dados)
    if "nome" in dados and _nome_em_uso(db, dados["nome"], excluir_id=financiamento_id):
        raise ConflitoError(f"Já existe um financiamento com o nome {dados['nome']!r}")

    modelo = dados.get("tipo_calculo_previsto")
    if modelo is not None and modelo != fin.tipo_calculo_previsto:
        em_uso = _n_projetos(db, financiamento_id)
        if em_uso:
            logger.warning(
                "update_financiamento: mudança de modelo %s -> %s recusada (id=%d, %d projeto(s))",
                fin.tipo_calculo_previsto, modelo, financiamento_id, em_uso,
            )
            raise ConflitoError(
                f"Financiamento {financiamento_id} em uso por {em_uso} projeto(s); "
                "o modelo de custo não pode ser alterado"
            )

    for campo, valor in dados.items():
        setattr(fin, campo, valor)
    db.commit()
    db.refresh(fin)

    logger.info("update_financiamento: id=%d fields=%s", financiamento_id, list(dados.keys()))
    return _build_response(db, fin)


def delete_financiamento(db: Session, financiamento_id: int) -> None:
    """Delete a funding program that no project references.

    Raises:
        NaoEncontradoError: Unknown program.
        ConflitoError: The program is in use.
    """
    fin = _obter(db, financiamento_id)
    em_uso = _n_projetos(db, financiamento_id)
    if em_uso:
        raise ConflitoError(f"Financiamento {financiamento_id} em uso por {em_uso} projeto(s)")

    db.delete(fin)
    db.commit()
    logger.info("delete_financiamento: id=%d", financiamento_id)
