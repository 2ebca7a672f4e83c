"""
Budget snapshot service layer.

Freezes the planned cost of a workpackage into an ``OrcamentoSnapshot``
row. Snapshots are append-only: ``tirar_snapshot`` creates version 1,
``refazer_snapshot`` inserts ``versao + 1`` and the highest version is the
current baseline. No row is ever updated in place.

Design notes
------------
- Every write locks the workpackage row (``SELECT … FOR UPDATE``) before
  reading the current version, and the ``(workpackage_id, versao)`` unique
  key rejects a lost race; the loser gets ``ConflitoError``.
- Only ``"submetido"`` allocations inside the workpackage's dates are
  planned; the rest are counted and logged, not stored.
- A project without a funding program cannot be snapshotted: there is no
  costing model to freeze.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import date

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portal_financas.core.agregador import calcular_baseline
from portal_financas.core.tipos import Baseline, SnapshotRow, WorkpackageRow
from portal_financas.exceptions import (
    ConflitoError,
    NaoEncontradoError,
    SnapshotExistenteError,
    ValidacaoError,
)
from portal_financas.models.projeto import Projeto
from portal_financas.repositories import Repositorios
from portal_financas.schemas.snapshot import AprovacaoResponse, SnapshotResponse
from portal_financas.services.financas_service import criar_resolver
from portal_financas.utils.constants import (
    ESTADO_APROVADO,
    ESTADO_EM_DESENVOLVIMENTO,
    TIPO_SUBMETIDO,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _resposta(row: SnapshotRow, fora_do_periodo: int = 0) -> SnapshotResponse:
    return SnapshotResponse(**dataclasses.asdict(row), alocacoes_fora_do_periodo=fora_do_periodo)


def _bloquear_workpackage(repos: Repositorios, workpackage_id: int) -> WorkpackageRow:
    workpackage = repos.workpackages.get_for_update(workpackage_id)
    if workpackage is None:
        raise NaoEncontradoError("Workpackage", workpackage_id)
    return workpackage


def _calcular(repos: Repositorios, workpackage: WorkpackageRow) -> Baseline:
    """Validate the workpackage and compute its baseline.

    Raises:
        ValidacaoError: Missing or inverted dates, or no funding program.
    """
    if workpackage.inicio is None or workpackage.fim is None:
        raise ValidacaoError(f"Workpackage {workpackage.id} sem data de início/fim")
    if workpackage.inicio > workpackage.fim:
        raise ValidacaoError(
            f"Workpackage {workpackage.id}: início {workpackage.inicio} posterior ao fim {workpackage.fim}"
        )

    resolver = criar_resolver(repos, workpackage.projeto_id)
    if resolver.parametros is None:
        raise ValidacaoError(
            f"Projeto {workpackage.projeto_id} sem financiamento; não é possível fixar o orçamento"
        )

    baseline = calcular_baseline(
        workpackage,
        repos.alocacoes.list_by_workpackage(workpackage.id, TIPO_SUBMETIDO),
        repos.materiais.list_by_workpackage(workpackage.id),
        resolver,
    )
    if baseline.alocacoes_fora_do_periodo:
        logger.warning(
            "Workpackage %d: %d alocações submetidas fora de %s..%s ignoradas no snapshot",
            workpackage.id, baseline.alocacoes_fora_do_periodo, workpackage.inicio, workpackage.fim,
        )
    return baseline


def _gravar(repos: Repositorios, db: Session, workpackage_id: int, versao: int, baseline: Baseline) -> SnapshotRow:
    try:
        return repos.snapshots.gravar(workpackage_id, versao, baseline)
    except IntegrityError as exc:
        db.rollback()
        raise ConflitoError(
            f"Snapshot versão {versao} do workpackage {workpackage_id} gravado em simultâneo"
        ) from exc


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------


def tirar_snapshot(db: Session, workpackage_id: int) -> SnapshotResponse:
    """Take the first baseline of a workpackage.

    Args:
        db: Active SQLAlchemy session.
        workpackage_id: Workpackage primary key.

    Returns:
        The stored snapshot (``versao = 1``).

    Raises:
        NaoEncontradoError: If the workpackage does not exist.
        SnapshotExistenteError: If a baseline already exists.
        ValidacaoError: If the workpackage has no dates or no funding program.
    """
    repos = Repositorios.de_sessao(db)
    workpackage = _bloquear_workpackage(repos, workpackage_id)

    atual = repos.snapshots.atual(workpackage_id)
    if atual is not None:
        db.rollback()
        raise SnapshotExistenteError(workpackage_id, atual.versao)

    try:
        baseline = _calcular(repos, workpackage)
    except ValidacaoError:
        db.rollback()
        raise
    row = _gravar(repos, db, workpackage_id, 1, baseline)
    db.commit()

    logger.info(
        "Snapshot v1 do workpackage %d (%s) gravado", workpackage_id, baseline.modelo_custo
    )
    return _resposta(row, baseline.alocacoes_fora_do_periodo)


def refazer_snapshot(db: Session, workpackage_id: int) -> SnapshotResponse:
    """Supersede the current baseline with a freshly computed one.

    The previous version stays in history. With no previous snapshot this
    behaves like ``tirar_snapshot``.

    Raises:
        NaoEncontradoError: If the workpackage does not exist.
        ValidacaoError: If the workpackage has no dates or no funding program.
    """
    repos = Repositorios.de_sessao(db)
    workpackage = _bloquear_workpackage(repos, workpackage_id)

    atual = repos.snapshots.atual(workpackage_id)
    versao = atual.versao + 1 if atual is not None else 1

    try:
        baseline = _calcular(repos, workpackage)
    except ValidacaoError:
        db.rollback()
        raise
    row = _gravar(repos, db, workpackage_id, versao, baseline)
    db.commit()

    logger.info(
        "Snapshot v%d do workpackage %d (%s) gravado", versao, workpackage_id, baseline.modelo_custo
    )
    return _resposta(row, baseline.alocacoes_fora_do_periodo)


def historico_snapshots(db: Session, workpackage_id: int) -> list[SnapshotResponse]:
    """All snapshot versions of a workpackage, newest first.

    Raises:
        NaoEncontradoError: If the workpackage does not exist.
    """
    repos = Repositorios.de_sessao(db)
    if repos.workpackages.get(workpackage_id) is None:
        raise NaoEncontradoError("Workpackage", workpackage_id)
    return [_resposta(row) for row in repos.snapshots.historico(workpackage_id)]


def aprovar_projeto(db: Session, projeto_id: int, hoje: date | None = None) -> AprovacaoResponse:
    """Approve a project, freezing the baseline of every workpackage.

    Workpackages that already have a baseline keep it. The first
    workpackage that cannot be snapshotted aborts the whole approval and
    nothing is written.

    The project moves to ``EM_DESENVOLVIMENTO`` when it has already
    started (``inicio <= hoje``) and to ``APROVADO`` otherwise.

    Raises:
        NaoEncontradoError: If the project does not exist.
        ValidacaoError: If any workpackage fails snapshot validation.
    """
    hoje = hoje or date.today()
    projeto = db.get(Projeto, projeto_id)
    if projeto is None:
        raise NaoEncontradoError("Projeto", projeto_id)

    repos = Repositorios.de_sessao(db)
    gravados: list[SnapshotResponse] = []
    try:
        for wp in repos.workpackages.list_by_projeto(projeto_id):
            workpackage = _bloquear_workpackage(repos, wp.id)
            if repos.snapshots.atual(wp.id) is not None:
                continue
            baseline = _calcular(repos, workpackage)
            row = repos.snapshots.gravar(wp.id, 1, baseline)
            gravados.append(_resposta(row, baseline.alocacoes_fora_do_periodo))
    except ValidacaoError:
        db.rollback()
        raise
    except IntegrityError as exc:
        db.rollback()
        raise ConflitoError(f"Aprovação do projeto {projeto_id} em simultâneo") from exc

    projeto.estado = (
        ESTADO_EM_DESENVOLVIMENTO
        if projeto.inicio is not None and projeto.inicio <= hoje
        else ESTADO_APROVADO
    )
    db.commit()

    logger.info(
        "Projeto %d aprovado (%s); %d snapshots novos", projeto_id, projeto.estado, len(gravados)
    )
    return AprovacaoResponse(projeto_id=projeto_id, estado=projeto.estado, snapshots=gravados)
