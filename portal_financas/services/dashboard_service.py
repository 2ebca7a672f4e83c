"""
Dashboard projections service layer (``/api/dashboard``).

Thin reshaping of the financial panels into list and card widgets:
budget alerts, deadline alerts, user occupancy, project health counts and
workpackage progress bars. Every figure comes from
``financas_service.calcular_painel_projeto``; nothing is recomputed here.

Semaphore rules
---------------
- ``razao > LIMIAR_CRITICO``  → ``VERMELHO``
- ``razao > LIMIAR_RISCO``    → ``AMARELO``
- otherwise                    → ``VERDE``
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from portal_financas.config import get_settings
from portal_financas.core.taxas import ZERO
from portal_financas.exceptions import NaoEncontradoError, ValidacaoError
from portal_financas.models.projeto import Projeto
from portal_financas.models.utilizador import Utilizador
from portal_financas.models.workpackage import Workpackage
from portal_financas.repositories import Repositorios, projeto_row
from portal_financas.schemas.dashboard import (
    AlertaOrcamentoItem,
    AlertaPrazoItem,
    OcupacaoUtilizadorItem,
    ProgressoWorkpackageItem,
    ResumoProjetosResponse,
)
from portal_financas.services.financas_service import calcular_painel_projeto
from portal_financas.utils.constants import (
    NIVEL_AMARELO,
    NIVEL_VERDE,
    NIVEL_VERMELHO,
    TIPOS_ALOCACAO,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _nivel(razao: Decimal) -> str:
    """Map a raw consumption ratio to a semaphore colour."""
    settings = get_settings()
    if razao > settings.LIMIAR_CRITICO:
        return NIVEL_VERMELHO
    if razao > settings.LIMIAR_RISCO:
        return NIVEL_AMARELO
    return NIVEL_VERDE


def _dias_restantes(fim: date | None, hoje: date) -> int | None:
    return (fim - hoje).days if fim is not None else None


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------


def get_alertas_orcamento(db: Session, hoje: date | None = None) -> list[AlertaOrcamentoItem]:
    """Workpackages above a consumption threshold, nearest deadline first.

    Workpackages with realized cost but no baseline are included as
    ``VERMELHO`` with ``sem_baseline`` set. Undated workpackages go last.
    """
    hoje = hoje or date.today()
    repos = Repositorios.de_sessao(db)
    itens: list[AlertaOrcamentoItem] = []

    for projeto in db.query(Projeto).order_by(Projeto.id).all():
        painel = calcular_painel_projeto(repos, projeto_row(projeto), hoje=hoje)
        datas = {wp.id: wp.fim for wp in repos.workpackages.list_by_projeto(projeto.id)}

        for wp_painel in painel.detalhes_por_workpackage:
            sem_baseline_com_custo = wp_painel.sem_baseline and wp_painel.totais.realizado > 0
            nivel = NIVEL_VERMELHO if sem_baseline_com_custo else _nivel(wp_painel.razao)
            if nivel == NIVEL_VERDE:
                continue
            fim = datas.get(wp_painel.workpackage_id)
            itens.append(
                AlertaOrcamentoItem(
                    workpackage_id=wp_painel.workpackage_id,
                    workpackage_nome=wp_painel.workpackage_nome,
                    projeto_id=projeto.id,
                    projeto_nome=projeto.nome,
                    modelo_custo=wp_painel.modelo_custo,
                    nivel=nivel,
                    percent=wp_painel.percent,
                    razao=wp_painel.razao,
                    orcamento=wp_painel.totais.orcamento,
                    realizado=wp_painel.totais.realizado,
                    sem_baseline=wp_painel.sem_baseline,
                    fim=fim,
                    dias_restantes=_dias_restantes(fim, hoje),
                )
            )

    itens.sort(key=lambda i: (i.dias_restantes is None, i.dias_restantes or 0, i.workpackage_id))
    logger.debug("get_alertas_orcamento: %d alertas", len(itens))
    return itens


def get_alertas_prazo(db: Session, hoje: date | None = None) -> list[AlertaPrazoItem]:
    """Workpackages ending between today and ``DIAS_ALERTA_PRAZO`` days ahead."""
    hoje = hoje or date.today()
    limite = hoje + timedelta(days=get_settings().DIAS_ALERTA_PRAZO)

    rows = (
        db.query(Workpackage, Projeto.nome)
        .join(Projeto, Projeto.id == Workpackage.projeto_id)
        .filter(Workpackage.fim.isnot(None), Workpackage.fim >= hoje, Workpackage.fim <= limite)
        .order_by(Workpackage.fim, Workpackage.id)
        .all()
    )
    return [
        AlertaPrazoItem(
            workpackage_id=wp.id,
            workpackage_nome=wp.nome,
            projeto_id=wp.projeto_id,
            projeto_nome=projeto_nome,
            fim=wp.fim,
            dias_restantes=(wp.fim - hoje).days,
        )
        for wp, projeto_nome in rows
    ]


def get_ocupacao_utilizadores(
    db: Session,
    ano: int,
    mes: int,
    tipo: str = "real",
) -> list[OcupacaoUtilizadorItem]:
    """Total monthly occupancy per user across workpackages, highest first.

    Raises:
        ValidacaoError: Month out of range or unknown track.
    """
    if not 1 <= mes <= 12:
        raise ValidacaoError(f"Mês inválido: {mes}")
    if tipo not in TIPOS_ALOCACAO:
        raise ValidacaoError(f"Tipo de alocação inválido: {tipo!r}")

    repos = Repositorios.de_sessao(db)
    totais: dict[int, Decimal] = defaultdict(lambda: ZERO)
    workpackages: dict[int, set[int]] = defaultdict(set)
    for alocacao in repos.alocacoes.list_by_periodo(ano, tipo, mes):
        totais[alocacao.utilizador_id] += alocacao.ocupacao
        workpackages[alocacao.utilizador_id].add(alocacao.workpackage_id)

    if not totais:
        return []

    nomes = dict(
        db.query(Utilizador.id, Utilizador.nome).filter(Utilizador.id.in_(list(totais))).all()
    )
    itens = [
        OcupacaoUtilizadorItem(
            utilizador_id=uid,
            nome=nomes.get(uid, ""),
            ocupacao_total=total,
            n_workpackages=len(workpackages[uid]),
            sobrealocado=total > 1,
        )
        for uid, total in totais.items()
    ]
    itens.sort(key=lambda i: (-i.ocupacao_total, i.utilizador_id))
    return itens


def get_resumo_projetos(db: Session) -> ResumoProjetosResponse:
    """Count projects per budget health class.

    A project with no baselined workpackage counts as ``sem_baseline``;
    the others are classified by their raw consumption ratio.
    """
    settings = get_settings()
    repos = Repositorios.de_sessao(db)
    saudavel = em_risco = critico = sem_baseline = 0

    projetos = db.query(Projeto).order_by(Projeto.id).all()
    for projeto in projetos:
        painel = calcular_painel_projeto(repos, projeto_row(projeto))
        n_wps = len(painel.detalhes_por_workpackage)
        if n_wps == 0 or painel.workpackages_sem_baseline == n_wps:
            sem_baseline += 1
        elif painel.razao > settings.LIMIAR_CRITICO:
            critico += 1
        elif painel.razao > settings.LIMIAR_RISCO:
            em_risco += 1
        else:
            saudavel += 1

    return ResumoProjetosResponse(
        total=len(projetos),
        saudavel=saudavel,
        em_risco=em_risco,
        critico=critico,
        sem_baseline=sem_baseline,
    )


def get_progresso_workpackages(db: Session, projeto_id: int) -> list[ProgressoWorkpackageItem]:
    """Progress bars of a project's workpackages, in workpackage order.

    Raises:
        NaoEncontradoError: If the project does not exist.
    """
    projeto = db.get(Projeto, projeto_id)
    if projeto is None:
        raise NaoEncontradoError("Projeto", projeto_id)

    repos = Repositorios.de_sessao(db)
    painel = calcular_painel_projeto(repos, projeto_row(projeto))
    datas = {wp.id: wp for wp in repos.workpackages.list_by_projeto(projeto_id)}

    return [
        ProgressoWorkpackageItem(
            workpackage_id=p.workpackage_id,
            workpackage_nome=p.workpackage_nome,
            inicio=datas[p.workpackage_id].inicio,
            fim=datas[p.workpackage_id].fim,
            percent=p.percent,
            razao=p.razao,
            nivel=_nivel(p.razao),
            sem_baseline=p.sem_baseline,
        )
        for p in painel.detalhes_por_workpackage
    ]
