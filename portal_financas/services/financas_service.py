"""
Financial panels service layer.

All database access for the ``/api/financas`` endpoints lives here.
Functions receive a SQLAlchemy ``Session``, fetch rows through the stores
in ``portal_financas.repositories`` and hand them to the pure aggregator
in ``portal_financas.core.agregador``.

Design notes
------------
- One ``RateResolver`` per project and request; it memoises salaries and
  monthly configurations, so a panel costs one lookup per user/month.
- The project panel is folded from the exact list of workpackage panels
  it returns, never from a second query.
- Month labels come from the static ``ROTULOS_MES`` list so the API
  always returns Portuguese abbreviations regardless of database locale.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from portal_financas.core.agregador import (
    agregar_projeto,
    montar_painel_workpackage,
    serie_mensal,
)
from portal_financas.core.taxas import ZERO, RateResolver
from portal_financas.core.tipos import ProjetoRow, WorkpackageRow
from portal_financas.exceptions import NaoEncontradoError, ValidacaoError
from portal_financas.models.projeto import Projeto
from portal_financas.repositories import Repositorios, projeto_row
from portal_financas.schemas.financas import (
    FinanciamentoResumo,
    GastoMensalItem,
    PainelDetalhado,
    PainelEti,
    PainelProjetoDetalhado,
    PainelProjetoEti,
    ResumoAnualItem,
)
from portal_financas.utils.constants import TIPO_REAL

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def criar_resolver(repos: Repositorios, projeto_id: int) -> RateResolver:
    """Build the rate resolver of a project from its funding program."""
    parametros = repos.financiamentos.get(projeto_id)
    if parametros is None:
        logger.debug("Projeto %d sem financiamento; avaliado como DETALHADO", projeto_id)
    return RateResolver(
        parametros,
        repos.utilizadores.get_salario,
        repos.configuracoes.get,
        repos.utilizadores.get_salarios,
    )


def _obter_projeto(db: Session, projeto_id: int) -> ProjetoRow:
    projeto = db.get(Projeto, projeto_id)
    if projeto is None:
        raise NaoEncontradoError("Projeto", projeto_id)
    return projeto_row(projeto)


def _financiamento_resumo(resolver: RateResolver) -> FinanciamentoResumo | None:
    p = resolver.parametros
    if p is None:
        return None
    return FinanciamentoResumo(
        id=p.financiamento_id,
        nome=p.nome,
        overhead=p.overhead,
        taxa_financiamento=p.taxa_financiamento,
        valor_eti=p.valor_eti,
    )


def _painel(
    repos: Repositorios,
    workpackage: WorkpackageRow,
    resolver: RateResolver,
    ano: int | None = None,
    hoje: date | None = None,
) -> PainelEti | PainelDetalhado:
    return montar_painel_workpackage(
        workpackage,
        resolver,
        repos.snapshots.atual(workpackage.id),
        repos.alocacoes.list_by_workpackage(workpackage.id, TIPO_REAL, ano),
        repos.materiais.list_by_workpackage(workpackage.id, ano),
        ano,
        hoje,
    )


def calcular_painel_projeto(
    repos: Repositorios,
    projeto: ProjetoRow,
    ano: int | None = None,
    hoje: date | None = None,
) -> PainelProjetoEti | PainelProjetoDetalhado:
    """Compute the project panel from already-resolved project data.

    Shared by the panel endpoint and the dashboard projections.
    """
    resolver = criar_resolver(repos, projeto.id)
    paineis = [
        _painel(repos, wp, resolver, ano, hoje)
        for wp in repos.workpackages.list_by_projeto(projeto.id)
    ]
    return agregar_projeto(projeto, resolver.modelo, paineis, _financiamento_resumo(resolver), ano)


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------


def get_painel_workpackage(
    db: Session,
    workpackage_id: int,
    ano: int | None = None,
    hoje: date | None = None,
) -> PainelEti | PainelDetalhado:
    """Planned vs realized panel of one workpackage.

    Args:
        db: Active SQLAlchemy session.
        workpackage_id: Workpackage primary key.
        ano: Optional calendar year restriction.
        hoje: Reference date for ``custos_concluidos`` (defaults to today).

    Returns:
        ``PainelEti`` or ``PainelDetalhado`` depending on the project's
        costing model. Missing or mismatched baselines degrade the panel
        (flags set, percent 0) instead of raising.

    Raises:
        NaoEncontradoError: If the workpackage does not exist.
    """
    repos = Repositorios.de_sessao(db)
    workpackage = repos.workpackages.get(workpackage_id)
    if workpackage is None:
        raise NaoEncontradoError("Workpackage", workpackage_id)

    resolver = criar_resolver(repos, workpackage.projeto_id)
    painel = _painel(repos, workpackage, resolver, ano, hoje)
    logger.debug(
        "get_painel_workpackage: wp=%d modelo=%s realizado=%s orcamento=%s",
        workpackage_id, painel.modelo_custo, painel.totais.realizado, painel.totais.orcamento,
    )
    return painel


def get_painel_projeto(
    db: Session,
    projeto_id: int,
    ano: int | None = None,
    hoje: date | None = None,
) -> PainelProjetoEti | PainelProjetoDetalhado:
    """Planned vs realized panel of a project, with one entry per workpackage.

    ``totais.realizado`` equals the sum of ``detalhes_por_workpackage[*]
    .totais.realizado`` by construction.

    Raises:
        NaoEncontradoError: If the project does not exist.
    """
    repos = Repositorios.de_sessao(db)
    projeto = _obter_projeto(db, projeto_id)
    painel = calcular_painel_projeto(repos, projeto, ano, hoje)
    logger.debug(
        "get_painel_projeto: projeto=%d wps=%d percent=%s",
        projeto_id, len(painel.detalhes_por_workpackage), painel.percent,
    )
    return painel


def get_gastos_mensais(db: Session, ano: int, limite: int = 12) -> list[GastoMensalItem]:
    """Realized expenses per month across every project.

    Resource cost is the ``"real"`` track resolved under each project's
    own costing model. Materials are placed in the month recorded on them;
    materials with no month are left out of the series.

    Args:
        db: Active SQLAlchemy session.
        ano: Calendar year.
        limite: Number of months to return, starting in January (1–12).

    Returns:
        Exactly ``limite`` items for months ``1..limite``, zero-filled,
        with running totals.

    Raises:
        ValidacaoError: If ``limite`` is outside 1–12.
    """
    if not 1 <= limite <= 12:
        raise ValidacaoError(f"Limite de meses deve estar entre 1 e 12: {limite}")

    repos = Repositorios.de_sessao(db)
    resolvers: dict[int, RateResolver] = {}
    recursos_por_mes: dict[int, Decimal] = defaultdict(lambda: ZERO)
    materiais_por_mes: dict[int, Decimal] = defaultdict(lambda: ZERO)

    for alocacao in repos.alocacoes.list_by_periodo(ano, TIPO_REAL):
        if alocacao.mes > limite:
            continue
        if alocacao.projeto_id not in resolvers:
            resolvers[alocacao.projeto_id] = criar_resolver(repos, alocacao.projeto_id)
        custo = resolvers[alocacao.projeto_id].resolver(
            alocacao.utilizador_id, alocacao.mes, alocacao.ano, alocacao.ocupacao
        ).custo
        recursos_por_mes[alocacao.mes] += custo

    sem_mes = 0
    for material in repos.materiais.list_by_periodo(ano):
        if material.mes is None:
            sem_mes += 1
            continue
        if material.mes <= limite:
            materiais_por_mes[material.mes] += material.custo

    if sem_mes:
        logger.debug("get_gastos_mensais: %d materiais de %d sem mês ficaram fora da série", sem_mes, ano)

    return serie_mensal(recursos_por_mes, materiais_por_mes, limite)


def get_resumo_anual(
    db: Session,
    projeto_id: int,
    hoje: date | None = None,
) -> list[ResumoAnualItem]:
    """Planned vs realized totals of a project, one entry per calendar year.

    A year is listed when it has any ``"real"`` allocation, any material or
    any planned figure in the current baselines. Each entry also carries
    the committed cost of that year as of ``hoje``.

    Raises:
        NaoEncontradoError: If the project does not exist.
    """
    repos = Repositorios.de_sessao(db)
    projeto = _obter_projeto(db, projeto_id)
    resolver = criar_resolver(repos, projeto_id)
    workpackages = repos.workpackages.list_by_projeto(projeto_id)

    anos: set[int] = set()
    for wp in workpackages:
        anos.update(a.ano for a in repos.alocacoes.list_by_workpackage(wp.id, TIPO_REAL))
        anos.update(m.ano_utilizacao for m in repos.materiais.list_by_workpackage(wp.id))
        snapshot = repos.snapshots.atual(wp.id)
        if snapshot is not None:
            anos.update(snapshot.previsto_por_ano.keys())

    itens: list[ResumoAnualItem] = []
    for ano in sorted(anos):
        paineis = [_painel(repos, wp, resolver, ano, hoje) for wp in workpackages]
        painel = agregar_projeto(projeto, resolver.modelo, paineis, ano=ano)
        itens.append(
            ResumoAnualItem(
                ano=ano,
                orcamento=painel.totais.orcamento,
                realizado_recursos=painel.totais.realizado_recursos,
                realizado_materiais=painel.totais.realizado_materiais,
                realizado=painel.totais.realizado,
                percent=painel.percent,
                razao=painel.razao,
                custos_concluidos=painel.custos_concluidos,
            )
        )
    return itens
