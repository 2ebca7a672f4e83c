"""
Cost aggregation: planned (snapshot) vs realized (live) figures.

Everything here is pure computation over rows already fetched by the
stores; nothing touches the database and nothing retries.

Design notes
------------
- Realized resource cost comes from the ``"real"`` track resolved through
  ``RateResolver``; realized materials cost is ``preco × quantidade``.
- Percentages are ``Decimal``. ``percent`` is clamped to [0, 100] for
  display, ``razao`` keeps the raw ratio so overruns (> 1) stay visible.
  A zero or negative budget yields 0 / 0, never an error.
- Project totals are the sum of the very panels returned in
  ``detalhes_por_workpackage``, so "total" and "sum of parts" cannot drift.
- A missing or mismatched snapshot degrades the panel (percent 0, flags
  set) instead of failing the request.
- ``custos_concluidos`` is the committed part of the realized cost:
  closed months of the ``"real"`` track plus materials already acquired.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from portal_financas.core.taxas import ZERO, RateResolver, arredondar_moeda
from portal_financas.core.tipos import (
    AlocacaoRow,
    Baseline,
    MaterialRow,
    ProjetoRow,
    SnapshotRow,
    WorkpackageRow,
)
from portal_financas.exceptions import EstadoInconsistenteError, ValidacaoError
from portal_financas.schemas.financas import (
    CustosConcluidos,
    DetalheRealizado,
    DetalheRecurso,
    DetalheRubrica,
    FinanciamentoResumo,
    GastoMensalItem,
    PainelDetalhado,
    PainelEti,
    PainelProjetoDetalhado,
    PainelProjetoEti,
    TotaisPainel,
)
from portal_financas.utils.constants import MODELO_ETI, ROTULOS_MES

logger = logging.getLogger(__name__)

UM = Decimal("1")
CEM = Decimal("100")
_QUATRO_CASAS = Decimal("0.0001")
_DUAS_CASAS = Decimal("0.01")

# Keys of ``previsto_por_ano`` entries
CHAVE_ETI = "orcamento_eti"
CHAVE_RECURSOS = "recursos"
CHAVE_MATERIAIS = "materiais"


# ---------------------------------------------------------------------------
# Percentages
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Percentagem:
    """Display percent, rounded ratio and the exact overrun flag.

    ``excedido`` compares the unrounded amounts, so an overrun too small to
    show in ``razao`` is still reported.
    """

    exibicao: Decimal
    razao: Decimal
    excedido: bool = False


_SEM_PERCENTAGEM = Percentagem(ZERO, ZERO)


def calcular_percentagem(numerador: Decimal, denominador: Decimal) -> Percentagem:
    """Return the consumed share of a budget.

    Args:
        numerador: Realized amount.
        denominador: Budget amount.

    Returns:
        ``Percentagem`` with ``exibicao`` in [0, 100] (two decimals), the
        unclamped ``razao`` (four decimals) and ``excedido`` when
        ``numerador > denominador``. All zero/False when the budget is zero
        or negative.
    """
    if denominador <= 0:
        return _SEM_PERCENTAGEM
    razao = (numerador / denominador).quantize(_QUATRO_CASAS, rounding=ROUND_HALF_UP)
    limitada = min(max(razao, ZERO), UM)
    return Percentagem(
        (limitada * CEM).quantize(_DUAS_CASAS, rounding=ROUND_HALF_UP),
        razao,
        excedido=numerador > denominador,
    )


# ---------------------------------------------------------------------------
# Sums
# ---------------------------------------------------------------------------


def esta_no_periodo(mes: int, ano: int, inicio: date, fim: date) -> bool:
    """Whether month ``mes/ano`` falls within ``inicio``..``fim`` (month granularity)."""
    return (inicio.year, inicio.month) <= (ano, mes) <= (fim.year, fim.month)


def somar_custos_recursos(
    alocacoes: Iterable[AlocacaoRow],
    resolver: RateResolver,
    ano: int | None = None,
) -> tuple[Decimal, list[DetalheRecurso]]:
    """Resolve and sum allocations, also grouping them per user.

    Args:
        alocacoes: Allocation rows (one track).
        resolver: Resolver bound to the project's costing model.
        ano: Optional year restriction.

    Returns:
        ``(total, detalhes)`` with ``detalhes`` sorted by cost, highest first.
    """
    alocacoes = [a for a in alocacoes if ano is None or a.ano == ano]
    resolver.precarregar_salarios({a.utilizador_id for a in alocacoes})

    total = ZERO
    por_utilizador: dict[int, list[Decimal]] = defaultdict(lambda: [ZERO, ZERO, ZERO])

    for alocacao in alocacoes:
        resolvido = resolver.resolver(
            alocacao.utilizador_id, alocacao.mes, alocacao.ano, alocacao.ocupacao
        )
        total += resolvido.custo
        acumulado = por_utilizador[alocacao.utilizador_id]
        acumulado[0] += alocacao.ocupacao
        acumulado[1] += resolvido.horas
        acumulado[2] += resolvido.custo

    detalhes = [
        DetalheRecurso(utilizador_id=uid, ocupacao=ocup, horas=horas, custo=arredondar_moeda(custo))
        for uid, (ocup, horas, custo) in por_utilizador.items()
    ]
    detalhes.sort(key=lambda d: (-d.custo, d.utilizador_id))
    return total, detalhes


def somar_custos_materiais(
    materiais: Iterable[MaterialRow],
    ano: int | None = None,
) -> tuple[Decimal, list[DetalheRubrica]]:
    """Sum ``preco × quantidade`` of the materials, grouped by rubric."""
    total = ZERO
    por_rubrica: dict[str, Decimal] = defaultdict(lambda: ZERO)

    for material in materiais:
        if ano is not None and material.ano_utilizacao != ano:
            continue
        custo = material.custo
        total += custo
        por_rubrica[material.rubrica] += custo

    detalhes = [
        DetalheRubrica(rubrica=r, total=arredondar_moeda(t)) for r, t in sorted(por_rubrica.items())
    ]
    return total, detalhes


def somar_custos_concluidos(
    alocacoes: Iterable[AlocacaoRow],
    materiais: Iterable[MaterialRow],
    resolver: RateResolver,
    hoje: date,
    ano: int | None = None,
) -> CustosConcluidos:
    """Committed cost: allocations of months already closed plus acquired materials.

    A month is closed once it is strictly before ``hoje``'s month; the
    current month is still open. Only materials with ``estado`` set count.
    """
    corrente = (hoje.year, hoje.month)
    recursos = ZERO
    for alocacao in alocacoes:
        if ano is not None and alocacao.ano != ano:
            continue
        if (alocacao.ano, alocacao.mes) >= corrente:
            continue
        recursos += resolver.resolver(
            alocacao.utilizador_id, alocacao.mes, alocacao.ano, alocacao.ocupacao
        ).custo

    adquiridos = ZERO
    for material in materiais:
        if material.estado and (ano is None or material.ano_utilizacao == ano):
            adquiridos += material.custo

    return _concluidos(recursos, adquiridos)


def _concluidos(recursos: Decimal, materiais: Decimal) -> CustosConcluidos:
    recursos = arredondar_moeda(recursos)
    materiais = arredondar_moeda(materiais)
    return CustosConcluidos(recursos=recursos, materiais=materiais, total=recursos + materiais)


# ---------------------------------------------------------------------------
# Baseline (snapshot) computation
# ---------------------------------------------------------------------------


def calcular_baseline(
    workpackage: WorkpackageRow,
    alocacoes_submetidas: Sequence[AlocacaoRow],
    materiais: Sequence[MaterialRow],
    resolver: RateResolver,
) -> Baseline:
    """Compute the planned figures to freeze for a workpackage.

    Only ``"submetido"`` allocations inside the workpackage's date range
    count.

    ETI model: one scalar, ``Σ ocupacao × valor_eti``.
    Detailed model: resolved resources cost and materials cost, kept apart.

    Raises:
        ValidacaoError: If the workpackage has no start or end date.
    """
    if workpackage.inicio is None or workpackage.fim is None:
        raise ValidacaoError(f"Workpackage {workpackage.id} sem data de início/fim")

    dentro = [
        a for a in alocacoes_submetidas
        if esta_no_periodo(a.mes, a.ano, workpackage.inicio, workpackage.fim)
    ]
    fora = len(alocacoes_submetidas) - len(dentro)
    resolver.precarregar_salarios({a.utilizador_id for a in dentro})

    por_ano: dict[int, dict[str, Decimal]] = defaultdict(dict)

    if resolver.modelo == MODELO_ETI:
        total_eti = ZERO
        for alocacao in dentro:
            custo = resolver.resolver(
                alocacao.utilizador_id, alocacao.mes, alocacao.ano, alocacao.ocupacao
            ).custo
            total_eti += custo
            por_ano[alocacao.ano][CHAVE_ETI] = por_ano[alocacao.ano].get(CHAVE_ETI, ZERO) + custo
        return Baseline(
            modelo_custo=MODELO_ETI,
            orcamento_previsto_eti=arredondar_moeda(total_eti),
            previsto_recursos=None,
            previsto_materiais=None,
            previsto_por_ano=_arredondar_por_ano(por_ano),
            alocacoes_fora_do_periodo=fora,
        )

    total_recursos = ZERO
    for alocacao in dentro:
        custo = resolver.resolver(
            alocacao.utilizador_id, alocacao.mes, alocacao.ano, alocacao.ocupacao
        ).custo
        total_recursos += custo
        entrada = por_ano[alocacao.ano]
        entrada[CHAVE_RECURSOS] = entrada.get(CHAVE_RECURSOS, ZERO) + custo

    total_materiais = ZERO
    for material in materiais:
        total_materiais += material.custo
        entrada = por_ano[material.ano_utilizacao]
        entrada[CHAVE_MATERIAIS] = entrada.get(CHAVE_MATERIAIS, ZERO) + material.custo

    for entrada in por_ano.values():
        entrada.setdefault(CHAVE_RECURSOS, ZERO)
        entrada.setdefault(CHAVE_MATERIAIS, ZERO)

    return Baseline(
        modelo_custo=resolver.modelo,
        orcamento_previsto_eti=None,
        previsto_recursos=arredondar_moeda(total_recursos),
        previsto_materiais=arredondar_moeda(total_materiais),
        previsto_por_ano=_arredondar_por_ano(por_ano),
        alocacoes_fora_do_periodo=fora,
    )


def _arredondar_por_ano(por_ano: dict[int, dict[str, Decimal]]) -> dict[int, dict[str, Decimal]]:
    return {
        ano: {chave: arredondar_moeda(valor) for chave, valor in entrada.items()}
        for ano, entrada in sorted(por_ano.items())
    }


# ---------------------------------------------------------------------------
# Panels
# ---------------------------------------------------------------------------


def _previsto(
    workpackage_id: int,
    modelo: str,
    snapshot: SnapshotRow | None,
    ano: int | None,
) -> dict[str, Decimal]:
    """Extract the baseline figures the panel compares against.

    Raises:
        EstadoInconsistenteError: If the snapshot was taken under another
            costing model or lacks the fields of its own shape.
    """
    if snapshot is None:
        return {}

    if snapshot.modelo_custo != modelo:
        raise EstadoInconsistenteError(
            workpackage_id,
            f"snapshot em modelo {snapshot.modelo_custo} mas financiamento em {modelo}",
        )

    if modelo == MODELO_ETI:
        if snapshot.orcamento_previsto_eti is None:
            raise EstadoInconsistenteError(workpackage_id, "snapshot ETI sem orçamento previsto")
        if ano is not None:
            return {CHAVE_ETI: snapshot.previsto_por_ano.get(ano, {}).get(CHAVE_ETI, ZERO)}
        return {CHAVE_ETI: snapshot.orcamento_previsto_eti}

    if snapshot.previsto_recursos is None or snapshot.previsto_materiais is None:
        raise EstadoInconsistenteError(workpackage_id, "snapshot detalhado incompleto")
    if ano is not None:
        entrada = snapshot.previsto_por_ano.get(ano, {})
        return {
            CHAVE_RECURSOS: entrada.get(CHAVE_RECURSOS, ZERO),
            CHAVE_MATERIAIS: entrada.get(CHAVE_MATERIAIS, ZERO),
        }
    return {
        CHAVE_RECURSOS: snapshot.previsto_recursos,
        CHAVE_MATERIAIS: snapshot.previsto_materiais,
    }


def montar_painel_workpackage(
    workpackage: WorkpackageRow,
    resolver: RateResolver,
    snapshot: SnapshotRow | None,
    alocacoes_reais: Sequence[AlocacaoRow],
    materiais: Sequence[MaterialRow],
    ano: int | None = None,
    hoje: date | None = None,
) -> PainelEti | PainelDetalhado:
    """Build the planned-vs-realized panel of one workpackage.

    Args:
        workpackage: The workpackage.
        resolver: Resolver bound to the project's costing model.
        snapshot: Current baseline, or None if never snapshotted.
        alocacoes_reais: ``"real"``-track allocations of the workpackage.
        materiais: Materials of the workpackage.
        ano: Optional year restriction for both sides of the comparison.
        hoje: Reference date for ``custos_concluidos`` (defaults to today).

    Returns:
        ``PainelEti`` or ``PainelDetalhado`` according to ``resolver.modelo``.
        Realized money is rounded to cents before percentages and flags are
        derived from it.
    """
    modelo = resolver.modelo
    realizado_recursos, detalhes_recursos = somar_custos_recursos(alocacoes_reais, resolver, ano)
    realizado_materiais, detalhes_materiais = somar_custos_materiais(materiais, ano)
    realizado_recursos = arredondar_moeda(realizado_recursos)
    realizado_materiais = arredondar_moeda(realizado_materiais)
    realizado = realizado_recursos + realizado_materiais

    sem_baseline = snapshot is None
    inconsistente = False
    try:
        previsto = _previsto(workpackage.id, modelo, snapshot, ano)
    except EstadoInconsistenteError as exc:
        logger.warning("Painel degradado: %s", exc.message)
        previsto = {}
        inconsistente = True

    if sem_baseline and realizado > 0:
        logger.warning(
            "Workpackage %d tem custo realizado %s sem baseline", workpackage.id, realizado
        )
        inconsistente = True

    comum = dict(
        workpackage_id=workpackage.id,
        workpackage_nome=workpackage.nome,
        projeto_id=workpackage.projeto_id,
        ano=ano,
        sem_baseline=sem_baseline,
        estado_inconsistente=inconsistente,
        snapshot_versao=snapshot.versao if snapshot is not None else None,
        snapshot_tirado_em=snapshot.tirado_em if snapshot is not None else None,
        custos_concluidos=somar_custos_concluidos(
            alocacoes_reais, materiais, resolver, hoje or date.today(), ano
        ),
        detalhe_realizado=DetalheRealizado(
            recursos=detalhes_recursos,
            materiais_por_rubrica=detalhes_materiais,
        ),
    )

    if modelo == MODELO_ETI:
        orcamento = previsto.get(CHAVE_ETI, ZERO)
        total = _percentagem_ou_zero(realizado, orcamento, inconsistente)
        return PainelEti(
            **comum,
            valor_eti=resolver.valor_eti,
            orcamento_previsto_com_eti=orcamento,
            totais=_totais(orcamento, realizado_recursos, realizado_materiais),
            percent=total.exibicao,
            razao=total.razao,
            sobre_orcamento=total.excedido,
        )

    previsto_recursos = previsto.get(CHAVE_RECURSOS, ZERO)
    previsto_materiais = previsto.get(CHAVE_MATERIAIS, ZERO)
    orcamento = previsto_recursos + previsto_materiais
    total = _percentagem_ou_zero(realizado, orcamento, inconsistente)
    rh = _percentagem_ou_zero(realizado_recursos, previsto_recursos, inconsistente)
    mat = _percentagem_ou_zero(realizado_materiais, previsto_materiais, inconsistente)
    return PainelDetalhado(
        **comum,
        previsto_recursos_snapshot=previsto_recursos,
        previsto_materiais_snapshot=previsto_materiais,
        totais=_totais(orcamento, realizado_recursos, realizado_materiais),
        percent=total.exibicao,
        razao=total.razao,
        rh_percent=rh.exibicao,
        rh_razao=rh.razao,
        mat_percent=mat.exibicao,
        mat_razao=mat.razao,
        sobre_orcamento=total.excedido or rh.excedido or mat.excedido,
    )


def _percentagem_ou_zero(numerador: Decimal, denominador: Decimal, degradado: bool) -> Percentagem:
    if degradado:
        return _SEM_PERCENTAGEM
    return calcular_percentagem(numerador, denominador)


def _totais(orcamento: Decimal, recursos: Decimal, materiais: Decimal) -> TotaisPainel:
    recursos = arredondar_moeda(recursos)
    materiais = arredondar_moeda(materiais)
    realizado = recursos + materiais
    return TotaisPainel(
        orcamento=orcamento,
        realizado_recursos=recursos,
        realizado_materiais=materiais,
        realizado=realizado,
        restante=orcamento - realizado,
    )


def agregar_projeto(
    projeto: ProjetoRow,
    modelo: str,
    paineis: Sequence[PainelEti | PainelDetalhado],
    financiamento: FinanciamentoResumo | None = None,
    ano: int | None = None,
) -> PainelProjetoEti | PainelProjetoDetalhado:
    """Fold workpackage panels into the project panel.

    Totals are sums over ``paineis`` and the same list is returned as
    ``detalhes_por_workpackage``.
    """
    recursos = sum((p.totais.realizado_recursos for p in paineis), ZERO)
    materiais = sum((p.totais.realizado_materiais for p in paineis), ZERO)
    realizado = recursos + materiais
    sem_baseline = sum(1 for p in paineis if p.sem_baseline)
    concluidos = _concluidos(
        sum((p.custos_concluidos.recursos for p in paineis), ZERO),
        sum((p.custos_concluidos.materiais for p in paineis), ZERO),
    )

    comum = dict(
        projeto_id=projeto.id,
        projeto_nome=projeto.nome,
        ano=ano,
        financiamento=financiamento,
        workpackages_sem_baseline=sem_baseline,
        custos_concluidos=concluidos,
        detalhes_por_workpackage=list(paineis),
    )

    if modelo == MODELO_ETI:
        orcamento = sum((p.orcamento_previsto_com_eti for p in paineis), ZERO)
        total = calcular_percentagem(realizado, orcamento)
        return PainelProjetoEti(
            **comum,
            orcamento_previsto_com_eti=orcamento,
            totais=_totais(orcamento, recursos, materiais),
            percent=total.exibicao,
            razao=total.razao,
            sobre_orcamento=total.excedido,
        )

    previsto_recursos = sum((p.previsto_recursos_snapshot for p in paineis), ZERO)
    previsto_materiais = sum((p.previsto_materiais_snapshot for p in paineis), ZERO)
    orcamento = previsto_recursos + previsto_materiais
    total = calcular_percentagem(realizado, orcamento)
    rh = calcular_percentagem(recursos, previsto_recursos)
    mat = calcular_percentagem(materiais, previsto_materiais)
    return PainelProjetoDetalhado(
        **comum,
        previsto_recursos_snapshot=previsto_recursos,
        previsto_materiais_snapshot=previsto_materiais,
        totais=_totais(orcamento, recursos, materiais),
        percent=total.exibicao,
        razao=total.razao,
        rh_percent=rh.exibicao,
        rh_razao=rh.razao,
        mat_percent=mat.exibicao,
        mat_razao=mat.razao,
        sobre_orcamento=total.excedido or rh.excedido or mat.excedido,
    )


# ---------------------------------------------------------------------------
# Monthly series
# ---------------------------------------------------------------------------


def serie_mensal(
    recursos_por_mes: dict[int, Decimal],
    materiais_por_mes: dict[int, Decimal],
    limite: int = 12,
) -> list[GastoMensalItem]:
    """Zero-filled series for months ``1..limite`` with running totals.

    Raises:
        ValidacaoError: If ``limite`` is outside 1–12.
    """
    if not 1 <= limite <= 12:
        raise ValidacaoError(f"Limite de meses deve estar entre 1 e 12: {limite}")

    itens: list[GastoMensalItem] = []
    acumulado_recursos = ZERO
    acumulado_materiais = ZERO
    for mes in range(1, limite + 1):
        recursos = recursos_por_mes.get(mes, ZERO)
        materiais = materiais_por_mes.get(mes, ZERO)
        acumulado_recursos += recursos
        acumulado_materiais += materiais
        itens.append(
            GastoMensalItem(
                mes=mes,
                rotulo=ROTULOS_MES[mes],
                custo_recursos=recursos,
                custo_materiais=materiais,
                acumulado_recursos=acumulado_recursos,
                acumulado_materiais=acumulado_materiais,
            )
        )
    return itens
