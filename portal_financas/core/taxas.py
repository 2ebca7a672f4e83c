"""
Rate resolution: occupancy fraction -> money.

Two mutually exclusive costing models exist, selected once per project by
its funding program's ``tipo_calculo_previsto``:

- ``DETALHADO``: ``taxa_horaria = salario / horas_potenciais`` and
  ``custo = taxa_horaria × horas_potenciais × ocupacao``, which reduces to
  ``salario × ocupacao``. The hours are still returned because reports
  show the implied effort, not only the money.
- ``ETI_DB``: ``custo = ocupacao × valor_eti``. No salary is consulted.

All arithmetic is ``Decimal``. A missing monthly configuration falls back
to the defaults (the store does that), and a missing salary costs zero
while the allocation still counts towards occupancy checks.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable

from portal_financas.core.tipos import ConfigMensal, CustoResolvido, ParametrosFinanciamento
from portal_financas.exceptions import ValidacaoError
from portal_financas.utils.constants import MODELO_DETALHADO, MODELO_ETI

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CENTIMO = Decimal("0.01")


def arredondar_moeda(valor: Decimal) -> Decimal:
    """Round a money amount to cents, half up."""
    return valor.quantize(CENTIMO, rounding=ROUND_HALF_UP)


def _validar_ocupacao(ocupacao: Decimal) -> None:
    if ocupacao < 0:
        raise ValidacaoError(f"Ocupação não pode ser negativa: {ocupacao}")


def resolver_custo_detalhado(
    ocupacao: Decimal,
    salario: Decimal | None,
    config: ConfigMensal,
) -> CustoResolvido:
    """Price an allocation from the user's monthly salary.

    Args:
        ocupacao: Occupancy fraction (>= 0, may exceed 1).
        salario: Monthly salary, or None when the user has none.
        config: Working-days/potential-hours for the allocation's month.

    Returns:
        The resolved cost. Without salary the cost is zero but ``horas``
        is still filled in.

    Raises:
        ValidacaoError: If ``ocupacao`` is negative.
    """
    _validar_ocupacao(ocupacao)
    horas = config.horas_potenciais * ocupacao

    if salario is None:
        return CustoResolvido(custo=ZERO, horas=horas)

    taxa_horaria = salario / config.horas_potenciais if config.horas_potenciais > 0 else None
    return CustoResolvido(custo=salario * ocupacao, horas=horas, taxa_horaria=taxa_horaria)


def resolver_custo_eti(
    ocupacao: Decimal,
    valor_eti: Decimal,
    config: ConfigMensal | None = None,
) -> CustoResolvido:
    """Price an allocation with the funding program's ETI unit value."""
    _validar_ocupacao(ocupacao)
    horas = config.horas_potenciais * ocupacao if config is not None else ZERO
    return CustoResolvido(custo=ocupacao * valor_eti, horas=horas)


class RateResolver:
    """Resolve allocations of one project under its costing model.

    Salary and monthly-configuration lookups are memoised for the lifetime
    of the resolver, which is one request.

    Args:
        parametros: Funding parameters of the project, or None when the
            project has no funding program (evaluated as ``DETALHADO``).
        salario_de: Callable returning a user's salary or None.
        config_de: Callable ``(mes, ano) -> ConfigMensal``.
        salarios_de: Optional batched lookup ``ids -> {id: salario}`` used by
            ``precarregar_salarios``.
    """

    def __init__(
        self,
        parametros: ParametrosFinanciamento | None,
        salario_de: Callable[[int], Decimal | None],
        config_de: Callable[[int, int], ConfigMensal],
        salarios_de: Callable[[Iterable[int]], dict[int, Decimal | None]] | None = None,
    ):
        self.parametros = parametros
        self.modelo = parametros.modelo_custo if parametros is not None else MODELO_DETALHADO
        self._salario_de = salario_de
        self._config_de = config_de
        self._salarios_de = salarios_de
        self._salarios: dict[int, Decimal | None] = {}
        self._configs: dict[tuple[int, int], ConfigMensal] = {}

    @property
    def valor_eti(self) -> Decimal:
        if self.parametros is None:
            return ZERO
        return self.parametros.valor_eti

    def salario(self, utilizador_id: int) -> Decimal | None:
        if utilizador_id not in self._salarios:
            self._salarios[utilizador_id] = self._salario_de(utilizador_id)
        return self._salarios[utilizador_id]

    def precarregar_salarios(self, utilizador_ids: Iterable[int]) -> None:
        """Fetch the salaries of several users in one lookup.

        No-op under the ETI model or without a batched lookup. Users absent
        from the result are memoised as having no salary.
        """
        if self.modelo == MODELO_ETI or self._salarios_de is None:
            return
        em_falta = {uid for uid in utilizador_ids if uid not in self._salarios}
        if not em_falta:
            return
        encontrados = self._salarios_de(em_falta)
        for uid in em_falta:
            self._salarios[uid] = encontrados.get(uid)

    def config(self, mes: int, ano: int) -> ConfigMensal:
        chave = (mes, ano)
        if chave not in self._configs:
            self._configs[chave] = self._config_de(mes, ano)
        return self._configs[chave]

    def resolver(self, utilizador_id: int, mes: int, ano: int, ocupacao: Decimal) -> CustoResolvido:
        config = self.config(mes, ano)
        if self.modelo == MODELO_ETI:
            return resolver_custo_eti(ocupacao, self.valor_eti, config)
        return resolver_custo_detalhado(ocupacao, self.salario(utilizador_id), config)
