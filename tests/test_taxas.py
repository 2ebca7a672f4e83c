"""Unit tests for rate resolution (no database)."""

from decimal import Decimal

import pytest

from portal_financas.core.taxas import (
    RateResolver,
    arredondar_moeda,
    resolver_custo_detalhado,
    resolver_custo_eti,
)
from portal_financas.core.tipos import ConfigMensal, ParametrosFinanciamento
from portal_financas.exceptions import ValidacaoError

CONFIG_160 = ConfigMensal(mes=3, ano=2024, dias_uteis=20, horas_potenciais=Decimal("160"))


def _parametros(modelo, valor_eti="1200"):
    return ParametrosFinanciamento(
        financiamento_id=1,
        nome="Programa",
        overhead=Decimal("25"),
        taxa_financiamento=Decimal("85"),
        valor_eti=Decimal(valor_eti),
        modelo_custo=modelo,
    )


class TestResolverCustoDetalhado:
    def test_quarter_of_salary(self):
        """Salary 2000, 160 h, 25% occupancy costs 500 and implies 40 h."""
        r = resolver_custo_detalhado(Decimal("0.25"), Decimal("2000"), CONFIG_160)
        assert r.custo == Decimal("500.00")
        assert r.horas == Decimal("40.00")
        assert r.taxa_horaria == Decimal("12.5")

    def test_missing_salary_costs_zero_but_keeps_hours(self):
        r = resolver_custo_detalhado(Decimal("0.5"), None, CONFIG_160)
        assert r.custo == 0
        assert r.horas == Decimal("80.0")
        assert r.taxa_horaria is None

    def test_zero_potential_hours_has_no_hourly_rate(self):
        config = ConfigMensal(mes=8, ano=2024, dias_uteis=0, horas_potenciais=Decimal("0"))
        r = resolver_custo_detalhado(Decimal("0.5"), Decimal("2000"), config)
        assert r.custo == Decimal("1000")
        assert r.taxa_horaria is None

    def test_over_allocation_is_priced(self):
        r = resolver_custo_detalhado(Decimal("1.2"), Decimal("1000"), CONFIG_160)
        assert r.custo == Decimal("1200")

    def test_negative_occupancy_rejected(self):
        with pytest.raises(ValidacaoError):
            resolver_custo_detalhado(Decimal("-0.1"), Decimal("2000"), CONFIG_160)


class TestResolverCustoEti:
    def test_occupancy_times_eti_value(self):
        r = resolver_custo_eti(Decimal("0.5"), Decimal("1200"), CONFIG_160)
        assert r.custo == Decimal("600")
        assert r.horas == Decimal("80.0")

    def test_negative_occupancy_rejected(self):
        with pytest.raises(ValidacaoError):
            resolver_custo_eti(Decimal("-1"), Decimal("1200"))


class TestRateResolver:
    def test_eti_model_never_reads_salaries(self):
        def salario_de(uid):
            raise AssertionError("salary lookup in ETI model")

        resolver = RateResolver(_parametros("ETI_DB"), salario_de, lambda m, a: CONFIG_160)
        assert resolver.modelo == "ETI_DB"
        assert resolver.resolver(1, 3, 2024, Decimal("0.4")).custo == Decimal("480.0")

    def test_without_funding_program_is_detailed(self):
        resolver = RateResolver(None, lambda uid: Decimal("2000"), lambda m, a: CONFIG_160)
        assert resolver.modelo == "DETALHADO"
        assert resolver.valor_eti == 0
        assert resolver.resolver(7, 3, 2024, Decimal("0.25")).custo == Decimal("500.00")

    def test_lookups_are_memoised(self):
        chamadas = {"salario": 0, "config": 0}

        def salario_de(uid):
            chamadas["salario"] += 1
            return Decimal("2000")

        def config_de(mes, ano):
            chamadas["config"] += 1
            return CONFIG_160

        resolver = RateResolver(_parametros("DETALHADO"), salario_de, config_de)
        for _ in range(3):
            resolver.resolver(1, 3, 2024, Decimal("0.1"))
        assert chamadas == {"salario": 1, "config": 1}

    def test_salary_prefetch_uses_one_batched_lookup(self):
        lotes = []

        def salario_de(uid):
            raise AssertionError("per-user salary lookup after prefetch")

        def salarios_de(ids):
            lotes.append(set(ids))
            return {1: Decimal("2000")}

        resolver = RateResolver(_parametros("DETALHADO"), salario_de, lambda m, a: CONFIG_160, salarios_de)
        resolver.precarregar_salarios([1, 2, 1])
        resolver.precarregar_salarios([2])

        assert lotes == [{1, 2}]
        assert resolver.resolver(1, 3, 2024, Decimal("0.25")).custo == Decimal("500.00")
        assert resolver.salario(2) is None

    def test_salary_prefetch_skipped_in_eti_model(self):
        def salarios_de(ids):
            raise AssertionError("salary lookup in ETI model")

        resolver = RateResolver(_parametros("ETI_DB"), lambda uid: None, lambda m, a: CONFIG_160, salarios_de)
        resolver.precarregar_salarios([1, 2])


def test_arredondar_moeda_half_up():
    assert arredondar_moeda(Decimal("10.005")) == Decimal("10.01")
    assert arredondar_moeda(Decimal("10.004")) == Decimal("10.00")
