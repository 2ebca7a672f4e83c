"""Service tests for the financial panels on an in-memory database."""

from datetime import date
from decimal import Decimal

import pytest

from portal_financas.exceptions import ConflitoError, NaoEncontradoError, ValidacaoError
from portal_financas.services import financas_service, financiamento_service, snapshot_service
from portal_financas.schemas.financiamento import FinanciamentoUpdate


class TestPainelWorkpackage:
    def test_eti_scenario(self, db, fabrica):
        """Baseline 600, realized 0.4 × 1200 = 480 → 80%."""
        fin = fabrica.financiamento("ETI_DB", valor_eti="1200")
        wp = fabrica.workpackage(fabrica.projeto(fin))
        u = fabrica.utilizador()
        fabrica.alocacao(u, wp, 1, "0.5", "submetido")
        snapshot_service.tirar_snapshot(db, wp.id)
        fabrica.alocacao(u, wp, 2, "0.4", "real")

        painel = financas_service.get_painel_workpackage(db, wp.id)
        assert painel.modelo_custo == "ETI_DB"
        assert painel.totais.orcamento == Decimal("600.00")
        assert painel.totais.realizado == Decimal("480")
        assert painel.percent == Decimal("80.00")

    def test_detailed_scenario(self, db, fabrica):
        """Salary 2000 at 0.25 of a 160 h month costs 500."""
        fin = fabrica.financiamento("DETALHADO", valor_eti="0")
        wp = fabrica.workpackage(fabrica.projeto(fin))
        u = fabrica.utilizador(salario="2000")
        fabrica.alocacao(u, wp, 3, "0.5", "submetido")
        snapshot_service.tirar_snapshot(db, wp.id)
        fabrica.alocacao(u, wp, 3, "0.25", "real")

        painel = financas_service.get_painel_workpackage(db, wp.id)
        assert painel.modelo_custo == "DETALHADO"
        assert painel.previsto_recursos_snapshot == Decimal("1000.00")
        assert painel.totais.realizado_recursos == Decimal("500")
        assert painel.rh_percent == Decimal("50.00")
        assert painel.detalhe_realizado.recursos[0].horas == Decimal("40")

    def test_monthly_configuration_does_not_change_cost(self, db, fabrica):
        fin = fabrica.financiamento("DETALHADO", valor_eti="0")
        wp = fabrica.workpackage(fabrica.projeto(fin))
        u = fabrica.utilizador(salario="2000")
        fabrica.configuracao(3, horas="168")
        fabrica.alocacao(u, wp, 3, "0.25", "real")

        painel = financas_service.get_painel_workpackage(db, wp.id)
        assert painel.totais.realizado_recursos == Decimal("500")
        assert painel.detalhe_realizado.recursos[0].horas == Decimal("42")

    def test_zero_budget_never_divides(self, db, fabrica):
        wp = fabrica.workpackage(fabrica.projeto(fabrica.financiamento("DETALHADO")))
        snapshot_service.tirar_snapshot(db, wp.id)
        fabrica.material(wp, "100")

        painel = financas_service.get_painel_workpackage(db, wp.id)
        assert painel.totais.orcamento == 0
        assert painel.percent == 0
        assert painel.mat_percent == 0

    def test_model_switch_refused_while_program_in_use(self, db, fabrica):
        fin = fabrica.financiamento("ETI_DB")
        wp = fabrica.workpackage(fabrica.projeto(fin))
        fabrica.alocacao(fabrica.utilizador(), wp, 1, "0.5", "submetido")
        snapshot_service.tirar_snapshot(db, wp.id)

        with pytest.raises(ConflitoError):
            financiamento_service.update_financiamento(
                db, fin.id, FinanciamentoUpdate(tipo_calculo_previsto="DETALHADO")
            )

        painel = financas_service.get_painel_workpackage(db, wp.id)
        assert painel.modelo_custo == "ETI_DB"
        assert not painel.estado_inconsistente
        assert painel.totais.orcamento == Decimal("600.00")

    def test_unknown_workpackage(self, db):
        with pytest.raises(NaoEncontradoError):
            financas_service.get_painel_workpackage(db, 42)


class TestPainelProjeto:
    def test_total_equals_sum_of_workpackages(self, db, fabrica):
        fin = fabrica.financiamento("ETI_DB")
        projeto = fabrica.projeto(fin)
        wps = [fabrica.workpackage(projeto) for _ in range(3)]
        u = fabrica.utilizador()
        for i, wp in enumerate(wps, start=1):
            fabrica.alocacao(u, wp, i, "0.3", "submetido")
            fabrica.alocacao(u, wp, i, f"0.{i}", "real")
            fabrica.material(wp, "10", quantidade=i)
        snapshot_service.aprovar_projeto(db, projeto.id, hoje=date(2024, 1, 1))

        painel = financas_service.get_painel_projeto(db, projeto.id)
        assert len(painel.detalhes_por_workpackage) == 3
        assert painel.totais.realizado == sum(p.totais.realizado for p in painel.detalhes_por_workpackage)
        assert painel.orcamento_previsto_com_eti == Decimal("1080.00")
        assert painel.financiamento.valor_eti == Decimal("1200")

    def test_project_without_funding_is_detailed(self, db, fabrica):
        projeto = fabrica.projeto(None)
        fabrica.workpackage(projeto)
        painel = financas_service.get_painel_projeto(db, projeto.id)
        assert painel.modelo_custo == "DETALHADO"
        assert painel.financiamento is None
        assert painel.workpackages_sem_baseline == 1

    def test_committed_costs_as_of_reference_date(self, db, fabrica):
        fin = fabrica.financiamento("DETALHADO", valor_eti="0")
        wp = fabrica.workpackage(fabrica.projeto(fin))
        u = fabrica.utilizador(salario="2000")
        fabrica.alocacao(u, wp, 2, "0.25", "real")
        fabrica.alocacao(u, wp, 3, "0.25", "real")
        fabrica.alocacao(u, wp, 1, "1.0", "submetido")
        fabrica.material(wp, "120", estado=True)
        fabrica.material(wp, "75")

        painel = financas_service.get_painel_workpackage(db, wp.id, hoje=date(2024, 3, 20))
        assert painel.custos_concluidos.recursos == Decimal("500.00")
        assert painel.custos_concluidos.materiais == Decimal("120.00")
        assert painel.custos_concluidos.total == Decimal("620.00")
        assert painel.totais.realizado == Decimal("1195.00")

        projeto = financas_service.get_painel_projeto(db, wp.projeto_id, hoje=date(2024, 4, 1))
        assert projeto.custos_concluidos.recursos == Decimal("1000.00")
        assert projeto.custos_concluidos.total == Decimal("1120.00")

    def test_unknown_project(self, db):
        with pytest.raises(NaoEncontradoError):
            financas_service.get_painel_projeto(db, 42)


class TestGastosMensais:
    def test_empty_year_is_twelve_zero_months(self, db):
        serie = financas_service.get_gastos_mensais(db, 2024)
        assert [i.mes for i in serie] == list(range(1, 13))
        assert all(i.custo_recursos == 0 and i.custo_materiais == 0 for i in serie)

    def test_each_project_priced_under_its_own_model(self, db, fabrica):
        eti = fabrica.workpackage(fabrica.projeto(fabrica.financiamento("ETI_DB", valor_eti="1000")))
        det = fabrica.workpackage(fabrica.projeto(fabrica.financiamento("DETALHADO", valor_eti="0")))
        u = fabrica.utilizador(salario="2000")
        fabrica.alocacao(u, eti, 3, "0.5")
        fabrica.alocacao(u, det, 3, "0.25")
        fabrica.alocacao(u, det, 3, "1.0", "submetido")
        fabrica.material(det, "40", mes=2)
        fabrica.material(det, "999", mes=None)

        serie = financas_service.get_gastos_mensais(db, 2024, limite=4)
        assert len(serie) == 4
        assert serie[2].custo_recursos == Decimal("1000")
        assert serie[1].custo_materiais == Decimal("40")
        assert serie[3].acumulado_materiais == Decimal("40")
        assert serie[3].acumulado_recursos == Decimal("1000")

    @pytest.mark.parametrize("limite", [0, 13])
    def test_limit_validation(self, db, limite):
        with pytest.raises(ValidacaoError):
            financas_service.get_gastos_mensais(db, 2024, limite)


class TestResumoAnual:
    def test_one_entry_per_active_year(self, db, fabrica):
        fin = fabrica.financiamento("ETI_DB", valor_eti="1000")
        projeto = fabrica.projeto(fin, fim=date(2025, 12, 31))
        wp = fabrica.workpackage(projeto, fim=date(2025, 12, 31))
        u = fabrica.utilizador()
        fabrica.alocacao(u, wp, 6, "0.5", "submetido")
        fabrica.alocacao(u, wp, 6, "0.5", "submetido", ano=2025)
        snapshot_service.tirar_snapshot(db, wp.id)
        fabrica.alocacao(u, wp, 6, "0.25", "real")

        resumo = financas_service.get_resumo_anual(db, projeto.id)
        assert [r.ano for r in resumo] == [2024, 2025]
        assert resumo[0].orcamento == Decimal("500.00")
        assert resumo[0].realizado == Decimal("250")
        assert resumo[0].percent == Decimal("50.00")
        assert resumo[1].realizado == 0

    def test_committed_costs_per_year(self, db, fabrica):
        fin = fabrica.financiamento("ETI_DB", valor_eti="1000")
        projeto = fabrica.projeto(fin, fim=date(2025, 12, 31))
        wp = fabrica.workpackage(projeto, fim=date(2025, 12, 31))
        u = fabrica.utilizador()
        fabrica.alocacao(u, wp, 11, "0.5", "real")
        fabrica.alocacao(u, wp, 2, "0.5", "real", ano=2025)
        fabrica.material(wp, "60", ano=2025, estado=True)

        resumo = financas_service.get_resumo_anual(db, projeto.id, hoje=date(2025, 2, 14))
        assert [r.ano for r in resumo] == [2024, 2025]
        assert resumo[0].custos_concluidos.recursos == Decimal("500.00")
        assert resumo[0].custos_concluidos.materiais == 0
        assert resumo[1].custos_concluidos.recursos == 0
        assert resumo[1].custos_concluidos.total == Decimal("60.00")
