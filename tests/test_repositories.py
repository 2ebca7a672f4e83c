"""Store tests: SQL queries and row conversion on an in-memory database."""

from datetime import date
from decimal import Decimal

from portal_financas.core.tipos import Baseline
from portal_financas.repositories import Repositorios


class TestSqlAllocationStore:
    def test_upsert_inserts_then_replaces(self, db, fabrica):
        projeto = fabrica.projeto(fabrica.financiamento())
        wp = fabrica.workpackage(projeto)
        ana = fabrica.utilizador()
        repos = Repositorios.de_sessao(db)

        repos.alocacoes.upsert(ana.id, wp.id, 3, 2024, "real", Decimal("0.4"))
        repos.alocacoes.upsert(ana.id, wp.id, 3, 2024, "real", Decimal("0.35"))
        db.commit()

        row = repos.alocacoes.get(ana.id, wp.id, 3, 2024, "real")
        assert row.ocupacao == Decimal("0.35")
        assert len(repos.alocacoes.list_by_workpackage(wp.id, "real")) == 1

    def test_tracks_are_independent(self, db, fabrica):
        projeto = fabrica.projeto(fabrica.financiamento())
        wp = fabrica.workpackage(projeto)
        ana = fabrica.utilizador()
        fabrica.alocacao(ana, wp, 1, "0.5", "submetido")
        fabrica.alocacao(ana, wp, 1, "0.2", "real")
        repos = Repositorios.de_sessao(db)

        assert repos.alocacoes.get(ana.id, wp.id, 1, 2024, "submetido").ocupacao == Decimal("0.5")
        assert repos.alocacoes.ocupacao_total(ana.id, 1, 2024, "real") == Decimal("0.2000")

    def test_ocupacao_total_sums_workpackages(self, db, fabrica):
        projeto = fabrica.projeto(fabrica.financiamento())
        wp1, wp2 = fabrica.workpackage(projeto), fabrica.workpackage(projeto)
        ana = fabrica.utilizador()
        fabrica.alocacao(ana, wp1, 5, "0.6")
        fabrica.alocacao(ana, wp2, 5, "0.5")
        repos = Repositorios.de_sessao(db)

        assert repos.alocacoes.ocupacao_total(ana.id, 5, 2024, "real") == Decimal("1.1000")
        assert repos.alocacoes.ocupacao_total(ana.id, 6, 2024, "real") == Decimal("0")

    def test_list_by_periodo_filters_month(self, db, fabrica):
        projeto = fabrica.projeto(fabrica.financiamento())
        wp = fabrica.workpackage(projeto)
        ana, bruno = fabrica.utilizador(), fabrica.utilizador()
        fabrica.alocacao(ana, wp, 1, "0.5")
        fabrica.alocacao(bruno, wp, 2, "0.5")
        fabrica.alocacao(bruno, wp, 2, "0.1", ano=2025)
        repos = Repositorios.de_sessao(db)

        assert len(repos.alocacoes.list_by_periodo(2024, "real")) == 2
        fevereiro = repos.alocacoes.list_by_periodo(2024, "real", mes=2)
        assert [a.utilizador_id for a in fevereiro] == [bruno.id]
        assert fevereiro[0].projeto_id == projeto.id

    def test_list_by_utilizador(self, db, fabrica):
        projeto = fabrica.projeto(fabrica.financiamento())
        wp = fabrica.workpackage(projeto)
        ana = fabrica.utilizador()
        fabrica.alocacao(ana, wp, 2, "0.5", "submetido")
        fabrica.alocacao(ana, wp, 1, "0.3")
        fabrica.alocacao(ana, wp, 1, "0.3", ano=2025)
        repos = Repositorios.de_sessao(db)

        todas = repos.alocacoes.list_by_utilizador(ana.id)
        assert [(a.ano, a.mes) for a in todas] == [(2024, 1), (2024, 2), (2025, 1)]
        assert len(repos.alocacoes.list_by_utilizador(ana.id, ano=2024, tipo="real")) == 1


class TestSqlMaterialStore:
    def test_list_by_periodo(self, db, fabrica):
        projeto = fabrica.projeto(fabrica.financiamento())
        wp = fabrica.workpackage(projeto)
        fabrica.material(wp, "100", ano=2024, mes=3)
        fabrica.material(wp, "50", ano=2025)
        repos = Repositorios.de_sessao(db)

        materiais = repos.materiais.list_by_periodo(2024)
        assert len(materiais) == 1
        assert materiais[0].preco == Decimal("100")
        assert len(repos.materiais.list_by_workpackage(wp.id)) == 2
        assert len(repos.materiais.list_by_workpackage(wp.id, ano=2025)) == 1


class TestSqlMonthlyConfigStore:
    def test_stored_configuration(self, db, fabrica):
        fabrica.configuracao(4, dias_uteis=19, horas="152")
        config = Repositorios.de_sessao(db).configuracoes.get(4, 2024)

        assert config.dias_uteis == 19
        assert config.horas_potenciais == Decimal("152")
        assert not config.padrao

    def test_missing_month_falls_back_to_defaults(self, db):
        config = Repositorios.de_sessao(db).configuracoes.get(7, 2030)

        assert config.padrao
        assert config.dias_uteis == 20
        assert config.horas_potenciais == Decimal("160")


class TestSqlUserStore:
    def test_get_salarios(self, db, fabrica):
        ana = fabrica.utilizador(salario="2100.50")
        sem_salario = fabrica.utilizador(salario=None)
        users = Repositorios.de_sessao(db).utilizadores

        salarios = users.get_salarios([ana.id, sem_salario.id, 999])
        assert salarios == {ana.id: Decimal("2100.50"), sem_salario.id: None}
        assert users.get_salarios([]) == {}
        assert users.get_salario(ana.id) == Decimal("2100.50")
        assert users.get_salario(999) is None


class TestSqlFundingProgramStore:
    def test_parameters_through_project(self, db, fabrica):
        fin = fabrica.financiamento("ETI_DB", valor_eti="1500", overhead="25", taxa="85")
        projeto = fabrica.projeto(fin)
        orfao = fabrica.projeto()
        store = Repositorios.de_sessao(db).financiamentos

        parametros = store.get(projeto.id)
        assert parametros.modelo_custo == "ETI_DB"
        assert parametros.valor_eti == Decimal("1500")
        assert parametros.overhead == Decimal("25")
        assert store.get(orfao.id) is None


class TestSqlSnapshotStore:
    def test_por_ano_survives_json(self, db, fabrica):
        projeto = fabrica.projeto(fabrica.financiamento("DETALHADO", valor_eti="0"))
        wp = fabrica.workpackage(projeto, inicio=date(2024, 6, 1), fim=date(2025, 5, 31))
        repos = Repositorios.de_sessao(db)
        baseline = Baseline(
            modelo_custo="DETALHADO",
            orcamento_previsto_eti=None,
            previsto_recursos=Decimal("3000.00"),
            previsto_materiais=Decimal("250.00"),
            previsto_por_ano={
                2024: {"recursos": Decimal("1800.00"), "materiais": Decimal("250.00")},
                2025: {"recursos": Decimal("1200.00"), "materiais": Decimal("0.00")},
            },
        )

        repos.snapshots.gravar(wp.id, 1, baseline)
        db.commit()
        db.expire_all()

        atual = repos.snapshots.atual(wp.id)
        assert atual.versao == 1
        assert atual.orcamento_previsto_eti is None
        assert atual.previsto_por_ano[2025]["recursos"] == Decimal("1200.00")
        assert set(atual.previsto_por_ano) == {2024, 2025}

    def test_historico_newest_first(self, db, fabrica):
        projeto = fabrica.projeto(fabrica.financiamento())
        wp = fabrica.workpackage(projeto)
        repos = Repositorios.de_sessao(db)
        for versao, valor in ((1, "1000"), (2, "1500")):
            repos.snapshots.gravar(wp.id, versao, Baseline(
                modelo_custo="ETI_DB",
                orcamento_previsto_eti=Decimal(valor),
                previsto_recursos=None,
                previsto_materiais=None,
                previsto_por_ano={2024: {"orcamento_eti": Decimal(valor)}},
            ))
        db.commit()

        assert [s.versao for s in repos.snapshots.historico(wp.id)] == [2, 1]
        assert repos.snapshots.atual(wp.id).orcamento_previsto_eti == Decimal("1500")
        assert repos.snapshots.atual(999) is None
