"""Service tests for funding programs and monthly configuration."""

from decimal import Decimal

import pytest

from portal_financas.exceptions import ConflitoError, NaoEncontradoError, ValidacaoError
from portal_financas.schemas.configuracao import ConfiguracaoCreate, ConfiguracaoUpdate
from portal_financas.schemas.financiamento import FinanciamentoCreate, FinanciamentoUpdate
from portal_financas.services import configuracao_service, financiamento_service


class TestFinanciamentos:
    def test_create_and_list(self, db):
        criado = financiamento_service.create_financiamento(
            db, FinanciamentoCreate(nome=" FCT 2024 ", valor_eti=Decimal("1200"), tipo_calculo_previsto="ETI_DB")
        )
        assert criado.nome == "FCT 2024"
        assert criado.n_projetos == 0
        assert [f.id for f in financiamento_service.listar_financiamentos(db)] == [criado.id]

    def test_name_unique_case_insensitive(self, db, fabrica):
        fabrica.financiamento(nome="FCT 2024")
        with pytest.raises(ConflitoError):
            financiamento_service.create_financiamento(db, FinanciamentoCreate(nome="fct 2024"))

    @pytest.mark.parametrize(
        "campos",
        [
            {"overhead": Decimal("101")},
            {"taxa_financiamento": Decimal("-1")},
            {"valor_eti": Decimal("-5")},
            {"tipo_calculo_previsto": "HORAS"},
        ],
    )
    def test_invalid_values(self, db, campos):
        with pytest.raises(ValidacaoError):
            financiamento_service.create_financiamento(db, FinanciamentoCreate(nome="X", **campos))

    def test_rename_to_existing_name(self, db, fabrica):
        fabrica.financiamento(nome="A")
        b = fabrica.financiamento(nome="B")
        with pytest.raises(ConflitoError):
            financiamento_service.update_financiamento(db, b.id, FinanciamentoUpdate(nome="a"))

    def test_model_change_on_unused_program(self, db, fabrica):
        fin = fabrica.financiamento("ETI_DB")
        atualizado = financiamento_service.update_financiamento(
            db, fin.id, FinanciamentoUpdate(tipo_calculo_previsto="DETALHADO")
        )
        assert atualizado.tipo_calculo_previsto == "DETALHADO"

    def test_model_change_on_program_in_use_conflicts(self, db, fabrica):
        fin = fabrica.financiamento("ETI_DB")
        fabrica.projeto(fin)
        with pytest.raises(ConflitoError):
            financiamento_service.update_financiamento(
                db, fin.id, FinanciamentoUpdate(tipo_calculo_previsto="DETALHADO")
            )
        assert financiamento_service.get_financiamento(db, fin.id).tipo_calculo_previsto == "ETI_DB"

    def test_same_model_and_other_fields_on_program_in_use(self, db, fabrica):
        fin = fabrica.financiamento("ETI_DB")
        fabrica.projeto(fin)
        atualizado = financiamento_service.update_financiamento(
            db, fin.id, FinanciamentoUpdate(tipo_calculo_previsto="ETI_DB", valor_eti=Decimal("1300"))
        )
        assert atualizado.valor_eti == Decimal("1300")

    def test_delete_in_use_refused(self, db, fabrica):
        fin = fabrica.financiamento()
        fabrica.projeto(fin)
        with pytest.raises(ConflitoError):
            financiamento_service.delete_financiamento(db, fin.id)

    def test_delete_unused(self, db, fabrica):
        fin = fabrica.financiamento()
        financiamento_service.delete_financiamento(db, fin.id)
        with pytest.raises(NaoEncontradoError):
            financiamento_service.get_financiamento(db, fin.id)


class TestConfiguracoes:
    def test_missing_month_resolves_to_defaults(self, db):
        config = configuracao_service.resolver_configuracao(db, 5, 2024)
        assert config.padrao
        assert config.id is None
        assert config.dias_uteis == 20
        assert config.horas_potenciais == Decimal("160")

    def test_duplicate_month_conflicts(self, db):
        dados = ConfiguracaoCreate(mes=5, ano=2024, dias_uteis=21, horas_potenciais=Decimal("168"))
        configuracao_service.create_configuracao(db, dados)
        with pytest.raises(ConflitoError):
            configuracao_service.create_configuracao(db, dados)

    def test_update_and_resolve(self, db):
        criada = configuracao_service.create_configuracao(
            db, ConfiguracaoCreate(mes=5, ano=2024, dias_uteis=21, horas_potenciais=Decimal("168"))
        )
        configuracao_service.update_configuracao(db, criada.id, ConfiguracaoUpdate(horas_potenciais=Decimal("160")))
        config = configuracao_service.resolver_configuracao(db, 5, 2024)
        assert not config.padrao
        assert config.horas_potenciais == Decimal("160")
        assert config.dias_uteis == 21

    def test_invalid_month(self, db):
        with pytest.raises(ValidacaoError):
            configuracao_service.create_configuracao(
                db, ConfiguracaoCreate(mes=13, ano=2024, dias_uteis=20, horas_potenciais=Decimal("160"))
            )
