"""Service tests for allocation upserts."""

from decimal import Decimal

import pytest

from portal_financas.exceptions import NaoEncontradoError, ValidacaoError
from portal_financas.models import AlocacaoRecurso
from portal_financas.schemas.alocacao import AlocacaoUpsert
from portal_financas.services import alocacao_service


def _payload(u, wp, **kwargs):
    dados = dict(utilizador_id=u.id, workpackage_id=wp.id, mes=3, ano=2024, ocupacao=Decimal("0.25"), tipo="real")
    dados.update(kwargs)
    return AlocacaoUpsert(**dados)


@pytest.fixture
def base(fabrica):
    wp = fabrica.workpackage(fabrica.projeto(fabrica.financiamento()))
    return fabrica.utilizador(), wp


class TestUpsertAlocacao:
    def test_same_key_twice_leaves_one_row_with_last_value(self, db, base):
        u, wp = base
        alocacao_service.upsert_alocacao(db, _payload(u, wp, ocupacao=Decimal("0.25")))
        resposta = alocacao_service.upsert_alocacao(db, _payload(u, wp, ocupacao=Decimal("0.6")))

        assert db.query(AlocacaoRecurso).count() == 1
        assert resposta.ocupacao == Decimal("0.6")

    def test_tracks_are_independent(self, db, base):
        u, wp = base
        alocacao_service.upsert_alocacao(db, _payload(u, wp, tipo="real"))
        alocacao_service.upsert_alocacao(db, _payload(u, wp, tipo="submetido"))
        assert db.query(AlocacaoRecurso).count() == 2

    def test_over_allocation_flagged_not_rejected(self, db, base, fabrica):
        u, wp = base
        outro = fabrica.workpackage(fabrica.projeto(fabrica.financiamento()))
        alocacao_service.upsert_alocacao(db, _payload(u, wp, ocupacao=Decimal("0.7")))
        resposta = alocacao_service.upsert_alocacao(db, _payload(u, outro, ocupacao=Decimal("0.5")))

        assert resposta.ocupacao_total_mes == Decimal("1.2")
        assert resposta.sobrealocado

    @pytest.mark.parametrize(
        "campos",
        [
            {"mes": 0},
            {"mes": 13},
            {"ano": 1999},
            {"ocupacao": Decimal("-0.1")},
            {"tipo": "previsto"},
        ],
    )
    def test_invalid_input(self, db, base, campos):
        u, wp = base
        with pytest.raises(ValidacaoError):
            alocacao_service.upsert_alocacao(db, _payload(u, wp, **campos))
        assert db.query(AlocacaoRecurso).count() == 0

    def test_unknown_user(self, db, base):
        _, wp = base
        payload = AlocacaoUpsert(utilizador_id=999, workpackage_id=wp.id, mes=1, ano=2024, ocupacao=Decimal("0.1"))
        with pytest.raises(NaoEncontradoError):
            alocacao_service.upsert_alocacao(db, payload)


def test_listar_alocacoes_by_track(db, base, fabrica):
    u, wp = base
    fabrica.alocacao(u, wp, 2, "0.2", "real")
    fabrica.alocacao(u, wp, 1, "0.1", "real")
    fabrica.alocacao(u, wp, 1, "0.9", "submetido")

    linhas = alocacao_service.listar_alocacoes_workpackage(db, wp.id, "real")
    assert [(a.mes, a.ocupacao) for a in linhas] == [(1, Decimal("0.1")), (2, Decimal("0.2"))]


class TestListarAlocacoesUtilizador:
    def test_across_workpackages_ordered_by_period(self, db, base, fabrica):
        u, wp = base
        outro = fabrica.workpackage(fabrica.projeto(fabrica.financiamento()))
        fabrica.alocacao(u, outro, 3, "0.5", "real")
        fabrica.alocacao(u, wp, 1, "0.2", "real")
        fabrica.alocacao(u, wp, 1, "0.4", "submetido")
        fabrica.alocacao(fabrica.utilizador(), wp, 1, "1.0", "real")

        linhas = alocacao_service.listar_alocacoes_utilizador(db, u.id)
        assert [(a.mes, a.workpackage_id) for a in linhas] == [(1, wp.id), (1, wp.id), (3, outro.id)]
        assert {a.utilizador_id for a in linhas} == {u.id}

    def test_year_and_track_filters(self, db, base, fabrica):
        u, wp = base
        fabrica.alocacao(u, wp, 1, "0.2", "real")
        fabrica.alocacao(u, wp, 1, "0.4", "submetido")
        fabrica.alocacao(u, wp, 1, "0.3", "real", ano=2025)

        linhas = alocacao_service.listar_alocacoes_utilizador(db, u.id, ano=2024, tipo="real")
        assert [(a.ano, a.ocupacao) for a in linhas] == [(2024, Decimal("0.2"))]

    def test_unknown_user(self, db):
        with pytest.raises(NaoEncontradoError):
            alocacao_service.listar_alocacoes_utilizador(db, 999)

    def test_invalid_track(self, db, base):
        u, _ = base
        with pytest.raises(ValidacaoError):
            alocacao_service.listar_alocacoes_utilizador(db, u.id, tipo="previsto")
