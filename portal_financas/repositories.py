"""
Read/write stores used by the financial services.

Each store is a ``typing.Protocol`` plus a SQLAlchemy implementation bound
to the request ``Session``. Implementations convert ORM rows into the
frozen records of ``portal_financas.core.tipos`` so that the aggregation
code never sees a lazy-loading ORM object.

Design notes
------------
- Allocation writes are a single ``INSERT … ON CONFLICT DO UPDATE`` on the
  natural key; the dialect-specific ``insert`` is picked from the bound
  engine (PostgreSQL in production, SQLite in tests).
- ``WorkpackageStore.get_for_update`` issues ``SELECT … FOR UPDATE``.
  SQLite ignores the clause, which is fine for single-connection tests.
- ``previsto_por_ano`` is stored as JSON with string keys and string
  amounts; it is converted back to ``{int: {str: Decimal}}`` on read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Protocol

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from portal_financas.config import get_settings
from portal_financas.core.tipos import (
    AlocacaoRow,
    Baseline,
    ConfigMensal,
    MaterialRow,
    ParametrosFinanciamento,
    ProjetoRow,
    SnapshotRow,
    WorkpackageRow,
)
from portal_financas.models.alocacao_recurso import AlocacaoRecurso
from portal_financas.models.configuracao_mensal import ConfiguracaoMensal
from portal_financas.models.financiamento import Financiamento
from portal_financas.models.material import Material
from portal_financas.models.orcamento_snapshot import OrcamentoSnapshot
from portal_financas.models.projeto import Projeto
from portal_financas.models.utilizador import Utilizador
from portal_financas.models.workpackage import Workpackage

logger = logging.getLogger(__name__)

_OCUPACAO_CASAS = Decimal("0.0001")


# ---------------------------------------------------------------------------
# Row conversion
# ---------------------------------------------------------------------------


def _alocacao_row(alocacao: AlocacaoRecurso, projeto_id: int | None = None) -> AlocacaoRow:
    return AlocacaoRow(
        utilizador_id=alocacao.utilizador_id,
        workpackage_id=alocacao.workpackage_id,
        mes=alocacao.mes,
        ano=alocacao.ano,
        ocupacao=Decimal(alocacao.ocupacao),
        tipo=alocacao.tipo,
        projeto_id=projeto_id,
    )


def _material_row(material: Material) -> MaterialRow:
    return MaterialRow(
        id=material.id,
        workpackage_id=material.workpackage_id,
        nome=material.nome,
        preco=Decimal(material.preco),
        quantidade=material.quantidade,
        rubrica=material.rubrica,
        ano_utilizacao=material.ano_utilizacao,
        mes=material.mes,
        estado=bool(material.estado),
    )


def workpackage_row(wp: Workpackage) -> WorkpackageRow:
    return WorkpackageRow(id=wp.id, projeto_id=wp.projeto_id, nome=wp.nome, inicio=wp.inicio, fim=wp.fim)


def projeto_row(projeto: Projeto) -> ProjetoRow:
    return ProjetoRow(
        id=projeto.id,
        nome=projeto.nome,
        estado=projeto.estado,
        inicio=projeto.inicio,
        fim=projeto.fim,
        financiamento_id=projeto.financiamento_id,
    )


def parametros_financiamento(fin: Financiamento) -> ParametrosFinanciamento:
    return ParametrosFinanciamento(
        financiamento_id=fin.id,
        nome=fin.nome,
        overhead=Decimal(fin.overhead),
        taxa_financiamento=Decimal(fin.taxa_financiamento),
        valor_eti=Decimal(fin.valor_eti),
        modelo_custo=fin.tipo_calculo_previsto,
    )


def _decimal_ou_none(valor) -> Decimal | None:
    return Decimal(valor) if valor is not None else None


def _por_ano_para_json(por_ano: dict[int, dict[str, Decimal]]) -> dict[str, dict[str, str]]:
    return {str(ano): {k: str(v) for k, v in entrada.items()} for ano, entrada in por_ano.items()}


def _por_ano_de_json(dados: dict | None) -> dict[int, dict[str, Decimal]]:
    if not dados:
        return {}
    return {int(ano): {k: Decimal(v) for k, v in entrada.items()} for ano, entrada in dados.items()}


def snapshot_row(snapshot: OrcamentoSnapshot) -> SnapshotRow:
    return SnapshotRow(
        id=snapshot.id,
        workpackage_id=snapshot.workpackage_id,
        versao=snapshot.versao,
        modelo_custo=snapshot.modelo_custo,
        orcamento_previsto_eti=_decimal_ou_none(snapshot.orcamento_previsto_eti),
        previsto_recursos=_decimal_ou_none(snapshot.previsto_recursos),
        previsto_materiais=_decimal_ou_none(snapshot.previsto_materiais),
        tirado_em=snapshot.tirado_em,
        previsto_por_ano=_por_ano_de_json(snapshot.previsto_por_ano),
    )


# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------


class AllocationStore(Protocol):
    def list_by_workpackage(self, workpackage_id: int, tipo: str, ano: int | None = None) -> list[AlocacaoRow]: ...

    def list_by_periodo(self, ano: int, tipo: str, mes: int | None = None) -> list[AlocacaoRow]: ...

    def list_by_utilizador(
        self, utilizador_id: int, ano: int | None = None, tipo: str | None = None
    ) -> list[AlocacaoRow]: ...

    def upsert(
        self, utilizador_id: int, workpackage_id: int, mes: int, ano: int, tipo: str, ocupacao: Decimal
    ) -> None: ...


class MaterialStore(Protocol):
    def list_by_workpackage(self, workpackage_id: int, ano: int | None = None) -> list[MaterialRow]: ...

    def list_by_periodo(self, ano: int) -> list[MaterialRow]: ...


class MonthlyConfigStore(Protocol):
    def get(self, mes: int, ano: int) -> ConfigMensal: ...


class UserStore(Protocol):
    def get_salario(self, utilizador_id: int) -> Decimal | None: ...

    def get_salarios(self, ids: Iterable[int]) -> dict[int, Decimal | None]: ...


class FundingProgramStore(Protocol):
    def get(self, projeto_id: int) -> ParametrosFinanciamento | None: ...


class SnapshotStore(Protocol):
    def atual(self, workpackage_id: int) -> SnapshotRow | None: ...

    def gravar(self, workpackage_id: int, versao: int, baseline: Baseline) -> SnapshotRow: ...

    def historico(self, workpackage_id: int) -> list[SnapshotRow]: ...


class WorkpackageStore(Protocol):
    def get(self, workpackage_id: int) -> WorkpackageRow | None: ...

    def list_by_projeto(self, projeto_id: int) -> list[WorkpackageRow]: ...

    def get_for_update(self, workpackage_id: int) -> WorkpackageRow | None: ...


# ---------------------------------------------------------------------------
# SQLAlchemy implementations
# ---------------------------------------------------------------------------


class SqlAllocationStore:
    def __init__(self, db: Session):
        self.db = db

    def list_by_workpackage(self, workpackage_id: int, tipo: str, ano: int | None = None) -> list[AlocacaoRow]:
        q = (
            self.db.query(AlocacaoRecurso, Workpackage.projeto_id)
            .join(Workpackage, Workpackage.id == AlocacaoRecurso.workpackage_id)
            .filter(AlocacaoRecurso.workpackage_id == workpackage_id, AlocacaoRecurso.tipo == tipo)
        )
        if ano is not None:
            q = q.filter(AlocacaoRecurso.ano == ano)
        q = q.order_by(AlocacaoRecurso.ano, AlocacaoRecurso.mes, AlocacaoRecurso.utilizador_id)
        return [_alocacao_row(a, projeto_id) for a, projeto_id in q.all()]

    def list_by_periodo(self, ano: int, tipo: str, mes: int | None = None) -> list[AlocacaoRow]:
        q = (
            self.db.query(AlocacaoRecurso, Workpackage.projeto_id)
            .join(Workpackage, Workpackage.id == AlocacaoRecurso.workpackage_id)
            .filter(AlocacaoRecurso.ano == ano, AlocacaoRecurso.tipo == tipo)
        )
        if mes is not None:
            q = q.filter(AlocacaoRecurso.mes == mes)
        q = q.order_by(AlocacaoRecurso.mes, AlocacaoRecurso.workpackage_id, AlocacaoRecurso.utilizador_id)
        return [_alocacao_row(a, projeto_id) for a, projeto_id in q.all()]

    def list_by_utilizador(
        self, utilizador_id: int, ano: int | None = None, tipo: str | None = None
    ) -> list[AlocacaoRow]:
        q = (
            self.db.query(AlocacaoRecurso, Workpackage.projeto_id)
            .join(Workpackage, Workpackage.id == AlocacaoRecurso.workpackage_id)
            .filter(AlocacaoRecurso.utilizador_id == utilizador_id)
        )
        if ano is not None:
            q = q.filter(AlocacaoRecurso.ano == ano)
        if tipo is not None:
            q = q.filter(AlocacaoRecurso.tipo == tipo)
        q = q.order_by(AlocacaoRecurso.ano, AlocacaoRecurso.mes, AlocacaoRecurso.workpackage_id)
        return [_alocacao_row(a, projeto_id) for a, projeto_id in q.all()]

    def ocupacao_total(self, utilizador_id: int, mes: int, ano: int, tipo: str) -> Decimal:
        total = (
            self.db.query(func.coalesce(func.sum(AlocacaoRecurso.ocupacao), 0))
            .filter(
                AlocacaoRecurso.utilizador_id == utilizador_id,
                AlocacaoRecurso.mes == mes,
                AlocacaoRecurso.ano == ano,
                AlocacaoRecurso.tipo == tipo,
            )
            .scalar()
        )
        return Decimal(str(total)).quantize(_OCUPACAO_CASAS)

    def upsert(
        self, utilizador_id: int, workpackage_id: int, mes: int, ano: int, tipo: str, ocupacao: Decimal
    ) -> None:
        valores = dict(
            utilizador_id=utilizador_id,
            workpackage_id=workpackage_id,
            mes=mes,
            ano=ano,
            tipo=tipo,
            ocupacao=ocupacao.quantize(_OCUPACAO_CASAS),
        )
        insert = pg_insert if self.db.get_bind().dialect.name == "postgresql" else sqlite_insert
        stmt = insert(AlocacaoRecurso).values(**valores)
        stmt = stmt.on_conflict_do_update(
            index_elements=["utilizador_id", "workpackage_id", "mes", "ano", "tipo"],
            set_={"ocupacao": stmt.excluded.ocupacao},
        )
        self.db.execute(stmt)

    def get(
        self, utilizador_id: int, workpackage_id: int, mes: int, ano: int, tipo: str
    ) -> AlocacaoRow | None:
        alocacao = (
            self.db.query(AlocacaoRecurso)
            .filter(
                AlocacaoRecurso.utilizador_id == utilizador_id,
                AlocacaoRecurso.workpackage_id == workpackage_id,
                AlocacaoRecurso.mes == mes,
                AlocacaoRecurso.ano == ano,
                AlocacaoRecurso.tipo == tipo,
            )
            .first()
        )
        return _alocacao_row(alocacao) if alocacao is not None else None


class SqlMaterialStore:
    def __init__(self, db: Session):
        self.db = db

    def list_by_workpackage(self, workpackage_id: int, ano: int | None = None) -> list[MaterialRow]:
        q = self.db.query(Material).filter(Material.workpackage_id == workpackage_id)
        if ano is not None:
            q = q.filter(Material.ano_utilizacao == ano)
        return [_material_row(m) for m in q.order_by(Material.id).all()]

    def list_by_periodo(self, ano: int) -> list[MaterialRow]:
        q = self.db.query(Material).filter(Material.ano_utilizacao == ano).order_by(Material.id)
        return [_material_row(m) for m in q.all()]


class SqlMonthlyConfigStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, mes: int, ano: int) -> ConfigMensal:
        row = (
            self.db.query(ConfiguracaoMensal)
            .filter(ConfiguracaoMensal.mes == mes, ConfiguracaoMensal.ano == ano)
            .first()
        )
        if row is None:
            settings = get_settings()
            return ConfigMensal(
                mes=mes,
                ano=ano,
                dias_uteis=settings.DIAS_UTEIS_PADRAO,
                horas_potenciais=settings.HORAS_POTENCIAIS_PADRAO,
                padrao=True,
            )
        return ConfigMensal(
            mes=row.mes,
            ano=row.ano,
            dias_uteis=row.dias_uteis,
            horas_potenciais=Decimal(row.horas_potenciais),
        )


class SqlUserStore:
    def __init__(self, db: Session):
        self.db = db

    def get_salario(self, utilizador_id: int) -> Decimal | None:
        salario = self.db.query(Utilizador.salario).filter(Utilizador.id == utilizador_id).scalar()
        return _decimal_ou_none(salario)

    def get_salarios(self, ids: Iterable[int]) -> dict[int, Decimal | None]:
        ids = list(ids)
        if not ids:
            return {}
        rows = self.db.query(Utilizador.id, Utilizador.salario).filter(Utilizador.id.in_(ids)).all()
        return {uid: _decimal_ou_none(salario) for uid, salario in rows}


class SqlFundingProgramStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, projeto_id: int) -> ParametrosFinanciamento | None:
        fin = (
            self.db.query(Financiamento)
            .join(Projeto, Projeto.financiamento_id == Financiamento.id)
            .filter(Projeto.id == projeto_id)
            .first()
        )
        return parametros_financiamento(fin) if fin is not None else None


class SqlSnapshotStore:
    def __init__(self, db: Session):
        self.db = db

    def atual(self, workpackage_id: int) -> SnapshotRow | None:
        snapshot = (
            self.db.query(OrcamentoSnapshot)
            .filter(OrcamentoSnapshot.workpackage_id == workpackage_id)
            .order_by(OrcamentoSnapshot.versao.desc())
            .first()
        )
        return snapshot_row(snapshot) if snapshot is not None else None

    def gravar(self, workpackage_id: int, versao: int, baseline: Baseline) -> SnapshotRow:
        snapshot = OrcamentoSnapshot(
            workpackage_id=workpackage_id,
            versao=versao,
            modelo_custo=baseline.modelo_custo,
            orcamento_previsto_eti=baseline.orcamento_previsto_eti,
            previsto_recursos=baseline.previsto_recursos,
            previsto_materiais=baseline.previsto_materiais,
            previsto_por_ano=_por_ano_para_json(baseline.previsto_por_ano),
            tirado_em=datetime.now(timezone.utc),
        )
        self.db.add(snapshot)
        self.db.flush()
        return snapshot_row(snapshot)

    def historico(self, workpackage_id: int) -> list[SnapshotRow]:
        q = (
            self.db.query(OrcamentoSnapshot)
            .filter(OrcamentoSnapshot.workpackage_id == workpackage_id)
            .order_by(OrcamentoSnapshot.versao.desc())
        )
        return [snapshot_row(s) for s in q.all()]


class SqlWorkpackageStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, workpackage_id: int) -> WorkpackageRow | None:
        wp = self.db.get(Workpackage, workpackage_id)
        return workpackage_row(wp) if wp is not None else None

    def list_by_projeto(self, projeto_id: int) -> list[WorkpackageRow]:
        q = self.db.query(Workpackage).filter(Workpackage.projeto_id == projeto_id).order_by(Workpackage.id)
        return [workpackage_row(wp) for wp in q.all()]

    def get_for_update(self, workpackage_id: int) -> WorkpackageRow | None:
        wp = (
            self.db.query(Workpackage)
            .filter(Workpackage.id == workpackage_id)
            .with_for_update()
            .first()
        )
        return workpackage_row(wp) if wp is not None else None


# ---------------------------------------------------------------------------
# Bundle
# ---------------------------------------------------------------------------


@dataclass
class Repositorios:
    """All stores bound to one session."""

    alocacoes: SqlAllocationStore
    materiais: SqlMaterialStore
    configuracoes: SqlMonthlyConfigStore
    utilizadores: SqlUserStore
    financiamentos: SqlFundingProgramStore
    snapshots: SqlSnapshotStore
    workpackages: SqlWorkpackageStore

    @classmethod
    def de_sessao(cls, db: Session) -> "Repositorios":
        return cls(
            alocacoes=SqlAllocationStore(db),
            materiais=SqlMaterialStore(db),
            configuracoes=SqlMonthlyConfigStore(db),
            utilizadores=SqlUserStore(db),
            financiamentos=SqlFundingProgramStore(db),
            snapshots=SqlSnapshotStore(db),
            workpackages=SqlWorkpackageStore(db),
        )
