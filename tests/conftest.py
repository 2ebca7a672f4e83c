"""
Pytest fixtures for the Portal Finanças test suite.

Provides:
- An in-memory SQLite database recreated for every test
- A ``Fabrica`` helper that inserts domain rows with sensible defaults
- A FastAPI ``TestClient`` bound to the same session

The application settings are pointed at SQLite before any project module
is imported, so nothing tries to reach PostgreSQL.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DEBUG", "false")

import itertools  # noqa: E402
from datetime import date  # noqa: E402
from decimal import Decimal  # noqa: E402
from typing import Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import portal_financas.models  # noqa: E402,F401
from portal_financas.database import Base, get_db  # noqa: E402
from portal_financas.main import app  # noqa: E402
from portal_financas.models import (  # noqa: E402
    AlocacaoRecurso,
    ConfiguracaoMensal,
    Financiamento,
    Material,
    Projeto,
    Utilizador,
    Workpackage,
)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine) -> Generator[Session, None, None]:
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db) -> Generator[TestClient, None, None]:
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class Fabrica:
    """Insert committed domain rows with defaults matching the 2024 scenarios."""

    def __init__(self, db: Session):
        self.db = db
        self._seq = itertools.count(1)

    def _gravar(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def financiamento(self, modelo="ETI_DB", valor_eti="1200", nome=None, overhead="0", taxa="0"):
        return self._gravar(Financiamento(
            nome=nome or f"Programa {next(self._seq)}",
            overhead=Decimal(overhead),
            taxa_financiamento=Decimal(taxa),
            valor_eti=Decimal(valor_eti),
            tipo_calculo_previsto=modelo,
        ))

    def utilizador(self, salario="2000", nome=None):
        n = next(self._seq)
        return self._gravar(Utilizador(
            nome=nome or f"Utilizador {n}",
            email=f"u{n}@example.pt",
            salario=Decimal(salario) if salario is not None else None,
        ))

    def projeto(self, financiamento=None, inicio=date(2024, 1, 1), fim=date(2024, 12, 31), nome=None):
        return self._gravar(Projeto(
            nome=nome or f"Projeto {next(self._seq)}",
            inicio=inicio,
            fim=fim,
            estado="PENDENTE",
            financiamento_id=financiamento.id if financiamento is not None else None,
        ))

    def workpackage(self, projeto, inicio=date(2024, 1, 1), fim=date(2024, 12, 31), nome=None):
        return self._gravar(Workpackage(
            projeto_id=projeto.id,
            nome=nome or f"WP{next(self._seq)}",
            inicio=inicio,
            fim=fim,
        ))

    def alocacao(self, utilizador, workpackage, mes, ocupacao, tipo="real", ano=2024):
        return self._gravar(AlocacaoRecurso(
            utilizador_id=utilizador.id,
            workpackage_id=workpackage.id,
            mes=mes,
            ano=ano,
            ocupacao=Decimal(ocupacao),
            tipo=tipo,
        ))

    def material(self, workpackage, preco, quantidade=1, rubrica="MATERIAIS", ano=2024, mes=None, estado=False):
        return self._gravar(Material(
            workpackage_id=workpackage.id,
            nome=f"Material {next(self._seq)}",
            preco=Decimal(preco),
            quantidade=quantidade,
            rubrica=rubrica,
            ano_utilizacao=ano,
            mes=mes,
            estado=estado,
        ))

    def configuracao(self, mes, ano=2024, dias_uteis=20, horas="160"):
        return self._gravar(ConfiguracaoMensal(
            mes=mes, ano=ano, dias_uteis=dias_uteis, horas_potenciais=Decimal(horas)
        ))


@pytest.fixture
def fabrica(db) -> Fabrica:
    return Fabrica(db)
