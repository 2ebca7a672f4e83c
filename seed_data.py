"""Seed data script for the Portal Finanças database.

Populates the database with a small demo portfolio: one ETI-funded and one
salary-funded project, their workpackages, allocations on both tracks,
materials and monthly configuration, then approves both projects so every
workpackage gets its first budget snapshot.

The script is idempotent: it checks for existing records before inserting.

Usage (from the repository root):
    python seed_data.py
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from portal_financas.database import SessionLocal, create_tables
from portal_financas.models import (
    AlocacaoRecurso,
    ConfiguracaoMensal,
    Financiamento,
    Material,
    Projeto,
    Utilizador,
    Workpackage,
)
from portal_financas.services import snapshot_service

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ANO = 2024

# Working days per month of 2024 (Portuguese calendar, national holidays removed)
_DIAS_UTEIS_2024 = [22, 21, 19, 21, 22, 18, 23, 21, 21, 22, 19, 19]


def _dec(value: str) -> Decimal:
    return Decimal(value)


# ---------------------------------------------------------------------------
# Seed functions
# ---------------------------------------------------------------------------


def seed_configuracoes(session) -> None:
    """Insert the 12 monthly configurations of ``ANO`` at 8 hours per working day."""
    if session.query(ConfiguracaoMensal).filter(ConfiguracaoMensal.ano == ANO).count() > 0:
        print(f"  [SKIP] ConfiguracaoMensal {ANO}: table already has data.")
        return

    registros = [
        ConfiguracaoMensal(mes=mes, ano=ANO, dias_uteis=dias, horas_potenciais=Decimal(dias * 8))
        for mes, dias in enumerate(_DIAS_UTEIS_2024, start=1)
    ]
    session.add_all(registros)
    session.flush()
    print(f"  [OK] ConfiguracaoMensal: {len(registros)} registos inseridos.")


def seed_financiamentos(session) -> dict[str, Financiamento]:
    if session.query(Financiamento).count() > 0:
        print("  [SKIP] Financiamento: table already has data.")
        return {f.tipo_calculo_previsto: f for f in session.query(Financiamento).all()}

    registros = {
        "ETI_DB": Financiamento(
            nome="FCT Projetos Exploratórios",
            overhead=_dec("25.00"),
            taxa_financiamento=_dec("85.00"),
            valor_eti=_dec("1200.00"),
            tipo_calculo_previsto="ETI_DB",
        ),
        "DETALHADO": Financiamento(
            nome="Portugal 2030 Inovação",
            overhead=_dec("15.00"),
            taxa_financiamento=_dec("60.00"),
            valor_eti=_dec("0"),
            tipo_calculo_previsto="DETALHADO",
        ),
    }
    session.add_all(registros.values())
    session.flush()
    print(f"  [OK] Financiamento: {len(registros)} registos inseridos.")
    return registros


def seed_utilizadores(session) -> list[Utilizador]:
    if session.query(Utilizador).count() > 0:
        print("  [SKIP] Utilizador: table already has data.")
        return session.query(Utilizador).order_by(Utilizador.id).all()

    registros = [
        Utilizador(nome="Ana Ferreira", email="ana.ferreira@example.pt", salario=_dec("2000.00")),
        Utilizador(nome="Bruno Costa", email="bruno.costa@example.pt", salario=_dec("1800.00")),
        Utilizador(nome="Carla Mendes", email="carla.mendes@example.pt", salario=_dec("2600.00"), regime="PARCIAL"),
        Utilizador(nome="Diogo Reis", email="diogo.reis@example.pt", salario=None),
    ]
    session.add_all(registros)
    session.flush()
    print(f"  [OK] Utilizador: {len(registros)} registos inseridos.")
    return registros


def seed_projetos(session, financiamentos: dict[str, Financiamento]) -> list[Projeto]:
    if session.query(Projeto).count() > 0:
        print("  [SKIP] Projeto: table already has data.")
        return session.query(Projeto).order_by(Projeto.id).all()

    costeiro = Projeto(
        nome="Observatório Costeiro",
        inicio=date(ANO, 1, 1),
        fim=date(ANO, 12, 31),
        estado="PENDENTE",
        financiamento_id=financiamentos["ETI_DB"].id,
    )
    sensores = Projeto(
        nome="Rede de Sensores Urbanos",
        inicio=date(ANO, 3, 1),
        fim=date(ANO + 1, 2, 28),
        estado="PENDENTE",
        financiamento_id=financiamentos["DETALHADO"].id,
    )
    costeiro.workpackages = [
        Workpackage(nome="WP1 Levantamento", inicio=date(ANO, 1, 1), fim=date(ANO, 6, 30)),
        Workpackage(nome="WP2 Modelação", inicio=date(ANO, 5, 1), fim=date(ANO, 12, 31)),
    ]
    sensores.workpackages = [
        Workpackage(nome="WP1 Protótipo", inicio=date(ANO, 3, 1), fim=date(ANO, 9, 30)),
        Workpackage(nome="WP2 Piloto", inicio=date(ANO, 9, 1), fim=date(ANO + 1, 2, 28)),
    ]
    session.add_all([costeiro, sensores])
    session.flush()
    print("  [OK] Projeto: 2 registos inseridos (4 workpackages).")
    return [costeiro, sensores]


def seed_alocacoes(session, projetos: list[Projeto], utilizadores: list[Utilizador]) -> None:
    """Submitted plan for every workpackage month and the realized track up to June."""
    if session.query(AlocacaoRecurso).count() > 0:
        print("  [SKIP] AlocacaoRecurso: table already has data.")
        return

    registros: list[AlocacaoRecurso] = []
    for projeto in projetos:
        for indice, wp in enumerate(projeto.workpackages):
            equipa = utilizadores[indice::2]
            ano, mes = wp.inicio.year, wp.inicio.month
            while (ano, mes) <= (wp.fim.year, wp.fim.month):
                for utilizador in equipa:
                    registros.append(AlocacaoRecurso(
                        utilizador_id=utilizador.id, workpackage_id=wp.id,
                        mes=mes, ano=ano, ocupacao=_dec("0.25"), tipo="submetido",
                    ))
                    if ano == ANO and mes <= 6:
                        registros.append(AlocacaoRecurso(
                            utilizador_id=utilizador.id, workpackage_id=wp.id,
                            mes=mes, ano=ano, ocupacao=_dec("0.30"), tipo="real",
                        ))
                mes += 1
                if mes > 12:
                    ano, mes = ano + 1, 1

    session.add_all(registros)
    session.flush()
    print(f"  [OK] AlocacaoRecurso: {len(registros)} registos inseridos.")


def seed_materiais(session, projetos: list[Projeto]) -> None:
    if session.query(Material).count() > 0:
        print("  [SKIP] Material: table already has data.")
        return

    wp_prototipo, wp_piloto = projetos[1].workpackages
    registros = [
        Material(workpackage_id=wp_prototipo.id, nome="Microcontroladores", preco=_dec("35.00"),
                 quantidade=40, rubrica="MATERIAIS", ano_utilizacao=ANO, mes=4, estado=True),
        Material(workpackage_id=wp_prototipo.id, nome="Impressão 3D de caixas", preco=_dec("450.00"),
                 quantidade=1, rubrica="SERVICOS_TERCEIROS", ano_utilizacao=ANO, mes=5, estado=True),
        Material(workpackage_id=wp_piloto.id, nome="Deslocação à câmara municipal", preco=_dec("120.00"),
                 quantidade=3, rubrica="DESLOCACOES_ESTADAS", ano_utilizacao=ANO, mes=None),
        Material(workpackage_id=wp_piloto.id, nome="Licenças de dados móveis", preco=_dec("8.50"),
                 quantidade=24, rubrica="OUTROS_SERVICOS", ano_utilizacao=ANO + 1, mes=1),
    ]
    session.add_all(registros)
    session.flush()
    print(f"  [OK] Material: {len(registros)} registos inseridos.")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main() -> None:
    print("=" * 60)
    print("  Portal Finanças: Seed Data Script")
    print(f"  Ano: {ANO}")
    print("=" * 60)

    create_tables()
    session = SessionLocal()
    try:
        print("\n[1/6] Configurações mensais...")
        seed_configuracoes(session)

        print("\n[2/6] Financiamentos...")
        financiamentos = seed_financiamentos(session)

        print("\n[3/6] Utilizadores...")
        utilizadores = seed_utilizadores(session)

        print("\n[4/6] Projetos e workpackages...")
        projetos = seed_projetos(session, financiamentos)

        print("\n[5/6] Alocações e materiais...")
        seed_alocacoes(session, projetos, utilizadores)
        seed_materiais(session, projetos)
        session.commit()

        print("\n[6/6] Aprovação e snapshots...")
        for projeto in projetos:
            resultado = snapshot_service.aprovar_projeto(session, projeto.id, hoje=date(ANO, 2, 1))
            print(f"  [OK] {projeto.nome}: {resultado.estado}, {len(resultado.snapshots)} snapshots novos.")

        print("\n" + "=" * 60)
        print("  Seed completado.")
        print("=" * 60)

    except Exception:
        session.rollback()
        print("\n[ERROR] Seed falhou; rollback efetuado.")
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
