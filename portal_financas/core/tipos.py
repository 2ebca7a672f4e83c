"""
Plain value records exchanged between the stores and the financial core.

The stores in ``portal_financas.repositories`` turn ORM rows into these
frozen dataclasses so that everything under ``portal_financas.core`` is
pure computation over already-fetched data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal


@dataclass(frozen=True)
class AlocacaoRow:
    utilizador_id: int
    workpackage_id: int
    mes: int
    ano: int
    ocupacao: Decimal
    tipo: str
    projeto_id: int | None = None


@dataclass(frozen=True)
class MaterialRow:
    id: int
    workpackage_id: int
    nome: str
    preco: Decimal
    quantidade: int
    rubrica: str
    ano_utilizacao: int
    mes: int | None = None
    estado: bool = False

    @property
    def custo(self) -> Decimal:
        return self.preco * Decimal(self.quantidade)


@dataclass(frozen=True)
class ConfigMensal:
    """Working days and potential hours for one month.

    ``padrao`` is True when no row existed and the settings fallback was used.
    """

    mes: int
    ano: int
    dias_uteis: int
    horas_potenciais: Decimal
    padrao: bool = False


@dataclass(frozen=True)
class ParametrosFinanciamento:
    financiamento_id: int
    nome: str
    overhead: Decimal
    taxa_financiamento: Decimal
    valor_eti: Decimal
    modelo_custo: str


@dataclass(frozen=True)
class WorkpackageRow:
    id: int
    projeto_id: int
    nome: str
    inicio: date | None
    fim: date | None


@dataclass(frozen=True)
class ProjetoRow:
    id: int
    nome: str
    estado: str
    inicio: date | None
    fim: date | None
    financiamento_id: int | None


@dataclass(frozen=True)
class SnapshotRow:
    """Current (or historical) frozen baseline of a workpackage.

    Only the fields of ``modelo_custo``'s shape are set; the others are None.
    ``previsto_por_ano`` maps a year to its share of the same figures.
    """

    id: int
    workpackage_id: int
    versao: int
    modelo_custo: str
    orcamento_previsto_eti: Decimal | None
    previsto_recursos: Decimal | None
    previsto_materiais: Decimal | None
    tirado_em: datetime
    previsto_por_ano: dict[int, dict[str, Decimal]] = field(default_factory=dict)


@dataclass(frozen=True)
class CustoResolvido:
    """Money cost of one allocation plus the hours it implies.

    ``taxa_horaria`` is None when no salary is involved (ETI model, missing
    salary, or a month configured with zero potential hours).
    """

    custo: Decimal
    horas: Decimal
    taxa_horaria: Decimal | None = None


@dataclass(frozen=True)
class Baseline:
    """Planned figures computed at snapshot time, before persistence."""

    modelo_custo: str
    orcamento_previsto_eti: Decimal | None
    previsto_recursos: Decimal | None
    previsto_materiais: Decimal | None
    previsto_por_ano: dict[int, dict[str, Decimal]]
    alocacoes_fora_do_periodo: int = 0
