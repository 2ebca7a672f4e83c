"""
Application-wide constants for the Portal Finanças backend.

Defines domain enumerations and lookup lists used across routers,
services, the pure ``core`` package, and models.
"""

from typing import Final

# ---------------------------------------------------------------------------
# Costing models (Financiamento.tipo_calculo_previsto)
# ---------------------------------------------------------------------------

MODELO_ETI: Final[str] = "ETI_DB"
MODELO_DETALHADO: Final[str] = "DETALHADO"

MODELOS_CUSTO: Final[list[str]] = [
    MODELO_ETI,
    MODELO_DETALHADO,
]

# ---------------------------------------------------------------------------
# Allocation tracks
# ---------------------------------------------------------------------------

TIPO_REAL: Final[str] = "real"
TIPO_SUBMETIDO: Final[str] = "submetido"

TIPOS_ALOCACAO: Final[list[str]] = [
    TIPO_REAL,
    TIPO_SUBMETIDO,
]

# ---------------------------------------------------------------------------
# Project states
# ---------------------------------------------------------------------------

ESTADO_RASCUNHO: Final[str] = "RASCUNHO"
ESTADO_APROVADO: Final[str] = "APROVADO"
ESTADO_EM_DESENVOLVIMENTO: Final[str] = "EM_DESENVOLVIMENTO"

# ---------------------------------------------------------------------------
# Budget semaphore levels
# ---------------------------------------------------------------------------

NIVEL_VERDE: Final[str] = "VERDE"
NIVEL_AMARELO: Final[str] = "AMARELO"
NIVEL_VERMELHO: Final[str] = "VERMELHO"

# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------

# Portuguese month abbreviations indexed 1–12 (index 0 unused)
ROTULOS_MES: Final[list[str]] = [
    "",
    "Jan", "Fev", "Mar", "Abr", "Mai", "Jun",
    "Jul", "Ago", "Set", "Out", "Nov", "Dez",
]

ANO_MIN: Final[int] = 2000
ANO_MAX: Final[int] = 2100
