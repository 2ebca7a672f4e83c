"""SQLAlchemy models package for Portal Finanças.

Importing all models here ensures that SQLAlchemy's mapper registry is
populated before ``Base.metadata.create_all()`` runs.
The import order follows the foreign-key dependency graph so that parent
tables are always registered before their children.

Usage from other modules:
    from portal_financas.models import Workpackage, AlocacaoRecurso
"""

# Leaf tables (no FK dependencies on other domain models)
from portal_financas.models.financiamento import Financiamento  # noqa: F401
from portal_financas.models.utilizador import Utilizador  # noqa: F401
from portal_financas.models.configuracao_mensal import ConfiguracaoMensal  # noqa: F401

# Project hierarchy
from portal_financas.models.projeto import Projeto  # noqa: F401
from portal_financas.models.workpackage import Workpackage  # noqa: F401

# Cost inputs
from portal_financas.models.alocacao_recurso import AlocacaoRecurso  # noqa: F401
from portal_financas.models.material import Material  # noqa: F401

# Frozen baselines
from portal_financas.models.orcamento_snapshot import OrcamentoSnapshot  # noqa: F401

__all__ = [
    "Financiamento",
    "Utilizador",
    "ConfiguracaoMensal",
    "Projeto",
    "Workpackage",
    "AlocacaoRecurso",
    "Material",
    "OrcamentoSnapshot",
]
