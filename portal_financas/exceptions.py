"""
Typed exceptions for the financial core.

Services and the pure ``core`` package raise these instead of
``HTTPException`` so the computation stays usable outside FastAPI.
``main.py`` maps each family to an HTTP status code:

    PortalFinancasError
    +-- ValidacaoError            -> 400
    |   +-- SnapshotExistenteError
    +-- NaoEncontradoError        -> 404
    +-- ConflitoError             -> 409
    +-- EstadoInconsistenteError  (never leaves the aggregator; it becomes
                                   a degraded panel with flags set)

Every exception carries a machine-readable ``code`` next to the message.
"""

from __future__ import annotations


class PortalFinancasError(Exception):
    """Base class for all domain errors."""

    code: str = "ERRO_PORTAL"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidacaoError(PortalFinancasError):
    """Malformed input to a snapshot or allocation write."""

    code = "VALIDACAO"


class SnapshotExistenteError(ValidacaoError):
    """takeSnapshot on a workpackage that already has a baseline."""

    code = "SNAPSHOT_EXISTENTE"

    def __init__(self, workpackage_id: int, versao: int):
        super().__init__(
            f"Workpackage {workpackage_id} já tem snapshot (versão {versao}); "
            "use a operação de re-snapshot"
        )
        self.workpackage_id = workpackage_id
        self.versao = versao


class NaoEncontradoError(PortalFinancasError):
    """Referenced project, workpackage, user or funding program does not exist."""

    code = "NAO_ENCONTRADO"

    def __init__(self, entidade: str, entidade_id: object):
        super().__init__(f"{entidade} {entidade_id} não encontrado")
        self.entidade = entidade
        self.entidade_id = entidade_id


class ConflitoError(PortalFinancasError):
    """Write refused because it clashes with existing data."""

    code = "CONFLITO"


class EstadoInconsistenteError(PortalFinancasError):
    """Panel data that cannot be reconciled with the workpackage's baseline.

    Raised inside the aggregator and converted there into a degraded
    result; reporting must stay available while setup is incomplete.
    """

    code = "ESTADO_INCONSISTENTE"

    def __init__(self, workpackage_id: int, motivo: str):
        super().__init__(f"Workpackage {workpackage_id}: {motivo}")
        self.workpackage_id = workpackage_id
        self.motivo = motivo
