"""
Shared Pydantic v2 schemas reused across multiple modules.

Provides the message envelope returned by write operations and the error
body produced by the domain exception handlers in ``main.py``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Generic message envelope for operations that do not return a resource.

    Attributes:
        message: Short human-readable result summary.
        detail: Optional extended information (error description, hint, etc.).
    """

    message: str = Field(..., description="Resumo do resultado da operação.")
    detail: str | None = Field(
        default=None,
        description="Informação adicional (contexto de erro, sugestão, etc.).",
    )


class ErroResponse(BaseModel):
    """Body of every 4xx raised from a domain exception.

    Attributes:
        detail: Human-readable message.
        code: Machine-readable error family, e.g. ``"SNAPSHOT_EXISTENTE"``.
    """

    detail: str
    code: str
