import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from portal_financas.config import get_settings
from portal_financas.exceptions import (
    ConflitoError,
    NaoEncontradoError,
    PortalFinancasError,
    ValidacaoError,
)

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables when running against a throwaway database
    if settings.DEBUG:
        from portal_financas.database import create_tables

        create_tables()
        logger.info("Tabelas verificadas (DEBUG=%s)", settings.DEBUG)
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Domain errors → HTTP
# ---------------------------------------------------------------------------

_STATUS_POR_ERRO: list[tuple[type[PortalFinancasError], int]] = [
    (ValidacaoError, status.HTTP_400_BAD_REQUEST),
    (NaoEncontradoError, status.HTTP_404_NOT_FOUND),
    (ConflitoError, status.HTTP_409_CONFLICT),
]


@app.exception_handler(PortalFinancasError)
async def portal_financas_error_handler(request: Request, exc: PortalFinancasError) -> JSONResponse:
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for classe, codigo in _STATUS_POR_ERRO:
        if isinstance(exc, classe):
            status_code = codigo
            break

    if status_code >= 500:
        logger.error("%s %s: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s -> %d %s", request.method, request.url.path, status_code, exc.code)
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "code": exc.code})


@app.get("/api/health")
def health_check():
    return {"status": "ok", "app": settings.APP_NAME}


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

# Financial panels
from portal_financas.routers import financas  # noqa: E402

app.include_router(
    financas.router,
    prefix=f"{settings.API_PREFIX}/financas",
    tags=["Finanças"],
)

# Budget snapshots
from portal_financas.routers import snapshots  # noqa: E402

app.include_router(
    snapshots.router,
    prefix=f"{settings.API_PREFIX}/snapshots",
    tags=["Snapshots"],
)

# Allocations
from portal_financas.routers import alocacoes  # noqa: E402

app.include_router(
    alocacoes.router,
    prefix=f"{settings.API_PREFIX}/alocacoes",
    tags=["Alocações"],
)

# Funding programs
from portal_financas.routers import financiamentos  # noqa: E402

app.include_router(
    financiamentos.router,
    prefix=f"{settings.API_PREFIX}/financiamentos",
    tags=["Financiamentos"],
)

# Monthly configuration
from portal_financas.routers import configuracoes  # noqa: E402

app.include_router(
    configuracoes.router,
    prefix=f"{settings.API_PREFIX}/configuracoes-mensais",
    tags=["Configurações Mensais"],
)

# Dashboard projections
from portal_financas.routers import dashboard  # noqa: E402

app.include_router(
    dashboard.router,
    prefix=f"{settings.API_PREFIX}/dashboard",
    tags=["Dashboard"],
)
