"""
Kisan Sathi Backend — Point d'entrée FastAPI.

Responsabilités :
  1. Configurer le logging
  2. Créer l'app FastAPI avec métadonnées
  3. Ajouter middlewares (CORS, pre-flight, error handler)
  4. Inclure les routes
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from kisansathi.api.routes import router
from kisansathi.core.logger import setup_logging
from kisansathi.core.settings import settings

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": (
        "authorization, x-client-info, apikey, content-type, "
        "x-supabase-client-platform, x-supabase-client-platform-version, "
        "x-supabase-client-runtime, x-supabase-client-runtime-version"
    ),
}


# ── Lifecycle ────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / Shutdown hooks."""
    setup_logging()
    logger = logging.getLogger("KisanSathi")
    logger.info("🚀 Starting Kisan Sathi v%s …", settings.APP_VERSION)
    if not settings.gateway_configured:
        logger.warning("AI_GATEWAY_API_KEY is not configured, generation will fail.")

    yield

    logger.info("🛑 Kisan Sathi stopped.")


# ── App Factory ──────────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    description="Krishi radio: daily tips and tomorrow plans for Nepali farmers",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

# ── Middlewares ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def cors_preflight(request: Request, call_next):
    """Pre-flight : 200, en-têtes CORS permissifs, pas de corps."""
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)

    response = await call_next(request)
    for name, value in CORS_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Corps illisible : même forme {"error"} que les autres échecs."""
    logging.getLogger("KisanSathi").warning(
        "Invalid body on %s: %s", request.url.path, exc.errors()
    )
    return JSONResponse(status_code=500, content={"error": "Server error"})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all pour les erreurs non gérées → JSON propre."""
    logging.getLogger("KisanSathi").error(
        "Unhandled error on %s %s: %s",
        request.method, request.url.path, exc,
        exc_info=True,
    )
    return JSONResponse(status_code=500, content={"error": "Server error"})


# ── Routes ───────────────────────────────────────────────────

app.include_router(router)


# ── Standalone runner ────────────────────────────────────────
if __name__ == "__main__":
    uvicorn.run(
        "kisansathi.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
