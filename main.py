import os
import time
import uuid
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

# Importa os roteadores das funcionalidades
from routes import agenda, confirmacao, whatsapp
from config import DEFAULT_ORIGIN_REGEX, get_allowed_origins

# Carrega as variáveis de ambiente
load_dotenv()

# -------------------------
# Configuração básica de logs
# -------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger("clinica")

app = FastAPI(
    title="Clínica API",
    description="Relays autenticados para o n8n (confirmações via WhatsApp) e agenda da clínica.",
    version="1.0.0",
)

# -------------------------
# CORS: app Lovable, localhost, qualquer origem HTTPS e ALLOWED_ORIGINS
# -------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_allowed_origins(),
    allow_origin_regex=DEFAULT_ORIGIN_REGEX,
    allow_methods=["POST", "PATCH", "GET", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

# -------------------------
# Middleware de logging
# -------------------------
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    rid = str(uuid.uuid4())
    try:
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.info(
            "rid=%s method=%s path=%s status=%s duration_ms=%s ua=%s",
            rid,
            request.method,
            request.url.path,
            getattr(response, "status_code", "unknown"),
            duration_ms,
            request.headers.get("user-agent", "-"),
        )
        response.headers["X-Request-ID"] = rid
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        return response
    except Exception as exc:
        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.exception(
            "rid=%s method=%s path=%s status=500 duration_ms=%s error=%s",
            rid, request.method, request.url.path, duration_ms, repr(exc)
        )
        raise

# -------------------------
# Middleware de segurança (headers)
# -------------------------
ENABLE_HSTS = os.getenv("ENABLE_HSTS", "1") == "1"

@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    # HSTS apenas em HTTPS
    if ENABLE_HSTS and request.url.scheme == "https":
        response.headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains"

    return response

# Erros inesperados: detalhes só no log do servidor
@app.exception_handler(Exception)
async def unexpected_error(request: Request, exc: Exception):
    logger.error("path=%s unexpected_error=%r", request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})

# Rotas (mesmo caminho das funções de borda do Supabase)
app.include_router(confirmacao.router, prefix="/functions/v1", tags=["Relays"])
app.include_router(whatsapp.router, prefix="/functions/v1", tags=["Relays"])
app.include_router(agenda.router, prefix="/agenda", tags=["Agenda"])

@app.get("/")
async def read_root():
    return {"message": "Clínica API está online!"}
