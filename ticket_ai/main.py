from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ticket_ai.config import settings
from ticket_ai.logging_config import get_logger, setup_logging
from ticket_ai.routers import admin, agents, chat, tickets
from ticket_ai.services.errors import NotFoundError, ValidationError

setup_logging(settings.log_level)

logger = get_logger("main")

app = FastAPI(
    title="Ticket AI",
    description="Support chat with escalation to human agents",
    version="0.1.0",
)

cors_origins = [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()]
if not cors_origins:
    cors_origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat.router)
app.include_router(tickets.router)
app.include_router(agents.router)
app.include_router(admin.router)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    logger.info(f"Rejected {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"error": str(exc), "entity": exc.entity})


@app.get("/health")
async def health():
    return {"status": "ok"}
