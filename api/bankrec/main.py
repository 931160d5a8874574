from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .errors import ReconciliationError
from .logging_config import setup_logging
from .routers import organizations, bank_accounts, reconciliations

settings = get_settings()
setup_logging(settings.log_level, log_file=settings.log_file)

app = FastAPI(title=settings.app_name)

# CORS: allow web origin for dev
allowed_origins = {str(settings.app_url), "http://localhost:3000", "http://127.0.0.1:3000"}
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(allowed_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_STATUS = {
    "NotFound": 404,
    "Conflict": 409,
    "InvalidTransition": 409,
    "Unbalanced": 422,
    "ValidationError": 422,
}


@app.exception_handler(ReconciliationError)
async def reconciliation_error_handler(request: Request, exc: ReconciliationError):
    return JSONResponse(status_code=ERROR_STATUS.get(exc.kind, 400), content=exc.to_dict())


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "service": settings.app_name,
        "env": settings.app_env,
        "approval_mode": settings.approval_mode,
    }

# Routers
app.include_router(organizations.router)
app.include_router(bank_accounts.router)
app.include_router(reconciliations.router)
