import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fintrack.core.config import settings
from fintrack.core.exceptions import (
    AuthenticationMissingError,
    FinTrackError,
    MalformedInputError,
    RemoteServiceError,
)
from fintrack.routers import (
    analytics,
    budgets,
    health,
    lending,
    loans,
    recurring,
    reports,
    settings as settings_router,
    sheets,
    subscriptions,
    transactions,
)

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    debug=settings.DEBUG,
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        settings.FRONTEND_URL,
        "http://localhost:3000",
        "http://localhost:8000",
    ],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
    max_age=3600,
)


@app.exception_handler(FinTrackError)
async def fintrack_error_handler(request: Request, exc: FinTrackError):
    if isinstance(exc, AuthenticationMissingError):
        status_code = 401
    elif isinstance(exc, MalformedInputError):
        status_code = 400
    elif isinstance(exc, RemoteServiceError):
        status_code = exc.status_code
    else:
        status_code = 500
    logger.error(f"{request.method} {request.url.path} failed: {str(exc)}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


# Root endpoint
@app.get("/")
def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME} API"}


# Register routers
app.include_router(health.router, prefix=f"{settings.API_PREFIX}", tags=["Health"])  # /api/health
app.include_router(transactions.router, prefix=f"{settings.API_PREFIX}/transactions", tags=["Transactions"])
app.include_router(budgets.router, prefix=f"{settings.API_PREFIX}/budgets", tags=["Budgets"])
app.include_router(loans.router, prefix=f"{settings.API_PREFIX}/loans", tags=["Loans"])
app.include_router(lending.router, prefix=f"{settings.API_PREFIX}/lending", tags=["Lending"])
app.include_router(recurring.router, prefix=f"{settings.API_PREFIX}/recurring", tags=["Recurring"])
app.include_router(analytics.router, prefix=f"{settings.API_PREFIX}/analytics", tags=["Analytics"])
app.include_router(reports.router, prefix=f"{settings.API_PREFIX}/reports", tags=["Reports"])
app.include_router(settings_router.router, prefix=f"{settings.API_PREFIX}/settings", tags=["Settings"])
app.include_router(subscriptions.router, prefix=f"{settings.API_PREFIX}/subscriptions", tags=["Subscriptions"])
app.include_router(sheets.router, prefix=f"{settings.API_PREFIX}/sheets", tags=["Sheets"])
