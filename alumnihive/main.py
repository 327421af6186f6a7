import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from alumnihive.api.routes import (
    alumni,
    auth,
    batch_chat,
    batches,
    connections,
    dashboard,
    health,
    jobs,
    mentorship,
    message_limits,
    messages,
    payment,
    payment_webhook,
    skills,
    students,
    subscriptions,
)
from alumnihive.core.config import CORS_ORIGINS, LOG_LEVEL, RAZORPAY_KEY_SECRET, RUN_MIGRATIONS
from alumnihive.core.errors import AlumniHiveError
from alumnihive.core.logging_config import setup_logging

setup_logging(LOG_LEVEL)
logger = logging.getLogger(__name__)


# ============================================
# ✅ FASTAPI APP INIT
# ============================================

app = FastAPI(title="AlumniHive API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type", "X-Razorpay-Signature"],
)


# ============================================
# ✅ REGISTER ALL ROUTERS
# ============================================

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(messages.router)
app.include_router(message_limits.router)
app.include_router(subscriptions.router)
app.include_router(payment_webhook.router)
app.include_router(payment.router)
app.include_router(batches.router)
app.include_router(batch_chat.router)
app.include_router(jobs.router)
app.include_router(skills.router)
app.include_router(alumni.router)
app.include_router(students.router)
app.include_router(mentorship.router)
app.include_router(connections.router)
app.include_router(dashboard.router)


# ============================================
# ✅ STARTUP
# ============================================

@app.on_event("startup")
def prepare_database():
    # Failures here abort startup
    if RUN_MIGRATIONS:
        from alumnihive.db.migrate import run_migrations
        run_migrations()
    else:
        from alumnihive.db.init_db import init_db
        init_db()

    if not RAZORPAY_KEY_SECRET:
        logger.warning("RAZORPAY_KEY_SECRET is not set; payment verification will reject every signature")


# ============================================
# ✅ ERROR RESPONSES
# ============================================

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    body = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation failed", "details": details},
    )


@app.exception_handler(AlumniHiveError)
async def domain_exception_handler(request: Request, exc: AlumniHiveError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_detail())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


@app.get("/")
def root():
    return {"status": "AlumniHive API running"}
