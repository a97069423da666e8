import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from petverse.routers import auth_router, otp_router
from petverse.models import init_db
from petverse.configs import settings, setup_logging
from petverse.exceptions import PetverseError, InfrastructureError

setup_logging(settings.log_level)
logger = logging.getLogger("petverse.main")

app = FastAPI(
    title="PETVERSE",
    description="Backend of the **PETVERSE** pet services marketplace.\n\n"
                "OTP confirmation of orders and payments, and KYC review "
                "of service providers by administrators.",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PetverseError)
async def petverse_exception_handler(request: Request, exc: PetverseError):
    if isinstance(exc, InfrastructureError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc.cause)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message}
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # One readable line per invalid field
    errors = exc.errors()
    error_messages = []
    for error in errors:
        field = " -> ".join(str(loc) for loc in error["loc"])
        message = error.get("msg", "Validation error")
        error_messages.append(f"{field}: {message}")

    detail = "; ".join(error_messages) if error_messages else "Invalid request data"

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": detail}
    )


@app.on_event("startup")
async def startup_db_client():
    await init_db()


app.include_router(auth_router.router, prefix="/api/auth", tags=["Accounts"])
app.include_router(otp_router.router, prefix="/api/otp", tags=["OTP"])


@app.get("/")
def read_root():
    return {"message": "Server is running"}


@app.get("/api/health")
def health():
    return {"success": True, "message": "PETVERSE API is running"}
