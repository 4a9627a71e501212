from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.config import CORS_ORIGINS
from app.database import Base, engine
from app.middleware import add_request_id_and_process_time
from app.routes.user_route import user_router
from app.routes.service_route import service_router
from app.routes.booking_route import booking_router
from app.routes.provider_route import provider_router
from app.logger import get_logger

logger = get_logger(__name__)

Base.metadata.create_all(bind=engine)
app = FastAPI(
    title="ServiceBook API",
    version="1.0.0",
    description="API for a service-booking marketplace: customers book time slots of services, "
                "providers manage their services, working hours and bookings.",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(add_request_id_and_process_time)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Invalid input on {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid input", "errors": jsonable_encoder(exc.errors())},
    )


@app.get("/", status_code=200)
async def home():
    return {"message": "Welcome to ServiceBook REST API"}


app.include_router(user_router, prefix="/api", tags=["Users"])
app.include_router(service_router, prefix="/api", tags=["Services"])
app.include_router(booking_router, prefix="/api", tags=["Bookings"])
app.include_router(provider_router, prefix="/api", tags=["Provider"])
