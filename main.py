import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import ALLOWED_ORIGINS, LOG_LEVEL
from core.errors import register_exception_handlers
from database import check_connection, init_db
from services.ai_ml_client import ai_ml_client
from routers import (
    ai_router,
    appointment_router,
    auth_router,
    blockchain_router,
    doctor_router,
    hospital_router,
    images,
    patient_router,
    report_router,
    user_router,
)

logging.basicConfig(
    level=LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if check_connection():
        init_db()
    yield
    ai_ml_client.close()


app = FastAPI(title="Swasthya API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials="*" not in ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)


@app.get("/")
def read_root():
    return {"message": "🚀 Swasthya API is running"}


# auth & users
app.include_router(auth_router.router)
app.include_router(user_router.router)

# patients & doctors
app.include_router(patient_router.router)
app.include_router(doctor_router.router)

# appointments
app.include_router(appointment_router.router)

# reports, files & images
app.include_router(report_router.router)
app.include_router(report_router.files_router)
app.include_router(images.router)

# external services
app.include_router(ai_router.router)
app.include_router(blockchain_router.router)
app.include_router(hospital_router.router)


# uvicorn main:app --reload
