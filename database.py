import logging

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from core.config import DATABASE_URL, DB_ECHO

logger = logging.getLogger(__name__)

# ---------------- SQLAlchemy setup ----------------
if DATABASE_URL.startswith("sqlite"):
    # One shared connection so an in-memory database survives across sessions
    engine = create_engine(
        DATABASE_URL,
        echo=DB_ECHO,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    engine = create_engine(DATABASE_URL, echo=DB_ECHO, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# ---------------- Connection check ----------------
def check_connection() -> bool:
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        logger.info("Connected to database (%s)", engine.url.get_backend_name())
        return True
    except SQLAlchemyError as e:
        logger.error("Database connection failed: %s", e)
        return False


def init_db():
    # model modules must be imported so their tables register on Base
    from model import user_model, patient_model, doctor_model, appointment_model, report_model, images_model  # noqa: F401
    Base.metadata.create_all(bind=engine)


# ---------------- get_db for FastAPI ----------------
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
