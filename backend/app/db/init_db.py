from __future__ import annotations
from app.core.errors import ConfigError
from app.db.database import Base, SessionLocal, engine
from app.models import activity_log, job_posting, pipeline_execution, setting, zipcode  # noqa: F401
from app.services.seed import seed_defaults


def init_db() -> None:
    if engine is None:
        raise ConfigError("missing required configuration: DATABASE_URL")
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_defaults(db)
    finally:
        db.close()
