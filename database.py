from pathlib import Path

from sqlalchemy import create_engine, Column, Integer, String, Boolean, DateTime, Text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from datetime import datetime
from config import settings

engine = create_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# Database Models
class LocalLicenseValidationAttempt(Base):
    __tablename__ = "local_license_validation_attempts"

    id = Column(Integer, primary_key=True, index=True)
    license_key = Column(String(64))  # Masked, never the raw key

    # Attempt Result
    result = Column(String(20), nullable=False)  # success, failed, offline
    license_type = Column(String(50))
    error_message = Column(Text)

    attempted_at = Column(DateTime, default=datetime.utcnow, index=True)

class LocalInstallationAttempt(Base):
    __tablename__ = "local_installation_attempts"

    id = Column(Integer, primary_key=True, index=True)
    license_key = Column(String(64))
    forced = Column(Boolean, default=False)

    # Outcome
    final_state = Column(String(30), nullable=False)
    success = Column(Boolean, default=False)
    message = Column(Text)

    started_at = Column(DateTime, default=datetime.utcnow, index=True)
    finished_at = Column(DateTime)

def init_db():
    url = make_url(settings.database_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(bind=engine)

def get_db():
    init_db()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
