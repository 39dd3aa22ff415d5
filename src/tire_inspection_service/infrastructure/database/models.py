"""
Database Models

SQLAlchemy ORM models for tire inspection storage.
"""

from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, JSON
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class TireInspectionDB(Base):
    """One tire of one inspection submission"""

    __tablename__ = "tire_inspections"

    id = Column(String(36), primary_key=True, index=True)
    submission_id = Column(String(36), nullable=False, index=True)
    plate = Column(String(100), nullable=False, index=True)
    position = Column(String(100), nullable=False)
    images = Column(JSON, nullable=False, default=list)
    depths = Column(JSON, nullable=False, default=list)
    ip = Column(String(64), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    tire_index = Column(Integer, nullable=False)

    def __repr__(self):
        return f"<TireInspectionDB(id='{self.id}', plate='{self.plate}', tire_index={self.tire_index})>"
