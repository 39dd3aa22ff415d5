"""Database layer"""

from .client import DatabaseClient, db_client, get_db
from .models import TireInspectionDB

__all__ = ["DatabaseClient", "db_client", "get_db", "TireInspectionDB"]
