"""Database package for the resource store."""

from .db_init import init_db
from .db_models import Base, ResourceModel

__all__ = ["Base", "ResourceModel", "init_db"]
