"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.paste import PasteRecord

__all__ = ["Base", "PasteRecord"]
