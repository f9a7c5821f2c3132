"""
SQLAlchemy ORM models for the Inkwell database.
"""
from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from inkwell.database import Base


class UserDictionaryWord(Base):
    """Word a user approved; spelling suggestions for it are suppressed."""

    __tablename__ = "user_dictionary"
    __table_args__ = (
        UniqueConstraint("user_id", "language_code", "word", name="uq_user_dictionary_user_lang_word"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    word = Column(String(255), nullable=False)  # stored lower-cased
    language_code = Column(String(16), nullable=False, default="en", server_default="en")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
