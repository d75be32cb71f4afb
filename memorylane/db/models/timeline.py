from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship

from memorylane.db.base import BaseModel
from memorylane.domains.validation import SLUG_MAX_LENGTH


class Timeline(BaseModel):
    __tablename__ = "timeline"

    name = Column(Text, nullable=False)
    slug = Column(String(SLUG_MAX_LENGTH), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=False)

    # Каскад выполняет MemoryRepository, ORM-каскад не используется
    memories = relationship("Memory", back_populates="timeline", passive_deletes="all")
