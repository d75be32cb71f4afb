from sqlalchemy import Column, Date, ForeignKey, Text, UUID
from sqlalchemy.orm import relationship

from memorylane.db.base import BaseModel


class Memory(BaseModel):
    __tablename__ = "memory"

    timeline_id = Column(UUID(as_uuid=True), ForeignKey("timeline.id"), index=True, nullable=False)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    image_url = Column(Text, nullable=False)
    image_key = Column(Text, nullable=False)
    date_of_event = Column(Date, nullable=False)

    timeline = relationship("Timeline", back_populates="memories")
