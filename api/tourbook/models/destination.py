"""
Destination Model
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, Numeric, JSON, func
from sqlalchemy.dialects.postgresql import JSONB

from tourbook.utils.database import Base


class Destination(Base):
    __tablename__ = "destinations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    description = Column(Text)
    price = Column(Numeric(10, 2), nullable=False)
    duration_days = Column(Integer, nullable=False)
    includes = Column(JSON().with_variant(JSONB(), "postgresql"), default=list)  # ["Transport", "Lunch", ...]
    image_url = Column(String(500))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Destination {self.id} {self.name}>"
