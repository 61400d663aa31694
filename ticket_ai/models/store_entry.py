from sqlalchemy import JSON, Column, Text
from sqlalchemy.types import TIMESTAMP

from ticket_ai.database import Base


class StoreEntry(Base):
    __tablename__ = "store_entries"

    key = Column(Text, primary_key=True)
    value = Column(JSON, nullable=False)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False)
