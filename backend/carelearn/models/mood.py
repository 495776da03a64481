from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from carelearn.clock import utcnow
from carelearn.database import Base, new_uuid


class MoodEntry(Base):
    __tablename__ = "mood_entries"

    id = Column(String(36), primary_key=True, default=new_uuid)
    patient_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content_item_id = Column(String(36), ForeignKey("content_items.id", ondelete="SET NULL"))
    mood_type = Column(String(20), nullable=False)
    mood_score = Column(Integer, nullable=False)
    journal_entry = Column(Text)
    entry_timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
