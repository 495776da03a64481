from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from carelearn.clock import utcnow
from carelearn.database import Base, new_uuid


class ContentItem(Base):
    __tablename__ = "content_items"

    id = Column(String(36), primary_key=True, default=new_uuid)
    module_id = Column(String(36), ForeignKey("learning_modules.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(300), nullable=False)
    content_type = Column(String(20), nullable=False)  # text | video | link | document | assessment
    content = Column(Text, nullable=False)  # plain text, or JSON for url-backed kinds
    sequence_number = Column(Integer, nullable=False)
    created_by = Column(String(36), ForeignKey("users.id"))
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
