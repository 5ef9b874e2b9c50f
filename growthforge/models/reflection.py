from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from growthforge.database import Base, utcnow

REFLECTION_TYPES = ("general", "weekly_review", "mental_model")


class ReflectionEntry(Base):
    """Append-only journal entry"""
    __tablename__ = "reflection_entries"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    type = Column(String(20), nullable=False, default="general")
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "content": self.content,
            "type": self.type,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
