from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from growthforge.database import Base, utcnow

# Types: 'book', 'course', 'habit', 'mission'
GROWTH_ITEM_TYPES = ("book", "course", "habit", "mission")
# Statuses: 'pending' -> 'in_progress' -> 'done'
GROWTH_ITEM_STATUSES = ("pending", "in_progress", "done")


class GrowthItem(Base):
    """
    One actionable item of a generated growth plan.
    Created in bulk from a generation response, afterwards only its status changes.
    """
    __tablename__ = "growth_items"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    type = Column(String(20), nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    link = Column(String, nullable=True)
    status = Column(String(20), nullable=False, default="pending", index=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "link": self.link,
            "status": self.status,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
