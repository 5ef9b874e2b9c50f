from sqlalchemy import Column, Integer, DateTime, Text, JSON, ForeignKey
from growthforge.database import Base, utcnow


class MentalModelSession(Base):
    __tablename__ = "mental_model_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    prompt = Column(Text, nullable=False)
    models = Column(JSON, nullable=False)  # exactly 5 validated MentalModel dicts
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "prompt": self.prompt,
            "models": self.models,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
