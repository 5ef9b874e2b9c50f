from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, ForeignKey, UniqueConstraint
from growthforge.database import Base, utcnow


class SkillAssessment(Base):
    """
    A user's self-rating for one skill of their role profile.

    Unique on (user_id, skill_id): re-assessing a skill updates the row in place.
    """

    __tablename__ = "skill_assessments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    skill_id = Column(String(200), nullable=False)
    area = Column(String, nullable=False)
    name = Column(String, nullable=False)
    target_level = Column(Integer, nullable=False)
    current_level = Column(Integer, nullable=False)
    examples = Column(Text, nullable=True)
    recommended_resources = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "skill_id", name="uq_skill_assessment_user_skill"),
    )

    @property
    def gap(self) -> int:
        return self.target_level - self.current_level

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "skillId": self.skill_id,
            "area": self.area,
            "name": self.name,
            "targetLevel": self.target_level,
            "currentLevel": self.current_level,
            "examples": self.examples,
            "recommendedResources": self.recommended_resources,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
