from sqlalchemy import Column, Integer, String, DateTime, Text, JSON
from growthforge.database import Base, utcnow

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)

    # Google OAuth identity
    google_id = Column(String, unique=True, nullable=True, index=True)
    picture = Column(String, nullable=True)

    # Free-text role description and the AI generated RoleProfile for it.
    # Regeneration overwrites both; no history is kept.
    role_description = Column(Text, nullable=True)
    target_profile = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "picture": self.picture,
            "roleDescription": self.role_description,
            "targetProfile": self.target_profile,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
