"""
Durable writes for validated generation output and journal data.

Every method is all-or-nothing: on any database error the session is rolled
back and StorageError is raised, so no partial batch is ever visible.
"""
from typing import List, Sequence

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from growthforge.database import utcnow
from growthforge.models.growth_item import GrowthItem
from growthforge.models.mental_model_session import MentalModelSession
from growthforge.models.reflection import ReflectionEntry
from growthforge.models.skill_assessment import SkillAssessment
from growthforge.models.user import User
from growthforge.schemas.growth import GrowthItemDraft
from growthforge.schemas.journal import ReflectionCreate, SkillAssessmentCreate
from growthforge.schemas.mental_models import MentalModel
from growthforge.schemas.role_profile import RoleProfile
from growthforge.services.errors import NotFound, StorageError
from growthforge.utils.logger import get_logger

logger = get_logger("persister")


class Persister:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _fail(self, action: str, user_id: int, exc: Exception) -> StorageError:
        await self.db.rollback()
        logger.error(
            f"Failed to {action}",
            extra={"user_id": user_id, "error": str(exc)[:300], "error_type": type(exc).__name__},
        )
        return StorageError(f"Failed to {action}")

    async def save_role_profile(self, user_id: int, role_description: str, profile: RoleProfile) -> User:
        """Overwrite the user's role description and target profile in one UPDATE."""
        try:
            user = await self.db.get(User, user_id)
            if user is None:
                raise NotFound("user not found")
            # Last writer wins; the previous profile is not kept
            user.role_description = role_description
            user.target_profile = profile.to_wire()
            user.updated_at = utcnow()
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._fail("save role profile", user_id, e) from e
        logger.info("Saved role profile", extra={"user_id": user_id, "item_count": profile.skill_count()})
        return user

    async def save_growth_items(self, user_id: int, drafts: Sequence[GrowthItemDraft]) -> List[GrowthItem]:
        """Insert a whole growth plan in a single transaction."""
        now = utcnow()
        items = [
            GrowthItem(
                user_id=user_id,
                type=draft.type,
                title=draft.title,
                description=draft.description,
                link=draft.link,
                status="pending",
                created_at=now,
                updated_at=now,
            )
            for draft in drafts
        ]
        if not items:
            return []
        try:
            self.db.add_all(items)
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._fail("save growth plan", user_id, e) from e
        logger.info("Saved growth items", extra={"user_id": user_id, "item_count": len(items)})
        return items

    def _insert_for_dialect(self):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert
        if dialect == "sqlite":
            return sqlite_insert
        raise StorageError(f"Upsert not supported on {dialect}")

    async def upsert_skill_assessment(self, user_id: int, data: SkillAssessmentCreate) -> SkillAssessment:
        """
        Insert-or-update keyed on (user_id, skill_id) using the database's
        native ON CONFLICT, so concurrent saves never duplicate a row.
        """
        insert = self._insert_for_dialect()
        now = utcnow()
        stmt = insert(SkillAssessment).values(
            user_id=user_id,
            skill_id=data.skill_id,
            area=data.area,
            name=data.name,
            target_level=data.target_level,
            current_level=data.current_level,
            examples=data.examples,
            recommended_resources=data.recommended_resources,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[SkillAssessment.user_id, SkillAssessment.skill_id],
            set_={
                "current_level": stmt.excluded.current_level,
                "examples": stmt.excluded.examples,
                "updated_at": stmt.excluded.updated_at,
            },
        ).returning(SkillAssessment)

        try:
            result = await self.db.execute(stmt.execution_options(populate_existing=True))
            assessment = result.scalar_one()
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._fail("save skill assessment", user_id, e) from e
        return assessment

    async def save_mental_model_session(self, user_id: int, prompt: str, models: Sequence[MentalModel]) -> MentalModelSession:
        session = MentalModelSession(
            user_id=user_id,
            prompt=prompt,
            models=[m.to_wire() for m in models],
            created_at=utcnow(),
        )
        try:
            self.db.add(session)
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._fail("save mental model session", user_id, e) from e
        logger.info(f"Saved mental model session {session.id}", extra={"user_id": user_id})
        return session

    async def save_reflection(self, user_id: int, data: ReflectionCreate) -> ReflectionEntry:
        entry = ReflectionEntry(user_id=user_id, content=data.content, type=data.type, created_at=utcnow())
        try:
            self.db.add(entry)
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._fail("save reflection", user_id, e) from e
        return entry

    async def update_growth_item_status(self, user_id: int, item_id: int, status: str) -> GrowthItem:
        """Status transition, scoped to the owner: other users' items are NotFound."""
        try:
            result = await self.db.execute(
                select(GrowthItem).where(GrowthItem.id == item_id, GrowthItem.user_id == user_id)
            )
            item = result.scalar_one_or_none()
            if item is None:
                raise NotFound("growth item not found")
            item.status = status
            item.updated_at = utcnow()
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._fail("update growth item", user_id, e) from e
        return item
