"""
Generation pipeline shared by role profiles, growth plans and mental models.

Flow per request:
  Idle -> Prompting -> AwaitingLLM -> Parsing -> Validating -> Persisting -> Done
with Failed(kind) reachable from any step. Nothing is written unless every
step before Persisting succeeded, and once Persisting starts it runs to
completion even if the request is cancelled.
"""
import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, List, Optional, TypeVar

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from growthforge.config import Settings, get_settings
from growthforge.models.growth_item import GrowthItem
from growthforge.models.mental_model_session import MentalModelSession
from growthforge.models.skill_assessment import SkillAssessment
from growthforge.models.user import User
from growthforge.schemas.common import NonEmptyStr, CamelModel
from growthforge.schemas.growth import SkillGap
from growthforge.schemas.role_profile import RoleProfile
from growthforge.services import prompt_builder, schema_validator
from growthforge.services.errors import (
    ErrorKind,
    ForgeError,
    LLMError,
    NotFound,
    StorageError,
    from_llm_error,
)
from growthforge.services.llm_client import LLMClient, get_llm_client
from growthforge.services.persister import Persister
from growthforge.services.prompt_builder import Prompt
from growthforge.services.response_parser import parse_json
from growthforge.services.sessions import Principal
from growthforge.utils.logger import get_logger
from growthforge.utils.metrics import inc

logger = get_logger("pipeline")

T = TypeVar("T")


class PipelineStage(str, Enum):
    IDLE = "idle"
    PROMPTING = "prompting"
    AWAITING_LLM = "awaiting_llm"
    PARSING = "parsing"
    VALIDATING = "validating"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineRun:
    """Bookkeeping for one generation request"""
    operation: str
    user_id: int
    stage: PipelineStage = PipelineStage.IDLE
    failure: Optional[ErrorKind] = None
    failed_at: Optional[PipelineStage] = None
    history: List[PipelineStage] = field(default_factory=lambda: [PipelineStage.IDLE])

    def advance(self, stage: PipelineStage) -> None:
        self.stage = stage
        self.history.append(stage)
        logger.debug(
            f"{self.operation} -> {stage.value}",
            extra={"operation": self.operation, "stage": stage.value, "user_id": self.user_id},
        )

    def fail(self, kind: ErrorKind) -> None:
        self.failed_at = self.stage
        self.failure = kind
        self.stage = PipelineStage.FAILED
        self.history.append(PipelineStage.FAILED)
        inc(f"pipeline.{self.operation}.failed.{kind.value}")
        logger.warning(
            f"{self.operation} failed",
            extra={
                "operation": self.operation,
                "stage": self.failed_at.value,
                "error_kind": kind.value,
                "user_id": self.user_id,
            },
        )


@dataclass
class GenerationResult(Generic[T]):
    value: T
    run: PipelineRun
    language: Optional[str] = None
    language_fallback: bool = False


class _DetectedLanguage(CamelModel):
    language: NonEmptyStr
    code: Optional[str] = None


class GenerationPipeline:
    """
    Orchestrates PromptBuilder -> LLMClient -> ResponseParser -> SchemaValidator -> Persister.

    One instance per request: it holds the request's database session.
    """

    def __init__(self, db: AsyncSession, llm: Optional[LLMClient] = None, settings: Optional[Settings] = None):
        self.db = db
        self.llm = llm or get_llm_client()
        self.settings = settings or get_settings()
        self.persister = Persister(db)
        self.last_run: Optional[PipelineRun] = None

    # ------------------------------------------------------------------
    # Shared step runner
    # ------------------------------------------------------------------

    async def _read_failed(self, action: str, user_id: int, exc: Exception) -> StorageError:
        await self.db.rollback()
        logger.error(
            f"Failed to {action}",
            extra={"user_id": user_id, "error": str(exc)[:300], "error_type": type(exc).__name__},
        )
        return StorageError(f"Failed to {action}")

    async def _persist_to_completion(self, write: Awaitable[T]) -> T:
        task = asyncio.ensure_future(write)
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            # Let the write finish (it commits or rolls back as a unit), then propagate
            await task
            raise

    async def _run(
        self,
        run: PipelineRun,
        build_prompt: Callable[[], Prompt],
        validate: Callable[[Any], Any],
        persist: Callable[[Any], Awaitable[T]],
        temperature: float = 0.7,
        max_tokens: int = 1500,
    ) -> T:
        self.last_run = run
        try:
            run.advance(PipelineStage.PROMPTING)
            prompt = build_prompt()

            run.advance(PipelineStage.AWAITING_LLM)
            raw = await self.llm.complete(
                prompt,
                temperature=temperature,
                max_tokens=max_tokens,
                operation=run.operation,
            )

            run.advance(PipelineStage.PARSING)
            tree = parse_json(raw)

            run.advance(PipelineStage.VALIDATING)
            validated = validate(tree)

            run.advance(PipelineStage.PERSISTING)
            stored = await self._persist_to_completion(persist(validated))
        except LLMError as exc:
            error = from_llm_error(exc)
            run.fail(error.kind)
            raise error from exc
        except ForgeError as exc:
            run.fail(exc.kind)
            raise
        except asyncio.CancelledError:
            logger.info(
                f"{run.operation} cancelled",
                extra={"operation": run.operation, "stage": run.stage.value, "user_id": run.user_id},
            )
            raise

        run.advance(PipelineStage.DONE)
        inc(f"pipeline.{run.operation}.done")
        return stored

    # ------------------------------------------------------------------
    # Role profile
    # ------------------------------------------------------------------

    async def detect_language(self, text: str):
        """
        Best-effort dominant-language detection for free text.

        Returns (language, fallback_used). Any failure falls back to the
        configured default language and is logged, never raised.
        """
        try:
            raw = await self.llm.complete(
                prompt_builder.language_detection_prompt(text),
                temperature=0.0,
                max_tokens=50,
                operation="language_detection",
            )
            detected = _DetectedLanguage.model_validate(parse_json(raw))
            return detected.language, False
        except (LLMError, ForgeError, ValidationError) as exc:
            inc("pipeline.language_detection.fallback")
            logger.warning(
                "Language detection failed, using default",
                extra={
                    "language": self.settings.default_language,
                    "language_fallback": True,
                    "error_type": type(exc).__name__,
                },
            )
            return self.settings.default_language, True

    async def generate_role_profile(self, principal: Principal, role_description: str) -> GenerationResult[RoleProfile]:
        run = PipelineRun("role_profile", principal.user_id)
        self.last_run = run
        role_description = role_description.strip()

        try:
            user = await self.db.get(User, principal.user_id)
        except SQLAlchemyError as e:
            run.fail(ErrorKind.STORAGE_ERROR)
            raise await self._read_failed("load user", principal.user_id, e) from e
        if user is None:
            raise NotFound("user not found")

        language, fallback = None, False
        if self.settings.language_detection_enabled:
            language, fallback = await self.detect_language(role_description)

        async def persist(profile: RoleProfile) -> RoleProfile:
            await self.persister.save_role_profile(principal.user_id, role_description, profile)
            return profile

        profile = await self._run(
            run,
            build_prompt=lambda: prompt_builder.role_profile_prompt(role_description, language),
            validate=schema_validator.validate_role_profile,
            persist=persist,
            temperature=0.7,
            max_tokens=1500,
        )
        logger.info(
            f"Generated role profile '{profile.archetype}'",
            extra={"user_id": principal.user_id, "language": language, "language_fallback": fallback},
        )
        return GenerationResult(profile, run, language=language, language_fallback=fallback)

    # ------------------------------------------------------------------
    # Growth plan
    # ------------------------------------------------------------------

    async def skill_gaps(self, user_id: int) -> List[SkillGap]:
        try:
            result = await self.db.execute(
                select(SkillAssessment).where(SkillAssessment.user_id == user_id)
            )
        except SQLAlchemyError as e:
            raise await self._read_failed("load skill assessments", user_id, e) from e
        return [
            SkillGap(
                skill=a.name,
                area=a.area,
                gap=a.gap,
                current_level=a.current_level,
                target_level=a.target_level,
            )
            for a in result.scalars().all()
            if a.current_level < a.target_level
        ]

    async def generate_growth_plan(self, principal: Principal) -> GenerationResult[List[GrowthItem]]:
        run = PipelineRun("growth_plan", principal.user_id)
        self.last_run = run
        try:
            gaps = await self.skill_gaps(principal.user_id)
        except StorageError:
            run.fail(ErrorKind.STORAGE_ERROR)
            raise
        logger.info(f"Found {len(gaps)} skill gaps", extra={"user_id": principal.user_id, "item_count": len(gaps)})

        if not gaps:
            # Nothing to improve: empty plan, no AI call, no write
            run.advance(PipelineStage.DONE)
            return GenerationResult([], run)

        items = await self._run(
            run,
            build_prompt=lambda: prompt_builder.growth_plan_prompt(
                gaps, self.settings.growth_plan_min_items, self.settings.growth_plan_max_items
            ),
            validate=lambda tree: schema_validator.validate_growth_plan(tree, len(gaps), self.settings),
            persist=lambda drafts: self.persister.save_growth_items(principal.user_id, drafts),
            temperature=0.7,
            max_tokens=1500,
        )
        return GenerationResult(items, run)

    # ------------------------------------------------------------------
    # Mental models coach
    # ------------------------------------------------------------------

    async def coach_mental_models(self, principal: Principal, prompt: str) -> GenerationResult[MentalModelSession]:
        run = PipelineRun("mental_models", principal.user_id)
        prompt = prompt.strip()

        session = await self._run(
            run,
            build_prompt=lambda: prompt_builder.mental_models_prompt(prompt),
            validate=schema_validator.validate_mental_models,
            persist=lambda models: self.persister.save_mental_model_session(principal.user_id, prompt, models),
            temperature=0.7,
            max_tokens=2000,
        )
        return GenerationResult(session, run)
