"""
Structural validation of parsed AI output.

The pydantic models in growthforge.schemas are the schema descriptors. All
violations are collected for the log; the call fails on any of them and the
caller only ever gets back the normalized model, never the raw tree.
"""
from typing import Any, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from growthforge.config import Settings, get_settings
from growthforge.schemas.growth import GrowthItemDraft, GrowthPlanDraft
from growthforge.schemas.mental_models import MentalModel, MentalModelDraft
from growthforge.schemas.role_profile import RoleProfile
from growthforge.services.errors import SchemaViolation
from growthforge.utils.logger import get_logger

logger = get_logger("validator")

M = TypeVar("M", bound=BaseModel)


def field_path(loc: Sequence[Any]) -> str:
    """('skillAreas', 0, 'skills', 1, 'targetLevel') -> 'skillAreas[0].skills[1].targetLevel'"""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path or "$"


def _fail(field: str, reason: str, violations: Optional[List[dict]] = None, entity: str = "") -> SchemaViolation:
    violations = violations or [{"field": field, "reason": reason}]
    logger.warning(
        "validator.schema_violation",
        extra={"operation": entity, "field": field, "reason": reason, "item_count": len(violations)},
    )
    for v in violations[1:10]:
        logger.debug(f"  also: {v['field']}: {v['reason']}")
    return SchemaViolation(field, reason, violations)


def validate(tree: Any, schema: Type[M], entity: str = "") -> M:
    """Validate an untrusted JSON tree against a schema model."""
    if not isinstance(tree, dict):
        raise _fail("$", f"expected a JSON object, got {type(tree).__name__}", entity=entity)

    try:
        return schema.model_validate(tree)
    except ValidationError as e:
        violations = [
            {"field": field_path(err["loc"]), "reason": err["msg"]}
            for err in e.errors()
        ]
        first = violations[0]
        raise _fail(first["field"], first["reason"], violations, entity=entity) from e


def validate_role_profile(tree: Any) -> RoleProfile:
    profile = validate(tree, RoleProfile, entity="role_profile")
    areas = len(profile.skill_areas)
    if not 4 <= areas <= 6:
        # Advisory: 4-6 areas is asked of the generator, not enforced
        logger.info(f"Role profile has {areas} skill areas (requested 4-6)")
    return profile


def validate_growth_plan(tree: Any, gap_count: int, settings: Optional[Settings] = None) -> List[GrowthItemDraft]:
    settings = settings or get_settings()
    items = validate(tree, GrowthPlanDraft, entity="growth_plan").growth_items
    count = len(items)
    low, high = settings.growth_plan_min_items, settings.growth_plan_max_items

    if gap_count == 0:
        if count:
            logger.info(f"Growth plan returned {count} items for zero skill gaps")
        return items

    if settings.growth_plan_strict_count and not low <= count <= high:
        raise _fail("growthItems", f"expected between {low} and {high} items, got {count}", entity="growth_plan")

    if count == 0:
        logger.warning(
            "validator.low_confidence",
            extra={"operation": "growth_plan", "item_count": 0, "reason": f"no items for {gap_count} skill gaps"},
        )
    elif not low <= count <= high:
        logger.info(f"Growth plan has {count} items (requested {low}-{high})")
    return items


def validate_mental_models(tree: Any) -> List[MentalModel]:
    return validate(tree, MentalModelDraft, entity="mental_models").models
