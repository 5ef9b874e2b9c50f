"""
PROMPT BUILDER TESTS

Prompts are pure functions of their input and always pin down the JSON shape.
"""
import json

from growthforge.schemas.growth import SkillGap
from growthforge.services import prompt_builder
from growthforge.services.prompt_builder import JSON_ONLY


def _gap(skill, gap, area="Leadership"):
    return SkillGap(skill=skill, area=area, gap=gap, current_level=5 - gap, target_level=5)


class TestRoleProfilePrompt:
    """Role profile prompt contract."""

    def test_is_deterministic(self):
        a = prompt_builder.role_profile_prompt("Staff engineer at a startup")
        b = prompt_builder.role_profile_prompt("Staff engineer at a startup")
        assert a == b

    def test_contains_shape_and_json_only(self):
        prompt = prompt_builder.role_profile_prompt("Product manager")
        assert '"skillAreas"' in prompt.system
        assert '"targetLevel"' in prompt.system
        assert JSON_ONLY in prompt.system
        assert prompt.user == "Role description: Product manager"

    def test_language_instruction_keeps_ids_english(self):
        prompt = prompt_builder.role_profile_prompt("Jefe de producto", language="Spanish")
        assert "in Spanish" in prompt.system
        assert '"id" in English' in prompt.system

    def test_no_language_section_without_language(self):
        assert "Language:" not in prompt_builder.role_profile_prompt("Designer").system

    def test_messages_are_system_then_user(self):
        messages = prompt_builder.role_profile_prompt("Designer").to_messages()
        assert [m["role"] for m in messages] == ["system", "user"]


class TestGrowthPlanPrompt:
    """Growth plan prompt contract."""

    def test_largest_gaps_first(self):
        prompt = prompt_builder.growth_plan_prompt([_gap("Planning", 1), _gap("Coaching", 3), _gap("Hiring", 2)])
        payload = json.loads(prompt.user.split(": ", 1)[1])
        assert [g["skill"] for g in payload] == ["Coaching", "Hiring", "Planning"]
        assert payload[0]["currentLevel"] == 2

    def test_item_bounds_in_system_message(self):
        prompt = prompt_builder.growth_plan_prompt([_gap("Planning", 1)], min_items=2, max_items=4)
        assert "between 2 and 4 items" in prompt.system
        assert "book, course, habit, mission" in prompt.system


class TestMentalModelsPrompt:
    """Mental models prompt contract."""

    def test_demands_exactly_five(self):
        prompt = prompt_builder.mental_models_prompt("  Should I take the new job?  ")
        assert "exactly 5" in prompt.system
        assert "Opportunity Cost" in prompt.system
        assert prompt.user == "Should I take the new job?"

    def test_language_detection_prompt_passes_text_through(self):
        prompt = prompt_builder.language_detection_prompt("Bonjour tout le monde")
        assert prompt.user == "Bonjour tout le monde"
        assert '"language"' in prompt.system
