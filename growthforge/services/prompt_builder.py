"""
Prompt construction for every generation call.

Each builder returns a Prompt whose system message pins down the exact JSON
shape, the cardinality rules and a JSON-only instruction. Builders are pure:
the same input always yields the same Prompt.
"""
import json
from dataclasses import dataclass
from typing import Iterable, List, Optional

from growthforge.schemas.growth import SkillGap
from growthforge.schemas.mental_models import MENTAL_MODEL_COUNT

JSON_ONLY = "Return ONLY valid JSON. Do not include any text, markdown or code fences before or after the JSON."


@dataclass(frozen=True)
class Prompt:
    system: str
    user: str

    def to_messages(self) -> List[dict]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


# ---------------------------------------------------------------------------
# Language detection (optional first step of role profile generation)
# ---------------------------------------------------------------------------

def language_detection_prompt(text: str) -> Prompt:
    system = f"""You identify the dominant natural language of a piece of text.

Return JSON in this exact format:
{{
  "language": "English name of the language, e.g. Spanish",
  "code": "ISO 639-1 code, e.g. es"
}}

{JSON_ONLY}"""
    return Prompt(system=system, user=text)


# ---------------------------------------------------------------------------
# Role profile
# ---------------------------------------------------------------------------

ROLE_PROFILE_SHAPE = """{
  "archetype": "Role Title",
  "skillAreas": [
    {
      "area": "Area Name",
      "skills": [
        {
          "id": "unique_skill_id",
          "name": "Skill Name",
          "description": "Brief description",
          "targetLevel": 3
        }
      ]
    }
  ]
}"""


def role_profile_prompt(role_description: str, language: Optional[str] = None) -> Prompt:
    language_rules = ""
    if language:
        language_rules = f"""
Language:
- Write "archetype", "area", "name" and "description" in {language}.
- Always write "id" in English, lowercase ASCII snake_case (letters, digits and underscores only), whatever the language."""

    system = f"""You are an expert in professional development and skill mapping. Given a role description, create a comprehensive skill map.

Rules:
- 4-6 skill areas, each containing 3-5 specific skills.
- Each skill has a target proficiency level for this role: an integer from 1 (novice) to 5 (expert).
- Every "id" is unique across the whole map and written in lowercase snake_case, e.g. "stakeholder_management".
- "archetype" is a short label summarizing the role.{language_rules}

Return JSON in this exact format:
{ROLE_PROFILE_SHAPE}

{JSON_ONLY}"""
    return Prompt(system=system, user=f"Role description: {role_description.strip()}")


# ---------------------------------------------------------------------------
# Growth plan
# ---------------------------------------------------------------------------

GROWTH_PLAN_SHAPE = """{
  "growthItems": [
    {
      "type": "book|course|habit|mission",
      "title": "Specific Title",
      "description": "Detailed description",
      "link": "URL if applicable or null"
    }
  ]
}"""


def growth_plan_prompt(skill_gaps: Iterable[SkillGap], min_items: int = 3, max_items: int = 8) -> Prompt:
    # Largest gaps first so the model prioritizes them
    gaps = sorted(skill_gaps, key=lambda g: (-g.gap, g.area, g.skill))
    payload = json.dumps([g.to_wire() for g in gaps], ensure_ascii=False)

    system = f"""You are a professional development coach. Given skill gaps, create a personalized growth plan with specific, actionable items.

Types:
- book: Specific book recommendations
- course: Online courses or training programs
- habit: Daily/weekly practices to develop
- mission: Specific projects or challenges to undertake

Rules:
- Provide between {min_items} and {max_items} items total, prioritizing the biggest skill gaps.
- "type" must be exactly one of: book, course, habit, mission.
- "title" and "description" must not be empty.
- "link" is a URL string when a real, well-known resource exists, otherwise null. Never invent URLs.

Return JSON in this exact format:
{GROWTH_PLAN_SHAPE}

{JSON_ONLY}"""
    return Prompt(system=system, user=f"Skill gaps to address: {payload}")


# ---------------------------------------------------------------------------
# Mental models coach
# ---------------------------------------------------------------------------

MENTAL_MODEL_CATALOGUE = (
    "First Principles Thinking",
    "Inversion (thinking backwards)",
    "Opportunity Cost",
    "Second-Order Thinking",
    "Margin of Diminishing Returns",
    "Occam's Razor",
    "Hanlon's Razor",
    "Confirmation Bias",
    "Availability Heuristic",
    "Parkinson's Law",
    "Loss Aversion",
    "Switching Costs",
    "Circle of Competence",
    "Regret Minimization",
    "Leverage Points",
    "Pareto Principle (80/20 Rule)",
    "Lindy Effect",
    "Game Theory",
    "System 1 vs System 2 Thinking",
    "Antifragility",
)

MENTAL_MODELS_SHAPE = """{
  "models": [
    {
      "name": "Mental Model Name",
      "explanation": "Brief one-sentence explanation of the model",
      "newPerspective": "How this model reframes their situation",
      "keyInsight": "The non-obvious truth this model exposes",
      "practicalAction": "One specific action they can take based on this model"
    }
  ]
}"""


def mental_models_prompt(prompt: str) -> Prompt:
    catalogue = "\n".join(f"- {name}" for name in MENTAL_MODEL_CATALOGUE)
    system = f"""You are a strategic thinking coach specializing in mental models.

Choose exactly {MENTAL_MODEL_COUNT} mental models, the most relevant ones from this list:
{catalogue}

For each mental model:
1. Name & Brief Explanation - name the model and explain it in one sentence
2. New Perspective - show how this model reframes the user's situation
3. Key Insight - reveal the non-obvious truth this model exposes
4. Practical Action - suggest one specific action they can take

Guidelines:
- Prioritize models that generate the most surprising insights
- Make each perspective genuinely different and thought-provoking
- Be concise but profound
- Every field of every model must be filled in

The "models" array must contain exactly {MENTAL_MODEL_COUNT} entries. Return JSON in this exact format:
{MENTAL_MODELS_SHAPE}

{JSON_ONLY}"""
    return Prompt(system=system, user=prompt.strip())
