"""Answer template library used as a last-resort question fallback.

The pipeline only needs ``find_matching_template``; any object providing it
can be passed to the orchestrator. DefaultTemplateLibrary ships a fixed set
of generic answer templates keyed by question category.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from ..models import Context
from .config import TEMPLATE_EXACT_CONFIDENCE
from .fuzzy import fuzzy_match
from .patterns import match_question_by_pattern

logger = logging.getLogger("autofill.classifier.templates")

__all__ = [
    "DEFAULT_TEMPLATES",
    "AnswerTemplate",
    "DefaultTemplateLibrary",
    "TemplateLibrary",
    "TemplateMatch",
    "template_values",
]

_VARIABLE = re.compile(r"\{(\w+)\}")


@dataclass(frozen=True)
class AnswerTemplate:
    text: str
    category: str

    @property
    def variables(self) -> tuple[str, ...]:
        """Placeholder names in order of first appearance."""
        return tuple(dict.fromkeys(_VARIABLE.findall(self.text)))


@dataclass(frozen=True)
class TemplateMatch:
    """A template chosen for a question.

    Attributes:
        key: Template key (same vocabulary as question categories)
        category: Template category (motivation, qualifications, ...)
        match_confidence: 0.9 for a regex hit, similarity * 0.7 for a fuzzy hit
    """

    key: str
    category: str
    match_confidence: float


@runtime_checkable
class TemplateLibrary(Protocol):
    def find_matching_template(self, text: str) -> Optional[TemplateMatch]:
        ...


DEFAULT_TEMPLATES: dict[str, AnswerTemplate] = {
    "whyInterested": AnswerTemplate(
        "I am interested in this position because of the opportunity to contribute "
        "to {company}'s mission while developing my skills in {field}. The role "
        "aligns with my career goals and passion for {industry}.",
        "motivation",
    ),
    "whyQualified": AnswerTemplate(
        "I am qualified for this role due to my {experience} years of experience in "
        "{field}, combined with my proven track record in {skills}. My background in "
        "{education} has prepared me to tackle the challenges this position presents.",
        "qualifications",
    ),
    "careerGoals": AnswerTemplate(
        "My career goals include advancing my expertise in {field} while taking on "
        "increasing responsibilities in {area}. I aim to contribute to innovative "
        "projects and grow into a role where I can mentor others.",
        "goals",
    ),
    "greatestStrength": AnswerTemplate(
        "My greatest strength is my ability to {skill}, which has enabled me to "
        "{achievement}. This strength has been particularly valuable in {context}.",
        "strengths",
    ),
    "greatestWeakness": AnswerTemplate(
        "An area I'm working to improve is {weakness}. I've been addressing this by "
        "{improvement_method} and have already seen progress in {specific_example}.",
        "weaknesses",
    ),
    "workStyle": AnswerTemplate(
        "I work best in environments that are {environment_type} and encourage "
        "{work_values}. I thrive when I can {preferred_activities}.",
        "work_style",
    ),
    "teamwork": AnswerTemplate(
        "I approach teamwork by {approach}, ensuring that {team_value}. My experience "
        "has taught me that the best results come from {team_philosophy}.",
        "teamwork",
    ),
    "leadership": AnswerTemplate(
        "My leadership style focuses on {leadership_style}, emphasizing {core_values}. "
        "I've successfully {leadership_example}.",
        "leadership",
    ),
    "challenges": AnswerTemplate(
        "When facing challenges, I {approach} and focus on {strategy}. A specific "
        "example of this approach was when {example}.",
        "problem_solving",
    ),
    "motivation": AnswerTemplate(
        "What motivates me most is {primary_motivation}. I find great satisfaction in "
        "{satisfaction_source} and am energized by {energy_source}.",
        "motivation",
    ),
    "coverLetter": AnswerTemplate(
        "Dear Hiring Manager,\n\nI am writing to express my strong interest in the "
        "{position} role at {company}. With {experience} years of experience in "
        "{field}, I am confident that my skills make me a strong candidate.\n\n"
        "{body_paragraph}\n\nSincerely,\n{name}",
        "cover_letter",
    ),
}


class DefaultTemplateLibrary:
    """In-memory template library with regex-then-fuzzy matching."""

    def __init__(self, templates: Optional[dict[str, AnswerTemplate]] = None):
        self.templates = dict(DEFAULT_TEMPLATES if templates is None else templates)

    def get(self, key: str) -> Optional[AnswerTemplate]:
        return self.templates.get(key)

    def find_matching_template(self, text: str) -> Optional[TemplateMatch]:
        """Find the template best suited to a question.

        Regex matches score 0.9; otherwise the fuzzy keyword match is used
        with its own confidence. Categories without a template never match.
        """
        if not text or not text.strip():
            return None

        key = match_question_by_pattern(text)
        if key is not None and key in self.templates:
            logger.debug("template_match", extra={"key": key, "kind": "pattern"})
            return TemplateMatch(
                key=key,
                category=self.templates[key].category,
                match_confidence=TEMPLATE_EXACT_CONFIDENCE,
            )

        fuzzy = fuzzy_match(text)
        if fuzzy is not None and fuzzy[0] in self.templates:
            key, confidence = fuzzy
            logger.debug("template_match", extra={"key": key, "kind": "fuzzy"})
            return TemplateMatch(
                key=key,
                category=self.templates[key].category,
                match_confidence=confidence,
            )

        return None

    def fill(self, key: str, values: dict[str, str]) -> str:
        """Render a template, leaving unknown placeholders untouched.

        Raises:
            KeyError: If no template exists for ``key``.
        """
        template = self.templates[key]
        return _VARIABLE.sub(
            lambda m: values.get(m.group(1), m.group(0)), template.text
        )

    def populate(self, key: str, context: Context) -> str:
        """Render a template from page and profile context.

        Variables with no value become ``[name]`` so the draft shows what
        still needs writing.

        Raises:
            KeyError: If no template exists for ``key``.
        """
        known = template_values(context)
        values = {name: known.get(name) or f"[{name}]" for name in self.templates[key].variables}
        return self.fill(key, values)


def template_values(context: Context) -> dict[str, str]:
    """Non-empty template variables known from the page and the profile."""
    values = {"company": context.company, "position": context.position}
    profile = context.profile
    if profile is not None:
        values.update(
            name=profile.full_name if profile.first_name and profile.last_name else "",
            experience=profile.years_experience,
            field=profile.current_title,
        )
    return {name: value for name, value in values.items() if value}
