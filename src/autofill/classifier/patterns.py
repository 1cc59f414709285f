"""Regex tables for free-text fields and application questions.

Category order and expression order are both significant: the first category
with any matching expression wins.
"""

import logging
import re
from typing import Optional

from ..models import FieldDescriptor, FieldPurpose

logger = logging.getLogger("autofill.classifier.patterns")

__all__ = [
    "FIELD_PATTERNS",
    "QUESTION_PATTERNS",
    "match_field_by_pattern",
    "match_question_by_pattern",
]

# Free-text field purposes, matched against name/id/placeholder/label
FIELD_PATTERNS: dict[FieldPurpose, list[str]] = {
    FieldPurpose.WHY_INTERESTED: [
        r"why.*interested",
        r"why.*want.*work",
        r"why.*apply",
        r"why.*company",
        r"motivation.*position",
    ],
    FieldPurpose.WHY_QUALIFIED: [
        r"why.*qualified",
        r"why.*right.*candidate",
        r"what.*makes.*qualified",
        r"relevant.*experience",
    ],
    FieldPurpose.CAREER_GOALS: [
        r"career.*goals",
        r"professional.*goals",
        r"future.*plans",
        r"where.*see.*yourself",
    ],
    FieldPurpose.ADDITIONAL_INFO: [
        r"additional.*info",
        r"additional.*comments",
        r"anything.*else",
        r"tell.*us.*more",
    ],
}

# Question categories, keyed by template-library key
QUESTION_PATTERNS: dict[str, list[str]] = {
    "whyInterested": [
        r"why.*interested.*position",
        r"why.*want.*work.*here",
        r"why.*apply.*job",
        r"what.*attracts.*you.*role",
        r"motivation.*applying",
        r"why.*chose.*company",
    ],
    "whyQualified": [
        r"why.*qualified",
        r"what.*makes.*qualified",
        r"why.*right.*candidate",
        r"why.*should.*hire",
        r"what.*qualifications",
        r"relevant.*experience",
    ],
    "careerGoals": [
        r"career.*goals",
        r"professional.*goals",
        r"where.*see.*yourself",
        r"future.*plans",
        r"career.*aspirations",
        r"long.*term.*goals",
    ],
    "greatestStrength": [
        r"greatest.*strength",
        r"biggest.*strength",
        r"key.*strength",
        r"what.*strength",
        r"top.*strength",
        r"main.*strength",
    ],
    "greatestWeakness": [
        r"greatest.*weakness",
        r"biggest.*weakness",
        r"area.*improvement",
        r"what.*weakness",
        r"areas.*develop",
        r"growth.*areas",
    ],
    "workStyle": [
        r"work.*style",
        r"working.*style",
        r"how.*work.*best",
        r"preferred.*work.*environment",
        r"ideal.*work.*environment",
    ],
    "teamwork": [
        r"teamwork",
        r"work.*team",
        r"team.*player",
        r"collaboration",
        r"team.*environment",
        r"work.*others",
    ],
    "leadership": [
        r"leadership",
        r"leadership.*style",
        r"lead.*team",
        r"management.*style",
        r"leading.*others",
    ],
    "challenges": [
        r"challenges",
        r"difficult.*situation",
        r"problem.*solving",
        r"overcome.*obstacle",
        r"handle.*pressure",
        r"deal.*with.*conflict",
    ],
    "motivation": [
        r"what.*motivates",
        r"motivation",
        r"what.*drives.*you",
        r"what.*inspires",
        r"passionate.*about",
    ],
}

_COMPILED_FIELD_PATTERNS = {
    purpose: [re.compile(p) for p in patterns]
    for purpose, patterns in FIELD_PATTERNS.items()
}

_COMPILED_QUESTION_PATTERNS = {
    category: [re.compile(p) for p in patterns]
    for category, patterns in QUESTION_PATTERNS.items()
}


def match_field_by_pattern(field: FieldDescriptor) -> Optional[FieldPurpose]:
    """Match a free-text field's combined text against FIELD_PATTERNS.

    Examples:
        >>> match_field_by_pattern(FieldDescriptor(kind="textarea", label="Why do you want to work here?"))
        <FieldPurpose.WHY_INTERESTED: 'whyInterested'>
    """
    text = field.search_text
    for purpose, patterns in _COMPILED_FIELD_PATTERNS.items():
        for pattern in patterns:
            if pattern.search(text):
                logger.debug(
                    "field_pattern_match",
                    extra={"purpose": purpose.value, "pattern": pattern.pattern},
                )
                return purpose
    return None


def match_question_by_pattern(text: str) -> Optional[str]:
    """Match question text against QUESTION_PATTERNS.

    Returns:
        The category key (e.g. "whyInterested"), or None.
    """
    if not text:
        return None

    normalized = text.lower().strip()
    for category, patterns in _COMPILED_QUESTION_PATTERNS.items():
        for pattern in patterns:
            if pattern.search(normalized):
                logger.debug(
                    "question_pattern_match",
                    extra={"category": category, "pattern": pattern.pattern},
                )
                return category
    return None
