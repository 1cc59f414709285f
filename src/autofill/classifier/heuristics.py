"""Keyword heuristics for platform-independent field classification.

Every purpose owns four predicate groups: name, placeholder and label
substrings plus the accepted control kinds. All substring groups are matched
against the field's combined search text.

Confidence = matched predicates / total predicates for that purpose. The kind
group scores at most one point but counts every accepted kind in the
denominator.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..models import FieldDescriptor, FieldPurpose
from .config import HEURISTIC_CONFIDENCE_CAP, HEURISTIC_THRESHOLD

logger = logging.getLogger("autofill.classifier.heuristics")

__all__ = [
    "HEURISTIC_PATTERNS",
    "HeuristicSuggestion",
    "KeywordSet",
    "get_suggestions",
    "score_by_heuristics",
]

# Weights used when ranking suggestions for manual review
SUGGESTION_NAME_WEIGHT = 0.3
SUGGESTION_LABEL_WEIGHT = 0.4
SUGGESTION_KIND_WEIGHT = 0.2
SUGGESTION_THRESHOLD = 0.1


@dataclass(frozen=True)
class KeywordSet:
    names: tuple[str, ...]
    placeholders: tuple[str, ...]
    labels: tuple[str, ...]
    kinds: tuple[str, ...]

    @property
    def max_score(self) -> int:
        return (
            len(self.names) + len(self.placeholders) + len(self.labels) + len(self.kinds)
        )

    def score(self, field: FieldDescriptor) -> int:
        text = field.search_text
        matched = sum(1 for keyword in self.names if keyword in text)
        matched += sum(1 for keyword in self.placeholders if keyword in text)
        matched += sum(1 for keyword in self.labels if keyword in text)
        if field.kind in self.kinds:
            matched += 1
        return matched


@dataclass(frozen=True)
class HeuristicSuggestion:
    """A candidate purpose offered for manual review."""

    purpose: FieldPurpose
    confidence: float
    reasons: tuple[str, ...]


# Declaration order breaks confidence ties
HEURISTIC_PATTERNS: dict[FieldPurpose, KeywordSet] = {
    FieldPurpose.FIRST_NAME: KeywordSet(
        names=("first_name", "firstname", "fname", "given_name"),
        placeholders=("first name", "given name"),
        labels=("first name", "given name", "forename"),
        kinds=("text",),
    ),
    FieldPurpose.LAST_NAME: KeywordSet(
        names=("last_name", "lastname", "lname", "surname", "family_name"),
        placeholders=("last name", "surname"),
        labels=("last name", "surname", "family name"),
        kinds=("text",),
    ),
    FieldPurpose.FULL_NAME: KeywordSet(
        names=("full_name", "fullname", "name"),
        placeholders=("full name", "your name"),
        labels=("full name", "your name"),
        kinds=("text",),
    ),
    FieldPurpose.EMAIL: KeywordSet(
        names=("email", "e_mail", "mail"),
        placeholders=("email", "e-mail"),
        labels=("email", "e-mail"),
        kinds=("email", "text"),
    ),
    FieldPurpose.PHONE: KeywordSet(
        names=("phone", "telephone", "mobile", "cell"),
        placeholders=("phone", "mobile"),
        labels=("phone", "telephone", "mobile"),
        kinds=("tel", "text"),
    ),
    FieldPurpose.ADDRESS: KeywordSet(
        names=("address", "street", "addr"),
        placeholders=("street address",),
        labels=("street address", "home address", "address line"),
        kinds=("text",),
    ),
    FieldPurpose.CITY: KeywordSet(
        names=("city", "town"),
        placeholders=("city",),
        labels=("city", "town"),
        kinds=("text",),
    ),
    FieldPurpose.STATE: KeywordSet(
        names=("state", "province", "region"),
        placeholders=("state",),
        labels=("state", "province"),
        kinds=("text", "select-one"),
    ),
    FieldPurpose.ZIP_CODE: KeywordSet(
        names=("zip", "postal", "postcode"),
        placeholders=("zip code", "postal code"),
        labels=("zip", "postal code"),
        kinds=("text",),
    ),
    FieldPurpose.COUNTRY: KeywordSet(
        names=("country", "nation"),
        placeholders=("country",),
        labels=("country",),
        kinds=("select-one", "text"),
    ),
    FieldPurpose.CURRENT_TITLE: KeywordSet(
        names=("job_title", "current_title", "title"),
        placeholders=("job title", "current title"),
        labels=("job title", "current title", "current position"),
        kinds=("text",),
    ),
    FieldPurpose.CURRENT_COMPANY: KeywordSet(
        names=("company", "employer", "organization"),
        placeholders=("current company", "employer"),
        labels=("current company", "current employer", "employer"),
        kinds=("text",),
    ),
    FieldPurpose.YEARS_EXPERIENCE: KeywordSet(
        names=("experience", "years_experience"),
        placeholders=("years of experience",),
        labels=("years of experience", "experience"),
        kinds=("number", "text", "select-one"),
    ),
    FieldPurpose.DESIRED_SALARY: KeywordSet(
        names=("salary", "compensation"),
        placeholders=("desired salary", "expected salary"),
        labels=("salary", "desired salary", "expected salary"),
        kinds=("number", "text"),
    ),
    FieldPurpose.AVAILABLE_START_DATE: KeywordSet(
        names=("start_date", "available_date", "availability"),
        placeholders=("start date", "when can you start"),
        labels=("start date", "availability", "when can you start"),
        kinds=("date", "text"),
    ),
    FieldPurpose.RESUME_UPLOAD: KeywordSet(
        names=("resume", "cv"),
        placeholders=(),
        labels=("resume", "curriculum vitae"),
        kinds=("file",),
    ),
    FieldPurpose.COVER_LETTER_UPLOAD: KeywordSet(
        names=("cover_letter", "coverletter", "cover"),
        placeholders=(),
        labels=("cover letter",),
        kinds=("file",),
    ),
}


def score_by_heuristics(
    field: FieldDescriptor,
) -> Optional[tuple[FieldPurpose, float]]:
    """Score a field against every keyword set and pick the best purpose.

    Args:
        field: Field to classify

    Returns:
        (purpose, confidence) for the highest-scoring purpose whose
        confidence exceeds HEURISTIC_THRESHOLD, with confidence capped at
        HEURISTIC_CONFIDENCE_CAP. None when no purpose qualifies.

    Examples:
        >>> score_by_heuristics(FieldDescriptor(name="first_name", label="First Name"))
        (<FieldPurpose.FIRST_NAME: 'firstName'>, 0.4)
    """
    best: Optional[tuple[FieldPurpose, float]] = None

    for purpose, keywords in HEURISTIC_PATTERNS.items():
        max_score = keywords.max_score
        if max_score == 0:
            continue
        confidence = keywords.score(field) / max_score
        if confidence <= HEURISTIC_THRESHOLD:
            continue
        # Strict comparison keeps the earlier purpose on ties
        if best is None or confidence > best[1]:
            best = (purpose, confidence)

    if best is None:
        return None

    purpose, confidence = best
    confidence = min(confidence, HEURISTIC_CONFIDENCE_CAP)
    logger.debug(
        "heuristic_match",
        extra={"purpose": purpose.value, "confidence": confidence},
    )
    return purpose, confidence


def get_suggestions(field: FieldDescriptor) -> list[HeuristicSuggestion]:
    """Rank candidate purposes for a field a human should review.

    Name hits weigh 0.3, label hits 0.4 and an accepted kind 0.2. Purposes
    scoring above 0.1 are returned, most confident first.
    """
    text = field.search_text
    suggestions = []

    for purpose, keywords in HEURISTIC_PATTERNS.items():
        score = 0.0
        reasons = []

        for keyword in keywords.names:
            if keyword in text:
                score += SUGGESTION_NAME_WEIGHT
                reasons.append(f'name contains "{keyword}"')

        for keyword in keywords.labels:
            if keyword in text:
                score += SUGGESTION_LABEL_WEIGHT
                reasons.append(f'label contains "{keyword}"')

        if field.kind in keywords.kinds:
            score += SUGGESTION_KIND_WEIGHT
            reasons.append(f"type is {field.kind}")

        if score > SUGGESTION_THRESHOLD:
            suggestions.append(
                HeuristicSuggestion(
                    purpose=purpose,
                    confidence=min(score, 1.0),
                    reasons=tuple(reasons),
                )
            )

    suggestions.sort(key=lambda s: s.confidence, reverse=True)
    return suggestions
