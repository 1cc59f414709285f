"""Platform-specific rule classification.

Each supported ATS gets an ordered table mapping a purpose to a list of
predicates. A predicate is a conjunction of (attribute, operator, value)
conditions evaluated directly against a FieldDescriptor, standing in for the
CSS selectors the platforms' forms are known to use.

Table order and predicate order are both significant: the first purpose with
any matching predicate wins.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..models import FieldDescriptor, FieldPurpose, PlatformType

logger = logging.getLogger("autofill.classifier.rules")

__all__ = [
    "PLATFORM_RULES",
    "Condition",
    "Operator",
    "Predicate",
    "match_by_rules",
]

DATA_AUTOMATION_ID = "data-automation-id"


class Operator(str, Enum):
    EQUALS = "equals"
    CONTAINS = "contains"
    STARTSWITH = "startswith"
    ENDSWITH = "endswith"
    MATCHES = "matches"


@dataclass(frozen=True)
class Condition:
    """One attribute test.

    Attributes:
        attribute: kind, name, id, placeholder, label, or a data-* attribute key
        operator: Comparison to apply
        value: Literal (case-sensitive) or regex for MATCHES
    """

    attribute: str
    operator: Operator
    value: str

    def _resolve(self, field: FieldDescriptor) -> Optional[str]:
        if self.attribute == "kind":
            return field.kind
        if self.attribute == "name":
            return field.name
        if self.attribute == "id":
            return field.dom_id
        if self.attribute == "placeholder":
            return field.placeholder
        if self.attribute == "label":
            return field.label
        return field.attribute(self.attribute)

    def matches(self, field: FieldDescriptor) -> bool:
        actual = self._resolve(field)
        if not actual:
            return False

        if self.operator == Operator.EQUALS:
            return actual == self.value
        if self.operator == Operator.CONTAINS:
            return self.value in actual
        if self.operator == Operator.STARTSWITH:
            return actual.startswith(self.value)
        if self.operator == Operator.ENDSWITH:
            return actual.endswith(self.value)

        try:
            return re.search(self.value, actual) is not None
        except re.error as e:
            logger.warning(
                "regex_pattern_error",
                extra={"pattern": self.value, "error": str(e)},
            )
            return False


@dataclass(frozen=True)
class Predicate:
    """All conditions must hold."""

    conditions: tuple[Condition, ...]

    def matches(self, field: FieldDescriptor) -> bool:
        return all(condition.matches(field) for condition in self.conditions)


def _when(*conditions: tuple[str, Operator, str]) -> Predicate:
    return Predicate(tuple(Condition(a, op, v) for a, op, v in conditions))


def _name_has(value: str) -> Predicate:
    return _when(("name", Operator.CONTAINS, value))


def _name_is(value: str) -> Predicate:
    return _when(("name", Operator.EQUALS, value))


def _id_is(value: str) -> Predicate:
    return _when(("id", Operator.EQUALS, value))


def _id_has(value: str) -> Predicate:
    return _when(("id", Operator.CONTAINS, value))


def _kind_is(value: str) -> Predicate:
    return _when(("kind", Operator.EQUALS, value))


def _automation_id_has(value: str) -> Predicate:
    return _when((DATA_AUTOMATION_ID, Operator.CONTAINS, value))


def _select_name_has(value: str) -> Predicate:
    return _when(("kind", Operator.STARTSWITH, "select"), ("name", Operator.CONTAINS, value))


# =============================================================================
# PLATFORM RULE TABLES
# =============================================================================
PLATFORM_RULES: dict[PlatformType, dict[FieldPurpose, list[Predicate]]] = {
    PlatformType.WORKDAY: {
        FieldPurpose.FIRST_NAME: [
            _automation_id_has("firstName"),
            _automation_id_has("first_name"),
            _name_has("firstName"),
            _name_has("first_name"),
        ],
        FieldPurpose.LAST_NAME: [
            _automation_id_has("lastName"),
            _automation_id_has("last_name"),
            _name_has("lastName"),
            _name_has("last_name"),
        ],
        FieldPurpose.EMAIL: [
            _automation_id_has("email"),
            _name_has("email"),
            _kind_is("email"),
        ],
        FieldPurpose.PHONE: [
            _automation_id_has("phone"),
            _name_has("phone"),
            _kind_is("tel"),
        ],
        FieldPurpose.ADDRESS: [
            _automation_id_has("address"),
            _name_has("address"),
        ],
        FieldPurpose.CITY: [
            _automation_id_has("city"),
            _name_has("city"),
        ],
        FieldPurpose.STATE: [
            _automation_id_has("state"),
            _automation_id_has("province"),
            _select_name_has("state"),
            _select_name_has("province"),
        ],
        FieldPurpose.ZIP_CODE: [
            _automation_id_has("zip"),
            _automation_id_has("postal"),
            _name_has("zip"),
            _name_has("postal"),
        ],
        FieldPurpose.COUNTRY: [
            _automation_id_has("country"),
            _select_name_has("country"),
        ],
    },
    PlatformType.GREENHOUSE: {
        FieldPurpose.FIRST_NAME: [
            _name_is("job_application[first_name]"),
            _name_has("first_name"),
            _id_is("first_name"),
        ],
        FieldPurpose.LAST_NAME: [
            _name_is("job_application[last_name]"),
            _name_has("last_name"),
            _id_is("last_name"),
        ],
        FieldPurpose.EMAIL: [
            _name_is("job_application[email]"),
            _name_has("email"),
            _kind_is("email"),
        ],
        FieldPurpose.PHONE: [
            _name_is("job_application[phone]"),
            _name_has("phone"),
            _kind_is("tel"),
        ],
        FieldPurpose.RESUME_UPLOAD: [
            _name_is("job_application[resume]"),
            _when(("kind", Operator.EQUALS, "file"), ("name", Operator.CONTAINS, "resume")),
        ],
        FieldPurpose.COVER_LETTER_UPLOAD: [
            _name_is("job_application[cover_letter]"),
            _when(("kind", Operator.EQUALS, "file"), ("name", Operator.CONTAINS, "cover")),
        ],
    },
    PlatformType.LEVER: {
        # Lever asks for the whole name in one field called "name"
        FieldPurpose.FULL_NAME: [
            _name_is("name"),
        ],
        FieldPurpose.FIRST_NAME: [
            _name_has("first"),
            _when(("placeholder", Operator.CONTAINS, "First")),
        ],
        FieldPurpose.LAST_NAME: [
            _name_has("last"),
            _when(("placeholder", Operator.CONTAINS, "Last")),
        ],
        FieldPurpose.EMAIL: [
            _name_is("email"),
            _kind_is("email"),
        ],
        FieldPurpose.PHONE: [
            _name_is("phone"),
            _kind_is("tel"),
        ],
        FieldPurpose.RESUME_UPLOAD: [
            _name_is("resume"),
            _kind_is("file"),
        ],
    },
    PlatformType.ICIMS: {
        FieldPurpose.FIRST_NAME: [
            _name_has("firstName"),
            _id_has("firstName"),
        ],
        FieldPurpose.LAST_NAME: [
            _name_has("lastName"),
            _id_has("lastName"),
        ],
        FieldPurpose.EMAIL: [
            _name_has("email"),
            _kind_is("email"),
        ],
        FieldPurpose.PHONE: [
            _name_has("phone"),
            _kind_is("tel"),
        ],
    },
    PlatformType.TALEO: {
        FieldPurpose.FIRST_NAME: [
            _name_has("firstName"),
            _name_has("first_name"),
        ],
        FieldPurpose.LAST_NAME: [
            _name_has("lastName"),
            _name_has("last_name"),
        ],
        FieldPurpose.EMAIL: [
            _name_has("email"),
        ],
        FieldPurpose.PHONE: [
            _name_has("phone"),
        ],
    },
}


def match_by_rules(
    field: FieldDescriptor, platform_type: PlatformType
) -> Optional[FieldPurpose]:
    """Classify a field using the platform's declarative rules.

    Args:
        field: Field to classify
        platform_type: Detected ATS platform

    Returns:
        The first matching purpose, or None when the platform has no table or
        nothing matches.

    Examples:
        >>> match_by_rules(FieldDescriptor(kind="email", name="email"), PlatformType.GREENHOUSE)
        <FieldPurpose.EMAIL: 'email'>
        >>> match_by_rules(FieldDescriptor(name="email"), PlatformType.GENERIC) is None
        True
    """
    table = PLATFORM_RULES.get(platform_type)
    if not table:
        return None

    for purpose, predicates in table.items():
        for index, predicate in enumerate(predicates):
            if predicate.matches(field):
                logger.debug(
                    "rule_match",
                    extra={
                        "platform": platform_type.value,
                        "purpose": purpose.value,
                        "predicate_index": index,
                    },
                )
                return purpose

    return None
