"""Check a field classification against the profile that will fill it.

Collects issues instead of raising, so the caller can show every problem
with a mapping at once before autofilling.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from ..models import ClassificationResult, FieldPurpose, Profile

logger = logging.getLogger("autofill.classifier.validation")

__all__ = [
    "ISSUE_NO_DATA",
    "ISSUE_UNMAPPED",
    "PROFILE_ATTRIBUTES",
    "MappingIssue",
    "MappingValidation",
    "validate_mapping",
    "value_for_purpose",
]

ISSUE_UNMAPPED = "unmapped"
ISSUE_NO_DATA = "no-data"

# Purposes filled straight from one Profile attribute. fullName is derived.
PROFILE_ATTRIBUTES: dict[FieldPurpose, str] = {
    FieldPurpose.FIRST_NAME: "first_name",
    FieldPurpose.LAST_NAME: "last_name",
    FieldPurpose.EMAIL: "email",
    FieldPurpose.PHONE: "phone",
    FieldPurpose.ADDRESS: "address",
    FieldPurpose.CITY: "city",
    FieldPurpose.STATE: "state",
    FieldPurpose.ZIP_CODE: "zip_code",
    FieldPurpose.COUNTRY: "country",
    FieldPurpose.CURRENT_TITLE: "current_title",
    FieldPurpose.CURRENT_COMPANY: "current_company",
    FieldPurpose.YEARS_EXPERIENCE: "years_experience",
    FieldPurpose.DESIRED_SALARY: "desired_salary",
    FieldPurpose.AVAILABLE_START_DATE: "available_start_date",
    FieldPurpose.RESUME_UPLOAD: "resume_path",
    FieldPurpose.COVER_LETTER_UPLOAD: "cover_letter_path",
}


@dataclass(frozen=True)
class MappingIssue:
    """One field that cannot be autofilled.

    Attributes:
        index: Position of the field in the classified batch (0-based)
        purpose: Purpose the field was classified as
        issue: ISSUE_UNMAPPED or ISSUE_NO_DATA
        message: Human-readable description
    """

    index: int
    purpose: FieldPurpose
    issue: str
    message: str


@dataclass
class MappingValidation:
    valid: int = 0
    invalid: int = 0
    missing: int = 0
    issues: list[MappingIssue] = field(default_factory=list)

    @property
    def fillable(self) -> bool:
        return not self.issues


def value_for_purpose(purpose: FieldPurpose, profile: Optional[Profile]) -> Optional[str]:
    """Profile value that would fill a field of this purpose.

    Returns None when there is no profile, the purpose has no profile
    counterpart (free-text questions, unknown), or the value is blank.
    fullName needs both first and last name.

    Example:
        >>> ada = Profile(first_name="Ada", last_name="Lovelace")
        >>> value_for_purpose(FieldPurpose.FULL_NAME, ada)
        'Ada Lovelace'
    """
    if profile is None:
        return None

    if purpose == FieldPurpose.FULL_NAME:
        if profile.first_name and profile.last_name:
            return profile.full_name
        return None

    attribute = PROFILE_ATTRIBUTES.get(purpose)
    if attribute is None:
        return None
    return getattr(profile, attribute) or None


def validate_mapping(
    results: Sequence[ClassificationResult], profile: Optional[Profile]
) -> MappingValidation:
    """Count which classified fields the profile can fill.

    UNKNOWN purposes count as missing; purposes with no profile value count
    as invalid; the rest are valid.
    """
    validation = MappingValidation()

    for index, result in enumerate(results):
        if result.purpose == FieldPurpose.UNKNOWN:
            validation.missing += 1
            validation.issues.append(
                MappingIssue(
                    index,
                    result.purpose,
                    ISSUE_UNMAPPED,
                    "Field purpose could not be determined",
                )
            )
        elif value_for_purpose(result.purpose, profile) is None:
            validation.invalid += 1
            validation.issues.append(
                MappingIssue(
                    index,
                    result.purpose,
                    ISSUE_NO_DATA,
                    f"No profile data available for {result.purpose.value}",
                )
            )
        else:
            validation.valid += 1

    logger.debug(
        "mapping_validated",
        extra={
            "valid": validation.valid,
            "invalid": validation.invalid,
            "missing": validation.missing,
        },
    )
    return validation
