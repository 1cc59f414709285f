"""Data models for the form classification pipeline.

Field descriptors arrive already extracted from the page; the pipeline never
touches live DOM elements. All records are frozen so cached payloads can be
shared between requests without copying.
"""

from dataclasses import dataclass, field
from enum import Enum

__all__ = [
    "AnalysisSource",
    "ClassificationResult",
    "Context",
    "FieldDescriptor",
    "FieldOption",
    "FieldPurpose",
    "Method",
    "PlatformType",
    "Profile",
    "QuestionAnalysis",
    "ResponseStructure",
    "SuggestedLength",
]


class FieldPurpose(str, Enum):
    """Closed taxonomy of form field purposes.

    Adding a member requires updating the rule, heuristic and pattern tables
    in lockstep (classifier/rules.py, heuristics.py, patterns.py).

    Note: Uses (str, Enum) so values serialize directly into prompts and JSON.
    """

    # === personal ===
    FIRST_NAME = "firstName"
    LAST_NAME = "lastName"
    FULL_NAME = "fullName"
    EMAIL = "email"
    PHONE = "phone"

    # === location ===
    ADDRESS = "address"
    CITY = "city"
    STATE = "state"
    ZIP_CODE = "zipCode"
    COUNTRY = "country"

    # === work ===
    CURRENT_TITLE = "currentTitle"
    CURRENT_COMPANY = "currentCompany"
    YEARS_EXPERIENCE = "yearsExperience"
    DESIRED_SALARY = "desiredSalary"
    AVAILABLE_START_DATE = "availableStartDate"

    # === documents ===
    RESUME_UPLOAD = "resumeUpload"
    COVER_LETTER_UPLOAD = "coverLetterUpload"

    # === free-text questions ===
    WHY_INTERESTED = "whyInterested"
    WHY_QUALIFIED = "whyQualified"
    CAREER_GOALS = "careerGoals"
    ADDITIONAL_INFO = "additionalInfo"

    UNKNOWN = "unknown"


class PlatformType(str, Enum):
    """Applicant tracking systems the pipeline knows about."""

    WORKDAY = "workday"
    GREENHOUSE = "greenhouse"
    LEVER = "lever"
    ICIMS = "icims"
    TALEO = "taleo"
    BAMBOOHR = "bamboohr"
    JOBVITE = "jobvite"
    SMARTRECRUITERS = "smartrecruiters"
    GENERIC = "generic"
    UNKNOWN = "unknown"


class Method(str, Enum):
    """Which pipeline stage produced a classification."""

    ATS_SPECIFIC = "ats-specific"
    HEURISTIC = "heuristic"
    PATTERN = "pattern"
    LLM = "llm"
    FALLBACK = "fallback"


class AnalysisSource(str, Enum):
    """Where a question analysis came from."""

    LLM = "llm"
    PATTERN = "pattern"
    FUZZY = "fuzzy"
    TEMPLATE_FALLBACK = "template_fallback"
    FALLBACK = "fallback"
    ERROR = "error"


class SuggestedLength(str, Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


@dataclass(frozen=True)
class FieldOption:
    """One value/text pair of a select control."""

    value: str
    text: str = ""


@dataclass(frozen=True)
class FieldDescriptor:
    """Immutable snapshot of a form control.

    Attributes:
        kind: Control kind (text, email, tel, select-one, checkbox, radio, file, ...)
        name: The control's name attribute
        dom_id: The control's id attribute
        placeholder: Placeholder text
        label: Text of the associated label
        required: Whether the control is marked required
        options: Ordered value/text pairs (selects only)
        attributes: Extracted data-* attributes as ordered (key, value) pairs
    """

    kind: str = "text"
    name: str = ""
    dom_id: str = ""
    placeholder: str = ""
    label: str = ""
    required: bool = False
    options: tuple[FieldOption, ...] = ()
    attributes: tuple[tuple[str, str], ...] = ()

    def attribute(self, key: str) -> str | None:
        """Look up a data attribute by key, or None when absent."""
        for attr_key, value in self.attributes:
            if attr_key == key:
                return value
        return None

    @property
    def search_text(self) -> str:
        """Lower-cased name/id/placeholder/label used by the text matchers."""
        return f"{self.name} {self.dom_id} {self.placeholder} {self.label}".lower()


@dataclass(frozen=True)
class Profile:
    """Candidate profile. Owned by the caller.

    Empty strings mean "not provided". Document fields hold paths or
    storage keys for the uploaded files.
    """

    first_name: str = ""
    last_name: str = ""
    current_title: str = ""
    current_company: str = ""
    years_experience: str = ""

    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""

    desired_salary: str = ""
    available_start_date: str = ""

    resume_path: str = ""
    cover_letter_path: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class Context:
    """Read-only description of the page/session being classified."""

    platform_type: PlatformType = PlatformType.UNKNOWN
    url: str = ""
    company: str = ""
    position: str = ""
    profile: Profile | None = None


@dataclass(frozen=True)
class ClassificationResult:
    """Classification of a single field.

    Attributes:
        purpose: Purpose from the closed taxonomy (UNKNOWN if undetermined)
        confidence: Confidence score (0.0-1.0), bounded by the method's ceiling
        method: Stage that produced the result
        reasoning: Optional free-text explanation
    """

    purpose: FieldPurpose
    confidence: float
    method: Method
    reasoning: str = ""


@dataclass(frozen=True)
class ResponseStructure:
    opening: str = ""
    body: str = ""
    closing: str = ""


@dataclass(frozen=True)
class QuestionAnalysis:
    """Analysis of a free-text application question.

    Attributes:
        category: Question category (e.g. whyInterested, teamwork, unknown)
        question_type: More specific type reported by the analyzer
        key_points: Points the answer should address, in order
        response_structure: Opening/body/closing hints
        advice: Advice items, in order
        suggested_length: short, medium or long
        confidence: Confidence score (0.0-1.0)
        source: Which stage produced the analysis
    """

    category: str
    question_type: str
    key_points: tuple[str, ...] = ()
    response_structure: ResponseStructure = field(default_factory=ResponseStructure)
    advice: tuple[str, ...] = ()
    suggested_length: SuggestedLength = SuggestedLength.MEDIUM
    confidence: float = 0.0
    source: AnalysisSource = AnalysisSource.FALLBACK
