"""Prompt templates for remote field and question analysis."""

from typing import Sequence

from ..models import Context, FieldDescriptor, FieldPurpose, PlatformType

__all__ = [
    "FIELD_PROMPT_TEMPLATE",
    "PURPOSE_DESCRIPTIONS",
    "QUESTION_PROMPT_TEMPLATE",
    "build_field_prompt",
    "build_question_prompt",
]

PURPOSE_DESCRIPTIONS: dict[FieldPurpose, str] = {
    FieldPurpose.FIRST_NAME: "First name input",
    FieldPurpose.LAST_NAME: "Last name input",
    FieldPurpose.FULL_NAME: "Full name (combined first and last)",
    FieldPurpose.EMAIL: "Email address",
    FieldPurpose.PHONE: "Phone number",
    FieldPurpose.ADDRESS: "Street address",
    FieldPurpose.CITY: "City",
    FieldPurpose.STATE: "State/Province",
    FieldPurpose.ZIP_CODE: "ZIP/Postal code",
    FieldPurpose.COUNTRY: "Country",
    FieldPurpose.CURRENT_TITLE: "Current job title",
    FieldPurpose.CURRENT_COMPANY: "Current employer",
    FieldPurpose.YEARS_EXPERIENCE: "Years of work experience",
    FieldPurpose.DESIRED_SALARY: "Salary expectations",
    FieldPurpose.AVAILABLE_START_DATE: "Available start date",
    FieldPurpose.RESUME_UPLOAD: "Resume/CV file upload",
    FieldPurpose.COVER_LETTER_UPLOAD: "Cover letter file upload",
    FieldPurpose.WHY_INTERESTED: "Why interested in position",
    FieldPurpose.WHY_QUALIFIED: "Why qualified for role",
    FieldPurpose.CAREER_GOALS: "Career goals/aspirations",
    FieldPurpose.ADDITIONAL_INFO: "Additional information/comments",
    FieldPurpose.UNKNOWN: "Cannot determine purpose",
}

FIELD_PROMPT_TEMPLATE = """You are an expert at analyzing web form fields for job application forms. Your task is to identify the purpose of each field based on the provided information.

Context:
- ATS Platform: {platform}
- Website: {url}
- Company: {company}

Form Fields to Analyze:
{fields}

For each field, determine its most likely purpose from this list:
{purposes}

Respond with a JSON array where each object has:
{{
  "fieldIndex": <field_number_starting_from_1>,
  "purpose": "<purpose_from_list_above>",
  "confidence": <confidence_score_0_to_1>,
  "reasoning": "<brief_explanation>"
}}

Only respond with the JSON array, no additional text."""

QUESTION_PROMPT_TEMPLATE = """You are an expert at analyzing job application questions and generating personalized responses. Your task is to understand the question and suggest an appropriate response strategy.

Context:
- Position: {position}
- Company: {company}
- ATS Platform: {platform}
{profile}
Question to Analyze:
"{question}"

Analyze this question and provide:
1. The category/type of question
2. Key points that should be addressed in the response
3. A suggested response structure
4. Any specific advice for this type of question

Respond with a JSON object:
{{
  "category": "<question_category>",
  "questionType": "<specific_type>",
  "keyPoints": ["<point1>", "<point2>", ...],
  "responseStructure": {{
    "opening": "<opening_approach>",
    "body": "<main_content_approach>",
    "closing": "<closing_approach>"
  }},
  "advice": ["<advice1>", "<advice2>", ...],
  "suggestedLength": "<short|medium|long>",
  "confidence": <confidence_score_0_to_1>
}}

Only respond with the JSON object, no additional text."""


def _or(value: str, default: str = "N/A") -> str:
    return value if value else default


def _encodable(prompt: str) -> str:
    """Replace lone surrogates, which cannot be sent as UTF-8 JSON."""
    return prompt.encode("utf-8", "replace").decode("utf-8")


def _describe_field(index: int, field: FieldDescriptor) -> str:
    return (
        f"Field {index}:\n"
        f"- Type: {field.kind}\n"
        f"- Name: {_or(field.name)}\n"
        f"- ID: {_or(field.dom_id)}\n"
        f"- Placeholder: {_or(field.placeholder)}\n"
        f"- Label: {_or(field.label)}\n"
        f"- Required: {'Yes' if field.required else 'No'}"
    )


def _platform_name(context: Context) -> str:
    if context.platform_type == PlatformType.UNKNOWN:
        return "Unknown"
    return context.platform_type.value


def build_field_prompt(fields: Sequence[FieldDescriptor], context: Context) -> str:
    """Build the batch field-analysis prompt.

    Fields are numbered from 1; the model must echo that number back as
    ``fieldIndex`` so results can be merged back in input order.
    """
    described = "\n\n".join(
        _describe_field(i, field) for i, field in enumerate(fields, start=1)
    )
    purposes = "\n".join(
        f"- {purpose.value}: {description}"
        for purpose, description in PURPOSE_DESCRIPTIONS.items()
    )
    prompt = FIELD_PROMPT_TEMPLATE.format(
        platform=_platform_name(context),
        url=_or(context.url, "Unknown"),
        company=_or(context.company, "Unknown"),
        fields=described,
        purposes=purposes,
    )
    return _encodable(prompt)


def build_question_prompt(
    question: str, context: Context, max_chars: int = 4000
) -> str:
    """Build the question-analysis prompt.

    Args:
        question: Question text, truncated to ``max_chars``
        context: Page context; profile details are included when present
        max_chars: Maximum question characters sent to the provider
    """
    profile = ""
    if context.profile is not None:
        p = context.profile
        profile = (
            "\nProfile Information:\n"
            f"- Name: {p.full_name}\n"
            f"- Current Title: {_or(p.current_title)}\n"
            f"- Current Company: {_or(p.current_company)}\n"
            f"- Years Experience: {_or(p.years_experience)}\n"
        )

    prompt = QUESTION_PROMPT_TEMPLATE.format(
        position=_or(context.position, "Unknown"),
        company=_or(context.company, "Unknown"),
        platform=_platform_name(context),
        profile=profile,
        question=question[:max_chars],
    )
    return _encodable(prompt)
