"""Autofill - form field and question classification pipeline.

Classifies extracted job-application form fields and free-text questions
into a fixed purpose taxonomy through:
- Platform-specific rules for known applicant tracking systems
- Keyword heuristics and regex patterns
- Rate-limited, cached remote inference with graceful fallback

Python Version: 3.10+ required
"""

# Logging Configuration - configure before other imports
from .logging_config import StructuredFormatter, configure_logging

# Initialize structured logging on module import
configure_logging()

from .__version__ import __version__  # noqa: E402
from .config import AutofillConfig, get_config, reset_config  # noqa: E402
from .models import (  # noqa: E402
    AnalysisSource,
    ClassificationResult,
    Context,
    FieldDescriptor,
    FieldOption,
    FieldPurpose,
    Method,
    PlatformType,
    Profile,
    QuestionAnalysis,
    ResponseStructure,
    SuggestedLength,
)
from .platforms import detect_platform  # noqa: E402
from .storage import InMemoryStore, KeyValueStore, resolve_api_key  # noqa: E402

__all__ = [
    "__version__",
    # Logging
    "StructuredFormatter",
    "configure_logging",
    # Configuration
    "AutofillConfig",
    "get_config",
    "reset_config",
    # Models
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
    # Platform detection
    "detect_platform",
    # Settings store
    "InMemoryStore",
    "KeyValueStore",
    "resolve_api_key",
]
