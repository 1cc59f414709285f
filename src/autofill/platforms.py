"""URL-based applicant tracking system detection.

Only the URL signal is used; DOM, script and meta-tag probing belong to the
page extraction layer, which passes its verdict in ``Context.platform_type``.
"""

import logging
import re
from urllib.parse import urlparse

from .models import PlatformType

logger = logging.getLogger("autofill.platforms")

__all__ = ["GENERIC_JOB_PATTERNS", "PLATFORM_URL_PATTERNS", "detect_platform"]

# Order is significant: first platform with a matching pattern wins
PLATFORM_URL_PATTERNS: dict[PlatformType, list[str]] = {
    PlatformType.WORKDAY: [r"workday\.com", r"myworkdayjobs\.com"],
    PlatformType.GREENHOUSE: [r"greenhouse\.io"],
    PlatformType.LEVER: [r"lever\.co"],
    PlatformType.ICIMS: [r"icims\.com"],
    PlatformType.TALEO: [r"taleo\.net", r"careersection"],
    PlatformType.BAMBOOHR: [r"bamboohr\.com"],
    PlatformType.JOBVITE: [r"jobvite\.com"],
    PlatformType.SMARTRECRUITERS: [r"smartrecruiters\.com"],
}

GENERIC_JOB_PATTERNS: list[str] = [
    r"jobs\.",
    r"careers\.",
    r"apply\.",
    r"hiring\.",
    r"employment\.",
    r"opportunities\.",
]


def detect_platform(url: str) -> PlatformType:
    """Detect the ATS platform from a page URL.

    Args:
        url: Page URL (scheme optional)

    Returns:
        Detected PlatformType; GENERIC for recognisable job sites,
        UNKNOWN otherwise.

    Examples:
        >>> detect_platform("https://boards.greenhouse.io/acme/jobs/123")
        <PlatformType.GREENHOUSE: 'greenhouse'>
        >>> detect_platform("https://careers.acme.com/apply")
        <PlatformType.GENERIC: 'generic'>
    """
    if not url:
        return PlatformType.UNKNOWN

    try:
        hostname = urlparse(url if "//" in url else f"//{url}").hostname or ""
    except ValueError as e:
        logger.debug("platform_url_unparseable", extra={"error": str(e)})
        return PlatformType.UNKNOWN

    for platform, patterns in PLATFORM_URL_PATTERNS.items():
        for pattern in patterns:
            if re.search(pattern, url, re.IGNORECASE) or re.search(
                pattern, hostname, re.IGNORECASE
            ):
                logger.debug(
                    "platform_detected",
                    extra={"platform": platform.value, "hostname": hostname},
                )
                return platform

    for pattern in GENERIC_JOB_PATTERNS:
        if re.search(pattern, hostname, re.IGNORECASE):
            return PlatformType.GENERIC

    return PlatformType.UNKNOWN
