"""
Parser for changed-since watermarks supplied by callers.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, cast

import dateparser  # type: ignore[import-untyped]

from src.utils.logging import get_logger

logger = get_logger(__name__)

_RELATIVE_PATTERNS = [
    (r"^(\d+)\s+weeks?\s+ago$", "weeks"),
    (r"^(\d+)\s+days?\s+ago$", "days"),
    (r"^(\d+)\s+hours?\s+ago$", "hours"),
    (r"^(\d+)\s+minutes?\s+ago$", "minutes"),
]


def parse_iso_timestamp(text: str) -> datetime:
    """
    Parse an ISO 8601 timestamp, accepting a trailing 'Z' for UTC.

    Raises:
        ValueError: If the text is not ISO 8601
    """
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


class WatermarkParser:
    """
    Parses watermark strings ("2026-02-01T00:00:00", "3 days ago") into datetimes.

    Relative and free-form values are resolved against the current UTC time
    and returned timezone-aware, so they compare correctly with catalog
    timestamps regardless of the machine's local timezone.
    """

    def __init__(self, default_timezone: Optional[str] = None):
        """
        Initialize WatermarkParser.

        Args:
            default_timezone: Timezone assumed for free-form input without an
                              explicit zone (e.g. 'Europe/Berlin'). Defaults to UTC
        """
        self.default_timezone = default_timezone

    def parse(self, text: str, reference_date: Optional[datetime] = None) -> Optional[datetime]:
        """
        Parse a watermark string.

        Args:
            text: ISO timestamp, relative phrase or free-form date
            reference_date: Reference date for relative phrases (defaults to now, UTC)

        Returns:
            Parsed datetime, or None if parsing fails
        """
        if not text or not text.strip():
            logger.warning("Empty watermark string provided")
            return None

        text = text.strip()

        if reference_date is None:
            reference_date = datetime.now(timezone.utc)

        try:
            return parse_iso_timestamp(text)
        except ValueError:
            pass

        parsed = self._parse_relative(text, reference_date)
        if parsed is not None:
            return parsed

        # Fallback to dateparser library
        try:
            parsed = dateparser.parse(text, settings=self._dateparser_settings(reference_date))
        except Exception as e:
            logger.warning(f"dateparser failed for '{text}': {e}")
            parsed = None

        if parsed:
            logger.debug(f"Parsed '{text}' as {parsed}")
            return cast(datetime, parsed)

        logger.warning(f"Could not parse watermark: '{text}'")
        return None

    def parse_or_raise(self, text: str, reference_date: Optional[datetime] = None) -> datetime:
        """
        Parse a watermark string, raising on failure.

        Raises:
            ValueError: If the string cannot be parsed
        """
        parsed = self.parse(text, reference_date)
        if parsed is None:
            raise ValueError(f"Invalid changed-since value: '{text}'")
        return parsed

    def _dateparser_settings(self, reference_date: datetime) -> Dict[str, Any]:
        # dateparser expects a naive relative base; hand it the UTC wall time
        if reference_date.tzinfo is not None:
            reference_date = reference_date.astimezone(timezone.utc).replace(tzinfo=None)

        return {
            "RELATIVE_BASE": reference_date,
            "TIMEZONE": self.default_timezone or "UTC",
            "TO_TIMEZONE": "UTC",
            "RETURN_AS_TIMEZONE_AWARE": True,
            "PREFER_DATES_FROM": "past",
        }

    def _parse_relative(self, text: str, reference_date: datetime) -> Optional[datetime]:
        """
        Parse "today", "yesterday" and "N units ago".

        Args:
            text: Watermark string
            reference_date: Reference date for calculation

        Returns:
            Parsed datetime or None
        """
        lowered = text.lower()

        if lowered == "today":
            return reference_date.replace(hour=0, minute=0, second=0, microsecond=0)

        if lowered == "yesterday":
            yesterday = reference_date - timedelta(days=1)
            return yesterday.replace(hour=0, minute=0, second=0, microsecond=0)

        for pattern, unit in _RELATIVE_PATTERNS:
            match = re.match(pattern, lowered)
            if match:
                parsed = reference_date - timedelta(**{unit: int(match.group(1))})
                logger.debug(f"Parsed relative watermark '{text}' as {parsed}")
                return parsed

        return None
