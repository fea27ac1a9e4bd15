"""Validate the temporal relevance of dates embedded in document text.

Dates are found in several formats, classified by nearby keywords as
expiry, effective, version or general dates, and compared with the current
date. Expired expiry/effective dates invalidate the document; dates that
expire soon and old version stamps produce softer warnings.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from ..config import DateSettings, settings

logger = logging.getLogger(__name__)


class DateType(str, Enum):
    """Role a date plays in a document."""
    EXPIRY = "expiry"
    EFFECTIVE = "effective"
    VERSION = "version"
    GENERAL = "general"


RUSSIAN_MONTHS = {
    "января": 1, "февраля": 2, "марта": 3, "апреля": 4,
    "мая": 5, "июня": 6, "июля": 7, "августа": 8,
    "сентября": 9, "октября": 10, "ноября": 11, "декабря": 12,
}

_MONTH_NAMES = "|".join(RUSSIAN_MONTHS)

# Each pattern yields named groups day, month and year
DATE_PATTERNS = [
    r"(?<!\d)(?P<day>\d{1,2})\.(?P<month>\d{1,2})\.(?P<year>\d{4}|\d{2})(?!\d)",
    r"(?<!\d)(?P<day>\d{1,2})/(?P<month>\d{1,2})/(?P<year>\d{4}|\d{2})(?!\d)",
    r"(?<!\d)(?P<year>\d{4})-(?P<month>\d{1,2})-(?P<day>\d{1,2})(?!\d)",
    rf"(?<!\d)(?P<day>\d{{1,2}})\s+(?P<month>{_MONTH_NAMES})\s+(?P<year>\d{{4}})(?!\d)",
]

# Checked in order; the first bundle with a hit in the context wins
CONTEXT_PATTERNS = {
    DateType.EXPIRY: [
        r"действует до",
        r"срок действия",
        r"истекает",
        r"прекращает действие",
        r"утрачивает силу",
        r"действительно до",
    ],
    DateType.EFFECTIVE: [
        r"вступает в силу",
        r"действует с",
        r"начинает действовать",
        r"введено в действие",
        r"применяется с",
    ],
    DateType.VERSION: [
        r"версия от",
        r"редакция от",
        r"утверждено",
        r"принято",
        r"издание",
    ],
}

DAYS_PER_MONTH = 30


@dataclass
class DateFinding:
    """A date found in a document."""
    date: str
    context: str
    type: DateType
    is_expired: bool
    days_until_expiry: Optional[int] = None

    def to_dict(self) -> dict:
        result = {
            "date": self.date,
            "context": self.context,
            "type": self.type.value,
            "isExpired": self.is_expired,
        }
        if self.days_until_expiry is not None:
            result["daysUntilExpiry"] = self.days_until_expiry
        return result


@dataclass
class DateValidationResult:
    """Outcome of validating the dates of one document."""
    is_valid: bool = True
    found_dates: list[DateFinding] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    @property
    def expired_dates(self) -> list[DateFinding]:
        return [d for d in self.found_dates if d.is_expired]

    def to_dict(self) -> dict:
        return {
            "isValid": self.is_valid,
            "foundDates": [d.to_dict() for d in self.found_dates],
            "warnings": self.warnings,
            "recommendations": self.recommendations,
        }


class DateValidator:
    """Find, classify and check dates in document text."""

    def __init__(
        self,
        current_date: Optional[datetime] = None,
        date_settings: Optional[DateSettings] = None,
    ):
        """Initialize the validator.

        Args:
            current_date: Fixed "now" for reproducible checks. When omitted the
                clock is read on every call.
            date_settings: Windows and thresholds (defaults from settings).
        """
        self.current_date = current_date
        self.settings = date_settings or settings.dates

        self._date_patterns = [re.compile(p, re.IGNORECASE) for p in DATE_PATTERNS]
        self._context_patterns = {
            date_type: [re.compile(p, re.IGNORECASE) for p in patterns]
            for date_type, patterns in CONTEXT_PATTERNS.items()
        }

    def _now(self) -> datetime:
        return self.current_date or datetime.now()

    def validate_document_dates(
        self,
        title: str,
        content: str,
        filename: Optional[str] = None,
    ) -> DateValidationResult:
        """Check every date in the title and content.

        Args:
            title: Document title, searched together with the content.
            content: Document text.
            filename: Source file name, used only for logging.

        Returns:
            DateValidationResult with findings, warnings and recommendations.
        """
        now = self._now()
        result = DateValidationResult()

        for raw, context, date_type, parsed in self.extract_dates(f"{title} {content}"):
            delta_days = (parsed - now).total_seconds() / 86400
            is_expired = parsed < now
            days_until = None if is_expired else math.ceil(delta_days)

            result.found_dates.append(
                DateFinding(
                    date=raw,
                    context=context,
                    type=date_type,
                    is_expired=is_expired,
                    days_until_expiry=days_until,
                )
            )

            if date_type in (DateType.EXPIRY, DateType.EFFECTIVE):
                if is_expired:
                    result.is_valid = False
                    result.warnings.append(
                        f"Документ содержит истекшую дату: {raw} ({context})"
                    )
                elif days_until <= self.settings.expiry_warning_days:
                    result.warnings.append(
                        f"Документ скоро потеряет актуальность: {raw} (через {days_until} дней)"
                    )

            if date_type == DateType.VERSION:
                months_old = -delta_days / DAYS_PER_MONTH
                if months_old > self.settings.version_max_age_months:
                    result.warnings.append(
                        f"Версия документа старше года: {raw} ({round(months_old)} месяцев)"
                    )

        self._add_recommendations(result)

        logger.debug(
            f"Date validation of '{filename or title}' completed: "
            f"{len(result.found_dates)} dates found, {len(result.warnings)} warnings"
        )
        return result

    def extract_dates(self, text: str) -> list[tuple[str, str, DateType, datetime]]:
        """Return (raw, context, type, parsed) for every parseable date in text."""
        found = []
        window = self.settings.context_chars

        for pattern in self._date_patterns:
            for match in pattern.finditer(text):
                parsed = self._parse(match)
                if parsed is None:
                    continue
                start = max(0, match.start() - window)
                end = min(len(text), match.end() + window)
                context = text[start:end].strip()
                found.append((match.group(), context, self.classify(context), parsed))

        return found

    def classify(self, context: str) -> DateType:
        """Classify a date by the keywords around it."""
        for date_type, patterns in self._context_patterns.items():
            if any(p.search(context) for p in patterns):
                return date_type
        return DateType.GENERAL

    @staticmethod
    def _parse(match: re.Match) -> Optional[datetime]:
        """Turn a match into a midnight datetime, or None for impossible dates."""
        day = int(match.group("day"))
        month_raw = match.group("month")
        year_raw = match.group("year")

        if month_raw.isdigit():
            month = int(month_raw)
        else:
            month = RUSSIAN_MONTHS[month_raw.lower()]

        year = int(year_raw)
        if len(year_raw) == 2:
            year += 2000

        try:
            return datetime(year, month, day)
        except ValueError:
            return None

    def _add_recommendations(self, result: DateValidationResult) -> None:
        if not result.found_dates:
            result.recommendations.append(
                "В документе не найдено дат. Рекомендуется проверить актуальность вручную."
            )
            return

        if result.expired_dates:
            result.recommendations.append(
                "Рекомендуется найти более актуальную версию документа."
            )

        upcoming = self.settings.upcoming_days
        if any(
            d.days_until_expiry is not None and d.days_until_expiry <= upcoming
            for d in result.found_dates
        ):
            result.recommendations.append(
                "Следите за обновлениями документа: некоторые даты скоро истекут."
            )

        if any(d.type == DateType.VERSION for d in result.found_dates):
            result.recommendations.append(
                "Проверьте, не вышла ли новая версия документа на официальном сайте."
            )
