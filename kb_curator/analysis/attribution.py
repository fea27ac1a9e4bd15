"""Company attribution and title heuristics for insurance documents.

Keyword tallies decide which carrier a document most likely belongs to, and
per-code keyword lists decide whether a title names its product and company.
The same vocabularies drive code detection and title generation for uploads.
"""

import re
from dataclasses import dataclass
from typing import Optional

GENERAL = "GENERAL"

# Carrier name variants tallied over content and title, in tie-break order
COMPANY_MENTION_KEYWORDS: dict[str, list[str]] = {
    "SOGAZ": ["согаз", "sogaz"],
    "INGOSSTRAH": ["ингосстрах", "ингос", "ingosstrah"],
    "RESOGARANTIA": ["ресо", "гарантия", "ресо-гарантия", "resogarantia"],
    "VSK": ["вск", "vsk"],
    "ROSGOSSTRAH": ["росгосстрах", "росгос", "rosgosstrah"],
    "TINKOFF": ["тинькофф", "tinkoff"],
    "SBERBANK": ["сбербанк", "сбер", "sberbank"],
    "ALFA": ["альфа", "альфастрахование", "alfa"],
    GENERAL: ["общие", "правила", "нормы", "законодательство", "федеральный", "государственный"],
}

TITLE_PRODUCT_KEYWORDS: dict[str, list[str]] = {
    "OSAGO": ["осаго", "автогражданка", "автострахование", "автогражданская"],
    "KASKO": ["каско", "добровольное", "автострахование", "автомобиль"],
    "MORTGAGE": ["ипотека", "ипотечное", "недвижимость", "квартира"],
    "LIFE": ["жизнь", "жизненное", "смерть", "инвалидность"],
    "HEALTH": ["здоровье", "медицинское", "дмс", "лечение"],
    "TRAVEL": ["путешествие", "туризм", "выезд", "заграница"],
    "PROPERTY": ["имущество", "дом", "квартира", "недвижимость"],
    "LIABILITY": ["ответственность", "ущерб", "вред"],
    "COMPANY_INFO": ["компания", "информация", "о компании", "услуги"],
    "PRICING": ["тарифы", "цены", "стоимость", "расценки"],
    GENERAL: ["правила", "условия", "общие", "нормы"],
}

TITLE_COMPANY_KEYWORDS: dict[str, list[str]] = {
    "SOGAZ": ["согаз"],
    "INGOSSTRAH": ["ингосстрах", "ингос"],
    "RESOGARANTIA": ["ресо", "гарантия"],
    "VSK": ["вск"],
    "ROSGOSSTRAH": ["росгосстрах", "росгос"],
    "TINKOFF": ["тинькофф"],
    "SBERBANK": ["сбербанк", "сбер"],
    "ALFA": ["альфа"],
    GENERAL: ["общие", "правила", "нормы"],
}

# First hit wins
COMPANY_DETECTION: list[tuple[str, list[str]]] = [
    ("SOGAZ", ["согаз"]),
    ("INGOSSTRAH", ["ингосстрах"]),
    ("RESOGARANTIA", ["ресо"]),
    ("VSK", ["вск"]),
    ("ROSGOSSTRAH", ["росгосстрах", "ргс"]),
    ("TINKOFF", ["тинькофф", "тинков"]),
    ("SBERBANK", ["сбербанк"]),
    ("ALFA", ["альфа"]),
]

PRODUCT_DETECTION: list[tuple[str, list[str]]] = [
    ("OSAGO", ["осаго"]),
    ("KASKO", ["каско"]),
    ("MORTGAGE", ["ипотека", "ипотечное"]),
    ("LIFE", ["жизнь", "жизни"]),
    ("HEALTH", ["здоровье", "дмс"]),
    ("TRAVEL", ["путешеств", "туризм"]),
    ("PROPERTY", ["имущество", "недвижимость"]),
    ("LIABILITY", ["ответственность"]),
]

# (type, phrase in text, fragment in filename)
DOCUMENT_TYPE_DETECTION: list[tuple[str, str, str]] = [
    ("rules", "правила страхования", "правил"),
    ("instructions", "инструкция", "инструкц"),
    ("terms", "условия страхования", "услов"),
    ("tariffs", "тариф", "тариф"),
    ("guide", "памятка", "памятка"),
]

COMPANY_NAMES = {
    "SOGAZ": "СОГАЗ",
    "INGOSSTRAH": "Ингосстрах",
    "RESOGARANTIA": "Ресо-Гарантия",
    "VSK": "ВСК",
    "ROSGOSSTRAH": "Росгосстрах",
    "TINKOFF": "Тинькофф",
    "SBERBANK": "Сбербанк",
    "ALFA": "АльфаСтрахование",
}

PRODUCT_NAMES = {
    "OSAGO": "ОСАГО",
    "KASKO": "КАСКО",
    "MORTGAGE": "Ипотечное страхование",
    "LIFE": "Страхование жизни",
    "HEALTH": "ДМС",
    "TRAVEL": "Страхование путешественников",
    "PROPERTY": "Страхование имущества",
    "LIABILITY": "Страхование ответственности",
}

DOC_TYPE_NAMES = {
    "rules": "Правила страхования",
    "instructions": "Инструкция",
    "terms": "Условия страхования",
    "tariffs": "Тарифы",
    "guide": "Памятка",
}

_YEAR = re.compile(r"20(?:2\d|3\d)")

MAX_MENTION_CONFIDENCE = 0.9
MENTION_WEIGHT = 0.2
TITLE_MENTION_WEIGHT = 2
FALLBACK_CONFIDENCE = 0.3


@dataclass
class CompanyValidation:
    """Whether a document's company code matches the carriers it mentions."""
    is_correct: bool
    confidence: float
    reason: str
    suggested_company: Optional[str] = None

    def to_dict(self) -> dict:
        result = {
            "isCorrect": self.is_correct,
            "confidence": self.confidence,
            "reason": self.reason,
        }
        if self.suggested_company is not None:
            result["suggestedCompany"] = self.suggested_company
        return result


@dataclass
class TitleValidation:
    """Whether a title names the document's product and company."""
    is_correct: bool
    confidence: float
    reason: str
    suggested_title: Optional[str] = None

    def to_dict(self) -> dict:
        result = {
            "isCorrect": self.is_correct,
            "confidence": self.confidence,
            "reason": self.reason,
        }
        if self.suggested_title is not None:
            result["suggestedTitle"] = self.suggested_title
        return result


def _unique_lower(keywords: list[str]) -> list[str]:
    seen: list[str] = []
    for keyword in keywords:
        lowered = keyword.lower()
        if lowered not in seen:
            seen.append(lowered)
    return seen


class AttributionAnalyzer:
    """Company, product and title heuristics."""

    def __init__(self):
        self._mention_keywords = {
            company: _unique_lower(keywords)
            for company, keywords in COMPANY_MENTION_KEYWORDS.items()
        }

    def count_mentions(self, content: str, title: str) -> dict[str, int]:
        """Tally keyword occurrences per company; title hits count double."""
        content_lower = content.lower()
        title_lower = title.lower()
        return {
            company: sum(
                content_lower.count(k) + title_lower.count(k) * TITLE_MENTION_WEIGHT
                for k in keywords
            )
            for company, keywords in self._mention_keywords.items()
        }

    def analyze_company_belonging(
        self, content: str, title: str, current_company: Optional[str]
    ) -> CompanyValidation:
        """Suggest the best-supported company and compare with the current code."""
        mentions = self.count_mentions(content, title)

        best_company, best_count = None, 0
        for company, count in mentions.items():
            if count > best_count:
                best_company, best_count = company, count

        if best_company is None:
            return CompanyValidation(
                is_correct=current_company == GENERAL,
                suggested_company=GENERAL,
                confidence=FALLBACK_CONFIDENCE,
                reason="Не найдено упоминаний конкретных страховых компаний",
            )

        confidence = min(MAX_MENTION_CONFIDENCE, best_count * MENTION_WEIGHT)
        if best_company == current_company:
            return CompanyValidation(
                is_correct=True,
                confidence=confidence,
                reason=f'Найдено {best_count} упоминаний компании "{best_company}"',
            )

        return CompanyValidation(
            is_correct=False,
            suggested_company=best_company,
            confidence=confidence,
            reason=f'Найдено {best_count} упоминаний "{best_company}", текущая: "{current_company}"',
        )

    def analyze_title_correctness(
        self,
        title: str,
        company_code: Optional[str],
        product_code: Optional[str],
    ) -> TitleValidation:
        """Check that the title contains a keyword for its product and company.

        A missing or unknown code has no keywords, so its check fails. The
        company check is skipped for GENERAL documents. The suggested title is
        only prefixed with keywords that exist.
        """
        title_lower = title.lower()
        product_keywords = TITLE_PRODUCT_KEYWORDS.get(product_code or "", [])
        company_keywords = TITLE_COMPANY_KEYWORDS.get(company_code or "", [])

        missing_product = not any(k in title_lower for k in product_keywords)
        missing_company = company_code != GENERAL and not any(
            k in title_lower for k in company_keywords
        )

        suggested = title
        issues = []
        if missing_product:
            if product_keywords:
                suggested = f"{product_keywords[0].capitalize()} - {suggested}"
            issues.append("Название не содержит ключевых слов продукта")
        if missing_company:
            if company_keywords:
                suggested = f"{company_keywords[0].capitalize()} {suggested}"
            issues.append("Название не содержит ключевых слов компании")

        if not issues:
            return TitleValidation(
                is_correct=True, confidence=0.9, reason="Название соответствует содержанию"
            )

        return TitleValidation(
            is_correct=False,
            confidence=0.6,
            reason=", ".join(issues),
            suggested_title=suggested if suggested != title else None,
        )

    # ------------------------------------------------------------------
    # Upload helpers
    # ------------------------------------------------------------------

    @staticmethod
    def detect_company_and_product(
        text: str, filename: str = ""
    ) -> tuple[Optional[str], Optional[str]]:
        """Guess company and product codes from text and file name."""
        combined = f"{text} {filename}".lower()

        company_code = next(
            (code for code, keys in COMPANY_DETECTION if any(k in combined for k in keys)),
            None,
        )
        product_code = next(
            (code for code, keys in PRODUCT_DETECTION if any(k in combined for k in keys)),
            None,
        )
        return company_code, product_code

    @staticmethod
    def detect_document_type(text: str, filename: str = "") -> str:
        """Classify a document as rules, instructions, terms, tariffs, guide or general."""
        text_lower = text.lower()
        filename_lower = filename.lower()
        for doc_type, phrase, fragment in DOCUMENT_TYPE_DETECTION:
            if phrase in text_lower or fragment in filename_lower:
                return doc_type
        return "general"

    @staticmethod
    def generate_title(
        text: str,
        filename: str = "",
        company_code: Optional[str] = None,
        product_code: Optional[str] = None,
        document_type: Optional[str] = None,
    ) -> str:
        """Build a readable Russian title from codes, type and year."""
        company = COMPANY_NAMES.get(company_code, company_code) if company_code else ""
        product = PRODUCT_NAMES.get(product_code, product_code) if product_code else ""
        doc_type = DOC_TYPE_NAMES.get(document_type, "") if document_type else ""

        year_match = _YEAR.search(f"{filename} {text[:200]}")
        year = f" ({year_match.group()})" if year_match else ""

        if doc_type and product and company:
            return f"{doc_type} {product} - {company}{year}"
        if doc_type and product:
            return f"{doc_type} {product}{year}"
        if product and company:
            return f"{product} - {company}{year}"
        if company:
            return f"Документ - {company}{year}"

        first_line = text.split("\n")[0].strip()
        return first_line[:100] or filename
