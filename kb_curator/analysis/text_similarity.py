"""Lexical similarity primitives shared by the analyzers.

All comparisons are purely lexical: Levenshtein distance on case-folded
strings, cosine over term-frequency vectors, keyword Jaccard and fuzzy
matching of insurance key phrases.
"""

import re
from collections import Counter

import numpy as np

_NON_WORD = re.compile(r"[^\w\s]")

STOP_WORDS = frozenset(
    {
        "и", "в", "на", "с", "по", "для", "от", "до", "при", "о", "об", "к", "у",
        "за", "под", "над",
        "правила", "условия", "страхование", "страховой", "договор", "полис",
        "документ", "файл",
    }
)

KEY_PHRASE_PATTERNS = [
    r"страхов[а-яё]+ случа[а-яё]+",
    r"страхов[а-яё]+ сумм[а-яё]+",
    r"страхов[а-яё]+ взнос[а-яё]+",
    r"страхов[а-яё]+ премия",
    r"франшиз[а-яё]+",
    r"выплат[а-яё]+ возмещени[а-яё]+",
    r"исключени[а-яё]+ из страхования",
    r"территори[а-яё]+ страхования",
    r"срок действия",
    r"вступлени[а-яё]+ в силу",
]
_KEY_PHRASES = [re.compile(p, re.IGNORECASE) for p in KEY_PHRASE_PATTERNS]

MAX_KEYWORDS = 10
MAX_KEY_PHRASES = 15


def tokenize(text: str) -> list[str]:
    """Lowercase, drop punctuation, split on whitespace, keep tokens longer than 2."""
    return [w for w in _NON_WORD.sub("", text.lower()).split() if len(w) > 2]


def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance with a rolling row."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j - 1], previous[j], current[j - 1]))
        previous = current
    return previous[-1]


def levenshtein_similarity(a: str, b: str) -> float:
    """Return ``1 - distance / max_len`` on case-folded strings.

    Two empty strings are identical (1.0).
    """
    s1, s2 = a.lower(), b.lower()
    max_len = max(len(s1), len(s2))
    if max_len == 0:
        return 1.0
    return 1.0 - levenshtein_distance(s1, s2) / max_len


def cosine_similarity(text_a: str, text_b: str) -> float:
    """Cosine similarity of term-frequency vectors built from :func:`tokenize`."""
    counts_a = Counter(tokenize(text_a))
    counts_b = Counter(tokenize(text_b))
    vocabulary = sorted(set(counts_a) | set(counts_b))
    if not vocabulary:
        return 0.0

    a = np.array([counts_a[w] for w in vocabulary], dtype=float)
    b = np.array([counts_b[w] for w in vocabulary], dtype=float)

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.dot(a, b) / (norm_a * norm_b))


def extract_keywords(text: str) -> list[str]:
    """Return up to 10 distinct non-stop-word tokens longer than 3 chars, in order."""
    keywords: list[str] = []
    for word in tokenize(text):
        if word in STOP_WORDS or len(word) <= 3 or word in keywords:
            continue
        keywords.append(word)
        if len(keywords) == MAX_KEYWORDS:
            break
    return keywords


def keyword_similarity(text_a: str, text_b: str) -> float:
    """Jaccard index of the two keyword sets; 0 when either side is empty."""
    keywords_a = set(extract_keywords(text_a))
    keywords_b = set(extract_keywords(text_b))
    if not keywords_a or not keywords_b:
        return 0.0
    return len(keywords_a & keywords_b) / len(keywords_a | keywords_b)


def extract_key_phrases(text: str) -> list[str]:
    """Find insurance key phrases, lowercased and unique, at most 15."""
    phrases: list[str] = []
    for pattern in _KEY_PHRASES:
        for match in pattern.findall(text):
            phrase = match.lower()
            if phrase not in phrases:
                phrases.append(phrase)
    return phrases[:MAX_KEY_PHRASES]


def phrase_similarity(text_a: str, text_b: str, pair_threshold: float = 0.8) -> float:
    """Share of key phrases that have a close partner on the other side.

    Counts phrases of ``text_a`` with a Levenshtein partner above
    ``pair_threshold`` in ``text_b``, divided by the larger phrase count.
    """
    phrases_a = extract_key_phrases(text_a)
    phrases_b = extract_key_phrases(text_b)
    if not phrases_a or not phrases_b:
        return 0.0

    matched = sum(
        1
        for pa in phrases_a
        if any(levenshtein_similarity(pa, pb) > pair_threshold for pb in phrases_b)
    )
    return matched / max(len(phrases_a), len(phrases_b))


def size_ratio(len_a: int, len_b: int) -> float:
    """Return ``1 - |a - b| / mean(a, b)``, or 0 when both are empty."""
    average = (len_a + len_b) / 2
    if average == 0:
        return 0.0
    return 1.0 - abs(len_a - len_b) / average
