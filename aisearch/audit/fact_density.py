"""
Fact Density Audit (20 points)

Does the page carry concrete, citable information?

Checks:
- unique_facts:   Distinct stats/dates/names per 500 words
- data_markup:    Table, list or definition-list markup for data
- citations:      Outbound links to primary sources
- deduplication:  < 10% repeated paragraphs
- direct_answers: H2/H3 sections that open with an answer
"""

import logging
import re
from typing import List, Optional, Set
from urllib.parse import urlparse

from bs4 import BeautifulSoup
from bs4.element import Comment, NavigableString, Tag

from aisearch.models import DiagnosticContext, Pillar, PillarResult
from .base import content_root, count_words, normalize_text, parse_html, run_check, text_of

logger = logging.getLogger(__name__)

PILLAR = Pillar.FACT_DENSITY

MIN_PARAGRAPH_CHARS = 50
NEAR_DUPLICATE_SIMILARITY = 0.8
DUPLICATE_RATIO_LIMIT = 0.10
ANSWER_WINDOW_WORDS = 100


# =============================================================================
# FACT EXTRACTION
# =============================================================================

_PERCENTAGE = re.compile(r"\d+(?:\.\d+)?%")
_MONEY = re.compile(
    r"[$€£¥]\d[\d,]*(?:\.\d+)?[kKmMbB]?|\d[\d,]*(?:\.\d+)?\s*(?:million|billion|thousand|hundred|x)\b",
    re.IGNORECASE,
)
_MEASUREMENT = re.compile(
    r"\d+(?:\.\d+)?\s*(?:mph|km/h|kg|lbs|meters|feet|miles|kilometers|GB|MB|TB|ms|"
    r"seconds?|minutes?|hours?|req/s|rps|qps)\b",
    re.IGNORECASE,
)
_YEAR = re.compile(r"\b(?:19|20)\d{2}\b")
_MONTH_YEAR = re.compile(
    r"\b(?:January|February|March|April|May|June|July|August|September|October|"
    r"November|December)\s+(?:19|20)\d{2}\b",
    re.IGNORECASE,
)
_NUMERIC_DATE = re.compile(r"\b\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}\b")
_CAPITALIZED = re.compile(r"^[A-Z][a-z]+$")

COMMON_CAPITALIZED = {"The", "This", "That", "These", "Those", "What", "When", "Where", "Why", "How", "Who"}


def extract_stats(text: str) -> Set[str]:
    stats = set(_PERCENTAGE.findall(text))
    stats.update(m.strip() for m in _MONEY.findall(text))
    stats.update(m.strip() for m in _MEASUREMENT.findall(text))
    return stats


def extract_dates(text: str) -> Set[str]:
    dates = set(_YEAR.findall(text))
    dates.update(_MONTH_YEAR.findall(text))
    dates.update(_NUMERIC_DATE.findall(text))
    return dates


def extract_proper_names(text: str) -> Set[str]:
    """Adjacent capitalized word pairs, e.g. "Jane Smith"."""
    names = set()
    words = [w.strip(".,;:!?()\"'") for w in text.split()]
    for current, following in zip(words, words[1:]):
        if (
            _CAPITALIZED.match(current)
            and _CAPITALIZED.match(following)
            and current not in COMMON_CAPITALIZED
            and following not in COMMON_CAPITALIZED
        ):
            names.add(f"{current} {following}")
    return names


def count_unique_facts(text: str) -> int:
    return len(extract_stats(text)) + len(extract_dates(text)) + len(extract_proper_names(text))


# =============================================================================
# SIMILARITY
# =============================================================================


def levenshtein_distance(s1: str, s2: str) -> int:
    """Edit distance between two strings."""
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)

    if len(s2) == 0:
        return len(s1)

    previous_row = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


def similarity(s1: str, s2: str) -> float:
    """1.0 for identical strings, 0.0 for nothing in common."""
    longer, shorter = (s1, s2) if len(s1) >= len(s2) else (s2, s1)
    if not longer:
        return 1.0
    # Distance is at least the length difference
    if len(shorter) / len(longer) <= NEAR_DUPLICATE_SIMILARITY:
        return len(shorter) / len(longer)
    return (len(longer) - levenshtein_distance(longer, shorter)) / len(longer)


def count_duplicates(paragraphs: List[str]) -> int:
    """
    Count paragraphs that repeat an earlier one.

    Each paragraph is compared against every previously seen distinct
    paragraph (exact match or > 80% similar).
    """
    duplicates = 0
    seen: List[str] = []
    for paragraph in paragraphs:
        normalized = normalize_text(paragraph).lower()
        if any(
            normalized == existing or similarity(normalized, existing) > NEAR_DUPLICATE_SIMILARITY
            for existing in seen
        ):
            duplicates += 1
        else:
            seen.append(normalized)
    return duplicates


# =============================================================================
# DIRECT ANSWERS
# =============================================================================

QUESTION_PATTERNS = [
    (
        re.compile(r"^\s*what\s+(is|are|was|were|does|do)\b", re.IGNORECASE),
        re.compile(r"\b(is|are|refers? to|means?|defined as|describes?|stands? for)\b", re.IGNORECASE),
    ),
    (
        re.compile(r"^\s*how\s+(to|do|does|can|should|much|many)\b", re.IGNORECASE),
        re.compile(
            r"\b(steps?|first|start|begin|use|click|open|install|follow|then|next|"
            r"costs?|takes?|by|you can|you need)\b",
            re.IGNORECASE,
        ),
    ),
    (
        re.compile(r"^\s*why\b", re.IGNORECASE),
        re.compile(r"\b(because|due to|since|as a result|reasons?|so that|leads? to|causes?|helps?)\b", re.IGNORECASE),
    ),
    (
        re.compile(r"^\s*when\b", re.IGNORECASE),
        re.compile(
            r"\b(when|after|before|during|once|until|every|within|(?:19|20)\d{2}|"
            r"days?|weeks?|months?|years?|hours?|morning|evening|season)\b",
            re.IGNORECASE,
        ),
    ),
]

# Subject followed by a verb within the opening words
_EARLY_VERB = re.compile(
    r"\b(is|are|was|were|has|have|can|will|should|provides?|offers?|includes?|"
    r"allows?|helps?|means|uses?|makes?|lets?|gives?|requires?|supports?)\b",
    re.IGNORECASE,
)
TYPED_CUE_WINDOW = 50
EARLY_VERB_WINDOW = 12


def text_after_heading(heading: Tag, max_words: int = ANSWER_WINDOW_WORDS) -> str:
    """Text that follows a heading, up to the next H1-H3 or max_words."""
    collected: List[str] = []
    total = 0
    for element in heading.next_elements:
        if isinstance(element, Tag) and element.name in ("h1", "h2", "h3"):
            break
        if not isinstance(element, NavigableString) or isinstance(element, Comment):
            continue
        if any(parent is heading for parent in element.parents):
            continue
        if element.parent is not None and element.parent.name in ("script", "style"):
            continue
        words = str(element).split()
        if not words:
            continue
        collected.extend(words)
        total += len(words)
        if total >= max_words:
            break
    return " ".join(collected[:max_words])


def is_direct_answer(heading_text: str, answer: str) -> bool:
    if not answer:
        return False
    words = answer.split()
    for question, cues in QUESTION_PATTERNS:
        if question.search(heading_text):
            return bool(cues.search(" ".join(words[:TYPED_CUE_WINDOW])))
    return len(words) >= 3 and bool(_EARLY_VERB.search(" ".join(words[:EARLY_VERB_WINDOW])))


def score_direct_answer_share(answered: int, total: int) -> int:
    if total == 0:
        return 0
    share = answered / total
    if share >= 0.75:
        return 5
    if share >= 0.50:
        return 4
    if share >= 0.25:
        return 2
    return 0


# =============================================================================
# CHECKS
# =============================================================================


def check_unique_facts(soup: BeautifulSoup) -> int:
    text = text_of(content_root(soup))
    words = count_words(text)
    if words == 0:
        return 0
    per_500 = count_unique_facts(text) / words * 500
    return min(5, int(per_500))


def check_data_markup(soup: BeautifulSoup) -> int:
    tables = len(soup.find_all("table"))
    lists = len(soup.find_all(["ul", "ol"]))
    definition_lists = len(soup.find_all("dl"))
    return 5 if tables > 0 or lists > 2 or definition_lists > 0 else 0


AUTHORITY_SUFFIXES = (".gov", ".edu", ".org", ".int")
AUTHORITY_HOSTS = ("doi.org", "pubmed", "ncbi.nlm.nih.gov", "arxiv.org", "scholar.google", "jstor.org")
CITATION_CONTEXT = re.compile(r"\b(source|study|studies|research|report|survey|according to)\b", re.IGNORECASE)
_CITATION_MARK = re.compile(r"^\[?\d+\]?$|\[")


def count_citations(soup: BeautifulSoup, page_url: Optional[str] = None) -> int:
    page_host = (urlparse(page_url).hostname or "").lower() if page_url else ""
    citations = 0
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href.lower().startswith(("http://", "https://")):
            continue
        host = (urlparse(href).hostname or "").lower()
        if not host or (page_host and host == page_host):
            continue

        authoritative = host.endswith(AUTHORITY_SUFFIXES) or any(h in host for h in AUTHORITY_HOSTS)
        context = text_of(anchor.parent) if anchor.parent is not None else ""
        if authoritative or CITATION_CONTEXT.search(context) or _CITATION_MARK.search(text_of(anchor)):
            citations += 1
    return citations


def check_citations(soup: BeautifulSoup, page_url: Optional[str]) -> int:
    citations = count_citations(soup, page_url)
    if citations >= 2:
        return 5
    return 2 if citations == 1 else 0


def check_deduplication(soup: BeautifulSoup) -> int:
    paragraphs = [text_of(p) for p in soup.find_all("p")]
    paragraphs = [p for p in paragraphs if len(p) > MIN_PARAGRAPH_CHARS]
    if not paragraphs:
        return 5
    duplicates = count_duplicates(paragraphs)
    return 0 if duplicates / len(paragraphs) >= DUPLICATE_RATIO_LIMIT else 5


def check_direct_answers(soup: BeautifulSoup, ctx: DiagnosticContext) -> int:
    headings = soup.find_all(["h2", "h3"])
    answered = 0
    unanswered = []
    for heading in headings:
        heading_text = text_of(heading)
        if is_direct_answer(heading_text, text_after_heading(heading)):
            answered += 1
        elif heading_text:
            unanswered.append(heading_text)

    ctx.unanswered_headings = unanswered[:3]
    return score_direct_answer_share(answered, len(headings))


# =============================================================================
# ENTRY POINT
# =============================================================================


def run(html: str, ctx: DiagnosticContext, url: Optional[str] = None) -> PillarResult:
    """Audit the Fact Density pillar."""
    soup = parse_html(html)
    page_url = url or ctx.url
    checks = {
        "unique_facts": run_check(ctx, PILLAR, "unique_facts", check_unique_facts, soup),
        "data_markup": run_check(ctx, PILLAR, "data_markup", check_data_markup, soup),
        "citations": run_check(ctx, PILLAR, "citations", check_citations, soup, page_url),
        "deduplication": run_check(ctx, PILLAR, "deduplication", check_deduplication, soup),
        "direct_answers": run_check(ctx, PILLAR, "direct_answers", check_direct_answers, soup, ctx),
    }
    result = PillarResult(pillar=PILLAR, checks=checks)
    logger.info(f"Fact density audit for {page_url}: {result.earned}/{result.max_points}")
    return result
