"""
Legal page detection using multi-factor heuristic analysis.

No generative model is involved: the URL, title, body text and section headers of a
page are scored against fixed pattern sets and combined into a single confidence.
"""
import re
import logging
from typing import Iterable, List, Optional

from constants import (
    URL_PATTERNS, TITLE_PATTERNS, LEGAL_KEYWORDS, LEGAL_HEADERS,
    FACTOR_WEIGHTS, DETECTION_THRESHOLD, CONTENT_SCORE_STEPS,
    NOT_LEGAL_REASON, GENERIC_LEGAL_REASON,
)
from schemas import ClassificationFactor, ClassificationResult

logger = logging.getLogger(__name__)

_URL_REGEXES = [re.compile(p, re.IGNORECASE) for p in URL_PATTERNS]
_TITLE_REGEXES = [re.compile(p, re.IGNORECASE) for p in TITLE_PATTERNS]
_HEADER_REGEXES = [re.compile(p, re.IGNORECASE) for p in LEGAL_HEADERS]

MIN_CONTENT_LENGTH = 100


def _clamp(score: float) -> float:
    return round(min(score, 1.0), 3)


def _empty_factor() -> ClassificationFactor:
    return ClassificationFactor(score=0.0, matches=[])


def _join_headings(headings) -> str:
    """Join the non-empty string headings; anything else is skipped."""
    if isinstance(headings, str):
        headings = [headings]
    elif not isinstance(headings, (list, tuple)):
        return ""
    return " ".join(h.strip() for h in headings if isinstance(h, str) and h.strip())


# --- FACTOR SCORERS ---

def analyze_url(url: Optional[str]) -> ClassificationFactor:
    """Score a URL against the legal URL patterns."""
    if not isinstance(url, str) or not url:
        return _empty_factor()

    matches = [regex.pattern for regex in _URL_REGEXES if regex.search(url)]
    score = 0.15 * len(matches)

    # Strong single-word indicators anywhere in the URL
    lowered = url.lower()
    if "privacy" in lowered:
        score += 0.1
    if "terms" in lowered:
        score += 0.1
    if "legal" in lowered:
        score += 0.05

    return ClassificationFactor(score=_clamp(score), matches=matches)


def analyze_title(title: Optional[str]) -> ClassificationFactor:
    """Score a page title against the legal title patterns."""
    if not isinstance(title, str) or not title:
        return _empty_factor()

    matches = [regex.pattern for regex in _TITLE_REGEXES if regex.search(title)]
    score = 0.2 * len(matches)

    # A short title that matches is rarely an incidental mention
    if len(title) < 50 and matches:
        score += 0.2

    return ClassificationFactor(score=_clamp(score), matches=matches)


def analyze_content(content: Optional[str]) -> ClassificationFactor:
    """Score body text by how many legal keywords it contains.

    Each vocabulary term counts once, matched as a case-insensitive substring.
    Density (matches per 1000 words) is informational and does not affect the score.
    """
    if not isinstance(content, str) or len(content) < MIN_CONTENT_LENGTH:
        return ClassificationFactor(score=0.0, matches=[], keyword_matches=0, density=0.0)

    normalized = content.lower()
    word_count = max(len(content.split()), 1)
    matches = [keyword for keyword in LEGAL_KEYWORDS if keyword in normalized]
    density = round(len(matches) / word_count * 1000, 2)

    score = 0.0
    for minimum, step_score in CONTENT_SCORE_STEPS:
        if len(matches) >= minimum:
            score = step_score
            break

    return ClassificationFactor(
        score=score,
        matches=matches,
        keyword_matches=len(matches),
        density=density,
    )


def analyze_structure(content: Optional[str]) -> ClassificationFactor:
    """Score text or headings by the legal section headers they contain."""
    if not isinstance(content, str) or not content:
        return _empty_factor()

    matches = [regex.pattern for regex in _HEADER_REGEXES if regex.search(content)]
    score = 0.1 * len(matches)

    if len(matches) >= 5:
        score += 0.2
    elif len(matches) >= 3:
        score += 0.1

    return ClassificationFactor(score=_clamp(score), matches=matches)


# --- PUBLIC API ---

def classify(url: Optional[str], title: Optional[str], content: Optional[str],
             headings: Optional[Iterable[str]] = None) -> ClassificationResult:
    """
    Decide whether a page contains a legal document.

    Args:
        url: Page URL
        title: Page title
        content: Page body text
        headings: Optional extracted headings, scored together with the body text

    Returns:
        ClassificationResult: verdict, confidence, per-factor scores and reasons
    """
    structure_text = content if isinstance(content, str) else ""
    heading_text = _join_headings(headings)
    if heading_text:
        structure_text = f"{heading_text} {structure_text}".strip()

    factors = {
        "url": analyze_url(url),
        "title": analyze_title(title),
        "content": analyze_content(content),
        "structure": analyze_structure(structure_text),
    }

    confidence = sum(factors[name].score * weight for name, weight in FACTOR_WEIGHTS.items())
    confidence = round(min(max(confidence, 0.0), 1.0), 3)
    is_legal = confidence >= DETECTION_THRESHOLD

    logger.debug(f"Classified {url!r}: confidence={confidence}, is_legal={is_legal}")

    return ClassificationResult(
        is_legal=is_legal,
        confidence=confidence,
        factors=factors,
        reasons=build_reasons(factors, is_legal),
    )


def quick_check(url: Optional[str], title: Optional[str]) -> bool:
    """Cheap pre-check: True if any URL or title pattern matches."""
    url_match = isinstance(url, str) and any(regex.search(url) for regex in _URL_REGEXES)
    title_match = isinstance(title, str) and any(regex.search(title) for regex in _TITLE_REGEXES)
    return url_match or title_match


def build_reasons(factors, is_legal: bool) -> List[str]:
    """Build human-readable reasons for a detection result."""
    if not is_legal:
        return [NOT_LEGAL_REASON]

    reasons = []
    if factors["url"].score > 0.3:
        reasons.append("URL contains legal keywords")

    if factors["title"].score > 0.3:
        reasons.append("Page title indicates legal document")

    keyword_matches = factors["content"].keyword_matches or 0
    if keyword_matches >= 7:
        reasons.append(f"Found {keyword_matches} legal terms")

    header_matches = len(factors["structure"].matches)
    if header_matches >= 3:
        reasons.append(f"Contains {header_matches} legal section headers")

    if not reasons:
        reasons.append(GENERIC_LEGAL_REASON)

    return reasons


# --- HELPERS ---

def detect_document_type(url: Optional[str], title: Optional[str], content: Optional[str]) -> str:
    """Guess the kind of legal document from the URL, title and text together."""
    combined = " ".join(v for v in (url, title, content) if isinstance(v, str)).lower()

    if "privacy" in combined and "policy" in combined:
        return "privacy_policy"
    if "terms" in combined and re.search(r"service|use", combined):
        return "terms_of_service"
    if re.search(r"eula|end[-\s]user[-\s]license", combined):
        return "eula"
    if "cookie" in combined and "policy" in combined:
        return "cookie_policy"
    if re.search(r"user[-\s]agreement", combined):
        return "user_agreement"
    return "legal_document"


def extract_page_text(headings: Optional[Iterable[str]], body_text: Optional[str],
                      max_words: int = 500) -> str:
    """Combine headings and body text, truncated to ``max_words`` words."""
    body_text = body_text if isinstance(body_text, str) else ""
    words = f"{_join_headings(headings)} {body_text}".split()
    return " ".join(words[:max_words])
