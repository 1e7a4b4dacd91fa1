"""
Utility functions for the Legal Document Analyzer.
"""
import re
import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from langchain_text_splitters import RecursiveCharacterTextSplitter
from pydantic import ValidationError

from config import CHUNK_SIZE
from constants import EMPTY_CAPABILITY_OUTPUT, TRUNCATION_MARKER
from errors import MalformedOutputError
from schemas import ChunkFindings, GlossaryTerm, RiskFinding

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\s*```$")

# Paragraphs first, then sentence ends, then words
SENTENCE_SEPARATORS = ["\n\n", ". ", "! ", "? ", "\n", " ", ""]


# --- CAPABILITY OUTPUT PARSING ---

def strip_code_fences(text: str) -> str:
    """Remove a leading ```json / ``` marker and a trailing ``` marker."""
    cleaned = text.strip()
    cleaned = _LEADING_FENCE.sub("", cleaned)
    cleaned = _TRAILING_FENCE.sub("", cleaned)
    return cleaned.strip()


def find_balanced_object(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` region of ``text``, or None.

    Braces inside JSON string literals are ignored.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]
    return None


def _load_json_object(response_content: Any) -> Dict[str, Any]:
    if not isinstance(response_content, str):
        raise MalformedOutputError(f"Expected text, got {type(response_content).__name__}")

    cleaned = strip_code_fences(response_content)
    region = find_balanced_object(cleaned)
    if region is not None:
        cleaned = region

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise MalformedOutputError(f"Invalid JSON: {str(e)}") from e

    if not isinstance(parsed, dict):
        raise MalformedOutputError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


def extract_json_object(response_content: Any) -> Tuple[Optional[Dict[str, Any]], str]:
    """
    Extract a JSON object from untrusted capability output.

    Args:
        response_content: Raw text returned by a capability

    Returns:
        tuple: (parsed_object, error_message); parsed_object is None on failure
    """
    try:
        return _load_json_object(response_content), ""
    except MalformedOutputError as e:
        return None, str(e)


def parse_json_response(response_content: Any) -> Dict[str, Any]:
    """Parse JSON response from a capability, falling back to empty results."""
    parsed, error = extract_json_object(response_content)
    if parsed is None:
        logger.error(f"Failed to parse capability response, using empty results: {error}")
        return {key: list(value) for key, value in EMPTY_CAPABILITY_OUTPUT.items()}
    return parsed


def validate_risks(items: Any) -> List[RiskFinding]:
    """Keep only well-formed risk findings. Malformed items are dropped."""
    if not isinstance(items, list):
        return []

    risks = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            risks.append(RiskFinding.model_validate(item))
        except ValidationError:
            logger.debug(f"Dropping malformed risk item: {item!r}")
    return risks


def validate_terms(items: Any) -> List[GlossaryTerm]:
    """Keep only well-formed glossary terms. Malformed items are dropped."""
    if not isinstance(items, list):
        return []

    terms = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            terms.append(GlossaryTerm.model_validate(item))
        except ValidationError:
            logger.debug(f"Dropping malformed glossary item: {item!r}")
    return terms


def validate_key_points(items: Any) -> List[str]:
    if not isinstance(items, list):
        return []
    return [item.strip() for item in items if isinstance(item, str) and item.strip()]


# --- TEXT HANDLING ---

def truncate_text(text: str, max_length: int) -> Tuple[str, bool]:
    """Cut text to ``max_length`` characters and append a truncation marker.

    Returns:
        tuple: (text, was_truncated)
    """
    if len(text) <= max_length:
        return text, False
    return text[:max_length] + TRUNCATION_MARKER, True


def chunk_text(text: str, chunk_size: int = CHUNK_SIZE) -> List[str]:
    """Split text into sentence-bounded chunks of at most ``chunk_size`` characters."""
    if not text or not text.strip():
        return []

    text_splitter = RecursiveCharacterTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=0,
        separators=SENTENCE_SEPARATORS,
        keep_separator="end",
    )
    return [chunk.strip() for chunk in text_splitter.split_text(text) if chunk.strip()]


def deduplicate(items: Iterable[Any], key: str) -> List[Any]:
    """Drop items whose ``key`` attribute was already seen, keeping first occurrences."""
    seen = set()
    unique = []
    for item in items:
        value = getattr(item, key)
        if value in seen:
            continue
        seen.add(value)
        unique.append(item)
    return unique


def merge_chunk_results(chunk_results: Iterable[ChunkFindings]) -> ChunkFindings:
    """Concatenate per-chunk findings and remove duplicates."""
    risks, terms, key_points = [], [], []
    for result in chunk_results:
        risks.extend(result.risks)
        terms.extend(result.terms)
        key_points.extend(result.key_points)

    return ChunkFindings(
        risks=deduplicate(risks, "clause"),
        terms=deduplicate(terms, "term"),
        key_points=list(dict.fromkeys(key_points)),
    )
