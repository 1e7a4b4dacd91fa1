import math
import time
import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional

from langchain_core.prompts import PromptTemplate

# Import configuration
from config import (
    ANALYSIS_DEPTH, CHUNK_SIZE, DEFAULT_OUTPUT_LANGUAGE,
    MAX_PROMPT_LENGTH, MIN_ANALYSIS_LENGTH,
)
from capabilities import CapabilityName, build_default_providers
from constants import (
    ANALYSIS_DEPTHS, WORDS_PER_MINUTE, RISK_PROMPT_TEMPLATE,
    EXECUTIVE_SUMMARY_PROMPT_TEMPLATE, KEY_POINTS_PROMPT_TEMPLATE,
    FULL_SUMMARY_PROMPT_TEMPLATE, GLOSSARY_PROMPT_TEMPLATE,
    SIMPLIFY_PROMPT_TEMPLATE, SIMPLIFY_CONTEXT,
)
from errors import CapabilityUnavailableError, InputTooShortError, SessionCreationError
from readiness import ReadinessController
from schemas import (
    AnalysisMetadata, AnalysisRecord, AnalysisSummary, ChunkFindings,
    GlossaryTerm, RiskFinding,
)
from session_pool import SessionPool
from utils import (
    chunk_text, merge_chunk_results, parse_json_response, truncate_text,
    validate_key_points, validate_risks, validate_terms,
)

logger = logging.getLogger(__name__)


def _render(template: str, document_text: str) -> str:
    return PromptTemplate(template=template, input_variables=["document_text"]).format(
        document_text=document_text
    )


# --- HELPER FUNCTIONS FOR ANALYSIS ---

def calculate_risk_score(risks: List[RiskFinding]) -> str:
    """Aggregate individual findings into one risk level."""
    high = sum(1 for r in risks if r.severity == "high")
    medium = sum(1 for r in risks if r.severity == "medium")

    if high >= 2:
        return "high"
    if high >= 1 and medium >= 2:
        return "high"
    if high >= 1 or medium >= 3:
        return "medium"
    if medium >= 1:
        return "medium"
    return "low"


def calculate_reading_time(text: str) -> int:
    if not text:
        return 0
    return math.ceil(len(text.split()) / WORDS_PER_MINUTE)


def estimate_complexity(text: str) -> str:
    """Complexity from mean word length."""
    words = text.split() if text else []
    if not words:
        return "simple"

    avg_word_length = sum(len(word) for word in words) / len(words)
    if avg_word_length > 7:
        return "very_complex"
    if avg_word_length > 6:
        return "complex"
    if avg_word_length > 5:
        return "moderate"
    return "simple"


def detect_text_document_type(text: str) -> str:
    lower = text.lower()
    if "privacy" in lower and "policy" in lower:
        return "privacy_policy"
    if "terms" in lower and ("service" in lower or "use" in lower):
        return "terms_of_service"
    if "cookie" in lower:
        return "cookie_policy"
    if "eula" in lower:
        return "eula"
    return "legal_document"


class LegalDocumentAnalyzer:
    """Orchestrates generative capabilities to analyze a legal document.

    Owns the session pool; sessions are borrowed per call and only released through
    ``release_all_sessions()``.
    """

    def __init__(self, providers=None, pool: Optional[SessionPool] = None,
                 readiness: Optional[ReadinessController] = None,
                 output_language: str = DEFAULT_OUTPUT_LANGUAGE,
                 analysis_depth: str = ANALYSIS_DEPTH,
                 max_prompt_length: int = MAX_PROMPT_LENGTH,
                 chunk_size: int = CHUNK_SIZE):
        if analysis_depth not in ANALYSIS_DEPTHS:
            raise ValueError(f"Unknown analysis depth: {analysis_depth!r}")

        self.providers = providers if providers is not None else build_default_providers()
        self.pool = pool if pool is not None else SessionPool(self.providers)
        self.readiness = readiness if readiness is not None else ReadinessController(self.providers)
        self.output_language = output_language
        self.analysis_depth = analysis_depth
        self.max_prompt_length = max_prompt_length
        self.chunk_size = chunk_size

    # --- MAIN PUBLIC FUNCTIONS ---

    async def analyze(self, text: str, output_language: Optional[str] = None,
                      source: Optional[str] = None, document_type: Optional[str] = None,
                      file_name: Optional[str] = None) -> AnalysisRecord:
        """
        Analyze a legal document with all available capabilities.

        Raises:
            InputTooShortError: If the trimmed text is under the minimum length
            CapabilityUnavailableError: If neither prompt nor summarizer is ready
        """
        start_time = time.monotonic()
        length = len(text.strip()) if text else 0
        if length < MIN_ANALYSIS_LENGTH:
            raise InputTooShortError(length, MIN_ANALYSIS_LENGTH)

        statuses = await self.readiness.check_analysis_ready()
        language = output_language or self.output_language

        analyzable_text, truncated = truncate_text(text, self.max_prompt_length)
        chunked = truncated and self.analysis_depth == "deep"
        logger.info(
            f"Analyzing document ({len(analyzable_text)} characters, truncated={truncated}, "
            f"chunked={chunked}, source={source})"
        )

        if chunked:
            findings, summary = await asyncio.gather(
                self.analyze_in_chunks(text, language),
                self.generate_summary(analyzable_text, language, include_key_points=False),
            )
            risks, glossary = findings.risks, findings.terms
            summary.key_points = findings.key_points
        else:
            risks, summary, glossary = await asyncio.gather(
                self.detect_risks(analyzable_text, language),
                self.generate_summary(analyzable_text, language),
                self.build_glossary(analyzable_text, language),
            )

        record = AnalysisRecord(
            risk_score=calculate_risk_score(risks),
            risk_factors=risks,
            summary=summary,
            glossary=glossary,
            metadata=AnalysisMetadata(
                analyzed_at=datetime.now(timezone.utc),
                document_length=len(text),
                analysis_time_ms=int((time.monotonic() - start_time) * 1000),
                reading_time_minutes=calculate_reading_time(text),
                complexity=estimate_complexity(text),
                document_type=document_type or detect_text_document_type(text),
                source=source,
                file_name=file_name,
                capabilities_used={name: status.state == "readily" for name, status in statuses.items()},
                chunked=chunked,
            ),
        )
        logger.info(f"Analysis complete in {record.metadata.analysis_time_ms}ms (risk={record.risk_score})")
        return record

    async def release_all_sessions(self) -> None:
        await self.pool.release_all()

    # --- SESSIONS ---

    async def _generate(self, capability: CapabilityName, language: Optional[str], call):
        # Creating a session on a capability that is not ready would start a download
        status = await self.readiness.probe(capability)
        if status.state != "readily":
            raise CapabilityUnavailableError(f"{capability.value} capability is {status.state}")
        try:
            async with self.pool.lease(capability, language) as session:
                return await call(session)
        except SessionCreationError as e:
            raise CapabilityUnavailableError(str(e)) from e

    async def _prompt(self, template: str, text: str, language: str) -> str:
        prompt = _render(template, text)
        return await self._generate(CapabilityName.PROMPT, language, lambda s: s.generate(prompt))

    # --- RISK DETECTION ---

    async def detect_risks(self, text: str, output_language: Optional[str] = None) -> List[RiskFinding]:
        try:
            logger.info("Detecting risks")
            response = await self._prompt(RISK_PROMPT_TEMPLATE, text, output_language or self.output_language)
            risks = validate_risks(parse_json_response(response).get("risks"))
            logger.info(f"Found {len(risks)} risks")
            return risks
        except Exception as e:
            logger.error(f"Error detecting risks: {str(e)}")
            return []

    # --- SUMMARY GENERATION ---

    async def generate_summary(self, text: str, output_language: Optional[str] = None,
                               include_key_points: bool = True) -> AnalysisSummary:
        language = output_language or self.output_language
        include_full = self.analysis_depth != "quick"

        executive, key_points, full_summary = await asyncio.gather(
            self.generate_executive_summary(text, language),
            self.generate_key_points(text, language) if include_key_points else _empty_list(),
            self.generate_full_summary(text, language) if include_full else _empty_text(),
        )

        return AnalysisSummary(
            executive=executive or "Summary not available",
            key_points=key_points,
            full_summary=full_summary or executive or "Detailed summary not available",
        )

    async def generate_executive_summary(self, text: str, output_language: str) -> str:
        try:
            summary = await self._generate(CapabilityName.SUMMARIZER, None, lambda s: s.summarize(text))
            return summary.strip()
        except Exception as e:
            logger.info(f"Summarizer not available, using prompt capability: {str(e)}")

        try:
            response = await self._prompt(EXECUTIVE_SUMMARY_PROMPT_TEMPLATE, text, output_language)
            return response.strip()
        except Exception as e:
            logger.error(f"Error generating executive summary: {str(e)}")
            return ""

    async def generate_key_points(self, text: str, output_language: str) -> List[str]:
        try:
            response = await self._prompt(KEY_POINTS_PROMPT_TEMPLATE, text, output_language)
            return validate_key_points(parse_json_response(response).get("keyPoints"))
        except Exception as e:
            logger.error(f"Error generating key points: {str(e)}")
            return []

    async def generate_full_summary(self, text: str, output_language: str) -> str:
        try:
            response = await self._prompt(FULL_SUMMARY_PROMPT_TEMPLATE, text, output_language)
            return response.strip()
        except Exception as e:
            logger.info(f"Prompt capability failed for full summary, trying writer: {str(e)}")

        try:
            task = FULL_SUMMARY_PROMPT_TEMPLATE.split("\n", 1)[0]
            response = await self._generate(CapabilityName.WRITER, None, lambda s: s.write(task, context=text))
            return response.strip()
        except Exception as e:
            logger.error(f"Error generating full summary: {str(e)}")
            return ""

    # --- GLOSSARY ---

    async def build_glossary(self, text: str, output_language: Optional[str] = None) -> List[GlossaryTerm]:
        try:
            logger.info("Building glossary")
            response = await self._prompt(GLOSSARY_PROMPT_TEMPLATE, text, output_language or self.output_language)
            return validate_terms(parse_json_response(response).get("terms"))
        except Exception as e:
            logger.error(f"Error building glossary: {str(e)}")
            return []

    # --- CHUNKED ANALYSIS ---

    async def analyze_in_chunks(self, text: str, output_language: Optional[str] = None) -> ChunkFindings:
        """Analyze each sentence-bounded chunk separately and merge the findings."""
        language = output_language or self.output_language
        chunks = chunk_text(text, self.chunk_size)
        logger.info(f"Analyzing {len(chunks)} chunks")

        results = []
        for index, chunk in enumerate(chunks, start=1):
            risks, terms, key_points = await asyncio.gather(
                self.detect_risks(chunk, language),
                self.build_glossary(chunk, language),
                self.generate_key_points(chunk, language),
            )
            results.append(ChunkFindings(risks=risks, terms=terms, key_points=key_points))
            logger.info(f"Analyzed chunk {index}/{len(chunks)}")

        return merge_chunk_results(results)

    # --- PLAIN LANGUAGE ---

    async def simplify_jargon(self, text: str, output_language: Optional[str] = None) -> str:
        """Rewrite legal text in plain language; returns the input if nothing works."""
        language = output_language or self.output_language
        try:
            simplified = await self._generate(
                CapabilityName.REWRITER, None, lambda s: s.rewrite(text, context=SIMPLIFY_CONTEXT)
            )
            return simplified.strip()
        except Exception as e:
            logger.info(f"Rewriter not available, using prompt capability: {str(e)}")

        try:
            response = await self._prompt(SIMPLIFY_PROMPT_TEMPLATE, text, language)
            return response.strip()
        except Exception as e:
            logger.error(f"Error simplifying jargon: {str(e)}")
            return text


async def _empty_list() -> list:
    return []


async def _empty_text() -> str:
    return ""
