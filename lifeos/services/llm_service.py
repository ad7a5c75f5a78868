"""
LLM service layer for document analysis.

Uses Groq (free tier) with Llama 3 to classify a document and pull out its
key dates, amount and summary. The analyzer never raises: without a backend,
or on any backend/parsing error, it returns a default AnalysisResult so the
upload pipeline can always continue.
"""

import json
import logging
import math
from datetime import date, datetime
from typing import Optional, Protocol

from groq import AsyncGroq
from pydantic import ValidationError

from lifeos.config import Settings, get_settings
from lifeos.models.analysis import AnalysisResult, Priority

logger = logging.getLogger(__name__)

ANALYSIS_PROMPT = """You are a document analysis AI. Analyze the following text extracted from a document and extract key information.

IMPORTANT:
- Return ONLY a valid JSON object.
- Do NOT include any explanation, markdown, or extra text.
- All date fields should be in "YYYY-MM-DD" format or null.
- Amount should be a number (no currency symbol) or null.

Extract these fields:
- documentType: one of ["bill", "id", "certificate", "medicine", "insurance", "vehicle", "warranty", "other"]
- category: one of ["Financial", "Government", "Health", "Personal", "Vehicle"]
- dueDate: due date in YYYY-MM-DD format or null
- expiryDate: expiry date in YYYY-MM-DD format or null
- issueDate: issue date in YYYY-MM-DD format or null
- amount: numerical amount if found, or null
- idNumber: any ID/reference number found, or null
- provider: company/issuer name if found, or null
- priority: one of ["HIGH", "MEDIUM", "LOW"] based on urgency
- summary: brief 1-sentence description of the document

Rules for priority:
- HIGH: Due/expiry within 7 days or large amount (>10000)
- MEDIUM: Due/expiry within 30 days or medium amount (1000-10000)
- LOW: Due/expiry beyond 30 days or small amount (<1000)

Document text:
"""

NOT_CONFIGURED_SUMMARY = "Document uploaded - analysis incomplete"
UNPARSABLE_SUMMARY = "Document uploaded - manual review needed"
BACKEND_ERROR_SUMMARY = "Document uploaded - AI analysis failed"


class CompletionBackend(Protocol):
    """Anything that turns a prompt into raw model text."""

    async def complete(self, prompt: str) -> str: ...


class GroqBackend:
    """Chat-completion backend on Groq."""

    def __init__(self, api_key: str, model: str, temperature: float = 0.2, max_tokens: int = 1024) -> None:
        self.client = AsyncGroq(api_key=api_key)
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def complete(self, prompt: str) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        return response.choices[0].message.content or ""


def default_analysis(summary: str = NOT_CONFIGURED_SUMMARY) -> AnalysisResult:
    """Fallback used whenever the model cannot give us a usable answer."""
    return AnalysisResult(summary=summary)


def find_json_object(raw: str) -> Optional[dict]:
    """
    Return the first top-level JSON object embedded in raw text.
    Tolerates commentary or markdown fences before and after the object.
    """
    decoder = json.JSONDecoder()
    start = raw.find("{")
    while start != -1:
        try:
            value, _ = decoder.raw_decode(raw, start)
        except json.JSONDecodeError:
            start = raw.find("{", start + 1)
            continue
        if isinstance(value, dict):
            return value
        start = raw.find("{", start + 1)
    return None


def parse_analysis(raw: str) -> AnalysisResult:
    """Parse a model response; unusable responses give the 'manual review' default."""
    data = find_json_object(raw or "")
    if data is None:
        logger.warning("No JSON object found in model response: %.200s", raw)
        return default_analysis(UNPARSABLE_SUMMARY)
    try:
        return AnalysisResult.model_validate(data)
    except ValidationError as e:
        logger.warning("Model response did not validate: %s", e)
        return default_analysis(UNPARSABLE_SUMMARY)


def derive_priority(
    due_date: Optional[date],
    expiry_date: Optional[date],
    amount: Optional[float],
    now: Optional[datetime] = None,
) -> Priority:
    """
    Local version of the priority rule in the prompt.
    With neither a due nor an expiry date the result is LOW whatever the amount.
    """
    if due_date is None and expiry_date is None:
        return Priority.LOW
    now = now or datetime.utcnow()
    target = datetime.combine(due_date or expiry_date, datetime.min.time())
    days_until = math.ceil((target - now).total_seconds() / 86400)
    amount = amount or 0

    if days_until <= 7 or amount > 10000:
        return Priority.HIGH
    if days_until <= 30 or amount > 1000:
        return Priority.MEDIUM
    return Priority.LOW


class DocumentAnalyzer:
    """
    Encapsulates all LLM calls. With no backend (GROQ_API_KEY unset) every
    analysis is the default one.
    """

    def __init__(self, backend: Optional[CompletionBackend] = None, max_chars: int = 32000) -> None:
        self.backend = backend
        self.max_chars = max_chars

    async def analyze(self, text: str) -> AnalysisResult:
        if self.backend is None:
            logger.warning("No analysis backend configured (GROQ_API_KEY unset); using default analysis")
            return default_analysis(NOT_CONFIGURED_SUMMARY)

        prompt = ANALYSIS_PROMPT + text[: self.max_chars] + "\n\nReturn JSON:\n"
        try:
            content = await self.backend.complete(prompt)
        except Exception as e:
            logger.exception("Analysis backend error; falling back to defaults: %s", e)
            return default_analysis(BACKEND_ERROR_SUMMARY)

        analysis = parse_analysis(content)
        logger.info(
            "Analysis completed: type=%s category=%s priority=%s (text length=%d)",
            analysis.document_type.value,
            analysis.category.value,
            analysis.priority.value,
            len(text),
        )
        return analysis


def build_analyzer(settings: Optional[Settings] = None) -> DocumentAnalyzer:
    settings = settings or get_settings()
    backend = None
    if settings.groq_api_key:
        backend = GroqBackend(api_key=settings.groq_api_key, model=settings.llm_model)
    return DocumentAnalyzer(backend, max_chars=settings.llm_max_chars)
