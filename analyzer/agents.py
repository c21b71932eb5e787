import json
import logging
import math
import re
import time
from typing import Optional, Tuple

import requests
from pydantic import ValidationError
from tenacity import Retrying, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_incrementing

from analyzer.config import MAX_RETRIES, OPENAI_API_KEY, OPENAI_BASE_URL, REQUEST_TIMEOUT_S, RETRY_DELAY_S, TEMPERATURE
from analyzer.models import calculate_cost
from analyzer.prompts import build_system_prompt, build_user_prompt
from analyzer.schemas import AnalyzeRequest, AnalyzeResponse, ContractAnalysis, TokenUsage, evidence_gaps

logger = logging.getLogger(__name__)


class AnalysisError(RuntimeError):
    """Base error for a failed analysis. retry_count is the number of retries spent."""

    def __init__(self, message: str, retry_count: int = 0):
        super().__init__(message)
        self.retry_count = retry_count


class RateLimitError(AnalysisError):
    """Provider rate limit. Never retried."""


class ClientInputError(AnalysisError):
    """4xx other than rate limiting: bad key, unknown model, oversized request. Never retried."""


class ProviderError(AnalysisError):
    """Network failure, 5xx or unreadable response envelope."""


class SchemaValidationError(AnalysisError):
    """Model output was not JSON or did not match ContractAnalysis."""


TRANSIENT_ERRORS = (ProviderError, SchemaValidationError)


FENCE_RE = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)
OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)
TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
# Top-level keys of a ContractAnalysis; a parsed object needs one of them
ANALYSIS_KEYS = ("overall", "clauses")


def _json_candidates(text: str):
    """Substrings of a model reply that may hold the analysis object, most likely first."""
    fence = FENCE_RE.search(text)
    if fence:
        yield fence.group(1)
    obj = OBJECT_RE.search(text)
    if obj:
        yield obj.group(0)
        yield TRAILING_COMMA_RE.sub(r"\1", obj.group(0))
    # JSON mode sometimes drops the opening brace: "overall": {...}, "clauses": [...]}
    if text.startswith(tuple(f'"{k}"' for k in ANALYSIS_KEYS)):
        yield "{" + text


def _extract_json_obj(text: str) -> dict:
    """
    Pull the analysis object out of a model reply.
    Tolerates markdown fences, chatter around the JSON, a missing opening brace and
    trailing commas, and unwraps {"analysis": {...}}. JSON that parses but has neither
    "overall" nor "clauses" is skipped.
    """
    text = (text or "").strip()
    if not text:
        raise ValueError("No JSON object found in model output.")

    for candidate in _json_candidates(text):
        try:
            obj = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(obj, dict) and isinstance(obj.get("analysis"), dict):
            obj = obj["analysis"]
        if isinstance(obj, dict) and any(k in obj for k in ANALYSIS_KEYS):
            return obj

    raise ValueError(f"No contract analysis object in model output: {text[:100]}...")


def _is_rate_limit(status: int, body: str) -> bool:
    return status == 429 or "rate limit" in (body or "").lower()


def _chat_completion(
    system: str,
    prompt: str,
    model: str,
    temperature: float = TEMPERATURE,
    api_key: str = None,
    base_url: str = None,
) -> Tuple[str, dict]:
    """Call an OpenAI-compatible /chat/completions in JSON mode. Returns (content, usage)."""
    url = f"{(base_url or OPENAI_BASE_URL).rstrip('/')}/chat/completions"
    headers = {"Content-Type": "application/json"}
    key = api_key if api_key is not None else OPENAI_API_KEY
    if key:
        headers["Authorization"] = f"Bearer {key}"
    payload = {
        "model": model,
        "temperature": temperature,
        "response_format": {"type": "json_object"},
        "messages": [
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ],
    }

    try:
        resp = requests.post(url, json=payload, headers=headers, timeout=REQUEST_TIMEOUT_S)
    except requests.exceptions.RequestException as e:
        raise ProviderError(f"Cannot reach the model provider at {url}: {e}") from e

    if resp.status_code >= 400:
        body = getattr(resp, "text", "") or ""
        if _is_rate_limit(resp.status_code, body):
            raise RateLimitError(f"Rate limit reached for model '{model}'. {body[:200]}")
        if resp.status_code < 500:
            raise ClientInputError(f"Provider rejected the request ({resp.status_code}). {body[:200]}")
        raise ProviderError(f"Provider returned {resp.status_code}. {body[:200]}")

    try:
        data = resp.json()
        content = data["choices"][0]["message"]["content"] or ""
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise ProviderError(f"Unexpected response body from provider: {resp.text[:200]}") from e
    return content, data.get("usage") or {}


def parse_analysis(raw_output: str, allow_missing_evidence: bool = False) -> ContractAnalysis:
    """Parse and validate model output. Raises SchemaValidationError so the caller can retry."""
    try:
        obj = _extract_json_obj(raw_output)
    except ValueError as e:
        raise SchemaValidationError(str(e)) from e
    try:
        analysis = ContractAnalysis.model_validate(obj)
    except ValidationError as e:
        raise SchemaValidationError(f"Model output did not match schema: {e.error_count()} error(s). {e}") from e

    gaps = evidence_gaps(analysis)
    if gaps:
        if not allow_missing_evidence:
            raise SchemaValidationError(f"Clauses without evidence quotes: {', '.join(gaps)}")
        logger.warning("Accepting analysis with %d clause(s) lacking evidence: %s", len(gaps), gaps)
    return analysis


def _estimate_tokens(text: str) -> int:
    return math.ceil(len(text) / 4)


def _token_usage(usage: dict, system: str, req: AnalyzeRequest, analysis: ContractAnalysis) -> TokenUsage:
    tokens_in = int(usage.get("prompt_tokens") or 0)
    tokens_out = int(usage.get("completion_tokens") or 0)
    if tokens_in + tokens_out == 0:
        # Provider didn't report usage; approximate at ~4 chars per token
        tokens_in = _estimate_tokens(f"{system}\n\n{req.contract_text}")
        tokens_out = _estimate_tokens(analysis.model_dump_json())
    total = int(usage.get("total_tokens") or 0) or tokens_in + tokens_out
    return TokenUsage(input=tokens_in, output=tokens_out, total=total)


def run_risk_review(
    req: AnalyzeRequest,
    max_retries: int = MAX_RETRIES,
    retry_delay: float = RETRY_DELAY_S,
    temperature: float = TEMPERATURE,
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
) -> AnalyzeResponse:
    """
    Run the structured risk analysis with retries.
    - Transient failures (network, 5xx, bad JSON, schema mismatch, missing evidence) are retried
      up to max_retries times with a linearly growing delay.
    - Rate limits and other client errors abort immediately.
    - On the final attempt clauses without evidence are accepted rather than failing the run.
    """
    start = time.monotonic()
    system = build_system_prompt()
    attempts = max_retries + 1
    attempt_number = 1

    retrying = Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_incrementing(start=retry_delay, increment=retry_delay),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    try:
        for attempt in retrying:
            with attempt:
                attempt_number = attempt.retry_state.attempt_number
                logger.info("Attempt %d/%d - calling model %s", attempt_number, attempts, req.model_id)
                prompt = build_user_prompt(req, retry=attempt_number > 1)
                raw_output, usage = _chat_completion(
                    system, prompt, req.model_id, temperature=temperature, api_key=api_key, base_url=base_url
                )
                analysis = parse_analysis(raw_output, allow_missing_evidence=attempt_number >= attempts)
    except RateLimitError as e:
        logger.error("Rate limit detected, stopping retries: %s", e)
        e.retry_count = attempt_number - 1
        raise
    except AnalysisError as e:
        e.retry_count = attempt_number - 1
        if isinstance(e, TRANSIENT_ERRORS):
            logger.error("Analysis failed after %d attempt(s): %s", attempt_number, e)
            raise AnalysisError(f"Failed to analyze contract after {attempt_number} attempts: {e}", e.retry_count) from e
        logger.error("Analysis rejected by provider: %s", e)
        raise

    tokens = _token_usage(usage, system, req, analysis)
    response = AnalyzeResponse(
        analysis=analysis,
        processing_time_ms=int((time.monotonic() - start) * 1000),
        tokens_used=tokens,
        model_used=req.model_id,
        estimated_cost=calculate_cost(req.model_id, tokens.input, tokens.output),
        retry_count=attempt_number - 1,
        temperature=temperature,
    )
    logger.info(
        "Analysis done: %d clauses, %d tokens, $%.5f, %d ms, %d retries",
        len(analysis.clauses), tokens.total, response.estimated_cost,
        response.processing_time_ms, response.retry_count,
    )
    return response
