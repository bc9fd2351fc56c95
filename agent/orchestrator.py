from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import structlog

from adapters.base import DatabaseAdapter
from agent.llm_providers import (
    CompletionProvider,
    CompletionResult,
    FailureKind,
    GenerationFailure,
    build_provider,
)
from agent.sql_generator import generate_basic_sql
from schema.formatter import format_schema
from schema.introspector.service import IntrospectionError, introspect_schema
from utils.config import Settings, get_settings

logger = structlog.get_logger(__name__)


SYSTEM_PROMPT = (
    "You are an expert SQL assistant. Convert natural language queries to optimized, syntactically correct SQL "
    "for the provided relational schema. "
    "Schema format: TABLE (column TYPE [annotations]) where annotations can indicate PK primary keys and "
    "FK foreign key relationships. "
    "When multiple tables are referenced, infer JOINs using foreign key relationships. Prefer explicit JOIN syntax. "
    "Return ONLY the SQL query (single statement) ending with a semicolon. "
    "Do not include backticks, markdown, or explanations."
)

PROMPT_CONSTRAINTS = (
    "Constraints: Only one SQL statement; choose only relevant columns; include necessary JOINs and filters; "
    "use table aliases; if aggregation requested include GROUP BY; if counting return COUNT with meaningful alias."
)


class Policy(str, Enum):
    RETRY = "retry"
    DEGRADE = "degrade"


# Generation never surfaces a failure to the caller; the worst case is the heuristic path.
FAILURE_POLICY = {
    FailureKind.TRANSPORT: Policy.RETRY,
    FailureKind.UNCONFIGURED: Policy.DEGRADE,
    FailureKind.AUTH: Policy.DEGRADE,
    FailureKind.TIMEOUT: Policy.DEGRADE,
    FailureKind.EMPTY_RESPONSE: Policy.DEGRADE,
    FailureKind.MALFORMED_RESPONSE: Policy.DEGRADE,
    FailureKind.PROVIDER_ERROR: Policy.DEGRADE,
}


@dataclass
class GeneratedQuery:
    sql_text: Optional[str]
    explanation: Optional[str]
    success: bool
    error: Optional[str] = None


def clean_sql_query(sql: str) -> str:
    cleaned = re.sub(r"```sql\n?", "", sql or "", flags=re.IGNORECASE)
    cleaned = re.sub(r"```\n?", "", cleaned)
    cleaned = cleaned.strip()
    if cleaned and not cleaned.endswith(";"):
        cleaned += ";"
    return cleaned


_STRING_LITERAL = re.compile(r"'(?:[^']|'')*'")


def is_single_statement(sql: str) -> bool:
    # Semicolons inside quoted literals do not end a statement.
    bare = _STRING_LITERAL.sub("''", sql or "").rstrip()
    return bare.endswith(";") and bare.count(";") == 1


def build_user_prompt(text: str, schema_text: str) -> str:
    return f"Database Schema:\n{schema_text}\n\nUser Request: {text}\n\n{PROMPT_CONSTRAINTS}"


class QueryOrchestrator:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        adapter: Optional[DatabaseAdapter] = None,
        provider: Optional[CompletionProvider] = None,
    ):
        self.settings = settings or get_settings()
        self.adapter = adapter
        self.provider = provider if provider is not None else build_provider(self.settings)

    def resolve_schema(self, schema_text: Optional[str]) -> str:
        if schema_text and schema_text.strip():
            return schema_text
        return format_schema(introspect_schema(self.adapter))

    def _complete(self, system_prompt: str, user_prompt: str) -> CompletionResult:
        attempts = 0
        while True:
            try:
                result = self.provider.complete(system_prompt, user_prompt)
            except Exception as exc:
                logger.exception("llm_provider_crashed", provider=self.provider.label)
                result = CompletionResult(
                    failure=GenerationFailure(FailureKind.PROVIDER_ERROR, str(exc), self.provider.label)
                )
            if result.ok:
                return result
            failure = result.failure
            if failure is None:
                return result
            if FAILURE_POLICY[failure.kind] is Policy.RETRY and attempts < self.settings.llm_max_retries:
                attempts += 1
                logger.info("llm_retry", provider=failure.provider, kind=failure.kind.value, attempt=attempts)
                continue
            return result

    def _heuristic(self, text: str, schema_text: Optional[str], explanation: str) -> GeneratedQuery:
        return GeneratedQuery(
            sql_text=generate_basic_sql(text, schema_text),
            explanation=explanation,
            success=True,
            error=None,
        )

    def _degrade(self, text: str, schema_text: Optional[str], reason: str) -> GeneratedQuery:
        logger.warning("sql_generation_degraded", reason=reason)
        return self._heuristic(text, schema_text, f"Fallback to heuristic generation due to error: {reason}")

    def convert(self, text: str, schema_text: Optional[str] = None) -> GeneratedQuery:
        provided = bool(schema_text and schema_text.strip())
        try:
            effective_schema = self.resolve_schema(schema_text)
        except IntrospectionError as exc:
            return self._degrade(text, schema_text, str(exc))
        schema_source = "provided" if provided else "auto-detected"

        if self.provider is None:
            return self._heuristic(
                text,
                effective_schema,
                "Generated using heuristic pattern matching (no LLM provider selected)",
            )

        result = self._complete(SYSTEM_PROMPT, build_user_prompt(text, effective_schema))
        failure = result.failure
        if failure is not None:
            if failure.kind is FailureKind.UNCONFIGURED:
                logger.info("llm_provider_unconfigured", provider=failure.provider, reason=failure.message)
                return self._heuristic(
                    text,
                    effective_schema,
                    f"Generated using heuristic pattern matching ({failure.provider} is not configured)",
                )
            return self._degrade(text, effective_schema, failure.describe())

        sql = clean_sql_query(result.text or "")
        if not sql or sql == ";":
            return self._degrade(text, effective_schema, f"{self.provider.label} returned no SQL")
        if not is_single_statement(sql):
            malformed = GenerationFailure(
                FailureKind.MALFORMED_RESPONSE, "returned more than one SQL statement", self.provider.label
            )
            return self._degrade(text, effective_schema, malformed.describe())

        logger.info("sql_generated", provider=self.provider.label, model=self.provider.model, schema=schema_source)
        return GeneratedQuery(
            sql_text=sql,
            explanation=f"Generated using {self.provider.label} ({self.provider.model}) with {schema_source} schema",
            success=True,
            error=None,
        )
