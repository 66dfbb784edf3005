"""
AI Service
Answers board questions through Azure OpenAI with the grocery metrics injected
as a system prompt.

One question is one request: no retry, no streaming, no shared state between
calls. Every failure is normalized into a QueryError so callers always get a
status and a safe message.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import requests

from .config_service import AzureOpenAISettings, ConfigService
from .error_handling_service import (
    ErrorHandlingService,
    InternalError,
    InvalidInputError,
    QueryError,
    UpstreamError,
)
from .prompt_builder_service import PromptBuilderService


logger = logging.getLogger(__name__)

NO_RESPONSE_PLACEHOLDER = "No response generated"
ERROR_BODY_LOG_LIMIT = 500


class QueryState(Enum):
    """Lifecycle of a single ask() call."""
    IDLE = "idle"
    VALIDATING = "validating"
    INVOKING = "invoking"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class QueryResult:
    """Outcome of ask(): either an answer or a QueryError."""
    state: QueryState
    answer: Optional[str] = None
    error: Optional[QueryError] = None

    @property
    def ok(self) -> bool:
        return self.state is QueryState.SUCCEEDED

    def to_response(self) -> tuple[int, dict[str, str]]:
        """(HTTP status, JSON body) for the query endpoint."""
        if self.ok:
            return 200, {"answer": self.answer}
        return ErrorHandlingService.to_response(self.error or InternalError())


class AIService:
    """Service for AI-powered questions over the grocery metrics."""

    def __init__(self, config: Optional[ConfigService] = None, session: Any = None):
        """
        Args:
            config: Configuration source; settings are re-read on every call
            session: Object with a requests-compatible post(); defaults to requests
        """
        self.config = config or ConfigService()
        self.session = session or requests

    def ask(self, query: Any, data: Optional[dict] = None) -> QueryResult:
        """
        Ask a question about the grocery metrics.

        Args:
            query: The user's question
            data: Optional payload {"kpi": {...}, "mixCats": [...]}

        Returns:
            QueryResult in SUCCEEDED or FAILED state
        """
        state = QueryState.VALIDATING
        try:
            question = self._validate_query(query)
            settings = self.config.get_azure_openai_settings()

            state = QueryState.INVOKING
            kpi, categories = self._split_payload(data)
            system_prompt = PromptBuilderService.build_system_prompt(kpi, categories)
            payload = self._invoke(settings, system_prompt, question)
            answer = self._extract_answer(payload)
        except QueryError as e:
            self._log_failure(e, state)
            return QueryResult(state=QueryState.FAILED, error=e)
        except Exception as e:
            ErrorHandlingService.log_error(
                ErrorHandlingService.process_error(e, context=f"ask:{state.value}")
            )
            return QueryResult(state=QueryState.FAILED, error=InternalError())

        return QueryResult(state=QueryState.SUCCEEDED, answer=answer)

    @staticmethod
    def _validate_query(query: Any) -> str:
        if not isinstance(query, str) or not query.strip():
            raise InvalidInputError()
        return query

    @staticmethod
    def _split_payload(data: Any) -> tuple[Optional[dict], Optional[list]]:
        """Pull the kpi object and category list out of a loosely-typed payload."""
        if not isinstance(data, dict):
            return None, None
        kpi = data.get("kpi")
        categories = data.get("mixCats")
        return (
            kpi if isinstance(kpi, dict) else None,
            categories if isinstance(categories, list) else None,
        )

    def _invoke(self, settings: AzureOpenAISettings, system_prompt: str, question: str) -> dict:
        """
        Issue the single chat-completions request.

        Raises:
            UpstreamError: On any non-2xx response
        """
        response = self.session.post(
            settings.chat_completions_url,
            headers={
                "Content-Type": "application/json",
                "api-key": settings.api_key,
            },
            json={
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": question},
                ],
                "max_completion_tokens": self.config.MAX_COMPLETION_TOKENS,
            },
            timeout=settings.timeout,
        )

        if not response.ok:
            logger.error(
                "Azure OpenAI API error: %s %s",
                response.status_code,
                (response.text or "")[:ERROR_BODY_LOG_LIMIT],
            )
            raise UpstreamError(response.status_code)

        return response.json()

    @staticmethod
    def _extract_answer(payload: Any) -> str:
        """First choice's message text, or the placeholder when it is missing."""
        try:
            content = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return NO_RESPONSE_PLACEHOLDER
        if not isinstance(content, str) or not content:
            return NO_RESPONSE_PLACEHOLDER
        return content

    @staticmethod
    def _log_failure(error: QueryError, state: QueryState) -> None:
        if isinstance(error, InvalidInputError):
            logger.info("Rejected query: %s", error.public_message)
            return
        details = {}
        if getattr(error, "missing", None):
            details["missing_settings"] = error.missing
        if isinstance(error, UpstreamError):
            details["upstream_status"] = error.upstream_status
        ErrorHandlingService.log_error(
            ErrorHandlingService.process_error(error, context=f"ask:{state.value}", details=details)
        )
