"""Chat-completion providers over httpx.

All four provider roles (audit, extraction, lookup, advisor) speak the same
OpenAI-compatible ``POST {base_url}/chat/completions`` protocol and differ
only in prompt and expected reply shape.  :class:`ChatCompletionClient`
owns the HTTP details; the role classes own prompts and parsing.

Usage::

    client = ChatCompletionClient(ChatSettings(api_key=..., model="gpt-4o-mini"))
    audit = AuditProvider(client, PromptManager())
    result = await gateway.call(audit, AuditRequest(problem=...), budget.remaining())
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

import httpx
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from legal_intake.constants import (
    ADVISOR_PROVIDER_TIMEOUT_MS,
    AUDIT_PROVIDER_TIMEOUT_MS,
    EXTRACTION_PROVIDER_TIMEOUT_MS,
    LOOKUP_PROVIDER_TIMEOUT_MS,
    MAX_DIRECTORY_ENTRIES,
)
from legal_intake.errors import ProviderError
from legal_intake.models.advisor import AdvisorOutput, ExtractedFields
from legal_intake.models.analysis import DirectoryEntry
from legal_intake.models.result import ParseFailure, Parsed, ParseResult
from legal_intake.parsing import parse_model, parse_object
from legal_intake.prompt import PromptManager
from legal_intake.providers.base import Provider

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ChatSettings:
    """Endpoint and model for one chat-completion upstream."""

    api_key: str | None = None
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o-mini"
    temperature: float = 0.2
    max_tokens: int = 1200

    @property
    def configured(self) -> bool:
        return bool(self.api_key) and bool(self.base_url)


class ChatCompletionClient:
    """Thin httpx wrapper for ``/chat/completions``.

    Args:
        settings: endpoint, credentials and sampling defaults
        http_client: optional pre-built ``httpx.AsyncClient`` (tests inject
            one backed by ``httpx.MockTransport``).  When omitted a client is
            created lazily and closed by :meth:`aclose`.
    """

    def __init__(
        self,
        settings: ChatSettings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._client = http_client
        self._owns_client = http_client is None

    @property
    def settings(self) -> ChatSettings:
        return self._settings

    @property
    def configured(self) -> bool:
        return self._settings.configured

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def complete(
        self,
        messages: list[dict[str, str]],
        timeout_s: float,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Send one chat completion and return the first choice's content.

        Raises:
            httpx.TimeoutException: the transport timeout fired.
            httpx.HTTPStatusError: non-2xx upstream status.
            httpx.TransportError: connection-level failure.
            ProviderError: the reply envelope has no usable content.
        """
        s = self._settings
        body = {
            "model": s.model,
            "messages": messages,
            "temperature": s.temperature if temperature is None else temperature,
            "max_tokens": s.max_tokens if max_tokens is None else max_tokens,
        }
        headers = {
            "Authorization": f"Bearer {s.api_key}",
            "Content-Type": "application/json",
        }
        url = f"{s.base_url.rstrip('/')}/chat/completions"
        resp = await self._http().post(url, json=body, headers=headers, timeout=timeout_s)
        resp.raise_for_status()

        try:
            data = resp.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ProviderError(f"Unexpected completion envelope: {exc!r}") from exc
        if not isinstance(content, str):
            raise ProviderError("Completion content is not text")
        return content

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class AuditRequest(BaseModel):
    problem: str
    answers: dict[str, Any] = Field(default_factory=dict)
    location: Optional[str] = None


class LookupRequest(BaseModel):
    location: str
    specialty: str


class ExtractionRequest(BaseModel):
    message: str


class AdvisorRequest(BaseModel):
    query: str
    context: dict[str, Any] = Field(default_factory=dict)
    # [{question, answer}] from earlier follow-up rounds
    history: list[dict[str, str]] = Field(default_factory=list)


class RepairRequest(BaseModel):
    """Ask the advisor upstream to fix its own invalid output."""

    raw_output: str


# ---------------------------------------------------------------------------
# Provider roles
# ---------------------------------------------------------------------------

class _ChatProvider(Provider):
    """Shared plumbing for chat-completion backed providers."""

    system_prompt: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None

    def __init__(self, client: ChatCompletionClient, prompts: PromptManager | None = None) -> None:
        self._client = client
        self._prompts = prompts or PromptManager()

    @property
    def is_configured(self) -> bool:
        return self._client.configured

    def build_prompt(self, request: Any) -> str:
        raise NotImplementedError

    async def send(self, request: Any, timeout_s: float) -> str:
        messages = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": self.build_prompt(request)})
        return await self._client.complete(
            messages, timeout_s, temperature=self.temperature, max_tokens=self.max_tokens,
        )


class AuditProvider(_ChatProvider):
    """Structured legal diagnostic from the collected answers.

    The payload is the decoded JSON object; field-level shape checks are the
    coalescer's job, so any JSON object counts as a parse success here.
    """

    name = "audit"
    default_timeout_ms = AUDIT_PROVIDER_TIMEOUT_MS
    system_prompt = (
        "Tu es un assistant juridique expert. Analyse et retourne UNIQUEMENT du JSON valide."
    )
    temperature = 0.2
    max_tokens = 1200

    def __init__(
        self,
        client: ChatCompletionClient,
        prompts: PromptManager | None = None,
        *,
        template_ids: Iterable[str] = (),
    ) -> None:
        super().__init__(client, prompts)
        self._template_ids = list(template_ids)

    def build_prompt(self, request: AuditRequest) -> str:
        return self._prompts.render_audit(
            request.problem,
            request.answers,
            location=request.location,
            template_ids=self._template_ids,
        )

    def parse(self, raw: str) -> ParseResult:
        return parse_object(raw)


class LookupProvider(_ChatProvider):
    """Directory of professionals for a location and specialty."""

    name = "lookup"
    default_timeout_ms = LOOKUP_PROVIDER_TIMEOUT_MS

    def __init__(
        self,
        client: ChatCompletionClient,
        prompts: PromptManager | None = None,
        *,
        max_entries: int = MAX_DIRECTORY_ENTRIES,
    ) -> None:
        super().__init__(client, prompts)
        self._max_entries = max_entries

    def build_prompt(self, request: LookupRequest) -> str:
        return self._prompts.render_lookup(request.location, request.specialty, self._max_entries)

    def parse(self, raw: str) -> ParseResult:
        result = parse_object(raw)
        if isinstance(result, ParseFailure):
            return result
        items = result.value.get("lawyers", result.value.get("entries"))
        if not isinstance(items, list):
            return ParseFailure(reason="Reply has no 'lawyers' list")

        entries: list[DirectoryEntry] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            try:
                entries.append(DirectoryEntry.model_validate(item))
            except PydanticValidationError:
                logger.debug("Dropping malformed directory entry: %r", item)
            if len(entries) >= self._max_entries:
                break
        return Parsed(value=entries)


class ExtractionProvider(_ChatProvider):
    """Small fixed-shape field extraction from one free-text message."""

    name = "extraction"
    default_timeout_ms = EXTRACTION_PROVIDER_TIMEOUT_MS
    temperature = 0.0
    max_tokens = 120

    def __init__(
        self,
        client: ChatCompletionClient,
        prompts: PromptManager | None = None,
        *,
        categories: Iterable[str] = (),
    ) -> None:
        super().__init__(client, prompts)
        self._categories = list(categories)

    def build_prompt(self, request: ExtractionRequest) -> str:
        return self._prompts.render_extraction(request.message, self._categories)

    def parse(self, raw: str) -> ParseResult:
        return parse_model(raw, ExtractedFields)


ADVISOR_SCHEMA = json.dumps(AdvisorOutput.model_json_schema(), ensure_ascii=False)


class AdvisorProvider(_ChatProvider):
    """Intent classification plus one proposed action.

    Accepts an :class:`AdvisorRequest` for a planning turn or a
    :class:`RepairRequest` to have the upstream fix an invalid reply.
    """

    name = "advisor"
    default_timeout_ms = ADVISOR_PROVIDER_TIMEOUT_MS
    temperature = 0.2
    max_tokens = 600

    def build_prompt(self, request: AdvisorRequest | RepairRequest) -> str:
        if isinstance(request, RepairRequest):
            return self._prompts.render_repair(request.raw_output, schema=ADVISOR_SCHEMA)
        return self._prompts.render_advisor(
            request.query,
            schema=ADVISOR_SCHEMA,
            context=request.context,
            history=request.history,
        )

    def parse(self, raw: str) -> ParseResult:
        return parse_model(raw, AdvisorOutput)
