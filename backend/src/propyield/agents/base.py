"""Gemini call plumbing shared by the two pipeline agents.

The vision narrative agent and the structured analysis agent both reduce to
"send contents to a Gemini model, get text or JSON back".  ``BaseAgent``
owns that call: model construction, the per-call timeout, token and latency
logging, and the conversion of every failure into an ``AgentResult`` so the
orchestrator decides which pipeline step failed.
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)

# Text, or a list mixing text with inline image parts.
PromptContents = Union[str, list]


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def _token_count(response: Any) -> int:
    usage = getattr(response, "usage_metadata", None)
    if not usage:
        return 0
    prompt = getattr(usage, "prompt_token_count", 0) or 0
    completion = getattr(usage, "candidates_token_count", 0) or 0
    return prompt + completion


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------

@dataclass
class AgentResult:
    """Outcome of one model call.

    Agents never raise to the orchestrator.  ``ok`` is False when the model
    call failed, timed out or returned something unusable, and ``error``
    then carries the message that ends up in ``ExternalDependencyError``.
    """

    ok: bool
    data: Any = None
    error: Optional[str] = None
    tokens_used: int = 0
    latency_ms: int = 0

    @classmethod
    def success(cls, data: Any, tokens_used: int = 0, latency_ms: int = 0) -> "AgentResult":
        return cls(ok=True, data=data, tokens_used=tokens_used, latency_ms=latency_ms)

    @classmethod
    def failure(cls, error: str, latency_ms: int = 0) -> "AgentResult":
        return cls(ok=False, error=error, latency_ms=latency_ms)


# ---------------------------------------------------------------------------
# Base agent
# ---------------------------------------------------------------------------

class BaseAgent:
    """One named Gemini caller with a fixed model, temperature and timeout.

    ``agent_name`` prefixes every log line, e.g. ``[vision_narrative]``.
    """

    def __init__(
        self,
        agent_name: str,
        model_name: str = "gemini-3-flash-preview",
        temperature: float = 0.7,
        timeout: float = 120.0,
    ):
        self.agent_name = agent_name
        self.model_name = model_name
        self.temperature = temperature
        self.timeout = timeout

    async def generate(
        self,
        prompt: PromptContents,
        system_instruction: Optional[str] = None,
        json_mode: bool = False,
        response_schema: dict | None = None,
    ) -> AgentResult:
        """Send *prompt* to the model; the response text lands in ``data``.

        ``json_mode`` and ``response_schema`` are passed through to
        ``get_model``; a schema without ``json_mode`` is ignored there.
        """
        started = time.monotonic()
        try:
            from propyield.infra.gemini_client import get_model

            model = get_model(
                model_name=self.model_name,
                temperature=self.temperature,
                json_mode=json_mode,
                response_schema=response_schema,
                system_instruction=system_instruction,
            )
            response = await asyncio.wait_for(
                model.generate_content_async(prompt),
                timeout=self.timeout,
            )
            text = response.text
        except asyncio.TimeoutError:
            latency_ms = _elapsed_ms(started)
            logger.error("[%s] Model call timed out after %dms", self.agent_name, latency_ms)
            return AgentResult.failure(
                f"Generation timed out after {self.timeout:g}s", latency_ms=latency_ms
            )
        except Exception as exc:
            # The SDK raises a wide range of types (quota, safety block,
            # transport); all of them fail this step.
            latency_ms = _elapsed_ms(started)
            logger.error("[%s] Model call failed after %dms: %s", self.agent_name, latency_ms, exc)
            return AgentResult.failure(str(exc), latency_ms=latency_ms)

        latency_ms = _elapsed_ms(started)
        tokens = _token_count(response)
        logger.info("[%s] %s model=%s tokens=%d latency=%dms",
                    self.agent_name, "json" if json_mode else "text", self.model_name, tokens, latency_ms)
        return AgentResult.success(data=text, tokens_used=tokens, latency_ms=latency_ms)

    async def generate_json(
        self,
        prompt: PromptContents,
        system_instruction: Optional[str] = None,
        response_schema: dict | None = None,
    ) -> AgentResult:
        """Like ``generate`` in JSON mode, with ``data`` decoded to a dict or list."""
        result = await self.generate(
            prompt=prompt,
            system_instruction=system_instruction,
            json_mode=True,
            response_schema=response_schema,
        )
        if not result.ok:
            return result

        try:
            parsed = json.loads(result.data)
        except (json.JSONDecodeError, TypeError) as exc:
            logger.warning("[%s] Unparseable JSON (%s): %.200s", self.agent_name, exc, result.data)
            return AgentResult.failure(f"JSON parse error: {exc}", latency_ms=result.latency_ms)
        return AgentResult.success(data=parsed, tokens_used=result.tokens_used, latency_ms=result.latency_ms)
