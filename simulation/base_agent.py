from abc import ABC, abstractmethod
from typing import Any, Callable, Optional
import asyncio
import logging

import ollama

from simulation.config import OLLAMA_HOST, LLM_TIMEOUT
from simulation.errors import UpstreamUnavailable, LLMTimeout, SchemaValidationError
from simulation.models.schemas import StageResult
from simulation.tools.validation import strip_code_fences

logger = logging.getLogger(__name__)


class BaseAgent(ABC):
    """
    Abstract base class for all LLM-backed game agents

    Each agent must implement:
    - agent_type: Agent identifier
    - model_name: Ollama model used for its prompts

    The LLM is an opaque collaborator: given a prompt it returns text, may
    be unavailable, and may return ill-formed content. Calls are awaited so
    that concurrent requests are never blocked by one slow completion.
    """

    def __init__(
        self,
        client: Optional[Any] = None,
        timeout: Optional[float] = LLM_TIMEOUT
    ):
        """
        Initialize agent with an async Ollama client

        Args:
            client: Object exposing `async chat(model=..., messages=..., options=...)`;
                an ollama.AsyncClient is created if omitted
            timeout: Seconds before a call is abandoned (None disables)
        """
        self.client = client or ollama.AsyncClient(host=OLLAMA_HOST)
        self.timeout = timeout
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    @abstractmethod
    def agent_type(self) -> str:
        """Agent type identifier"""
        pass

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Ollama model for this agent"""
        pass

    async def call_llm(self, prompt: str, temperature: float = 0.7) -> str:
        """
        Send a single user prompt and return the reply text

        Args:
            prompt: User prompt
            temperature: Sampling temperature

        Returns:
            Raw response text with surrounding whitespace removed

        Raises:
            LLMTimeout: If the call exceeds the configured timeout
            UpstreamUnavailable: If the client raises
        """
        self.logger.info(f"[{self.agent_type.upper()}] Calling {self.model_name}")
        try:
            response = await asyncio.wait_for(
                self.client.chat(
                    model=self.model_name,
                    messages=[{"role": "user", "content": prompt}],
                    options={"temperature": temperature},
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            self.logger.error(f"LLM call timed out after {self.timeout}s")
            raise LLMTimeout(f"{self.agent_type} call timed out") from None
        except Exception as e:
            self.logger.error(f"LLM call failed: {e}")
            raise UpstreamUnavailable(f"{self.agent_type} call failed") from e

        content = response["message"]["content"] or ""
        self.logger.debug(f"LLM response: {content}")
        return content.strip()

    async def run_pipeline(
        self,
        prompt: str,
        validate: Callable[[Any], Any],
        temperature: float = 0.7
    ) -> StageResult:
        """
        Prompt -> parse -> validate, reported as a tagged result

        Args:
            prompt: User prompt
            validate: Validator taking the fence-stripped text; raises
                SchemaValidationError on failure
            temperature: Sampling temperature

        Returns:
            StageResult with status ok, validation_failed, upstream_failed or timed_out
        """
        try:
            content = await self.call_llm(prompt, temperature=temperature)
        except LLMTimeout as e:
            return StageResult(status="timed_out", error=str(e))
        except UpstreamUnavailable as e:
            return StageResult(status="upstream_failed", error=str(e))

        try:
            data = validate(strip_code_fences(content))
        except SchemaValidationError as e:
            self.logger.warning(f"[{self.agent_type.upper()}] Validation failed: {e}")
            return StageResult(status="validation_failed", error=str(e), dropped=e.dropped)

        return StageResult(status="ok", data=data)
