"""Story generator binding a generation call to a retry policy."""

from __future__ import annotations

from taleforger.core.config import Settings

from .retry import (
    GenerationCall,
    GenerationRequest,
    RetryPolicy,
    Sleep,
    generate_with_retry,
)


class StoryGenerator:
    """Generates story text through an injected generation call.

    Args:
        call: Async callable performing one attempt (e.g. ``GeminiClient.generate``)
        policy: Retry configuration
        temperature: Sampling temperature sent with every request
        max_output_tokens: Output length limit sent with every request
        sleep: Optional backoff sleep override
    """

    def __init__(
        self,
        call: GenerationCall,
        policy: RetryPolicy | None = None,
        temperature: float = 0.8,
        max_output_tokens: int = 5000,
        sleep: Sleep | None = None,
    ) -> None:
        self.call = call
        self.policy = policy or RetryPolicy()
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self._sleep = sleep

    @classmethod
    def from_settings(cls, call: GenerationCall, settings: Settings) -> StoryGenerator:
        policy = RetryPolicy(
            max_attempts=settings.generation_max_attempts,
            base_delay=settings.generation_base_delay_seconds,
            attempt_timeout=settings.generation_attempt_timeout_seconds,
        )
        return cls(
            call,
            policy=policy,
            temperature=settings.generation_temperature,
            max_output_tokens=settings.generation_max_output_tokens,
        )

    async def generate(self, system_instruction: str, user_prompt: str) -> str:
        """Generate text, retrying with exponential backoff.

        Raises:
            GenerationExhaustedError: If every attempt failed
        """
        request = GenerationRequest(
            system_instruction=system_instruction,
            user_prompt=user_prompt,
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
        )
        if self._sleep is None:
            return await generate_with_retry(self.call, request, self.policy)
        return await generate_with_retry(self.call, request, self.policy, sleep=self._sleep)
