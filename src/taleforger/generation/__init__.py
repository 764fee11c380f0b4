"""Story text generation.

- retry: bounded retry loop with exponential backoff
- gemini: Gemini REST client performing single attempts
- generator: StoryGenerator tying a client to a retry policy
"""

from .gemini import GeminiClient, GenerationAPIError, extract_text
from .generator import StoryGenerator
from .retry import (
    NO_TEXT_CONTENT_MESSAGE,
    AttemptOutcome,
    AttemptTimeoutError,
    EmptyGenerationError,
    GenerationAttempt,
    GenerationCall,
    GenerationError,
    GenerationExhaustedError,
    GenerationRequest,
    RetryPolicy,
    generate_with_retry,
)

__all__ = [
    # Retry loop
    "generate_with_retry",
    "RetryPolicy",
    "GenerationRequest",
    "GenerationAttempt",
    "AttemptOutcome",
    "GenerationCall",
    "NO_TEXT_CONTENT_MESSAGE",
    # Errors
    "GenerationError",
    "EmptyGenerationError",
    "AttemptTimeoutError",
    "GenerationExhaustedError",
    "GenerationAPIError",
    # Clients
    "GeminiClient",
    "extract_text",
    "StoryGenerator",
]
