"""TaleForger - Generate short fiction with a generative AI model.

Registered users describe a story (title, plot hints, genres), the backend
asks the Gemini API to write it, and the result is stored so it can be
edited by hand or regenerated from further prompts.

Quick Start:
    from taleforger import GeminiClient, StoryGenerator

    async with GeminiClient(api_key="...") as client:
        generator = StoryGenerator(client.generate)
        text = await generator.generate(system_instruction, user_prompt)

Generation calls go through ``generate_with_retry``: up to 3 attempts with
1s and 2s backoff, then ``GenerationExhaustedError``.
"""

__version__ = "0.1.0"

from taleforger.generation import (
    GeminiClient,
    GenerationExhaustedError,
    GenerationRequest,
    RetryPolicy,
    StoryGenerator,
    generate_with_retry,
)

__all__ = [
    # Version
    "__version__",
    # Generation
    "generate_with_retry",
    "RetryPolicy",
    "GenerationRequest",
    "GenerationExhaustedError",
    "GeminiClient",
    "StoryGenerator",
]
