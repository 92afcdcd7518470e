"""
LLM backend capability.

Any object with a matching async ``generate`` satisfies it; backends are
selected at construction time, not by inheritance.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class LLMBackend(Protocol):
    """Generates text for a prompt, or raises ``BackendError``."""

    name: str

    async def generate(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
        """
        Generate text for a prompt.

        Args:
            prompt: Full prompt string
            max_tokens: Generation budget
            temperature: Sampling temperature

        Returns:
            Generated text (may be empty)
        """
        ...
