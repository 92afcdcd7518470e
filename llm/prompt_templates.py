"""
Prompt Templates for the Support Chat backend.

Builds the single prompt string sent to the LLM: system instructions with
store FAQ facts, the serialized conversation history, the new user message
and an assistant cue.
"""

from typing import Iterable, Mapping, Optional, Union

from .conversation_store import Turn
from .token_estimator import TokenEstimator


class PromptTemplates:
    """
    Manages prompt templates for the support agent.
    """

    SYSTEM_PROMPT = """You are a helpful support agent for a small e-commerce store. Answer clearly and concisely.

FAQ Domain Knowledge:
- Shipping: We ship worldwide with delivery in 5–7 business days
- Returns: 30-day return & refund policy
- Support Hours: 9am–6pm IST, Monday–Saturday
- Free Shipping: Free shipping to USA on orders over $50

Keep responses helpful, professional, and concise."""

    REPLY_TEMPLATE = """{system}

Conversation History:
{history}

User: {message}

Assistant:"""

    ROLE_LABELS = {
        "user": "User",
        "ai": "Assistant",
    }

    @classmethod
    def role_label(cls, sender: str) -> str:
        """Anything that isn't the user speaks as the assistant."""
        return cls.ROLE_LABELS.get(sender, "Assistant")

    @classmethod
    def format_history(cls, history: Iterable[Union[Turn, Mapping[str, str]]]) -> str:
        """
        Serialize turns as ``"<Role>: <text>"`` lines, oldest first.

        Args:
            history: Turns or ``{"sender", "text"}`` mappings

        Returns:
            Newline-joined history block
        """
        lines = []
        for turn in history:
            turn = Turn.coerce(turn)
            lines.append(f"{cls.role_label(turn.sender)}: {turn.text}")
        return "\n".join(lines)

    @classmethod
    def build_reply_prompt(
        cls,
        history: Iterable[Union[Turn, Mapping[str, str]]],
        user_message: str,
        max_input_tokens: int = 4000,
        system_prompt: Optional[str] = None,
        estimator: Optional[TokenEstimator] = None,
    ) -> str:
        """
        Assemble the reply prompt.

        The serialized history is truncated from the front to fit
        ``max_input_tokens``; the system prompt and user message are never
        truncated.

        Args:
            history: Prior turns, oldest first
            user_message: Newest user utterance (not part of history)
            max_input_tokens: Estimated token budget for the history block
            system_prompt: Override for the default system prompt
            estimator: Token estimator

        Returns:
            Formatted prompt
        """
        estimator = estimator or TokenEstimator()
        serialized = cls.format_history(history)
        truncated = estimator.truncate_head(serialized, max_input_tokens)

        return cls.REPLY_TEMPLATE.format(
            system=system_prompt or cls.SYSTEM_PROMPT,
            history=truncated,
            message=user_message,
        )
