"""
Token Estimator for the Support Chat backend.

Character-based heuristic: ~4 characters per token. This is an approximation,
not tokenization; the truncation boundary depends on it.
"""

import logging

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 4


class TokenEstimator:
    """
    Estimates token counts and trims text to a token budget.
    """

    def __init__(self, chars_per_token: int = CHARS_PER_TOKEN):
        self.chars_per_token = chars_per_token

    def estimate(self, text: str) -> float:
        """
        Estimate token count for text.

        Args:
            text: Input text

        Returns:
            Estimated token count (``len(text) / chars_per_token``)
        """
        if not text:
            return 0
        return len(text) / self.chars_per_token

    def max_chars(self, token_budget: int) -> int:
        """Character length equivalent of a token budget."""
        return token_budget * self.chars_per_token

    def truncate_head(self, text: str, token_budget: int) -> str:
        """
        Keep only the trailing ``token_budget`` worth of characters.

        Oldest content is dropped from the front. The cut is by raw character
        count and may land mid-line.
        """
        if self.estimate(text) <= token_budget:
            return text

        keep = self.max_chars(token_budget)
        logger.info(
            f"History over budget: ~{self.estimate(text):.0f} tokens > {token_budget}, "
            f"keeping last {keep} chars"
        )
        return text[-keep:] if keep > 0 else ""
