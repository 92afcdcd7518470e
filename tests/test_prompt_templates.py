"""Tests for prompt assembly and history truncation."""

from llm.conversation_store import Turn
from llm.prompt_templates import PromptTemplates
from llm.token_estimator import TokenEstimator


# ── History serialization ─────────────────────────────

class TestFormatHistory:
    def test_role_labels(self, sample_history):
        text = PromptTemplates.format_history(sample_history)
        assert text.splitlines() == [
            "User: Hi",
            "Assistant: Hello! How can I help you today?",
            "User: Do you ship to Canada?",
            "Assistant: Yes, we ship worldwide in 5-7 business days.",
        ]

    def test_unknown_sender_is_assistant(self):
        assert PromptTemplates.format_history([Turn("system", "note")]) == "Assistant: note"

    def test_empty_history(self):
        assert PromptTemplates.format_history([]) == ""


# ── Prompt layout ─────────────────────────────────────

class TestBuildReplyPrompt:
    def test_layout_order(self):
        prompt = PromptTemplates.build_reply_prompt(
            [{"sender": "user", "text": "Hi"}], "What's your return policy?"
        )

        assert prompt.startswith(PromptTemplates.SYSTEM_PROMPT)
        assert prompt.endswith(
            "\n\nConversation History:\nUser: Hi\n\nUser: What's your return policy?\n\nAssistant:"
        )

    def test_system_prompt_has_faq_facts(self):
        prompt = PromptTemplates.build_reply_prompt([], "hello")
        assert "30-day return & refund policy" in prompt
        assert "Free shipping to USA on orders over $50" in prompt

    def test_custom_system_prompt(self):
        prompt = PromptTemplates.build_reply_prompt([], "hello", system_prompt="Be brief.")
        assert prompt.startswith("Be brief.\n\nConversation History:")

    def test_braces_in_message_are_literal(self):
        prompt = PromptTemplates.build_reply_prompt([], "order {id} failed")
        assert "User: order {id} failed" in prompt


# ── Truncation ────────────────────────────────────────

class TestTruncation:
    def test_history_within_budget_untouched(self, sample_history):
        serialized = PromptTemplates.format_history(sample_history)
        prompt = PromptTemplates.build_reply_prompt(sample_history, "Thanks")
        assert serialized in prompt

    def test_history_at_exact_budget_untouched(self):
        estimator = TokenEstimator()
        text = "a" * 40
        assert estimator.truncate_head(text, 10) == text

    def test_oversized_history_keeps_trailing_budget(self):
        history = [{"sender": "user", "text": f"message number {i:04d}"} for i in range(2000)]
        serialized = PromptTemplates.format_history(history)
        assert len(serialized) > 16000

        message = "Where is my refund? " * 50
        prompt = PromptTemplates.build_reply_prompt(history, message, max_input_tokens=4000)

        kept = serialized[-16000:]
        assert f"Conversation History:\n{kept}\n\nUser: {message}\n\nAssistant:" in prompt
        assert serialized[:100] not in prompt
        assert "message number 1999" in prompt

    def test_truncation_may_cut_mid_line(self):
        history = [
            {"sender": "user", "text": "first line that is fairly long"},
            {"sender": "ai", "text": "second"},
        ]
        prompt = PromptTemplates.build_reply_prompt(history, "next", max_input_tokens=5)

        history_block = prompt.split("Conversation History:\n", 1)[1].split("\n\nUser: next", 1)[0]
        assert len(history_block) == 20
        assert history_block.endswith("Assistant: second")
        assert not history_block.startswith("User:")

    def test_estimate_is_chars_over_four(self):
        estimator = TokenEstimator()
        assert estimator.estimate("") == 0
        assert estimator.estimate("abcd" * 10) == 10
        assert estimator.estimate("abcdef") == 1.5
