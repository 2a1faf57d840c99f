"""
Token accounting for agent turns.

Providers report usage in different places: newer integrations put it on the
returned message (`usage_metadata`), older ones in `LLMResult.llm_output`
under provider-specific keys. `TokenUsageTracker` is a langchain callback
that normalizes whichever one is present.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping

from langchain_core.callbacks import BaseCallbackHandler
from langchain_core.messages import AIMessage
from langchain_core.outputs import LLMResult

# llm_output key -> (input key, output key, model-name key)
_LLM_OUTPUT_FORMATS = (
    ("token_usage", "prompt_tokens", "completion_tokens", "model_name"),  # OpenAI
    ("usage", "input_tokens", "output_tokens", "model"),  # Anthropic
)


@dataclass
class TokenUsage:
    """Token counts of one or more model calls."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    model: str | None = None

    @classmethod
    def from_counts(
        cls,
        input_tokens: int | None,
        output_tokens: int | None,
        total_tokens: int | None = None,
        model: str | None = None,
    ) -> TokenUsage:
        """Build usage from raw counts; a missing total is the sum of the parts."""
        input_tokens = input_tokens or 0
        output_tokens = output_tokens or 0
        if total_tokens is None:
            total_tokens = input_tokens + output_tokens
        return cls(input_tokens, output_tokens, total_tokens, model)

    @classmethod
    def from_message(cls, message: AIMessage) -> TokenUsage:
        meta = getattr(message, "usage_metadata", None) or {}
        return cls.from_counts(
            meta.get("input_tokens"), meta.get("output_tokens"), meta.get("total_tokens")
        )

    @classmethod
    def from_llm_output(cls, llm_output: Mapping[str, Any] | None) -> TokenUsage | None:
        """Usage from a provider's `llm_output`, or None if it reports none."""
        for usage_key, input_key, output_key, model_key in _LLM_OUTPUT_FORMATS:
            counts = (llm_output or {}).get(usage_key)
            if counts:
                return cls.from_counts(
                    counts.get(input_key),
                    counts.get(output_key),
                    counts.get("total_tokens"),
                    model=llm_output.get(model_key),
                )
        return None

    @property
    def is_empty(self) -> bool:
        return self.total_tokens == 0

    def __add__(self, other: TokenUsage) -> TokenUsage:
        combined = TokenUsage(self.input_tokens, self.output_tokens, self.total_tokens, self.model)
        combined += other
        return combined

    def __iadd__(self, other: TokenUsage) -> TokenUsage:
        self.input_tokens += other.input_tokens
        self.output_tokens += other.output_tokens
        self.total_tokens += other.total_tokens
        self.model = self.model or other.model
        return self

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if data["model"] is None:
            del data["model"]
        return data


class TokenUsageTracker(BaseCallbackHandler):
    """
    Callback collecting the usage of every model call it observes.

    Example:
        tracker = TokenUsageTracker()
        await model.ainvoke(messages, config={"callbacks": [tracker]})
        tracker.total_usage.total_tokens
    """

    def __init__(self) -> None:
        super().__init__()
        self.reset()

    def reset(self) -> None:
        self.total_usage = TokenUsage()
        self.call_usages: list[TokenUsage] = []

    def on_llm_end(self, response: LLMResult, **kwargs: Any) -> None:
        usage = TokenUsage.from_llm_output(response.llm_output) or _usage_from_generations(
            response
        )
        if usage is None:
            return
        self.call_usages.append(usage)
        self.total_usage += usage


def _usage_from_generations(response: LLMResult) -> TokenUsage | None:
    messages = (
        getattr(generation, "message", None)
        for generations in response.generations
        for generation in generations
    )
    for message in messages:
        if isinstance(message, AIMessage):
            usage = TokenUsage.from_message(message)
            if not usage.is_empty:
                return usage
    return None
