"""Result models returned by the OpenRouter client and the auto-pilot writer."""

from typing import Literal

from pydantic import BaseModel, Field


class TokenUsage(BaseModel):
    """Token counts reported in a completion's ``usage`` block."""

    input: int = 0
    output: int = 0
    total: int = 0


class GenerationResult(BaseModel):
    """A single completion reduced to its text and accounting."""

    content: str
    word_count: int
    tokens: TokenUsage = Field(default_factory=TokenUsage)
    model: str


class IterationResult(BaseModel):
    """Accounting for one auto-pilot round."""

    iteration: int
    word_count: int
    tokens: TokenUsage


class AutopilotProgress(BaseModel):
    """Progress report passed to auto-pilot callbacks."""

    status: Literal["generating", "progress", "complete"]
    message: str
    progress: float
    current_word_count: int
    target_word_count: int


class AutopilotResult(BaseModel):
    """Final outcome of an auto-pilot run."""

    content: str
    total_word_count: int
    iterations: int
    target_reached: bool
    results: list[IterationResult] = Field(default_factory=list)
