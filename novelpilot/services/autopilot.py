"""Auto-pilot writer: keep requesting continuations until a word target is met."""

import inspect
from collections.abc import Awaitable, Callable

from novelpilot.config.core import AutopilotSettings
from novelpilot.core.logging import get_logger
from novelpilot.utils.text import count_words, tail

from .models import AutopilotProgress, AutopilotResult, IterationResult
from .openrouter import OpenRouterClient


logger = get_logger(__name__)

ProgressCallback = Callable[[AutopilotProgress], Awaitable[None] | None]


NOVELIST_SYSTEM_MESSAGE = (
    "You are a professional novelist. Write detailed, descriptive prose of at "
    "least 500-800 words per response, with vivid description, character "
    "development and engaging dialogue."
)

CONTINUATION_SYSTEM_MESSAGE = (
    "You are a creative writing assistant for novels. Continue the story from "
    "exactly where it stops. Never rewrite or repeat existing text. Write at "
    "least 500-800 new, detailed words."
)

CONTINUATION_PROMPT = """\
CURRENT PROGRESS: {current}/{target} words

END OF THE STORY SO FAR:
"{last_section}"

TASK: Continue the story from the exact point where it ends and write the next 500-800 words.

RULES:
- Start where the text above stops
- Do not repeat or rewrite existing content
- Keep the same style, tone and character voices
- Be detailed and descriptive
"""


def build_continuation_prompt(story: str, current: int, target: int, context_chars: int) -> str:
    """Prompt asking for the next section, quoting the end of the story."""
    return CONTINUATION_PROMPT.format(
        current=current, target=target, last_section=tail(story, context_chars)
    )


class AutopilotWriter:
    """Generates a story in rounds until it reaches a target word count."""

    def __init__(self, client: OpenRouterClient, settings: AutopilotSettings | None = None):
        self.client = client
        self.settings = settings or AutopilotSettings()

    async def _report(
        self, on_progress: ProgressCallback | None, progress: AutopilotProgress
    ) -> None:
        logger.debug(
            "autopilot_progress",
            status=progress.status,
            current_word_count=progress.current_word_count,
            target_word_count=progress.target_word_count,
        )
        if on_progress is None:
            return
        result = on_progress(progress)
        if inspect.isawaitable(result):
            await result

    async def run(
        self,
        model: str,
        initial_prompt: str,
        target_word_count: int | None = None,
        max_iterations: int | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> AutopilotResult:
        """Write until ``target_word_count`` words or ``max_iterations`` rounds.

        Args:
            model: Model used for every round
            initial_prompt: Prompt for the opening section
            target_word_count: Stop once the story has this many words
            max_iterations: Maximum number of completions, the first included
            on_progress: Optional sync or async callback receiving progress reports

        Returns:
            The assembled story and per-round accounting
        """
        target = target_word_count or self.settings.target_word_count
        limit = max_iterations or self.settings.max_iterations

        logger.info(
            "autopilot_started", model=model, target_word_count=target, max_iterations=limit
        )

        await self._report(
            on_progress,
            AutopilotProgress(
                status="generating",
                message=f"Generating initial content with {model}...",
                progress=0.0,
                current_word_count=0,
                target_word_count=target,
            ),
        )

        initial = await self.client.generate_content(
            model, initial_prompt, NOVELIST_SYSTEM_MESSAGE
        )
        story = initial.content
        total = initial.word_count
        results = [
            IterationResult(iteration=1, word_count=initial.word_count, tokens=initial.tokens)
        ]

        await self._report(
            on_progress,
            AutopilotProgress(
                status="progress",
                message=f"Generated {initial.word_count} words ({round(total / target * 100)}%)",
                progress=min(1.0, total / target),
                current_word_count=total,
                target_word_count=target,
            ),
        )

        iteration = 1
        while total < target and iteration < limit:
            await self._report(
                on_progress,
                AutopilotProgress(
                    status="generating",
                    message=f"Generating continuation {iteration + 1}...",
                    progress=min(1.0, total / target),
                    current_word_count=total,
                    target_word_count=target,
                ),
            )

            prompt = build_continuation_prompt(
                story, total, target, self.settings.context_chars
            )
            continuation = await self.client.generate_content(
                model, prompt, CONTINUATION_SYSTEM_MESSAGE
            )

            story = f"{story}\n\n{continuation.content}"
            total += continuation.word_count
            iteration += 1
            results.append(
                IterationResult(
                    iteration=iteration,
                    word_count=continuation.word_count,
                    tokens=continuation.tokens,
                )
            )

            logger.info(
                "autopilot_continuation",
                iteration=iteration,
                word_count=continuation.word_count,
                total_word_count=total,
                target_word_count=target,
            )
            await self._report(
                on_progress,
                AutopilotProgress(
                    status="progress",
                    message=f"Generated {continuation.word_count} more words ({round(total / target * 100)}%)",
                    progress=min(1.0, total / target),
                    current_word_count=total,
                    target_word_count=target,
                ),
            )

        await self._report(
            on_progress,
            AutopilotProgress(
                status="complete",
                message=f"Completed with {total} words in {iteration} iterations",
                progress=1.0,
                current_word_count=total,
                target_word_count=target,
            ),
        )

        logger.info(
            "autopilot_completed",
            total_word_count=total,
            iterations=iteration,
            target_reached=total >= target,
        )
        return AutopilotResult(
            content=story,
            total_word_count=total,
            iterations=iteration,
            target_reached=total >= target,
            results=results,
        )
