"""
AI question generation backed by the Anthropic Messages API.

Each call asks for one batch of questions as a JSON array, validates every
item and retries the whole request a bounded number of times.
"""
import asyncio
import dataclasses
import json
import logging
from typing import Any

import anthropic

from prep_api.config import (
    ANTHROPIC_API_KEY,
    GENERATION_BATCH_SIZE,
    GENERATION_MAX_ATTEMPTS,
    GENERATION_MAX_TOKENS,
    GENERATION_MODEL,
)
from prep_engine.blueprint import FULL, FULL_WINDOW_SIZE, window_blocks
from prep_engine.errors import GenerationFailure
from prep_engine.models import Difficulty, Question

logger = logging.getLogger(__name__)

RETRY_PAUSE_SECONDS = 1.5

EXAM_CONTEXT = (
    "for the AP ECET 2026 (CSE Branch) exam. Questions must be strictly at the "
    "ECET competitive level and follow the C-23 Diploma curriculum."
)

ANSWER_FORMAT = (
    "Reply with ONLY a JSON array and nothing else. Each item must look like:\n"
    '{"text":"...","options":["A","B","C","D"],"correctAnswer":0,'
    '"explanation":"...","subject":"...","difficulty":"Easy|Medium|Hard",'
    '"is_important":false}\n'
    "- exactly 4 options\n"
    "- correctAnswer = 0-based index of the correct option\n"
    "- explanation = step-by-step, for a complete beginner: why the correct "
    "answer is right and why the others are wrong"
)


def build_prompt(subject_or_full: str, count: int, window_index: int) -> str:
    """Prompt for one batch of a subject test or a full-test window."""
    if subject_or_full == FULL:
        blocks = window_blocks(window_index)
        distribution = ", ".join(f"{subject}: {n}" for subject, n in blocks)
        sequence = ", ".join(
            f"{position}. {subject}" for position, (subject, _) in enumerate(blocks, 1)
        )
        first = window_index * FULL_WINDOW_SIZE + 1
        return (
            f"Generate {count} highly probable multiple-choice questions {EXAM_CONTEXT}\n"
            f"This is Window {window_index + 1} "
            f"(Questions {first} to {first + FULL_WINDOW_SIZE - 1}).\n"
            f"SYLLABUS DISTRIBUTION FOR THIS WINDOW: {distribution}.\n"
            f"Generate the questions in this SUBJECT SEQUENCE: {sequence}.\n"
            "Mix Easy, Medium and Hard questions evenly.\n\n"
            f"{ANSWER_FORMAT}"
        )

    return (
        f'Generate {count} highly probable multiple-choice questions for the subject '
        f'"{subject_or_full}" {EXAM_CONTEXT}\n'
        "Focus on core concepts and common problem patterns from previous papers.\n"
        "Mix Easy, Medium and Hard questions evenly.\n\n"
        f"{ANSWER_FORMAT}"
    )


def build_important_prompt(subject: str, count: int) -> str:
    return (
        f'Generate {count} HIGHLY PROBABLE and VERY IMPORTANT multiple-choice questions '
        f'for the subject "{subject}" {EXAM_CONTEXT}\n'
        "These should be the questions most likely to appear in the exam. "
        "Mark is_important as true for all of them.\n\n"
        f"{ANSWER_FORMAT}"
    )


def build_bank_prompt(subject: str, difficulty: Difficulty, count: int) -> str:
    """Prompt for a question-bank batch at one difficulty level."""
    return (
        f'Generate {count} highly probable multiple-choice questions for the subject '
        f'"{subject}" at "{difficulty.value}" difficulty level {EXAM_CONTEXT}\n'
        "Every question must be strictly at the ECET competitive level for that "
        "difficulty. Mark is_important as true if the question is highly likely "
        "to appear in the exam.\n\n"
        f"{ANSWER_FORMAT}"
    )

def parse_questions(raw: str, subject: str) -> list[Question]:
    """
    Parse the model's reply into questions.

    Raises:
        ValueError: the reply is not a JSON array of questions.
    """
    text = raw.strip().replace("```json", "").replace("```", "").strip()
    # The model sometimes adds a sentence before the JSON
    if not text.startswith("["):
        start = text.find("[")
        if start == -1:
            raise ValueError("No JSON array in reply")
        text = text[start:]
    end = text.rfind("]")
    if end != -1:
        text = text[: end + 1]

    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError("Reply is not a JSON array")

    questions = []
    for item in data:
        try:
            question = Question.from_payload(item)
        except ValueError as e:
            logger.debug("Dropping invalid generated question: %s", e)
            continue
        if subject != FULL and question.subject != subject:
            question = dataclasses.replace(question, subject=subject)
        questions.append(question)

    if data and not questions:
        raise ValueError("No valid question in reply")
    return questions


class AnthropicQuestionGenerator:
    """Question generator using ``anthropic.AsyncAnthropic``."""

    def __init__(
        self,
        client: Any = None,
        *,
        model: str = GENERATION_MODEL,
        max_tokens: int = GENERATION_MAX_TOKENS,
        max_attempts: int = GENERATION_MAX_ATTEMPTS,
        retry_pause: float = RETRY_PAUSE_SECONDS,
    ) -> None:
        self._client = client
        self.model = model
        self.max_tokens = max_tokens
        self.max_attempts = max(1, max_attempts)
        self.retry_pause = retry_pause

    @property
    def client(self) -> Any:
        """Create the Anthropic client once and reuse it."""
        if self._client is None:
            if not ANTHROPIC_API_KEY:
                raise GenerationFailure("ANTHROPIC_API_KEY is not set")
            self._client = anthropic.AsyncAnthropic(api_key=ANTHROPIC_API_KEY)
        return self._client

    async def generate(
        self, subject_or_full: str, count: int, window_index: int
    ) -> list[Question]:
        if count <= 0:
            return []
        prompt = build_prompt(subject_or_full, count, window_index)
        questions = await self._request(prompt, subject_or_full)
        return questions[:count]

    async def generate_important(self, subject: str, count: int) -> list[Question]:
        prompt = build_important_prompt(subject, count)
        questions = await self._request(prompt, subject)
        return [
            dataclasses.replace(question, is_important=True) for question in questions[:count]
        ]

    async def generate_bank(
        self, subject: str, difficulty: Difficulty | str, count: int
    ) -> list[Question]:
        """Generate questions of one difficulty for review before they are seeded."""
        level = Difficulty(difficulty)
        if count <= 0:
            return []
        questions = await self._request(build_bank_prompt(subject, level, count), subject)
        return [dataclasses.replace(question, difficulty=level) for question in questions[:count]]

    async def _request(self, prompt: str, subject: str) -> list[Question]:
        """
        Send one prompt, retrying on API or parse errors.

        Raises:
            GenerationFailure: every attempt failed.
        """
        client = self.client
        last_error: Exception | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                response = await client.messages.create(
                    model=self.model,
                    max_tokens=self.max_tokens,
                    messages=[{"role": "user", "content": prompt}],
                )
                raw = "".join(
                    block.text for block in response.content if getattr(block, "text", None)
                )
                return parse_questions(raw, subject)
            except (anthropic.APIError, ValueError) as e:
                last_error = e
                logger.warning(
                    "Generation attempt %s/%s for %s failed: %s",
                    attempt,
                    self.max_attempts,
                    subject,
                    e,
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.retry_pause)

        raise GenerationFailure(
            f"Could not generate questions after {self.max_attempts} attempts. "
            f"Last error: {last_error}"
        )


async def generate_important_pool(
    generator: AnthropicQuestionGenerator,
    subject: str,
    count: int,
    batch_size: int = GENERATION_BATCH_SIZE,
) -> list[Question]:
    """
    Generate ``count`` important questions in batches.

    A failing batch ends the run early; the first batch failing raises.
    """
    questions: list[Question] = []
    while len(questions) < count:
        size = min(batch_size, count - len(questions))
        try:
            batch = await generator.generate_important(subject, size)
        except GenerationFailure:
            if not questions:
                raise
            logger.warning(
                "Important pool for %s stopped after %s questions", subject, len(questions)
            )
            break
        if not batch:
            break
        questions.extend(batch)
    return questions
