"""
Quiz generation API client.

Handles HTTP communication with the quiz generation backend, which turns a
topic and settings into a typed quiz payload.
"""

from __future__ import annotations

import asyncio

import httpx
from loguru import logger
from pydantic import ValidationError

from revision_engine.core.exceptions import GenerationError
from revision_engine.quiz.models import GenerateQuizRequest, QuizPayload


class QuizGenerationClient:
    """HTTP client for the quiz generation backend."""

    def __init__(
        self,
        api_url: str,
        timeout_ms: int = 600000,
        retry_attempts: int = 2,
        backoff_seconds: float = 1.0,
    ):
        """
        Initialize quiz generation client.

        Args:
            api_url: Base URL of the backend API (e.g. http://localhost:5001/api)
            timeout_ms: Request timeout in milliseconds
            retry_attempts: Number of attempts on timeout, transport error or 5xx
            backoff_seconds: First retry delay; doubles on each attempt
        """
        self.api_url = api_url.rstrip("/")
        self.timeout_seconds = timeout_ms / 1000.0
        self.retry_attempts = max(1, retry_attempts)
        self.backoff_seconds = backoff_seconds
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_seconds),
            follow_redirects=True,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> QuizGenerationClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _backoff(self, attempt: int) -> None:
        if attempt < self.retry_attempts - 1:
            await asyncio.sleep(self.backoff_seconds * 2**attempt)

    async def generate(self, request: GenerateQuizRequest) -> QuizPayload:
        """
        Generate a quiz with retry logic.

        Args:
            request: Topic, difficulty, mode and question settings

        Returns:
            Parsed quiz with at least one question

        Raises:
            GenerationError: On 4xx, malformed or empty response, or when all
                retries are exhausted
        """
        last_error: Exception | None = None

        for attempt in range(self.retry_attempts):
            try:
                response = await self.client.post(
                    f"{self.api_url}/quiz/generate",
                    json=request.to_payload(),
                )
                response.raise_for_status()
                return self._parse(response)

            except httpx.TimeoutException as e:
                last_error = e
                logger.warning(
                    f"Quiz generation timeout on attempt {attempt + 1}/{self.retry_attempts}"
                )
                await self._backoff(attempt)

            except httpx.HTTPStatusError as e:
                last_error = e
                status = e.response.status_code
                if status >= 500:
                    logger.warning(
                        f"Quiz generation server error {status} on attempt "
                        f"{attempt + 1}/{self.retry_attempts}"
                    )
                    await self._backoff(attempt)
                else:
                    logger.error(f"Quiz generation rejected the request: {status}")
                    raise GenerationError(
                        f"Quiz generation rejected the request ({status})", retryable=False
                    ) from e

            except httpx.RequestError as e:
                last_error = e
                logger.warning(
                    f"Quiz generation request error on attempt {attempt + 1}/{self.retry_attempts}: {e}"
                )
                await self._backoff(attempt)

        error_msg = f"Quiz generation failed after {self.retry_attempts} attempts"
        logger.error(f"{error_msg}: {last_error}")
        raise GenerationError(error_msg, retryable=True) from last_error

    def _parse(self, response: httpx.Response) -> QuizPayload:
        try:
            data = response.json()
        except ValueError as e:
            raise GenerationError("Quiz generation returned invalid JSON.") from e

        raw_quiz = data.get("quiz") if isinstance(data, dict) else None
        if not isinstance(raw_quiz, dict):
            raise GenerationError("Quiz generation response has no quiz.")

        try:
            quiz = QuizPayload.model_validate(raw_quiz)
        except ValidationError as e:
            raise GenerationError("Quiz generation returned an invalid quiz.") from e

        if not quiz.questions:
            raise GenerationError("No questions generated.")
        if not quiz.question_ids_unique():
            logger.warning("Generated quiz has duplicate question ids")
        return quiz

    async def health_check(self) -> bool:
        """
        Check if the quiz backend is reachable.

        Returns:
            True if the API answers 200, False otherwise
        """
        try:
            response = await self.client.get(f"{self.api_url}/health", timeout=5.0)
            return response.status_code == 200
        except httpx.HTTPError:
            return False
