"""
Generation orchestration for the card form.

Turns a word into a definition and/or a word type using two long-lived
generation sessions, and exposes the progress as plain state the UI can read
after every update:

- phase: idle, running, succeeded or failed
- latest_result: the definition and word type produced so far
- last_error / errors: failures of the current attempt

Definitions stream in and replace the visible text as they grow; word types
arrive in one validated reply. The combined operation runs both at once and
lets each fail on its own. Every attempt gets a sequence token, so output
from an attempt that has been superseded by a newer call is discarded.
"""

import asyncio
import dataclasses
from enum import Enum
from typing import Any, Callable, Coroutine, List, Optional

from ..errors import (
    GenerationError,
    GenerationFailure,
    GenerationTimeoutError,
    MalformedResponseError,
    SupersededError,
)
from ..models.generated import GeneratedDefinition, GeneratedWordType, GenerationResult
from ..utils.logger import setup_logger
from .ai_service import AIService, GenerationSession

logger = setup_logger(__name__)


class GenerationPhase(Enum):
    """Lifecycle of a generation attempt."""
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class GenerationMode(Enum):
    """What a generation attempt produces."""
    DEFINITION = "definition"
    WORD_TYPE = "word_type"
    CARD = "card"  # definition and word type together


DEFINITION_INSTRUCTIONS = [
    "You are a helpful vocabulary assistant.",
    "Provide detailed, beginner-friendly definitions.",
    "Use 2-3 sentences that explain meaning, context, and usage.",
    "Avoid using complex words in your definitions.",
]

WORD_TYPE_INSTRUCTIONS = [
    "You are a grammar expert.",
    "Classify words into their grammatical categories.",
    "For compound words or phrases, identify the primary grammatical function.",
    "The wordType must be exactly one of: noun, verb, adjective, adverb, preposition, "
    "conjunction, pronoun, interjection, determiner, or phrase.",
]


class GenerationOrchestrator:
    """
    Runs definition and word type generation for one editing context.

    The orchestrator does not block concurrent calls: a new call supersedes
    the previous one. Callers are expected to disable their generate control
    while is_generating is true.

    Usage:
        orchestrator = GenerationOrchestrator.from_settings()
        orchestrator.on_update(lambda o: page.update())
        await orchestrator.generate_card("ephemeral")
        if orchestrator.phase is GenerationPhase.FAILED:
            show(orchestrator.last_error.description)
    """

    def __init__(
        self,
        service: Optional[AIService] = None,
        definition_session: Optional[GenerationSession] = None,
        word_type_session: Optional[GenerationSession] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            service: AI service used to open sessions that are not passed in
            definition_session: Session for definition requests
            word_type_session: Session for word type requests
            timeout: Seconds allowed per request; None waits indefinitely
        """
        if definition_session is None or word_type_session is None:
            service = service or AIService()
            if definition_session is None:
                definition_session = service.create_session(DEFINITION_INSTRUCTIONS)
            if word_type_session is None:
                word_type_session = service.create_session(WORD_TYPE_INSTRUCTIONS)

        self.service = service
        self.definition_session = definition_session
        self.word_type_session = word_type_session
        self.timeout = timeout if timeout and timeout > 0 else None

        self.phase: GenerationPhase = GenerationPhase.IDLE
        self.latest_result: Optional[GenerationResult] = None
        self.last_error: Optional[GenerationFailure] = None
        self.errors: List[GenerationFailure] = []

        self._token: int = 0
        self._callbacks: List[Callable[["GenerationOrchestrator"], Any]] = []

    @classmethod
    def from_settings(cls, service: Optional[AIService] = None) -> "GenerationOrchestrator":
        """Build an orchestrator from the persisted settings."""
        from ..config import SettingsManager

        settings = SettingsManager()
        return cls(
            service=service or AIService(settings.ai_config()),
            timeout=settings.generation_timeout(),
        )

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def is_generating(self) -> bool:
        return self.phase is GenerationPhase.RUNNING

    def can_generate(self, word: Optional[str]) -> bool:
        """True when the word is non-empty after trimming and nothing is running."""
        return bool((word or "").strip()) and not self.is_generating

    def on_update(self, callback: Callable[["GenerationOrchestrator"], Any]) -> None:
        """
        Register a callback for state changes.

        Args:
            callback: Called with the orchestrator after every change
        """
        self._callbacks.append(callback)

    def _notify(self) -> None:
        for callback in self._callbacks:
            try:
                callback(self)
            except Exception:
                logger.exception("Generation update callback failed")

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def prewarm(self) -> None:
        """Warm up both sessions. Never changes state, never raises."""
        await self.definition_session.prewarm()
        if self.word_type_session is not self.definition_session:
            await self.word_type_session.prewarm()

    async def generate(self, word: str, mode: GenerationMode = GenerationMode.CARD) -> Optional[GenerationResult]:
        """
        Generate content for a word.

        Failures are recorded in last_error/errors, never raised. Task
        cancellation is recorded as superseded and re-raised.

        Args:
            word: Word to define and/or classify, already trimmed by the caller
            mode: Which content to generate

        Returns:
            The result of this attempt, or the newer attempt's result if this
            one was superseded
        """
        self._token += 1
        token = self._token

        self.latest_result = GenerationResult()
        self.last_error = None
        self.errors = []
        self.phase = GenerationPhase.RUNNING
        logger.info("Generating %s for %r (attempt %d)", mode.value, word, token)
        self._notify()

        try:
            if mode is GenerationMode.DEFINITION:
                await self._run(token, "definition", self._stream_definition(word, token))
            elif mode is GenerationMode.WORD_TYPE:
                await self._run(token, "word_type", self._classify(word, token))
            else:
                await asyncio.gather(
                    self._run(token, "definition", self._stream_definition(word, token)),
                    self._run(token, "word_type", self._classify(word, token)),
                )
        finally:
            self._finish(token)

        return self.latest_result

    async def generate_definition(self, word: str) -> Optional[GenerationResult]:
        """Stream a definition for a word."""
        return await self.generate(word, GenerationMode.DEFINITION)

    async def classify(self, word: str) -> Optional[GenerationResult]:
        """Classify the grammatical word type of a word."""
        return await self.generate(word, GenerationMode.WORD_TYPE)

    async def generate_card(self, word: str) -> Optional[GenerationResult]:
        """Generate definition and word type concurrently."""
        return await self.generate(word, GenerationMode.CARD)

    # ------------------------------------------------------------------
    # Sub-requests
    # ------------------------------------------------------------------

    async def _stream_definition(self, word: str, token: int) -> None:
        task = f"Define the word '{word}' in simple, beginner-friendly language."
        stream = self.definition_session.stream_response(
            task, [GeneratedDefinition.example()], GeneratedDefinition.FIELDS
        )
        try:
            async for partial in stream:
                if not self._is_current(token):
                    logger.debug("Dropping definition stream of superseded attempt %d", token)
                    return
                generated = GeneratedDefinition.from_payload(partial)
                if generated.definition is not None:
                    self._apply(token, definition=generated.definition)
        finally:
            await stream.aclose()

        if self._is_current(token) and not (self.latest_result.definition or "").strip():
            raise MalformedResponseError("Reply contained no definition")

    async def _classify(self, word: str, token: int) -> None:
        task = f"What is the grammatical word type of '{word}'?"
        payload = await self.word_type_session.respond(task, GeneratedWordType.examples())
        generated = GeneratedWordType.from_payload(payload)
        self._apply(token, word_type=generated.word_type)

    async def _run(self, token: int, operation: str, coro: Coroutine[Any, Any, None]) -> None:
        """Await one sub-request and record its failure, if any."""
        try:
            if self.timeout is None:
                await coro
            else:
                await asyncio.wait_for(coro, self.timeout)
        except asyncio.TimeoutError:
            self._fail(token, GenerationTimeoutError(f"No reply after {self.timeout:g}s"), operation)
        except GenerationError as e:
            self._fail(token, e, operation)
        except asyncio.CancelledError:
            self._fail(token, SupersededError("Generation was cancelled"), operation)
            raise
        except Exception as e:
            logger.exception("Unexpected error during %s generation", operation)
            self._fail(token, e, operation)

    # ------------------------------------------------------------------
    # State updates
    # ------------------------------------------------------------------

    def _is_current(self, token: int) -> bool:
        return token == self._token

    def _apply(self, token: int, **changes: Any) -> None:
        """Replace result fields if the attempt is still current."""
        if not self._is_current(token):
            logger.debug("Discarding result of superseded attempt %d", token)
            return
        self.latest_result = dataclasses.replace(self.latest_result, **changes)
        self._notify()

    def _fail(self, token: int, error: Exception, operation: str) -> None:
        if not self._is_current(token):
            logger.debug("Discarding %s failure of superseded attempt %d: %s", operation, token, error)
            return
        failure = GenerationFailure.from_exception(error, operation)
        self.errors.append(failure)
        self.last_error = failure
        logger.warning("%s generation failed (%s): %s", operation, failure.kind.value, failure.message)
        self._notify()

    def _finish(self, token: int) -> None:
        if not self._is_current(token):
            return
        self.phase = GenerationPhase.FAILED if self.errors else GenerationPhase.SUCCEEDED
        logger.info("Generation attempt %d %s", token, self.phase.value)
        self._notify()
