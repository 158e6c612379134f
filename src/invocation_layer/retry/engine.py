"""
Invocation orchestrator: retries, backoff and model fallback.

This module implements the single entry point that runs one logical
operation against the model chain.

Policy:
    1. Per backend: up to MAX_RETRIES attempts, each gated by the shared
       rate limiter, with exponential backoff + jitter between retryable
       failures.
    2. Fallback: when a backend spends its budget on retryable errors, the
       chain advances to the next backend after a fixed cool-down.
    3. Fatal errors abort immediately: no retry, no fallback.
    4. Exhaustion: the chain is reset to primary and ExhaustedError raised.

A success on a fallback backend does not reset the cursor; the next
operation starts on the same backend.

Usage:
    orchestrator = InvocationOrchestrator(chain, rate_limiter, settings)
    text = await orchestrator.execute(
        lambda backend: backend.handle.generate_text(parts), "generateWithText"
    )
"""

import asyncio
from typing import Awaitable, Callable, Optional

import structlog

from invocation_layer.config import Settings
from invocation_layer.llm.classifier import ErrorClassifier, default_classifier
from invocation_layer.llm.exceptions import RetryableProviderError
from invocation_layer.monitoring.metrics import (
    invocation_attempts_total,
    invocations_exhausted_total,
    retry_backoff_seconds,
)
from invocation_layer.retry.backoff import BackoffCalculator
from invocation_layer.retry.exceptions import ExhaustedError, InvocationCancelled
from invocation_layer.retry.metadata import RetryContext
from invocation_layer.retry.model_chain import BackendDescriptor, ModelChain
from invocation_layer.retry.rate_limiter import RateLimiter

logger = structlog.get_logger(__name__)

Operation = Callable[[BackendDescriptor], Awaitable[str]]
Sleep = Callable[[float], Awaitable[None]]


class InvocationOrchestrator:
    """
    Runs operations against a ModelChain with retry and fallback.

    The chain and rate limiter are shared state: every concurrent execute()
    on this orchestrator goes through the same instances.

    Attributes:
        chain: Model chain of the current credential
        rate_limiter: Provider-wide rate limiter
        backoff: Backoff calculator
        classifier: Retryable/fatal classifier
        max_retries: Attempts per backend
        inter_model_cooldown: Seconds to wait before switching tiers
        call_timeout: Optional per-call deadline in seconds
    """

    def __init__(
        self,
        chain: ModelChain,
        rate_limiter: RateLimiter,
        settings: Settings,
        backoff: Optional[BackoffCalculator] = None,
        classifier: Optional[ErrorClassifier] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.chain = chain
        self.rate_limiter = rate_limiter
        self.backoff = backoff or BackoffCalculator.from_settings(settings)
        self.classifier = classifier or default_classifier
        self.max_retries = settings.MAX_RETRIES
        self.inter_model_cooldown = settings.INTER_MODEL_COOLDOWN
        self.call_timeout = settings.CALL_TIMEOUT
        self._sleep = sleep

        if self.max_retries < 1:
            raise ValueError("MAX_RETRIES must be >= 1")

        logger.info(
            "InvocationOrchestrator initialized",
            chain=chain.identifiers,
            max_retries=self.max_retries,
            inter_model_cooldown=self.inter_model_cooldown,
            min_call_spacing=rate_limiter.min_spacing,
            call_timeout=self.call_timeout,
        )

    async def execute(
        self,
        operation: Operation,
        operation_name: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        """
        Run ``operation`` with retry and fallback.

        Args:
            operation: Async callable taking a BackendDescriptor, returning raw text
            operation_name: Human-readable name used in logs and errors
            cancel_event: Optional event checked before each suspension point

        Returns:
            Raw text produced by the operation

        Raises:
            ExhaustedError: Every backend exhausted its retry budget
            InvocationCancelled: cancel_event was set
            Exception: Any fatal (non-retryable) error, unchanged
        """
        context = RetryContext(operation_name=operation_name)

        for _ in range(len(self.chain)):
            backend = self.chain.current()
            context.record_model(backend.identifier)

            for retry in range(self.max_retries):
                self._check_cancelled(cancel_event, context)
                await self.rate_limiter.acquire()
                context.total_attempts += 1

                logger.info(
                    f"{operation_name} attempt",
                    operation=operation_name,
                    model=backend.identifier,
                    attempt=retry + 1,
                    max_retries=self.max_retries,
                    total_attempts=context.total_attempts,
                )

                try:
                    result = await self._call(operation, backend)
                except Exception as e:
                    context.last_error = e

                    if not self.classifier.is_retryable(e):
                        invocation_attempts_total.labels(
                            model=backend.identifier, outcome="fatal"
                        ).inc()
                        logger.error(
                            f"{operation_name} failed with non-retryable error",
                            operation=operation_name,
                            model=backend.identifier,
                            error=str(e),
                            error_type=type(e).__name__,
                            total_attempts=context.total_attempts,
                        )
                        raise

                    invocation_attempts_total.labels(
                        model=backend.identifier, outcome="retryable"
                    ).inc()
                    delay = self.backoff.delay(retry)
                    retry_backoff_seconds.observe(delay)
                    logger.warning(
                        f"{operation_name} failed, retrying",
                        operation=operation_name,
                        model=backend.identifier,
                        attempt=retry + 1,
                        error=str(e),
                        error_type=type(e).__name__,
                        delay_seconds=round(delay, 3),
                    )
                    self._check_cancelled(cancel_event, context)
                    await self._sleep(delay)
                    continue

                invocation_attempts_total.labels(
                    model=backend.identifier, outcome="success"
                ).inc()
                logger.info(
                    f"{operation_name} succeeded",
                    operation=operation_name,
                    model=backend.identifier,
                    fallback=backend.position > 0,
                    total_attempts=context.total_attempts,
                    elapsed_ms=context.elapsed_ms,
                )
                return result

            # Retry budget spent on this backend
            logger.warning(
                "Backend retry budget exhausted",
                operation=operation_name,
                model=backend.identifier,
                attempts_used=self.max_retries,
            )
            next_backend = self.chain.advance(from_position=backend.position)
            # A concurrent reset can move the cursor back; never revisit a tier
            if next_backend is None or next_backend.position <= backend.position:
                break

            self._check_cancelled(cancel_event, context)
            await self._sleep(self.inter_model_cooldown)

        self.chain.reset()
        invocations_exhausted_total.labels(operation=operation_name).inc()
        logger.error(
            f"{operation_name} exhausted every backend",
            operation=operation_name,
            total_attempts=context.total_attempts,
            models_tried=context.models_tried,
            elapsed_ms=context.elapsed_ms,
            last_error=str(context.last_error) if context.last_error else None,
        )
        raise ExhaustedError(
            operation_name=operation_name,
            total_attempts=context.total_attempts,
            last_error=context.last_error,
            context=context,
        )

    async def _call(self, operation: Operation, backend: BackendDescriptor) -> str:
        if self.call_timeout is None:
            return await operation(backend)
        try:
            return await asyncio.wait_for(operation(backend), timeout=self.call_timeout)
        except asyncio.TimeoutError as e:
            raise RetryableProviderError(
                f"Operation timeout after {self.call_timeout}s",
                details={"timeout": self.call_timeout},
                model=backend.identifier,
            ) from e

    @staticmethod
    def _check_cancelled(cancel_event: Optional[asyncio.Event], context: RetryContext) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.info(
                "Invocation cancelled",
                operation=context.operation_name,
                total_attempts=context.total_attempts,
            )
            raise InvocationCancelled(context.operation_name, context.total_attempts)
