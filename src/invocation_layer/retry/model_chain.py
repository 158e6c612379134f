"""
Ordered chain of interchangeable backends with a "current" cursor.

States: Primary (cursor 0), Fallback_k (cursor k), and an implicit
Exhausted reached when advance() is asked to move past the last backend.
The cursor is only ever written by advance(), reset() and validate().
"""

import asyncio
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Sequence

import structlog

from invocation_layer.models.llm_models import ModelInfo
from invocation_layer.monitoring.metrics import active_model_position, model_fallbacks_total
from invocation_layer.retry.exceptions import ConfigurationError

if TYPE_CHECKING:
    from invocation_layer.llm.base_client import BaseLLMClient
    from invocation_layer.retry.rate_limiter import RateLimiter

logger = structlog.get_logger(__name__)

PROBE_PROMPT = 'Say "OK" if you can hear me.'


@dataclass(frozen=True)
class BackendDescriptor:
    """One backend of the chain: its identifier, handle and position."""

    identifier: str
    handle: Any = field(repr=False, compare=False)
    position: int = 0


class ModelChain:
    """
    Stateful registry of candidate backends, primary first.

    Cursor reads and writes are guarded by a lock so concurrent operations
    never observe a half-updated cursor.
    """

    def __init__(self, backends: Sequence[BackendDescriptor]):
        if not backends:
            raise ConfigurationError("Model chain must contain at least one backend")
        self._backends: tuple[BackendDescriptor, ...] = tuple(backends)
        self._cursor = 0
        self._lock = threading.Lock()
        active_model_position.set(0)

    @classmethod
    def initialize(
        cls,
        identifiers: Sequence[str],
        credential: str,
        client: "BaseLLMClient",
    ) -> "ModelChain":
        """
        Build a chain with one handle per identifier.

        Handle construction is local wiring only; no network I/O happens here.

        Raises:
            ConfigurationError: Empty chain, blank identifier or missing credential
        """
        if not identifiers:
            raise ConfigurationError("Model chain must contain at least one backend")
        if not credential:
            raise ConfigurationError("A credential is required to initialize the model chain")
        if any(not identifier or not identifier.strip() for identifier in identifiers):
            raise ConfigurationError("Model chain contains a blank backend identifier")

        backends = [
            BackendDescriptor(
                identifier=identifier,
                handle=client.create_handle(identifier, credential),
                position=position,
            )
            for position, identifier in enumerate(identifiers)
        ]
        logger.info(
            "Model chain initialized",
            chain=list(identifiers),
            primary=identifiers[0],
        )
        return cls(backends)

    def __len__(self) -> int:
        return len(self._backends)

    @property
    def identifiers(self) -> list[str]:
        return [backend.identifier for backend in self._backends]

    @property
    def cursor_index(self) -> int:
        with self._lock:
            return self._cursor

    @property
    def is_degraded(self) -> bool:
        return self.cursor_index > 0

    def current(self) -> BackendDescriptor:
        """Descriptor at the cursor."""
        with self._lock:
            return self._backends[self._cursor]

    def advance(self, from_position: Optional[int] = None) -> Optional[BackendDescriptor]:
        """
        Move the cursor to the next backend.

        Args:
            from_position: Position the caller was operating on. If the cursor
                has already moved off it (another caller advanced or reset),
                the current descriptor is returned and the cursor is left alone.

        Returns:
            The new current descriptor, or None when the chain is exhausted
            (state unchanged; call reset() before reuse).
        """
        with self._lock:
            if from_position is not None and from_position != self._cursor:
                logger.debug(
                    "Chain already moved by another caller",
                    from_position=from_position,
                    cursor=self._cursor,
                )
                return self._backends[self._cursor]

            if self._cursor + 1 >= len(self._backends):
                logger.warning(
                    "Model chain exhausted",
                    last_model=self._backends[self._cursor].identifier,
                )
                return None

            previous = self._backends[self._cursor]
            self._cursor += 1
            current = self._backends[self._cursor]
            active_model_position.set(self._cursor)

        model_fallbacks_total.labels(
            from_model=previous.identifier, to_model=current.identifier
        ).inc()
        logger.warning(
            "Switching to fallback model",
            from_model=previous.identifier,
            to_model=current.identifier,
            tier=current.position,
            total=len(self._backends),
        )
        return current

    def reset(self) -> None:
        """Return the cursor to the primary backend, unconditionally."""
        with self._lock:
            moved = self._cursor != 0
            self._cursor = 0
            active_model_position.set(0)
        if moved:
            logger.info("Model chain reset to primary", primary=self._backends[0].identifier)

    def _set_cursor(self, position: int) -> None:
        with self._lock:
            self._cursor = position
            active_model_position.set(position)

    def model_info(self) -> ModelInfo:
        """Active backend for display, e.g. fallback tier 2 of 4."""
        with self._lock:
            current = self._backends[self._cursor]
        return ModelInfo(name=current.identifier, index=current.position, total=len(self._backends))

    async def validate(
        self,
        probe: Callable[[BackendDescriptor, str], Awaitable[str]],
        rate_limiter: "RateLimiter",
        failure_delay: float = 1.0,
    ) -> Optional[BackendDescriptor]:
        """
        Probe backends in order and park the cursor on the first usable one.

        Optional startup diagnostics; steady-state invocation does not rely
        on it. Each probe goes through the shared rate limiter.

        Args:
            probe: Async callable sending the probe prompt to a backend
            rate_limiter: The provider-wide rate limiter
            failure_delay: Seconds to wait after a failed probe

        Returns:
            The first backend that answered "OK", or None (cursor reset to
            primary) if none did.
        """
        for backend in self._backends:
            logger.info("Validating model", model=backend.identifier, position=backend.position)
            try:
                await rate_limiter.acquire()
                reply = await probe(backend, PROBE_PROMPT)
            except Exception as e:
                logger.warning(
                    "Model validation failed, trying next",
                    model=backend.identifier,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                await asyncio.sleep(failure_delay)
                continue

            if "ok" in reply.lower():
                self._set_cursor(backend.position)
                logger.info("Using model", model=backend.identifier, position=backend.position)
                return backend

            logger.warning(
                "Model answered probe without OK",
                model=backend.identifier,
                reply_snippet=reply[:80],
            )

        self.reset()
        logger.error("No backend in the chain passed validation", chain=self.identifiers)
        return None
