"""Chunked availability checking with progress snapshots and cancellation."""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator, List, Optional, Tuple

from ..errors import ConfigurationError, InputError
from .base import AvailabilityChecker, AvailabilityResult

logger = logging.getLogger(__name__)


class RunStatus(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class BatchProgress:
    """Snapshot emitted after each chunk settles."""
    checked: int
    total: int
    available: Tuple[str, ...]
    results: Tuple[AvailabilityResult, ...] = ()

    def to_dict(self):
        return {'checked': self.checked, 'total': self.total, 'available': len(self.available)}


@dataclass
class RunOutcome:
    """Terminal state of a run."""
    status: RunStatus
    available: List[str] = field(default_factory=list)
    checked: int = 0
    total: int = 0
    error: Optional[BaseException] = None

    def to_dict(self):
        data = {
            'status': self.status.value,
            'checked': self.checked,
            'total': self.total,
            'available': list(self.available),
        }
        if self.error is not None:
            data['error'] = str(self.error)
        return data


class RunContext:
    """State owned by a single run: the cancel signal and the final outcome.

    ``cancel()`` may be called from any thread; the runner looks at it
    between chunks.
    """

    def __init__(self):
        self._cancel = threading.Event()
        self.outcome: Optional[RunOutcome] = None

    def cancel(self):
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    @property
    def done(self) -> bool:
        return self.outcome is not None

    def finish(self, status: RunStatus, available: List[str], checked: int, total: int,
               error: Optional[BaseException] = None) -> RunOutcome:
        if self.outcome is None:
            self.outcome = RunOutcome(status=status, available=list(available),
                                      checked=checked, total=total, error=error)
        return self.outcome


class BatchRunner:
    """Drives an AvailabilityChecker over a domain list chunk by chunk.

    Modes:
        chunked: consecutive chunks of ``batch_size``; the next chunk starts
            only when every probe of the current one has settled.
        whole: one chunk holding the entire list, bounded only by the
            checker's ``max_concurrent``.

    A chunk that has started is always drained before the cancel signal is
    honoured, so ``checked`` only counts whole chunks.
    """

    MODES = ('chunked', 'whole')

    def __init__(self, checker: AvailabilityChecker, batch_size: int = 10, mode: str = 'chunked'):
        if batch_size < 1:
            raise InputError("batch_size must be at least 1")
        if mode not in self.MODES:
            raise InputError(f"Unknown run mode: {mode!r}")
        self.checker = checker
        self.batch_size = batch_size
        self.mode = mode

    def chunks(self, domains: List[str]) -> List[List[str]]:
        if not domains:
            return []
        if self.mode == 'whole':
            return [list(domains)]
        return [domains[i:i + self.batch_size] for i in range(0, len(domains), self.batch_size)]

    async def run(self, domains: List[str], context: Optional[RunContext] = None) -> AsyncIterator[BatchProgress]:
        """Yield a BatchProgress after every chunk; the outcome lands on ``context``."""
        if not domains:
            raise InputError("No domains to check.")

        context = context if context is not None else RunContext()
        total = len(domains)
        checked = 0
        available: List[str] = []
        seen = set()

        try:
            for chunk in self.chunks(domains):
                if context.cancelled:
                    logger.info("Run cancelled after %d/%d domains", checked, total)
                    context.finish(RunStatus.CANCELLED, available, checked, total)
                    return

                try:
                    results = await self.checker.probe_many(chunk)
                except ConfigurationError as e:
                    context.finish(RunStatus.FAILED, available, checked, total, error=e)
                    raise
                except Exception as e:
                    logger.exception("Chunk of %d domains failed", len(chunk))
                    context.finish(RunStatus.FAILED, available, checked, total, error=e)
                    return

                for result in results:
                    if result.available and result.domain not in seen:
                        seen.add(result.domain)
                        available.append(result.domain)
                checked = min(checked + len(chunk), total)
                logger.debug("Checked %d/%d, %d available", checked, total, len(available))

                yield BatchProgress(
                    checked=checked,
                    total=total,
                    available=tuple(available),
                    results=tuple(results),
                )

            context.finish(RunStatus.COMPLETED, available, checked, total)
        finally:
            # Consumer stopped iterating early
            if not context.done:
                context.finish(RunStatus.CANCELLED, available, checked, total)


async def check_all(runner: BatchRunner, domains: List[str],
                    context: Optional[RunContext] = None) -> Tuple[RunOutcome, List[AvailabilityResult]]:
    """Run to completion and collect every per-domain result."""
    context = context if context is not None else RunContext()
    results: List[AvailabilityResult] = []
    async for progress in runner.run(domains, context):
        results.extend(progress.results)
    return context.outcome, results
