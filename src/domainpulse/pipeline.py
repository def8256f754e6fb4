"""End-to-end run: optional generation, availability check, categorization.

``Pipeline.stream`` produces typed events; the web layer frames them as
server-sent events and the CLI renders them with rich.
"""

import asyncio
import json
import logging
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Dict, Iterator, List, Optional

from .checkers.batch_runner import BatchRunner, RunContext, RunStatus
from .errors import ConfigurationError, InputError
from .generators.categorizer import Categorizer
from .generators.name_generator import NameGenerator
from .utils.normalizer import unique_domains

logger = logging.getLogger(__name__)

EVENT_NAMES = (
    'status', 'domain_list', 'domain_result', 'generated_domains', 'progress',
    'results', 'no_results', 'finished', 'error',
)

GENERATOR_MODES = ('generator', 'generate')
CHECKER_MODES = ('checker', 'check')


@dataclass
class PipelineEvent:
    event: str
    data: Any = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {'event': self.event, 'data': self.data}

    def to_sse(self) -> str:
        return f"data: {json.dumps(self.to_dict())}\n\n"


@dataclass
class CheckRequest:
    """What the user asked for: a domain list or generator hints."""
    mode: str = 'checker'
    domains: List[str] = field(default_factory=list)
    keywords: str = ''
    tlds: str = ''

    @property
    def is_generator(self) -> bool:
        return self.mode in GENERATOR_MODES

    @classmethod
    def from_payload(cls, payload: Any) -> 'CheckRequest':
        """Build and validate a request from a decoded JSON body."""
        if not isinstance(payload, dict):
            raise InputError('Request body must be a JSON object.')

        mode = str(payload.get('mode') or 'checker').lower()
        raw_domains = payload.get('domains') or []
        if not isinstance(raw_domains, list) or not all(isinstance(d, str) for d in raw_domains):
            raise InputError('"domains" must be an array of strings.')

        request = cls(
            mode=mode,
            domains=unique_domains(raw_domains),
            keywords=str(payload.get('keywords') or ''),
            tlds=str(payload.get('tlds') or ''),
        )
        request.validate()
        return request

    def validate(self):
        if self.mode not in GENERATOR_MODES + CHECKER_MODES:
            raise InputError(f'Unknown mode: {self.mode!r}')
        if self.is_generator:
            if not self.keywords.strip() or not self.tlds.strip():
                raise InputError('Keywords and TLDs are required for generator mode.')
        elif not self.domains:
            raise InputError('Please provide a non-empty list of domains.')


class Pipeline:
    """Wires generator, batch runner and categorizer into one event stream."""

    def __init__(self, runner: BatchRunner, generator: Optional[NameGenerator] = None,
                 categorizer: Optional[Categorizer] = None):
        self.runner = runner
        self.generator = generator
        self.categorizer = categorizer

    def check_ready(self, request: CheckRequest):
        request.validate()
        if request.is_generator and self.generator is None:
            raise ConfigurationError('Generator mode needs an AI model; set GEMINI_API_KEY.')

    async def stream(self, request: CheckRequest, context: Optional[RunContext] = None) -> AsyncIterator[PipelineEvent]:
        """Yield events for one run.

        Input and configuration problems raise before the first event; later
        failures become a terminal ``error`` event.
        """
        self.check_ready(request)
        context = context if context is not None else RunContext()

        try:
            domains = list(request.domains)

            if request.is_generator:
                yield PipelineEvent('status', 'Generating domain ideas...')
                domains = await self.generator.generate(request.keywords, request.tlds)
                if not domains:
                    message = self.generator.last_error or 'No domain ideas were generated.'
                    yield PipelineEvent('status', message)
                    yield PipelineEvent('no_results', {})
                    yield PipelineEvent('finished', {'status': RunStatus.COMPLETED.value, 'checked': 0,
                                                     'total': 0, 'available': []})
                    return
                yield PipelineEvent('generated_domains', {'domains': domains})

            yield PipelineEvent('domain_list', {'domains': domains})
            yield PipelineEvent('status', 'Checking domain availability...')

            async with aclosing(self.runner.run(domains, context)) as progress_stream:
                async for progress in progress_stream:
                    for result in progress.results:
                        yield PipelineEvent('domain_result', result.to_dict())
                    yield PipelineEvent('progress', progress.to_dict())

            outcome = context.outcome
            if outcome.status is RunStatus.FAILED:
                yield PipelineEvent('error', {'message': str(outcome.error) or 'Availability check failed.'})
                return

            if outcome.status is RunStatus.CANCELLED:
                yield PipelineEvent('status', 'Process cancelled.')
                yield PipelineEvent('finished', outcome.to_dict())
                return

            if outcome.available:
                if self.categorizer is not None:
                    yield PipelineEvent('status', 'Categorizing available domains...')
                    groups = await self.categorizer.categorize(outcome.available)
                else:
                    groups = Categorizer.fallback(outcome.available)
                yield PipelineEvent('results', {
                    'categorized': [g.to_dict() for g in groups],
                    'allAvailable': list(outcome.available),
                })
            else:
                yield PipelineEvent('no_results', {})

            yield PipelineEvent('finished', outcome.to_dict())

        except Exception as e:
            logger.exception("Pipeline run failed")
            yield PipelineEvent('error', {'message': str(e) or 'An unknown error occurred.'})


def iterate_sync(make_stream: Callable[[], AsyncIterator[Any]]) -> Iterator[Any]:
    """Drive an async iterator from synchronous code on a private event loop.

    Closing the returned generator closes the async one, which lets a web
    client disconnect stop the run.
    """
    loop = asyncio.new_event_loop()
    stream = make_stream()
    try:
        while True:
            try:
                item = loop.run_until_complete(stream.__anext__())
            except StopAsyncIteration:
                break
            yield item
    finally:
        loop.run_until_complete(stream.aclose())
        loop.run_until_complete(loop.shutdown_asyncgens())
        loop.close()
