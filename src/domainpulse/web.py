"""Flask backend: JSON endpoints and the server-sent-events orchestrator."""

import asyncio
import logging
from typing import Callable, Optional

from flask import Flask, Response, jsonify, request

from .checkers.base import AvailabilityChecker
from .checkers.batch_runner import BatchRunner, RunContext, RunStatus, check_all
from .checkers.factory import create_checker
from .config import Settings, load_config
from .errors import ConfigurationError, DomainPulseError, InputError, UpstreamError
from .generators.categorizer import Categorizer
from .generators.llm_client import TextModel, create_model
from .generators.name_generator import NameGenerator
from .pipeline import CheckRequest, Pipeline, iterate_sync
from .utils.normalizer import unique_domains

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    checker_factory: Optional[Callable[[], AvailabilityChecker]] = None,
    model_factory: Optional[Callable[[], TextModel]] = None,
) -> Flask:
    """Build the Flask app. Factories are injectable so tests can fake upstreams."""
    settings = settings or load_config()
    checker_factory = checker_factory or (lambda: create_checker(settings.checker))
    model_factory = model_factory or (lambda: create_model(settings.ai))

    app = Flask(__name__)
    app.config['SETTINGS'] = settings

    def optional_model() -> Optional[TextModel]:
        try:
            return model_factory()
        except ConfigurationError as e:
            logger.info("AI model unavailable, categorization disabled: %s", e)
            return None

    def make_runner(checker: AvailabilityChecker) -> BatchRunner:
        return BatchRunner(checker, batch_size=settings.runner.batch_size, mode=settings.runner.mode)

    def make_pipeline(checker: AvailabilityChecker, model: Optional[TextModel]) -> Pipeline:
        generator = NameGenerator(model, count=settings.ai.count) if model else None
        categorizer = Categorizer(model) if model else None
        return Pipeline(make_runner(checker), generator=generator, categorizer=categorizer)

    def json_body():
        payload = request.get_json(silent=True)
        if payload is None:
            raise InputError('Request body must be JSON.')
        return payload

    def domain_list(payload) -> list:
        raw = payload.get('domains') if isinstance(payload, dict) else None
        if not raw or not isinstance(raw, list) or not all(isinstance(d, str) for d in raw):
            raise InputError('Invalid input: "domains" array is required.')
        domains = unique_domains(raw)
        if not domains:
            raise InputError('Invalid input: "domains" array is required.')
        return domains

    async def run_check(domains):
        checker = checker_factory()
        async with checker:
            outcome, results = await check_all(make_runner(checker), domains)
        if outcome.status is RunStatus.FAILED:
            raise UpstreamError(f"Availability check failed: {outcome.error}")
        return results

    async def run_generate(keywords, tlds):
        model = model_factory()
        try:
            generator = NameGenerator(model, count=settings.ai.count)
            domains = await generator.generate(keywords, tlds)
            return domains, generator.last_error
        finally:
            await model.aclose()

    async def run_categorize(domains):
        model = optional_model()
        if model is None:
            return Categorizer.fallback(domains)
        try:
            return await Categorizer(model).categorize(domains)
        finally:
            await model.aclose()

    @app.errorhandler(InputError)
    def handle_input_error(e):
        return jsonify({'error': str(e)}), 400

    @app.errorhandler(DomainPulseError)
    def handle_upstream_error(e):
        logger.error("Request failed: %s", e)
        return jsonify({'error': str(e)}), 500

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(404)
    def handle_not_found(e):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(500)
    def handle_internal_error(e):
        return jsonify({'error': 'An internal server error occurred.'}), 500

    @app.after_request
    def add_cors_headers(response):
        if request.path.startswith('/api/'):
            response.headers['Access-Control-Allow-Origin'] = '*'
            response.headers['Access-Control-Allow-Methods'] = 'POST, OPTIONS'
            response.headers['Access-Control-Allow-Headers'] = 'Content-Type'
        return response

    @app.route('/api/check-domain', methods=['POST'])
    def check_domain():
        domains = domain_list(json_body())
        results = asyncio.run(run_check(domains))
        return jsonify([r.to_dict() for r in results])

    @app.route('/api/check', methods=['POST'])
    def check_dispatch():
        payload = json_body()
        if not isinstance(payload, dict):
            raise InputError('Request body must be a JSON object.')
        mode = str(payload.get('mode') or '').lower()

        if mode == 'generate':
            keywords = str(payload.get('keywords') or '')
            tlds = str(payload.get('tlds') or '')
            if not keywords.strip() or not tlds.strip():
                raise InputError('Keywords and TLDs are required for generator mode.')
            domains, warning = asyncio.run(run_generate(keywords, tlds))
            body = {'domains': domains}
            if warning:
                body['warning'] = warning
            return jsonify(body)

        if mode == 'check':
            results = asyncio.run(run_check(domain_list(payload)))
            return jsonify([r.to_dict() for r in results])

        if mode == 'categorize':
            groups = asyncio.run(run_categorize(domain_list(payload)))
            return jsonify([g.to_dict() for g in groups])

        raise InputError('"mode" must be one of generate, check, categorize.')

    @app.route('/api/orchestrator', methods=['POST'])
    def orchestrator():
        check_request = CheckRequest.from_payload(json_body())
        checker = checker_factory()
        model = model_factory() if check_request.is_generator else optional_model()
        pipeline = make_pipeline(checker, model)
        pipeline.check_ready(check_request)
        context = RunContext()

        async def events():
            try:
                async for event in pipeline.stream(check_request, context):
                    yield event
            finally:
                await checker.aclose()
                if model is not None:
                    await model.aclose()

        def frames():
            event_iter = iterate_sync(events)
            try:
                for event in event_iter:
                    yield event.to_sse()
            finally:
                # Client went away or the stream ended
                context.cancel()
                event_iter.close()

        return Response(frames(), mimetype='text/event-stream', headers={
            'Cache-Control': 'no-cache',
            'X-Accel-Buffering': 'no',
        })

    return app
