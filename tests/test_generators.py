"""Tests for the AI name generator, the categorizer and the Gemini adapter."""

import asyncio
import json

import httpx
import pytest

from domainpulse.errors import CategorizationFailure, ConfigurationError, GenerationFailure, InputError
from domainpulse.generators.categorizer import (
    CATEGORY_SCHEMA, Categorizer, CategoryGroup, parse_categories, strip_code_fence,
)
from domainpulse.generators.llm_client import GeminiModel
from domainpulse.generators.name_generator import NameGenerator

from tests.fakes import FakeModel

MALFORMED_BODIES = [
    [],
    {'candidates': ['oops']},
    {'candidates': [{'content': 'text'}]},
    {'candidates': {'content': {}}},
    {'candidates': [{'content': {'parts': 'a.com'}}]},
]


def with_gemini(body, use):
    """Run ``use(model)`` against a Gemini adapter whose endpoint always answers ``body``."""
    async def go():
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=body))
        async with httpx.AsyncClient(transport=transport) as client:
            model = GeminiModel(api_key='k', model='gemini-test', base_url='https://ai.test/v1beta', client=client)
            return await use(model)
    return asyncio.run(go())


class TestNameGenerator:

    def test_parses_lines_and_dedupes(self):
        model = FakeModel("Foo.com\n\nbar.io\nfoo.com\n  baz.ai  \n")
        domains = asyncio.run(NameGenerator(model).generate('coffee', 'com,io'))
        assert domains == ['foo.com', 'bar.io', 'baz.ai']

    def test_prompt_embeds_constraints(self):
        model = FakeModel("a.com")
        asyncio.run(NameGenerator(model, count=20).generate('coffee shop', '.com, .io'))
        prompt = model.prompts[0]
        assert 'coffee shop' in prompt
        assert '.com, .io' in prompt
        assert '20' in prompt
        assert 'one per line' in prompt
        assert model.schemas == [None]

    def test_upstream_failure_returns_empty(self):
        generator = NameGenerator(FakeModel(fail=True))
        assert asyncio.run(generator.generate('coffee', 'com')) == []
        assert 'upstream unavailable' in generator.last_error

    @pytest.mark.parametrize("body", MALFORMED_BODIES)
    def test_malformed_gemini_body_returns_empty(self, body):
        generator = NameGenerator(None, count=5)

        async def use(model):
            generator.model = model
            return await generator.generate('coffee', 'com')

        assert with_gemini(body, use) == []
        assert generator.last_error

    def test_missing_keywords(self):
        model = FakeModel("a.com")
        with pytest.raises(InputError):
            asyncio.run(NameGenerator(model).generate('  ', 'com'))
        assert model.prompts == []

    def test_missing_tlds(self):
        with pytest.raises(InputError):
            asyncio.run(NameGenerator(FakeModel("a.com")).generate('coffee', ''))


class TestCategoryParsing:

    def test_strip_fence(self):
        assert strip_code_fence('```json\n[1]\n```') == '[1]'
        assert strip_code_fence('```\n[1]\n```\n') == '[1]'
        assert strip_code_fence('  [1] ') == '[1]'

    def test_parse_valid(self):
        groups = parse_categories('[{"category": "Tech", "domains": ["A.com"]}]')
        assert groups == [CategoryGroup('Tech', ['a.com'])]

    @pytest.mark.parametrize("text", [
        'not json',
        '{"category": "Tech"}',
        '[{"category": "Tech"}]',
        '[{"category": 3, "domains": []}]',
        '[{"category": "Tech", "domains": [1]}]',
        '["Tech"]',
    ])
    def test_parse_invalid(self, text):
        with pytest.raises(CategorizationFailure):
            parse_categories(text)


class TestCategorizer:

    def test_groups_from_model(self):
        reply = json.dumps([
            {'category': 'Business', 'domains': ['a.com']},
            {'category': 'Creative', 'domains': ['b.com']},
        ])
        model = FakeModel(reply)
        groups = asyncio.run(Categorizer(model).categorize(['a.com', 'b.com']))
        assert [g.to_dict() for g in groups] == [
            {'category': 'Business', 'domains': ['a.com']},
            {'category': 'Creative', 'domains': ['b.com']},
        ]
        assert model.schemas == [CATEGORY_SCHEMA]
        assert 'a.com, b.com' in model.prompts[0]

    def test_fenced_reply(self):
        reply = '```json\n[{"category": "Short", "domains": ["a.com", "b.com"]}]\n```'
        groups = asyncio.run(Categorizer(FakeModel(reply)).categorize(['a.com', 'b.com']))
        assert groups == [CategoryGroup('Short', ['a.com', 'b.com'])]

    def test_malformed_reply_falls_back(self):
        groups = asyncio.run(Categorizer(FakeModel('Sure! Here are...')).categorize(['a.com', 'b.com']))
        assert [g.to_dict() for g in groups] == [{'category': 'Available Domains', 'domains': ['a.com', 'b.com']}]

    def test_upstream_failure_falls_back(self):
        groups = asyncio.run(Categorizer(FakeModel(fail=True)).categorize(['b.com', 'a.com']))
        assert groups == [CategoryGroup('Available Domains', ['b.com', 'a.com'])]

    def test_unknown_and_missing_domains_reconciled(self):
        reply = json.dumps([
            {'category': 'Tech', 'domains': ['a.com', 'invented.com', 'a.com']},
            {'category': 'Empty', 'domains': ['nope.com']},
        ])
        groups = asyncio.run(Categorizer(FakeModel(reply)).categorize(['a.com', 'b.com']))
        assert groups == [CategoryGroup('Tech', ['a.com']), CategoryGroup('Other', ['b.com'])]

    @pytest.mark.parametrize("body", MALFORMED_BODIES)
    def test_malformed_gemini_body_falls_back(self, body):
        groups = with_gemini(body, lambda model: Categorizer(model).categorize(['a.com', 'b.com']))
        assert groups == [CategoryGroup('Available Domains', ['a.com', 'b.com'])]

    def test_empty_input_skips_model(self):
        model = FakeModel('[]')
        assert asyncio.run(Categorizer(model).categorize([])) == []
        assert model.prompts == []


class TestGeminiModel:

    def call(self, handler, schema=None):
        async def go():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                model = GeminiModel(api_key='k', model='gemini-test', base_url='https://ai.test/v1beta', client=client)
                return await model.generate_text('hello', schema=schema)
        return asyncio.run(go())

    def test_text_response(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={'candidates': [{'content': {'parts': [{'text': 'a.com\nb.com'}]}}]})

        assert self.call(handler) == 'a.com\nb.com'
        assert seen[0].url.path == '/v1beta/models/gemini-test:generateContent'
        assert seen[0].url.params['key'] == 'k'
        body = json.loads(seen[0].content)
        assert body['contents'][0]['parts'][0]['text'] == 'hello'
        assert 'generationConfig' not in body

    def test_schema_request(self):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={'candidates': [{'content': {'parts': [{'text': '[]'}]}}]})

        self.call(handler, schema=CATEGORY_SCHEMA)
        config = seen[0]['generationConfig']
        assert config['responseMimeType'] == 'application/json'
        assert config['responseSchema'] == CATEGORY_SCHEMA

    def test_http_error(self):
        with pytest.raises(GenerationFailure, match='429'):
            self.call(lambda request: httpx.Response(429, json={'error': {}}))

    def test_empty_candidates(self):
        with pytest.raises(GenerationFailure):
            self.call(lambda request: httpx.Response(200, json={'candidates': []}))

    def test_missing_key(self):
        with pytest.raises(ConfigurationError):
            GeminiModel(api_key='')

    @pytest.mark.parametrize("body", MALFORMED_BODIES)
    def test_malformed_body(self, body):
        with pytest.raises(GenerationFailure):
            self.call(lambda request: httpx.Response(200, json=body))

    def test_skips_blocked_candidate(self):
        body = {'candidates': [{'finishReason': 'SAFETY'}, {'content': {'parts': [{'text': 'a.com'}]}}]}
        assert self.call(lambda request: httpx.Response(200, json=body)) == 'a.com'
