import base64
from unittest import mock

import requests
from django.test import SimpleTestCase
from google.genai import errors as genai_errors

from ai.exceptions import ExtractionError, ProviderConfigurationError
from ai.providers import (
    EXTRACTION_PROMPT,
    GeminiProvider,
    OpenAICompatibleProvider,
    get_provider,
    parse_extraction,
    strip_code_fence,
)

OPENAI_CFG = {"api_url": "https://llm.example.com/v1/chat/completions", "model_name": "gpt-4o-mini", "api_key": "sk-test"}
GEMINI_CFG = {"model_name": "gemini-1.5-flash", "api_key": "g-test"}


def http_response(status_code=200, payload=None, text=""):
    res = mock.Mock()
    res.status_code = status_code
    res.ok = 200 <= status_code < 300
    res.text = text
    res.json.return_value = payload
    return res


class ResponseParsingTests(SimpleTestCase):

    def test_strip_json_fence(self):
        self.assertEqual(strip_code_fence('```json\n{"a": 1}\n```'), '{"a": 1}')
        self.assertEqual(strip_code_fence('```\n{"a": 1}\n```'), '{"a": 1}')
        self.assertEqual(strip_code_fence('  {"a": 1} '), '{"a": 1}')

    def test_text_after_closing_fence_is_ignored(self):
        reply = '```json\n{"customer_name": "A", "total_amount": 5}\n```\nLet me know if you need anything else.'
        self.assertEqual(parse_extraction(reply), {"customer_name": "A", "total_amount": 5})
        self.assertEqual(strip_code_fence('```json {"a": 1}``` done'), '{"a": 1}')

    def test_parse_extraction(self):
        self.assertEqual(parse_extraction('```json\n{"customer_name": "张三"}\n```'), {"customer_name": "张三"})

    def test_parse_extraction_rejects_bad_json(self):
        with self.assertRaises(ExtractionError):
            parse_extraction("customer: bob")
        with self.assertRaises(ExtractionError):
            parse_extraction("[1, 2]")


class ProviderCheckTests(SimpleTestCase):

    def test_missing_api_key(self):
        with self.assertRaises(ProviderConfigurationError):
            get_provider("gemini").check({"model_name": "m", "api_key": ""})

    def test_missing_model(self):
        with self.assertRaises(ProviderConfigurationError):
            get_provider("openai").check({"api_url": "u", "api_key": "k"})

    def test_openai_requires_url(self):
        with self.assertRaises(ProviderConfigurationError):
            get_provider("openai").check({"model_name": "m", "api_key": "k"})

    def test_gemini_does_not_require_url(self):
        get_provider("gemini").check(GEMINI_CFG)

    def test_alias_and_unknown_names(self):
        self.assertIsInstance(get_provider("openai-compatible"), OpenAICompatibleProvider)
        with self.assertRaises(ProviderConfigurationError):
            get_provider("claude")


class OpenAICompatibleProviderTests(SimpleTestCase):

    @mock.patch("ai.providers.requests.post")
    def test_request_shape_and_content(self, post):
        post.return_value = http_response(payload={"choices": [{"message": {"content": '{"customer_name": "A"}'}}]})

        text = OpenAICompatibleProvider().extract(b"img", "image/png", OPENAI_CFG)

        self.assertEqual(text, '{"customer_name": "A"}')
        args, kwargs = post.call_args
        self.assertEqual(args[0], OPENAI_CFG["api_url"])
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer sk-test")
        body = kwargs["json"]
        self.assertEqual(body["model"], "gpt-4o-mini")
        self.assertEqual(body["response_format"], {"type": "json_object"})
        content = body["messages"][0]["content"]
        self.assertEqual(content[0], {"type": "text", "text": EXTRACTION_PROMPT})
        expected_url = "data:image/png;base64," + base64.b64encode(b"img").decode()
        self.assertEqual(content[1]["image_url"]["url"], expected_url)

    @mock.patch("ai.providers.requests.post")
    def test_non_2xx_is_extraction_error(self, post):
        post.return_value = http_response(status_code=429, text="rate limited")
        with self.assertRaises(ExtractionError) as ctx:
            OpenAICompatibleProvider().extract(b"img", "image/jpeg", OPENAI_CFG)
        self.assertIn("429", str(ctx.exception))

    @mock.patch("ai.providers.requests.post")
    def test_transport_error_is_extraction_error(self, post):
        post.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(ExtractionError):
            OpenAICompatibleProvider().extract(b"img", "image/jpeg", OPENAI_CFG)

    @mock.patch("ai.providers.requests.post")
    def test_unexpected_body_is_extraction_error(self, post):
        post.return_value = http_response(payload={"choices": []})
        with self.assertRaises(ExtractionError):
            OpenAICompatibleProvider().extract(b"img", "image/jpeg", OPENAI_CFG)


class GeminiProviderTests(SimpleTestCase):

    @mock.patch("ai.providers.genai.Client")
    def test_generate_content_call(self, client_cls):
        client = client_cls.return_value
        client.models.generate_content.return_value = mock.Mock(text='{"total_amount": 3}')

        text = GeminiProvider().extract(b"img", "image/jpeg", GEMINI_CFG)

        self.assertEqual(text, '{"total_amount": 3}')
        self.assertEqual(client_cls.call_args.kwargs["api_key"], "g-test")
        kwargs = client.models.generate_content.call_args.kwargs
        self.assertEqual(kwargs["model"], "gemini-1.5-flash")
        self.assertEqual(kwargs["contents"][0], EXTRACTION_PROMPT)
        self.assertEqual(kwargs["config"], {"response_mime_type": "application/json"})

    @mock.patch("ai.providers.genai.Client")
    def test_api_error_is_extraction_error(self, client_cls):
        client_cls.return_value.models.generate_content.side_effect = genai_errors.ClientError(
            400, {"error": {"code": 400, "message": "API key not valid", "status": "INVALID_ARGUMENT"}}
        )
        with self.assertRaises(ExtractionError) as ctx:
            GeminiProvider().extract(b"img", "image/jpeg", GEMINI_CFG)
        self.assertIn("400", str(ctx.exception))

    @mock.patch("ai.providers.genai.Client")
    def test_empty_text_is_extraction_error(self, client_cls):
        client_cls.return_value.models.generate_content.return_value = mock.Mock(text=None)
        with self.assertRaises(ExtractionError):
            GeminiProvider().extract(b"img", "image/jpeg", GEMINI_CFG)
