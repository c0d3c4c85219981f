import base64
import json
import logging
import re

import requests
from django.conf import settings
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from .exceptions import ExtractionError, ProviderConfigurationError

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = (
    "Read the handwritten order in this image and return the customer name (customer_name), "
    "a JSON array with every ordered item (items), the order total (total_amount, number only) "
    "and the order date (order_date, formatted YYYY-MM-DD). Answer strictly as one JSON object. "
    "Each element of items must be an object with 'name' (item name), 'unit' (unit of measure, "
    "e.g. 'piece', 'box'), 'quantity' (number), 'unit_price' (number) and 'amount' (line total, number). "
    "All price fields must be numbers."
)

_FENCE = "```"
_OPENING_FENCE_RE = re.compile(r"^```[a-zA-Z]*")


def strip_code_fence(text: str) -> str:
    # ```json ... ``` -> ..., anything after the closing fence is dropped
    text = (text or "").strip()
    opening = _OPENING_FENCE_RE.match(text)
    if not opening:
        return text
    body = text[opening.end():]
    closing = body.rfind(_FENCE)
    if closing != -1:
        body = body[:closing]
    return body.strip()


def parse_extraction(text: str) -> dict:
    cleaned = strip_code_fence(text)
    try:
        data = json.loads(cleaned)
    except ValueError as e:
        raise ExtractionError(f"AI response is not valid JSON: {e}")
    if not isinstance(data, dict):
        raise ExtractionError("AI response is not a JSON object")
    return data


class ExtractionProvider:
    """One AI vendor integration: owns its request shape and response path."""

    name = None
    label = None
    requires_api_url = False

    def check(self, cfg: dict):
        if not cfg.get("api_key"):
            raise ProviderConfigurationError(
                "API key is not set. Save the API key in the configuration first."
            )
        if not cfg.get("model_name"):
            raise ProviderConfigurationError("AI model name is missing, configure it first.")
        if self.requires_api_url and not cfg.get("api_url"):
            raise ProviderConfigurationError(f"{self.label} API URL is missing, configure it first.")

    def extract(self, image_bytes: bytes, mime_type: str, cfg: dict) -> str:
        raise NotImplementedError


class OpenAICompatibleProvider(ExtractionProvider):
    name = "openai"
    label = "OpenAI-compatible"
    requires_api_url = True

    def build_payload(self, image_bytes, mime_type, cfg):
        encoded = base64.b64encode(image_bytes).decode("ascii")
        return {
            "model": cfg["model_name"],
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": EXTRACTION_PROMPT},
                        {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{encoded}"}},
                    ],
                }
            ],
            "response_format": {"type": "json_object"},
        }

    def extract(self, image_bytes, mime_type, cfg):
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {cfg['api_key']}",
        }
        try:
            res = requests.post(
                cfg["api_url"],
                headers=headers,
                json=self.build_payload(image_bytes, mime_type, cfg),
                timeout=settings.AI_REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise ExtractionError(f"AI API request failed: {e}")

        if not res.ok:
            raise ExtractionError(f"AI API error: {res.status_code} - {res.text}")

        try:
            return res.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ExtractionError(f"Unexpected AI API response: {e}")


class GeminiProvider(ExtractionProvider):
    name = "gemini"
    label = "Gemini"

    def extract(self, image_bytes, mime_type, cfg):
        client = genai.Client(
            api_key=cfg["api_key"],
            http_options=genai_types.HttpOptions(timeout=int(settings.AI_REQUEST_TIMEOUT * 1000)),
        )
        try:
            resp = client.models.generate_content(
                model=cfg["model_name"],
                contents=[
                    EXTRACTION_PROMPT,
                    genai_types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                ],
                config={"response_mime_type": "application/json"},
            )
        except genai_errors.APIError as e:
            raise ExtractionError(f"Gemini API error: {e.code} - {e.message}")

        text = resp.text
        if not text:
            raise ExtractionError("Gemini API returned no text")
        return text


PROVIDERS = {
    OpenAICompatibleProvider.name: OpenAICompatibleProvider(),
    GeminiProvider.name: GeminiProvider(),
}

# accepted spellings on input
PROVIDER_ALIASES = {
    "openai-compatible": OpenAICompatibleProvider.name,
}


def canonical_provider_name(name):
    name = (name or "").strip().lower()
    return PROVIDER_ALIASES.get(name, name)


def get_provider(name) -> ExtractionProvider:
    provider = PROVIDERS.get(canonical_provider_name(name))
    if provider is None:
        raise ProviderConfigurationError(f"Unknown AI provider: {name!r}")
    return provider
