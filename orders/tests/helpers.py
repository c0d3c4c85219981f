import json
from datetime import datetime, timezone
from unittest import mock

from django.core.files.uploadedfile import SimpleUploadedFile

OPENAI_CONFIG = {
    "schema_version": 2,
    "active_provider": "openai",
    "providers": {
        "openai": {"api_url": "https://llm.example.com/v1/chat/completions", "model_name": "gpt-4o-mini", "api_key": "sk-test"},
        "gemini": {"model_name": "gemini-1.5-flash", "api_key": ""},
    },
}

FIXED_NOW = datetime(2024, 1, 1, 8, 30, tzinfo=timezone.utc)


def fixed_clock():
    return FIXED_NOW


def image(name="order.jpg", content=b"\xff\xd8\xff\xe0fake-jpeg", content_type="image/jpeg"):
    return SimpleUploadedFile(name, content, content_type=content_type)


def ai_reply(**fields):
    """An OpenAI-style chat completion wrapping ``fields`` as fenced JSON."""
    res = mock.Mock()
    res.status_code = 200
    res.ok = True
    res.json.return_value = {
        "choices": [{"message": {"content": "```json\n" + json.dumps(fields, ensure_ascii=False) + "\n```"}}]
    }
    return res


def ai_failure(status_code=500, text="upstream exploded"):
    res = mock.Mock()
    res.status_code = status_code
    res.ok = False
    res.text = text
    return res


def order(order_id, upload_date="2024-01-01T00:00:00.000Z", **fields):
    record = {
        "order_id": order_id,
        "customer_name": "N/A",
        "items": [],
        "total_amount": 0,
        "order_date": f"{order_id[:4]}-{order_id[4:6]}-{order_id[6:8]}",
        "upload_date": upload_date,
        "image_r2_key": f"images/{order_id}-x.jpg",
    }
    record.update(fields)
    return record
