import json
from datetime import date
from unittest.mock import MagicMock

import pytest

from receipt_pipeline.parsers import LLMFieldExtractor


def _client_returning(payload):
    client = MagicMock()
    message = MagicMock()
    message.content = payload if isinstance(payload, str) else json.dumps(payload)
    client.chat.completions.create.return_value.choices = [MagicMock(message=message)]
    return client


@pytest.fixture
def oracle_response():
    return {
        "storeName": "Woolworths Food",
        "total": "R 356.20",
        "date": "2024-04-03",
        "currency": "ZAR",
        "items": [{"name": "Chicken Pie", "price": "54.99"}, "Lemonade"],
        "orderId": None,
        "confidence": 0.95,
    }


def test_oracle_fields_are_mapped(settings, oracle_response):
    client = _client_returning(oracle_response)
    extracted = LLMFieldExtractor(openai_client=client, settings=settings).extract_fields("receipt text")

    assert extracted.store_name == "Woolworths Food"
    assert extracted.total == "356.20"
    assert extracted.date == date(2024, 4, 3)
    assert [(i.name, i.price) for i in extracted.items] == [("Chicken Pie", "54.99"), ("Lemonade", "0.00")]
    assert extracted.vendor is None

    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == settings.openai_model
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["temperature"] == 0


def test_oracle_confidence_is_capped_below_vendor_rules(settings, oracle_response):
    extracted = LLMFieldExtractor(_client_returning(oracle_response), settings=settings).extract_fields("x")
    assert extracted.confidence == pytest.approx(settings.fallback_confidence_cap)
    assert extracted.confidence < 0.85


def test_missing_date_defaults_to_today(settings, oracle_response):
    oracle_response["date"] = None
    extracted = LLMFieldExtractor(_client_returning(oracle_response), settings=settings).extract_fields("x")
    assert extracted.date == date(2024, 4, 15)


@pytest.mark.parametrize("payload", [
    {"storeName": "Spar", "total": None},
    {"storeName": "", "total": "10.00"},
    {"storeName": "Spar", "total": "0.00"},
    "not json at all",
])
def test_unusable_oracle_output_returns_none(settings, payload):
    assert LLMFieldExtractor(_client_returning(payload), settings=settings).extract_fields("x") is None


def test_client_errors_return_none(settings):
    client = MagicMock()
    client.chat.completions.create.side_effect = RuntimeError("rate limited")
    assert LLMFieldExtractor(client, settings=settings).extract_fields("x") is None


def test_empty_input_skips_the_call(settings):
    client = MagicMock()
    assert LLMFieldExtractor(client, settings=settings).extract_fields("", "") is None
    client.chat.completions.create.assert_not_called()
