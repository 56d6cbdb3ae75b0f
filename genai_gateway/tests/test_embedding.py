import httpx
import pytest

from genai_gateway.domain.exceptions import TransportError
from genai_gateway.domain.models import Message
from genai_gateway.providers.embedding import (
    EMBEDDING_DIMENSIONS,
    EmbeddingProvider,
    deterministic_embedding,
    utf16_code_unit_sum,
)


class SettingsStub:
    mode = "mock"
    endpoint = "http://localhost:1/v1"
    embedding_model = "nomic-embed-text"
    api_key = None
    timeout_ms = 100
    timeout_seconds = 0.1
    embedding_concurrency = 4


class LocalSettingsStub(SettingsStub):
    mode = "local"


def test_hello_world_regression_values():
    values = EmbeddingProvider(SettingsStub()).embed("Hello World")
    assert len(values) == 768
    assert values[0] == pytest.approx(0.21004248595967168, abs=1e-10)
    assert values[1] == pytest.approx(-0.2683246140510031, abs=1e-10)
    assert values[2] == pytest.approx(-0.49999530134554293, abs=1e-10)
    assert values[3] == pytest.approx(-0.27197261442946136, abs=1e-10)
    assert values[4] == pytest.approx(0.20610043992709404, abs=1e-10)


def test_embedding_length_for_any_text():
    provider = EmbeddingProvider(SettingsStub())
    for text in ["", "a", "你好", "😀" * 3]:
        values = provider.embed(text)
        assert len(values) == EMBEDDING_DIMENSIONS
        assert all(isinstance(v, float) for v in values)


def test_utf16_code_units_count_surrogate_pairs():
    assert utf16_code_unit_sum("Hello World") == 1052
    assert utf16_code_unit_sum("") == 0
    # U+1F600 -> D83D DE00
    assert utf16_code_unit_sum("😀") == 0xD83D + 0xDE00


def test_embedding_is_deterministic():
    assert deterministic_embedding("same") == deterministic_embedding("same")
    assert deterministic_embedding("ab") == deterministic_embedding("ba")


def test_embed_batch_preserves_order():
    provider = EmbeddingProvider(SettingsStub())
    assert provider.embed_batch(["a", "b"]) == [provider.embed("a"), provider.embed("b")]
    assert provider.embed_batch([]) == []


def test_embed_message_uses_compact_json():
    provider = EmbeddingProvider(SettingsStub())
    msg = Message.from_text("user", "hi")
    assert provider.embed(msg) == provider.embed('{"role":"user","parts":[{"text":"hi"}]}')


def test_local_embedding_failure_falls_back_per_item():
    class FlakyLocal:
        def embed(self, text):
            if text == "bad":
                raise TransportError(code="NETWORK_ERROR", message="refused")
            return [1.0, 2.0]

    provider = EmbeddingProvider(LocalSettingsStub(), local_client=FlakyLocal())
    good, bad = provider.embed_batch(["good", "bad"])
    assert good == [1.0, 2.0]
    assert bad == deterministic_embedding("bad")


def test_local_embedding_unreachable_endpoint(monkeypatch):
    class Client:
        def __init__(self, *a, **kw):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def post(self, *a, **kw):
            raise httpx.ConnectError("connection refused")

    monkeypatch.setattr("httpx.Client", Client)
    values = EmbeddingProvider(LocalSettingsStub()).embed("Hello World")
    assert values == deterministic_embedding("Hello World")
