from genai_gateway.domain.exceptions import ProtocolError, TransportError
from genai_gateway.domain.models import GenerationRequest, GenerationResult, Message
from genai_gateway.providers.mock_generator import MOCK_RESPONSE_TEXT, MOCK_STREAM_TEXT
from genai_gateway.providers.router import RequestRouter
from genai_gateway.tools.definitions import FunctionCall, FunctionDeclaration, Tool


class SettingsStub:
    mode = "mock"
    endpoint = "http://localhost:1/v1"
    mock_latency_ms = 0
    mock_stream_delay_ms = 0
    timeout_ms = 100


class LocalSettingsStub(SettingsStub):
    mode = "local"


class RemoteSettingsStub(SettingsStub):
    mode = "remote"


class UnreachableLocal:
    name = "local"

    def __init__(self):
        self.calls = 0

    def chat(self, req):
        self.calls += 1
        raise TransportError(code="NETWORK_ERROR", message="connection refused")

    def chat_stream(self, req):
        self.calls += 1
        raise TransportError(code="NETWORK_ERROR", message="connection refused")
        yield  # pragma: no cover


class WorkingLocal:
    name = "local"

    def chat(self, req):
        return GenerationResult(
            text="",
            function_calls=[FunctionCall(name="lookup", args={"q": "x"})],
            served_by="local",
        )

    def chat_stream(self, req):
        yield "local "
        yield "text"


class InterruptedLocal:
    name = "local"

    def chat(self, req):
        raise ProtocolError(code="DECODE_ERROR", message="bad json")

    def chat_stream(self, req):
        yield "partial"
        raise TransportError(code="TIMEOUT", message="stream timed out")


def make_request(tools=None):
    return GenerationRequest(
        model_id="gemini-pro",
        messages=(Message.from_text("user", "Hello"),),
        tools=tools,
        timeout_ms=100,
    )


def weather_tools():
    return [
        Tool(
            function_declarations=[
                FunctionDeclaration(name="get_weather", description="Get the weather"),
                FunctionDeclaration(name="get_time", description="Get the time"),
            ]
        ),
        Tool(function_declarations=[FunctionDeclaration(name="other", description="Other")]),
    ]


def test_mock_mode_without_tools():
    router = RequestRouter(SettingsStub(), local_client=UnreachableLocal())
    res = router.generate(make_request())
    assert res.text == MOCK_RESPONSE_TEXT
    assert res.function_calls == []
    assert len(res.candidates) == 1
    assert res.served_by == "mock"


def test_mock_mode_with_tools_emulates_first_declaration():
    local = UnreachableLocal()
    router = RequestRouter(SettingsStub(), local_client=local)
    res = router.generate(make_request(tools=weather_tools()))
    assert res.text == ""
    assert len(res.function_calls) == 1
    assert res.function_calls[0].name == "get_weather"
    assert res.function_calls[0].args == {"mock": True, "message": "Simulated tool call"}
    assert local.calls == 0


def test_local_mode_unreachable_falls_back_to_mock():
    local = UnreachableLocal()
    router = RequestRouter(LocalSettingsStub(), local_client=local)
    res = router.generate(make_request())
    assert local.calls == 1
    assert res.text == MOCK_RESPONSE_TEXT
    assert res.function_calls == []
    assert res.served_by == "fallback"


def test_local_mode_protocol_error_falls_back_with_tool_emulation():
    router = RequestRouter(LocalSettingsStub(), local_client=InterruptedLocal())
    res = router.generate(make_request(tools=weather_tools()))
    assert res.function_calls[0].name == "get_weather"
    assert res.served_by == "fallback"


def test_local_tool_calls_pass_through():
    router = RequestRouter(LocalSettingsStub(), local_client=WorkingLocal())
    res = router.generate(make_request(tools=weather_tools()))
    assert res.function_calls == [FunctionCall(name="lookup", args={"q": "x"})]
    assert res.served_by == "local"


def test_remote_mode_is_served_by_mock():
    local = UnreachableLocal()
    router = RequestRouter(RemoteSettingsStub(), local_client=local)
    assert router.generate(make_request()).text == MOCK_RESPONSE_TEXT
    assert local.calls == 0


def test_mock_stream_is_finite_and_restartable():
    router = RequestRouter(SettingsStub(), local_client=UnreachableLocal())
    first = "".join(c.text for c in router.generate_stream(make_request()))
    second = "".join(c.text for c in router.generate_stream(make_request()))
    assert first.rstrip() == MOCK_STREAM_TEXT
    assert first.endswith(" ")
    assert second == first


def test_stream_instances_are_independent():
    router = RequestRouter(SettingsStub(), local_client=UnreachableLocal())
    a = router.generate_stream(make_request())
    b = router.generate_stream(make_request())
    assert next(a).text == "This "
    assert next(b).text == "This "
    assert next(a).text == "is "


def test_local_stream_unreachable_falls_back_to_mock_stream():
    router = RequestRouter(LocalSettingsStub(), local_client=UnreachableLocal())
    text = router.generate_stream(make_request()).text()
    assert text.rstrip() == MOCK_STREAM_TEXT


def test_local_stream_served_by_local():
    router = RequestRouter(LocalSettingsStub(), local_client=WorkingLocal())
    assert router.generate_stream(make_request()).text() == "local text"


def test_local_stream_interrupted_after_output_does_not_mix_mock_text():
    router = RequestRouter(LocalSettingsStub(), local_client=InterruptedLocal())
    chunks = [c.text for c in router.generate_stream(make_request())]
    assert chunks == ["partial"]


def test_closing_stream_stops_iteration():
    router = RequestRouter(SettingsStub(), local_client=UnreachableLocal())
    stream = router.generate_stream(make_request())
    next(stream)
    stream.close()
    assert stream.closed
    assert list(stream) == []
