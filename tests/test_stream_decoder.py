"""Tests for adapters/llm/stream.py."""
from smartsummary.adapters.llm.stream import SSELineDecoder, decode_line, extract_delta_content


def test_decoder_carries_partial_line():
    """A line split across reads is only returned once complete."""
    decoder = SSELineDecoder()
    assert decoder.feed(b'data: {"a"') == []
    assert decoder.feed(b': 1}\n\ndata: [DO') == ['data: {"a": 1}', ""]
    assert decoder.feed(b"NE]\n") == ["data: [DONE]"]
    assert decoder.flush() == []


def test_decoder_handles_split_multibyte_character():
    decoder = SSELineDecoder()
    encoded = "data: café\n".encode("utf-8")
    split_at = encoded.index(b"\xc3") + 1
    assert decoder.feed(encoded[:split_at]) == []
    assert decoder.feed(encoded[split_at:]) == ["data: café"]


def test_decoder_strips_carriage_returns():
    decoder = SSELineDecoder()
    assert decoder.feed(b"data: x\r\n") == ["data: x"]


def test_flush_returns_unterminated_last_line():
    decoder = SSELineDecoder()
    decoder.feed(b"data: [DONE]")
    assert decoder.flush() == ["data: [DONE]"]


def test_decode_line_ignores_non_data_lines():
    assert decode_line("") is None
    assert decode_line(": keep-alive") is None
    assert decode_line("event: message") is None


def test_decode_line_sentinel():
    decoded = decode_line("data: [DONE]")
    assert decoded.done is True


def test_decode_line_payload():
    decoded = decode_line('data: {"choices": []}')
    assert decoded.done is False
    assert decoded.malformed is False
    assert decoded.payload == {"choices": []}


def test_decode_line_malformed():
    assert decode_line("data: {not json").malformed is True
    assert decode_line("data: [1, 2]").malformed is True


def test_extract_delta_content():
    assert extract_delta_content({"choices": [{"delta": {"content": "Hi"}}]}) == "Hi"
    assert extract_delta_content({"choices": [{"delta": {}}]}) == ""
    assert extract_delta_content({"choices": []}) == ""
    assert extract_delta_content({"usage": {"total_tokens": 3}}) == ""
    assert extract_delta_content({"choices": [{"delta": {"content": None}}]}) == ""


def test_decode_line_wrongly_typed_choices_is_malformed():
    assert decode_line('data: {"choices": {"x": 1}}').malformed is True
    assert decode_line('data: {"choices": 5}').malformed is True
    assert decode_line('data: {"choices": null, "usage": {}}').malformed is False


def test_extract_delta_content_tolerates_bad_shapes():
    assert extract_delta_content({"choices": {"x": 1}}) == ""
    assert extract_delta_content({"choices": 5}) == ""
    assert extract_delta_content({"choices": ["text"]}) == ""
