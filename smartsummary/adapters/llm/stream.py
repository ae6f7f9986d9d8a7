"""Incremental decoder for OpenAI-compatible SSE completion streams."""
import codecs
import json
from typing import Any, Dict, List, Optional

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class SSELineDecoder:
    """Buffered line reader for upstream stream bodies.

    Bytes are accumulated and split on newline; complete lines are returned
    and the trailing partial line is carried over to the next ``feed``.
    Multi-byte characters split across reads are handled by an incremental
    UTF-8 decoder.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.buffer = ""

    def feed(self, data: bytes) -> List[str]:
        """Consume raw bytes and return the complete lines they finish."""
        self.buffer += self._decoder.decode(data)
        lines = self.buffer.split("\n")
        self.buffer = lines.pop()
        return [line.rstrip("\r") for line in lines]

    def flush(self) -> List[str]:
        """Return whatever is left once the body is exhausted."""
        self.buffer += self._decoder.decode(b"", final=True)
        rest, self.buffer = self.buffer.rstrip("\r"), ""
        return [rest] if rest.strip() else []


class DecodedLine:
    """Result of decoding one ``data:`` line."""

    __slots__ = ("done", "payload", "malformed")

    def __init__(self, done: bool = False, payload: Optional[Dict[str, Any]] = None, malformed: bool = False):
        self.done = done
        self.payload = payload
        self.malformed = malformed


def decode_line(line: str) -> Optional[DecodedLine]:
    """Decode one upstream line.

    Returns None for lines that carry no data (blank lines, comments,
    ``event:`` fields).
    """
    if not line.strip() or not line.startswith(DATA_PREFIX):
        return None

    data_str = line[len(DATA_PREFIX):]
    if data_str.strip() == DONE_SENTINEL:
        return DecodedLine(done=True)

    try:
        payload = json.loads(data_str)
    except json.JSONDecodeError:
        return DecodedLine(malformed=True)
    if not isinstance(payload, dict):
        return DecodedLine(malformed=True)
    choices = payload.get("choices")
    if choices is not None and not isinstance(choices, list):
        return DecodedLine(malformed=True)
    return DecodedLine(payload=payload)


def extract_delta_content(payload: Dict[str, Any]) -> str:
    """Delta text of the first choice, or empty string."""
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    delta = choices[0].get("delta") or {}
    content = delta.get("content") if isinstance(delta, dict) else None
    return content if isinstance(content, str) else ""
