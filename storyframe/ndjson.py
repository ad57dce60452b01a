"""Newline-delimited JSON helpers shared by the server and the client."""
from __future__ import annotations

import codecs
import json

MEDIA_TYPE = "application/x-ndjson"


def encode_line(obj: dict) -> bytes:
    """One compact JSON object terminated by a single newline."""
    return (json.dumps(obj, ensure_ascii=False, separators=(",", ":")) + "\n").encode("utf-8")


def decode_line(line: str) -> dict | None:
    """Parse one line; blank or malformed lines give None."""
    line = line.strip()
    if not line:
        return None
    try:
        obj = json.loads(line)
    except ValueError:
        return None
    return obj if isinstance(obj, dict) else None


class LineBuffer:
    """Splits an incoming byte stream on newlines.

    A trailing partial line is held back until the rest of it arrives.
    """

    def __init__(self) -> None:
        self._pending = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def feed(self, chunk: bytes | str) -> list[str]:
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        data = self._pending + chunk
        *lines, self._pending = data.split("\n")
        return lines

    def flush(self) -> str:
        """Whatever is left once the stream has ended."""
        rest = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        return rest

