"""Raw HTTP response parsing and body interpretation.

Transports hand back the response exactly as it came off the wire
(status line, header block, body).  :class:`HttpResponse` parses that
text, undoing chunked transfer encoding and gzip/deflate content
encoding, and :func:`parse_response_result` turns it into the value a
caller sees:

* a status other than ``200`` is a failure (:class:`HttpStatusError`);
* a ``Content-Type`` containing ``application/json`` (case-insensitive)
  yields the decoded JSON document;
* anything else yields the body as text.

Malformed responses are logged at warning level and reported as
:class:`~remotely.exceptions.ResponseParseError`; nothing here raises to
the caller.
"""

from __future__ import annotations

import json
import logging
import re
import zlib
from dataclasses import dataclass
from typing import Any, Union

import httpx

from remotely.exceptions import HttpStatusError, ResponseParseError
from remotely.result import RemoteResult

logger = logging.getLogger(__name__)

_STATUS_LINE = re.compile(
    r"^HTTP/(?P<version>\d(?:\.\d)?) (?P<status>\d{3})(?: (?P<reason>.*))?$"
)
_CHARSET = re.compile(r"charset\s*=\s*\"?(?P<charset>[\w.:-]+)", re.IGNORECASE)

RawResponse = Union[bytes, str]


@dataclass
class HttpResponse:
    """A parsed HTTP response.

    ``content`` holds the body after transfer and content decoding, so it
    is what the server meant to send rather than what crossed the wire.
    """

    version: str
    status_code: int
    reason: str
    headers: httpx.Headers
    content: bytes

    @property
    def is_ok(self) -> bool:
        """Only ``200 OK`` counts as success."""
        return self.status_code == 200

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")

    @property
    def is_json(self) -> bool:
        return "application/json" in self.content_type.lower()

    @property
    def charset(self) -> str:
        match = _CHARSET.search(self.content_type)
        return match.group("charset") if match else "utf-8"

    @property
    def text(self) -> str:
        try:
            return self.content.decode(self.charset, errors="replace")
        except LookupError:
            return self.content.decode("utf-8", errors="replace")

    @classmethod
    def from_raw(cls, raw: RawResponse) -> HttpResponse:
        """Parse a complete response message.

        Interim ``1xx`` responses (``100 Continue``) preceding the final
        response are skipped.

        Raises:
            ResponseParseError: If the status line, a header line, or the
                body encoding is malformed.
        """
        if isinstance(raw, str):
            raw = raw.encode("utf-8")
        remaining = raw
        while True:
            head, body = _split_message(remaining)
            version, status, reason, headers = _parse_head(head)
            if 100 <= status < 200 and body:
                remaining = body
                continue
            break
        content = _decode_body(body, headers)
        return cls(
            version=version,
            status_code=status,
            reason=reason,
            headers=headers,
            content=content,
        )


def _split_message(raw: bytes) -> tuple[bytes, bytes]:
    best: tuple[int, int] | None = None
    for sep in (b"\r\n\r\n", b"\n\n"):
        index = raw.find(sep)
        if index != -1 and (best is None or index < best[0]):
            best = (index, len(sep))
    if best is None:
        return raw, b""
    index, length = best
    return raw[:index], raw[index + length:]


def _parse_head(head: bytes) -> tuple[str, int, str, httpx.Headers]:
    lines = head.decode("latin-1").replace("\r\n", "\n").split("\n")
    match = _STATUS_LINE.match(lines[0].strip())
    if match is None:
        raise ResponseParseError(f"Invalid status line: {lines[0][:80]!r}")

    pairs: list[tuple[str, str]] = []
    for line in lines[1:]:
        if not line:
            continue
        if line[0] in " \t" and pairs:
            name, value = pairs[-1]
            pairs[-1] = (name, f"{value} {line.strip()}")
            continue
        name, sep, value = line.partition(":")
        if not sep or not name.strip():
            raise ResponseParseError(f"Invalid header line: {line[:80]!r}")
        pairs.append((name.strip(), value.strip()))

    return (
        match.group("version"),
        int(match.group("status")),
        match.group("reason") or "",
        httpx.Headers(pairs),
    )


def _decode_body(body: bytes, headers: httpx.Headers) -> bytes:
    if "chunked" in headers.get("transfer-encoding", "").lower():
        body = _dechunk(body)
    encoding = headers.get("content-encoding", "").lower()
    try:
        if encoding == "gzip":
            body = zlib.decompress(body, 16 + zlib.MAX_WBITS)
        elif encoding == "deflate":
            try:
                body = zlib.decompress(body)
            except zlib.error:
                body = zlib.decompress(body, -zlib.MAX_WBITS)
    except zlib.error as exc:
        raise ResponseParseError(f"Cannot decode {encoding} body: {exc}") from exc
    return body


def _dechunk(body: bytes) -> bytes:
    out = bytearray()
    pos = 0
    while True:
        eol = body.find(b"\n", pos)
        if eol == -1:
            raise ResponseParseError("Truncated chunked body")
        size_field = body[pos:eol].split(b";", 1)[0].strip()
        try:
            size = int(size_field, 16)
        except ValueError as exc:
            raise ResponseParseError(f"Invalid chunk size {size_field!r}") from exc
        if size == 0:
            return bytes(out)
        start = eol + 1
        end = start + size
        if end > len(body):
            raise ResponseParseError("Truncated chunked body")
        out += body[start:end]
        pos = end
        # chunk data is followed by CRLF
        if body[pos:pos + 2] == b"\r\n":
            pos += 2
        elif body[pos:pos + 1] == b"\n":
            pos += 1


def parse_response_result(raw: RawResponse) -> RemoteResult:
    """Interpret raw response text as a :class:`~remotely.result.RemoteResult`."""
    try:
        response = HttpResponse.from_raw(raw)
    except ResponseParseError as exc:
        logger.warning("Response error: %s", exc)
        return RemoteResult.failure(exc)

    if not response.is_ok:
        logger.debug("Remote returned HTTP %s %s", response.status_code, response.reason)
        return RemoteResult.failure(HttpStatusError(response.status_code, response.reason))

    body = response.text
    if not response.is_json:
        return RemoteResult.success(body)
    if not body.strip():
        return RemoteResult.success(None)
    try:
        value: Any = json.loads(body)
    except json.JSONDecodeError as exc:
        error = ResponseParseError(f"Invalid JSON body: {exc}")
        logger.warning("Response error: %s", error)
        return RemoteResult.failure(error)
    return RemoteResult.success(value)


def parse_response(raw: RawResponse) -> Any:
    """Return the interpreted body, or ``False`` on any failure."""
    return parse_response_result(raw).value_or_false()
