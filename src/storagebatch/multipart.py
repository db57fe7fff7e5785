"""Decoding of ``multipart/mixed`` batch response bodies.

The response to a blob batch call is a single ``multipart/mixed`` body. Each
part wraps one HTTP response::

    --batchresponse_<id>\\r\\n
    Content-Type: application/http\\r\\n
    Content-ID: 0\\r\\n
    \\r\\n
    HTTP/1.1 202 Accepted\\r\\n
    x-ms-request-id: ...\\r\\n
    \\r\\n
    <body bytes>
    \\r\\n--batchresponse_<id>--

Bodies may be arbitrary bytes, so parts are scanned line by line on raw
``bytes`` and only the status line and headers are ever decoded to text.
"""

from __future__ import annotations

import logging
import re
from email.parser import HeaderParser

from .errors import MalformedBatchResponseError
from .models.batch import BatchSubResponse

logger = logging.getLogger(__name__)

CRLF = b"\r\n"
# HTTP header bytes are ISO-8859-1 on the wire.
HEADER_ENCODING = "latin-1"


def boundary_from_content_type(content_type: str | None) -> str | None:
    """Return the ``boundary=`` parameter of a ``Content-Type`` header value."""

    if not content_type:
        return None
    boundary: str | None = None
    parser = HeaderParser()
    headers = parser.parsestr(f"Content-Type: {content_type}", headersonly=True)
    raw_boundary = headers.get_param("boundary", header="content-type")
    if isinstance(raw_boundary, tuple):
        boundary = next(
            (part for part in raw_boundary if isinstance(part, str) and part),
            None,
        )
    elif isinstance(raw_boundary, str):
        boundary = raw_boundary
    if not boundary:
        # Fall back to simple regex for legacy or malformed headers.
        m = re.search(r"boundary=\"?([\w\-\.]+)", content_type, re.IGNORECASE)
        if m:
            boundary = m.group(1)
    return boundary or None


def split_multipart_body(body: bytes, boundary: str) -> list[bytes]:
    """Split ``body`` into one byte segment per part, delimiters removed.

    Interior parts are separated by ``\\r\\n--<boundary>\\r\\n``. The opening
    delimiter has no leading CRLF and the closing one ends with ``--``, so
    they are stripped from the first and last segments separately. A body
    that lacks the markers comes back as a single unmodified segment.
    """

    opening = f"--{boundary}\r\n".encode(HEADER_ENCODING)
    separator = CRLF + opening
    closing = f"\r\n--{boundary}--".encode(HEADER_ENCODING)

    segments = body.split(separator)

    first = segments[0]
    if first.startswith(opening):
        segments[0] = first[len(opening) :]

    last = segments[-1]
    end = last.find(closing)
    if end != -1:
        segments[-1] = last[:end]

    return segments


def _parse_status_line(line: str) -> tuple[int, str]:
    parts = line.split(" ", 2)
    if len(parts) < 2:
        raise MalformedBatchResponseError(f"Unparsable status line: {line!r}")
    token = parts[1].strip()
    # str.isdigit() also accepts superscripts and other non-ASCII digits.
    if not (token.isascii() and token.isdigit()):
        raise MalformedBatchResponseError(f"Unparsable status code in line: {line!r}")
    status_code = int(token, 10)
    status_message = parts[2].strip() if len(parts) > 2 else ""
    return status_code, status_message


def parse_sub_response(segment: bytes) -> BatchSubResponse:
    """Parse one delimited part into a :class:`BatchSubResponse`.

    A part may open with its own MIME headers (``Content-Type``,
    ``Content-ID``) and a blank line before the status line; those headers are
    merged into ``headers`` with the HTTP response headers. The header block
    ends at the first blank line after the status line, or at the second blank
    line overall. Everything after it is returned verbatim as the body.
    """

    status_code = -1
    status_message = ""
    headers: dict[str, str] = {}
    blank_lines = 0
    position = 0
    length = len(segment)

    while position < length:
        line_end = segment.find(CRLF, position)
        if line_end == -1:
            line_end = length
        raw_line = segment[position:line_end]
        position = line_end + len(CRLF)

        if not raw_line:
            blank_lines += 1
            if status_code != -1 or blank_lines >= 2:
                break
            continue

        line = raw_line.decode(HEADER_ENCODING)
        if line.startswith("HTTP") and status_code == -1:
            status_code, status_message = _parse_status_line(line)
            continue

        name, sep, value = line.partition(":")
        if not sep or not name.strip():
            raise MalformedBatchResponseError(f"Invalid header line in batch response: {line!r}")
        headers[name.strip()] = value.strip()

    body = segment[position:] if position < length else None
    return BatchSubResponse(
        status_code=status_code,
        status_message=status_message,
        headers=headers,
        body=body,
    )


def parse_batch_body(body: bytes, boundary: str) -> list[BatchSubResponse]:
    """Split and parse a complete batch response body.

    Raises:
        MalformedBatchResponseError: When ``boundary`` does not occur in
            ``body`` or a part carries no HTTP status line.
    """

    if f"--{boundary}".encode(HEADER_ENCODING) not in body:
        raise MalformedBatchResponseError(f"Boundary {boundary!r} not found in batch response body")

    responses: list[BatchSubResponse] = []
    for index, segment in enumerate(split_multipart_body(body, boundary)):
        parsed = parse_sub_response(segment)
        if parsed.status_code == -1:
            raise MalformedBatchResponseError(f"Batch response part {index} has no HTTP status line")
        responses.append(parsed)
    logger.debug("Decoded %d sub-responses from batch body (%d bytes)", len(responses), len(body))
    return responses


__all__ = [
    "boundary_from_content_type",
    "parse_batch_body",
    "parse_sub_response",
    "split_multipart_body",
]
