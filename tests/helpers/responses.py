"""
HTTP response builders for tests.
"""
from __future__ import annotations

from typing import Optional, Sequence, Tuple

# Host name the fake network serves test payloads from
HOST = "stage.example.test"


def http_response(
    body: bytes,
    *,
    status: str = "200 OK",
    content_length: Optional[int] = None,
    headers: Sequence[Tuple[str, str]] = (),
    include_length: bool = True,
) -> bytes:
    """
    Build raw response bytes.

    Args:
        body: Body bytes (sent as-is, regardless of the declared length)
        status: Status code and reason
        content_length: Declared length override (defaults to len(body))
        headers: Extra header lines, sent before Content-Length
        include_length: Omit Content-Length entirely when False
    """
    lines = [f"HTTP/1.1 {status}"]
    lines += [f"{name}: {value}" for name, value in headers]
    if include_length:
        declared = len(body) if content_length is None else content_length
        lines.append(f"Content-Length: {declared}")
    head = "\r\n".join(lines) + "\r\n\r\n"
    return head.encode("latin-1") + body
