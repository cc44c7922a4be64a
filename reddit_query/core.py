"""Core query utilities for the reddit-query client."""
from __future__ import annotations

import codecs
import dataclasses
import json
import logging
import threading
from contextlib import closing
from dataclasses import dataclass
from typing import Any, Iterable, List

import requests

logger = logging.getLogger(__name__)

BASE_URL = "https://www.reddit.com"
DEFAULT_USER_AGENT = "reddit-query/0.1 (+https://www.reddit.com/dev/api)"
DEFAULT_TIMEOUT = 30.0
CHUNK_SIZE = 8192


class QueryError(RuntimeError):
    """Base class for every failure surfaced by :func:`path_query`."""

    stage = "query"


class HeaderFormatError(QueryError):
    """Reserved for header validation; :func:`format_headers` never raises it."""

    stage = "headers"


class TransferError(QueryError):
    """The HTTP round trip could not be completed."""

    stage = "transfer"

    def __init__(self, message: str, *, partial: str = "") -> None:
        super().__init__(message)
        self.partial = partial


class ParseError(QueryError):
    """The response body is not valid JSON."""

    stage = "parse"

    def __init__(self, message: str, *, body: str = "") -> None:
        super().__init__(message)
        self.body = body


@dataclass(frozen=True, slots=True)
class QueryOptions:
    """Configuration consumed by :func:`path_query`."""

    key: str = ""
    headers: str = ""

    def __repr__(self) -> str:
        masked = "***" if self.key else ""
        return f"QueryOptions(key={masked!r}, headers={self.headers!r})"

    def with_overrides(self, **overrides: Any) -> "QueryOptions":
        values = {name: "" if value is None else str(value) for name, value in overrides.items()}
        return dataclasses.replace(self, **values)


class ResponseAccumulator:
    """Collects the decoded body chunks of a single transfer.

    Chunks may be appended from any thread; each append holds the lock only
    while decoding and storing one chunk. The joined text is read once, after
    the transfer is over.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="strict")
        self._chunks: List[str] = []
        self._received = 0

    def append(self, chunk: bytes) -> int:
        with self._lock:
            try:
                text = self._decoder.decode(chunk)
            except UnicodeDecodeError as exc:
                raise TransferError(
                    f"Response chunk is not valid UTF-8: {exc}",
                    partial="".join(self._chunks),
                ) from exc
            if text:
                self._chunks.append(text)
            self._received += len(chunk)
        return len(chunk)

    @property
    def received(self) -> int:
        with self._lock:
            return self._received

    def partial(self) -> str:
        with self._lock:
            return "".join(self._chunks)

    def text(self) -> str:
        with self._lock:
            try:
                tail = self._decoder.decode(b"", final=True)
            except UnicodeDecodeError as exc:
                raise TransferError(
                    f"Response ends with a truncated UTF-8 sequence: {exc}",
                    partial="".join(self._chunks),
                ) from exc
            if tail:
                self._chunks.append(tail)
            return "".join(self._chunks)


def format_headers(raw: str) -> List[str]:
    """Split a comma-delimited header string into ``Name: Value`` lines.

    Entries are trimmed and empty entries are dropped, so ``""`` and a
    trailing comma contribute nothing. Embedded commas cannot be escaped.
    """
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def build_url(path: str, origin: str = BASE_URL) -> str:
    return origin + path


def _reject_constant(token: str) -> Any:
    raise ValueError(f"{token} is not a JSON value")


def _header_mapping(lines: Iterable[str]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    names: dict[str, str] = {}
    for line in lines:
        name, sep, value = line.partition(":")
        name = name.strip()
        if not sep or not name:
            raise TransferError(f"Cannot attach malformed header line: {line!r}")
        value = value.strip()
        try:
            name.encode("ascii")
            value.encode("latin-1")
        except UnicodeEncodeError as exc:
            raise TransferError(f"Cannot attach header line: {line!r}") from exc
        folded = name.lower()
        if folded in names:
            existing = names[folded]
            mapping[existing] = f"{mapping[existing]}, {value}"
        else:
            names[folded] = name
            mapping[name] = value
    return mapping


def build_session(verify: bool = True) -> requests.Session:
    session = requests.Session()
    session.headers.update(
        {
            "User-Agent": DEFAULT_USER_AGENT,
            "Accept": "application/json, */*; q=0.01",
        }
    )
    session.verify = verify
    return session


def _stream_body(response: requests.Response, accumulator: ResponseAccumulator) -> int:
    chunks = 0
    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
        if chunk:
            accumulator.append(chunk)
            chunks += 1
    return chunks


def execute(
    url: str,
    headers: Iterable[str],
    *,
    session: requests.Session | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    verify: bool = True,
) -> str:
    """Perform one blocking GET against ``url`` and return the body text.

    Raises :class:`TransferError` when the headers cannot be attached, the
    request fails at the transport level, or the body is not UTF-8.
    ``verify`` only applies to the session built when none is passed in.
    """
    header_map = _header_mapping(headers)
    logger.debug("GET %s (headers: %s)", url, ", ".join(header_map) or "none")

    owned = session is None
    active = build_session(verify) if owned else session
    accumulator = ResponseAccumulator()
    try:
        with closing(active.get(url, headers=header_map, stream=True, timeout=timeout)) as response:
            status = getattr(response, "status_code", None)
            if status is not None and not 200 <= status < 300:
                logger.warning("Received HTTP %s from %s; returning body as-is", status, url)
            chunks = _stream_body(response, accumulator)
    except requests.exceptions.RequestException as exc:
        logger.warning("Transfer to %s failed: %s", url, exc)
        raise TransferError(
            f"Failed to fetch {url!r}: {exc}", partial=accumulator.partial()
        ) from exc
    except TransferError as exc:
        logger.warning("Transfer to %s failed: %s", url, exc)
        raise
    finally:
        if owned:
            active.close()

    body = accumulator.text()
    logger.debug("Received %d bytes in %d chunk(s) from %s", accumulator.received, chunks, url)
    return body


def path_query(
    search_path: str,
    options: QueryOptions | None = None,
    *,
    session: requests.Session | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    verify: bool = True,
) -> Any:
    """Query the Reddit JSON API with ``search_path`` and return the parsed value.

    Example::

        listing = path_query("/r/python/top/.json?count=20")
        titles = [child["data"]["title"] for child in listing["data"]["children"]]

    Transfer failures propagate as :class:`TransferError`; a body that is not
    JSON raises :class:`ParseError`.
    """
    options = options or QueryOptions()
    url = build_url(search_path)
    header_lines = format_headers(options.headers)

    body = execute(url, header_lines, session=session, timeout=timeout, verify=verify)

    try:
        return json.loads(body, parse_constant=_reject_constant)
    except ValueError as exc:
        raise ParseError(f"Response from {url!r} is not valid JSON: {exc}", body=body) from exc


def rquery(search_path: str, options: QueryOptions | None = None, **overrides: Any) -> Any:
    """Shorthand for :func:`path_query` with inline ``key=``/``headers=`` overrides."""
    options = (options or QueryOptions()).with_overrides(**overrides)
    return path_query(search_path, options)
