"""
Forward a raw request to a local LLM server (LM Studio, Ollama, any
OpenAI-compatible endpoint) and return the response body as text.

The HTTP status is logged, never classified: a 500 with body "oops"
returns "oops". Only transport failures raise, as ProxyError with a
message the UI can show as-is. No retries.
"""

import logging
import os
import socket
import threading
import time

import requests

logger = logging.getLogger("story_builder.llm_proxy")

PROXY_TIMEOUT_SECONDS = float(os.environ.get("LLM_PROXY_TIMEOUT_SECONDS", "30"))

TIMEOUT_MESSAGE = "Connection to the local LLM server timed out. Check that the server is running."
CONNECT_MESSAGE = (
    "Cannot connect to the local LLM server. "
    "Check that the server is running and the endpoint is correct."
)


class ProxyError(Exception):
    """Transport failure while talking to the LLM server. str(e) is the user-facing message."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def _send_error_message(exc: requests.RequestException) -> str:
    """Map a send failure to a human-readable message."""
    # ConnectTimeout is both a Timeout and a ConnectionError; timeout wins.
    if isinstance(exc, requests.exceptions.Timeout):
        return TIMEOUT_MESSAGE
    if isinstance(exc, requests.exceptions.SSLError):
        return f"Request send error: {exc}"
    if isinstance(exc, requests.exceptions.ConnectionError):
        return CONNECT_MESSAGE
    return f"Request send error: {exc}"


def _expire(response: requests.Response, expired: threading.Event) -> None:
    """Deadline reached: shut the socket down so a blocked body read returns now."""
    expired.set()
    connection = getattr(response.raw, "connection", None)
    sock = getattr(connection, "sock", None)
    if sock is None:
        return
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError as e:
        logger.debug("LLM proxy socket already closed: %s", e)


def forward(
    endpoint: str,
    body: str,
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
) -> str:
    """
    POST body to endpoint with headers and return the response text.

    Args:
        endpoint: Full URL of the LLM server endpoint.
        body: Raw request body, sent UTF-8 encoded.
        headers: Header name -> value, sent unchanged.
        timeout: Limit in seconds for the whole exchange, body read included
            (default PROXY_TIMEOUT_SECONDS).

    Returns:
        Response body text, whatever the status code.

    Raises:
        ProxyError: on timeout, refused/unreachable connection, any other
            send failure, or a failure while reading the response body.
    """
    timeout = PROXY_TIMEOUT_SECONDS if timeout is None else timeout
    deadline = time.monotonic() + timeout
    logger.info("Proxying LLM request to %s", endpoint)
    try:
        response = requests.post(
            endpoint,
            data=(body or "").encode("utf-8"),
            headers=dict(headers or {}),
            timeout=timeout,
            stream=True,
        )
    except requests.RequestException as e:
        logger.error("LLM proxy send failed for %s: %s", endpoint, e)
        raise ProxyError(_send_error_message(e)) from e

    with response:
        logger.info("LLM proxy response status: %s", response.status_code)
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            logger.error("LLM proxy timed out waiting for %s", endpoint)
            raise ProxyError(TIMEOUT_MESSAGE)
        # requests only bounds each socket read; the watchdog bounds the whole body read.
        expired = threading.Event()
        watchdog = threading.Timer(remaining, _expire, args=(response, expired))
        watchdog.daemon = True
        watchdog.start()
        chunks: list[bytes] = []
        try:
            for chunk in response.iter_content(chunk_size=65536):
                if expired.is_set() or time.monotonic() >= deadline:
                    logger.error("LLM proxy timed out reading response from %s", endpoint)
                    raise ProxyError(TIMEOUT_MESSAGE)
                if chunk:
                    chunks.append(chunk)
        except requests.RequestException as e:
            if expired.is_set():
                logger.error("LLM proxy timed out reading response from %s", endpoint)
                raise ProxyError(TIMEOUT_MESSAGE) from e
            logger.error("LLM proxy response read failed for %s: %s", endpoint, e)
            raise ProxyError(f"Response read error: {e}") from e
        finally:
            watchdog.cancel()
        if expired.is_set():
            logger.error("LLM proxy timed out reading response from %s", endpoint)
            raise ProxyError(TIMEOUT_MESSAGE)
    buf = b"".join(chunks)
    # requests falls back to ISO-8859-1 for text/*; LLM servers send UTF-8 unless they say otherwise.
    content_type = str(response.headers.get("Content-Type", "")).lower()
    encoding = (response.encoding or "utf-8") if "charset=" in content_type else "utf-8"
    try:
        text = buf.decode(encoding, errors="replace")
    except LookupError:
        text = buf.decode("utf-8", errors="replace")
    logger.info("LLM proxy request completed (%d chars)", len(text))
    return text
