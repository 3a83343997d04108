# clients/base_http_client.py
import requests
import time
import re

from typing import Any, Dict, Optional
from app.utils.log import app_logger


DEFAULT_USER_AGENT = "integration-monitor/1.0"
BODY_CHUNK_SIZE = 1


def sanitize_error(error: Exception) -> str:
    """Render an exception without memory addresses like <HTTPSConnection(...) at 0x...>"""
    return re.sub(r'0x[0-9a-fA-F]+', '<ptr>', str(error))


class BaseHTTPClient:
    """Thin wrapper around a requests session with optional retries.

    Health probes use it with `max_retries=0`: every call is exactly one
    request and transport errors propagate to the caller untouched.
    """

    def __init__(self,
                 timeout: float = 30,
                 max_retries: int = 0,
                 retry_delay: float = 1.5,
                 accept: Optional[str] = 'application/json',
                 user_agent: str = DEFAULT_USER_AGENT,
                 session: Optional[requests.Session] = None,
                 ):
        self.timeout = timeout
        self.accept = accept
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.session = session or requests.Session()

        # setup default headers
        self.session.headers.update({
            'User-Agent': user_agent,
            'Accept': self.accept,
        })

    def request(self, method: str, url: str,
                headers: Optional[Dict[str, str]] = None,
                json: Optional[Any] = None,
                timeout: Optional[float] = None) -> requests.Response:
        """do HTTP request, retrying transport errors up to `max_retries` times

        `timeout` bounds each attempt as a whole (connect, headers and body).
        Exceeding it raises requests.exceptions.Timeout.
        """
        budget = timeout if timeout is not None else self.timeout
        for attempt in range(self.max_retries + 1):
            deadline = time.monotonic() + budget
            try:
                response = self.session.request(
                    method=method,
                    url=url,
                    json=json,
                    headers=headers or {},
                    timeout=(budget, budget),
                    stream=True,
                )
                self._read_body(response, deadline)

                if response.status_code >= 400:
                    app_logger.debug("request.status", method=method, url=url, status_code=response.status_code)

                return response

            except requests.exceptions.RequestException as e:
                app_logger.debug("request.failed", method=method, url=url, attempt=attempt + 1,
                                 exc_type=type(e).__name__, error=sanitize_error(e))

                if attempt >= self.max_retries:
                    raise

                # exponential backoff
                time.sleep(self.retry_delay * (2 ** attempt))

        raise RuntimeError(f"Failed to make request after {self.max_retries} retries")

    @staticmethod
    def _read_body(response: requests.Response, deadline: float) -> None:
        """Load the streamed body into `response.content`, giving up at `deadline`."""
        if time.monotonic() >= deadline:
            response.close()
            raise requests.exceptions.Timeout("Response headers arrived after the request deadline")

        chunks = []
        try:
            # single-byte reads: a larger read blocks until it is filled, so a
            # trickling server could hold it past the deadline
            for chunk in response.iter_content(chunk_size=BODY_CHUNK_SIZE):
                if time.monotonic() >= deadline:
                    raise requests.exceptions.Timeout("Response body not received before the request deadline")
                chunks.append(chunk)
            response._content = b"".join(chunks)
            response._content_consumed = True
        finally:
            response.close()

    def get(self, url: str, headers: Optional[Dict[str, str]] = None,
            timeout: Optional[float] = None) -> requests.Response:
        """do GET request"""
        return self.request('GET', url, headers=headers, timeout=timeout)

    def post(self, url: str, json: Optional[Any] = None,
             headers: Optional[Dict[str, str]] = None,
             timeout: Optional[float] = None) -> requests.Response:
        """do POST request"""
        return self.request('POST', url, headers=headers, json=json, timeout=timeout)

    def close(self):
        """close HTTP session"""
        self.session.close()
