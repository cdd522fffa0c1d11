from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import requests
from requests import Response


logger = logging.getLogger(__name__)

BODY_SNIPPET_LENGTH = 200


class ProviderError(RuntimeError):
    """Base provider error."""


class UpstreamError(ProviderError):
    """An upstream call failed; carries the URL and a diagnostic tag."""

    def __init__(self, message: str, *, url: str, tag: str = "") -> None:
        super().__init__(message)
        self.url = url
        self.tag = tag


class UpstreamNetworkError(UpstreamError):
    """Timeout or connection failure."""


class UpstreamHttpError(UpstreamError):
    def __init__(self, message: str, *, url: str, tag: str = "", status_code: int, body: str = "") -> None:
        super().__init__(message, url=url, tag=tag)
        self.status_code = status_code
        self.body = body


class UpstreamFormatError(UpstreamError):
    def __init__(self, message: str, *, url: str, tag: str = "", body: str = "") -> None:
        super().__init__(message, url=url, tag=tag)
        self.body = body


class NoStationFound(ProviderError):
    """The directory service did not yield a usable station."""


class NoObservationAvailable(ProviderError):
    """Neither observation endpoint returned a reading."""


class MissingFieldsError(ProviderError):
    """The payload lacks any usable reading."""


@dataclass
class RequestConfig:
    timeout_ms: int = 12000
    retries: int = 1
    backoff_seconds: float = 0.5


def fetch_json(
    url: str,
    *,
    headers: Optional[Mapping[str, str]] = None,
    params: Optional[Mapping[str, Any]] = None,
    timeout_ms: int = 12000,
    retries: int = 1,
    tag: str = "",
    session: Optional[requests.Session] = None,
    backoff_seconds: float = 0.5,
) -> Any:
    """GET ``url`` and decode its JSON body.

    ``retries`` counts the attempts made after the first failure. Between
    attempts the call sleeps ``backoff_seconds * attempt`` seconds. The error of
    the last attempt is raised.

    The timeout is handed to ``requests`` as is, so it bounds the connect and
    each wait for response bytes rather than the total transfer time.
    """
    if session is None:
        with requests.Session() as owned:
            return fetch_json(
                url,
                headers=headers,
                params=params,
                timeout_ms=timeout_ms,
                retries=retries,
                tag=tag,
                session=owned,
                backoff_seconds=backoff_seconds,
            )
    attempts = max(0, retries) + 1
    for attempt in range(1, attempts + 1):
        try:
            return _fetch_once(session, url, headers=headers, params=params, timeout_ms=timeout_ms, tag=tag)
        except UpstreamError as exc:
            if attempt == attempts:
                raise
            logger.warning("[%s] attempt %d/%d failed: %s", tag, attempt, attempts, exc)
            time.sleep(backoff_seconds * attempt)
    raise AssertionError("unreachable")  # pragma: no cover


def _fetch_once(
    session: requests.Session,
    url: str,
    *,
    headers: Optional[Mapping[str, str]],
    params: Optional[Mapping[str, Any]],
    timeout_ms: int,
    tag: str,
) -> Any:
    try:
        response = session.get(url, headers=dict(headers or {}), params=params, timeout=timeout_ms / 1000)
    except requests.Timeout as exc:
        raise UpstreamNetworkError(f"[{tag}] timed out after {timeout_ms}ms :: {url}", url=url, tag=tag) from exc
    except requests.RequestException as exc:
        raise UpstreamNetworkError(f"[{tag}] request failed :: {url} :: {exc}", url=url, tag=tag) from exc
    return _decode(response, url=url, tag=tag)


def _decode(response: Response, *, url: str, tag: str) -> Any:
    if not response.ok:
        body = _snippet(response)
        raise UpstreamHttpError(
            f"[{tag}] HTTP {response.status_code} :: {url} :: {body}",
            url=url,
            tag=tag,
            status_code=response.status_code,
            body=body,
        )
    try:
        return response.json()
    except ValueError as exc:
        body = _snippet(response)
        raise UpstreamFormatError(f"[{tag}] Non-JSON from {url} :: {body}", url=url, tag=tag, body=body) from exc


def _snippet(response: Response) -> str:
    try:
        return response.text[:BODY_SNIPPET_LENGTH]
    except (UnicodeDecodeError, LookupError):  # pragma: no cover - undecodable body
        return ""


class WeatherProvider:
    """Base class that adds retry/timeouts for HTTP providers."""

    name = "provider"
    default_headers: Mapping[str, str] = {}

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        request_config: Optional[RequestConfig] = None,
    ) -> None:
        self.request_config = request_config or RequestConfig()
        self.session = session or requests.Session()
        self._log = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    def _fetch_json(
        self,
        url: str,
        *,
        tag: str,
        params: Optional[Mapping[str, Any]] = None,
        retries: Optional[int] = None,
    ) -> Any:
        config = self.request_config
        return fetch_json(
            url,
            headers=self.default_headers,
            params=params,
            timeout_ms=config.timeout_ms,
            retries=config.retries if retries is None else retries,
            tag=tag,
            session=self.session,
            backoff_seconds=config.backoff_seconds,
        )


__all__ = [
    "MissingFieldsError",
    "NoObservationAvailable",
    "NoStationFound",
    "ProviderError",
    "RequestConfig",
    "UpstreamError",
    "UpstreamFormatError",
    "UpstreamHttpError",
    "UpstreamNetworkError",
    "WeatherProvider",
    "fetch_json",
]
