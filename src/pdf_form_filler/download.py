from __future__ import annotations

import logging
from io import BytesIO
from typing import BinaryIO, Optional
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .errors import FetchFailedError, InvalidUriError

log = logging.getLogger("pdf_form_filler.download")

DEFAULT_TIMEOUT = 60


def is_absolute_uri(url: str) -> bool:
    s = (url or "").strip()
    p = urlparse(s)
    if not p.scheme or any(c.isspace() for c in s):
        return False
    if p.scheme == "file":
        return bool(p.path)
    return bool(p.netloc)


def build_session() -> requests.Session:
    # One attempt per fetch; failures go straight back to the caller.
    s = requests.Session()
    no_retries = Retry(total=0, raise_on_status=False)
    s.mount("https://", HTTPAdapter(max_retries=no_retries))
    s.mount("http://", HTTPAdapter(max_retries=no_retries))
    return s


def download_url(
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    session: Optional[requests.Session] = None,
) -> Optional[BinaryIO]:
    """Fetch ``url`` and return its body as a readable stream.

    Raises InvalidUriError before any network activity when ``url`` is not an absolute
    URI. Returns None when the request fails, the status is not 2xx or the body is empty.
    """
    if not is_absolute_uri(url):
        raise InvalidUriError(url)

    s = session or build_session()
    try:
        r = s.get(url.strip(), stream=True, timeout=timeout)
        try:
            if not r.ok:
                log.debug("GET %s returned HTTP %s", url, r.status_code)
                return None
            content = r.content
        finally:
            r.close()
    except requests.RequestException as e:
        log.debug("GET %s failed: %s", url, e)
        return None

    if not content:
        log.debug("GET %s returned no content", url)
        return None
    log.debug("Downloaded %s bytes from %s", len(content), url)
    return BytesIO(content)


def fetch_pdf_bytes(
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    session: Optional[requests.Session] = None,
) -> bytes:
    stream = download_url(url, timeout=timeout, session=session)
    if stream is None:
        raise FetchFailedError(url)
    return stream.read()
