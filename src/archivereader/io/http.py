"""Download the leading fragment of a remote archive using requests."""

import re
from typing import Optional, Tuple

import requests

from .base import DEFAULT_MAX_READ_BYTES


# Module-level session for connection pooling
_session = None

_CONTENT_RANGE = re.compile(r"bytes\s+\d+-\d+/(\d+|\*)")


def _get_session():
    """Get or create the global requests session."""
    global _session
    if _session is None:
        _session = requests.Session()
    return _session


def _total_size(response) -> Optional[int]:
    """Work out the full remote size from a 200 or 206 response, if stated."""
    if response.status_code == 206:
        match = _CONTENT_RANGE.match(response.headers.get('content-range', ''))
        if match and match.group(1) != '*':
            return int(match.group(1))
        return None
    content_length = response.headers.get('content-length')
    return int(content_length) if content_length else None


def fetch_fragment(url: str, max_bytes: int = DEFAULT_MAX_READ_BYTES,
                   retry_count: int = 0) -> Tuple[bytes, Optional[int]]:
    """Fetch at most `max_bytes` from the start of `url`.

    Returns the data and the total remote size (None when the server does not
    say). Servers ignoring the Range header are read only up to `max_bytes`.
    """
    if max_bytes <= 0:
        raise IOError("Length must be positive")

    headers = {'Range': f'bytes=0-{max_bytes - 1}'}
    try:
        with _get_session().get(url, headers=headers, timeout=30, stream=True) as response:
            if response.status_code not in (200, 206):
                raise IOError(f"Range request failed with status {response.status_code}")

            chunks = []
            received = 0
            for chunk in response.iter_content(chunk_size=65536):
                chunks.append(chunk)
                received += len(chunk)
                if received >= max_bytes:
                    break
            data = b''.join(chunks)[:max_bytes]
            return data, _total_size(response)

    except requests.RequestException as e:
        if retry_count == 0:
            # One automatic retry
            return fetch_fragment(url, max_bytes, retry_count + 1)
        raise IOError(f"Range request failed: {e}")
