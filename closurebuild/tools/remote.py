"""Remote file downloads for resource builds."""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path, PurePosixPath
from typing import BinaryIO
from urllib.error import HTTPError, URLError
from urllib.parse import urlparse
from urllib.request import Request, urlopen

from ..logging import get_logger
from .files import mkdir

_LOGGER = get_logger("remote")

DEFAULT_TIMEOUT = 60.0


class RemoteUnavailable(RuntimeError):
    """The remote host could not be reached (usually because we are offline)."""


def is_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def url_filename(url: str) -> str:
    return PurePosixPath(urlparse(url).path).name


def download(url: str, dest_dir: str | Path, filename: str | None = None, *, timeout: float = DEFAULT_TIMEOUT) -> Path:
    """Download ``url`` into ``dest_dir`` and return the written path.

    The body goes to a temporary file next to the target, which is renamed
    into place only once the transfer finished.
    """
    if not is_url(url):
        raise ValueError(f"Invalid remote file: {url}")
    target = mkdir(dest_dir) / (filename or url_filename(url) or "index.html")
    fd, temp_name = tempfile.mkstemp(prefix=f".{target.name}.", dir=str(target.parent))
    try:
        with os.fdopen(fd, "wb") as handle:
            _fetch(url, handle, timeout)
        os.replace(temp_name, target)
    except BaseException:
        try:
            os.unlink(temp_name)
        except FileNotFoundError:
            pass
        raise
    _LOGGER.debug("%s saved as %s", url, target)
    return target


def _fetch(url: str, handle: BinaryIO, timeout: float) -> None:
    request = Request(url, headers={"User-Agent": "closurebuild"})
    try:
        with urlopen(request, timeout=timeout) as response:  # type: ignore[arg-type]
            status = getattr(response, "status", 200)
            if status != 200:
                raise RuntimeError(f"{url} failed to download with http status: {status}")
            shutil.copyfileobj(response, handle)
    except HTTPError as exc:
        raise RuntimeError(f"{url} failed to download with http status: {exc.code}") from exc
    except URLError as exc:
        raise RemoteUnavailable(
            f"Resource at {urlparse(url).hostname} is not reachable: {exc.reason}"
        ) from exc


__all__ = ["RemoteUnavailable", "download", "is_url", "url_filename"]
