"""
Resource Fetcher.

``DownloadManager`` resolves the locators a builder declares into local
paths. Local paths and ``file://`` URLs pass through (checked for
existence); HTTP(S) URLs are streamed into a content-addressed cache with
retries, quadratic back-off on HTTP 429 and atomic replacement. Every
fetched resource has its size and md5 recorded, and is verified against an
expected checksum when one is known.

Archives can be extracted into the cache, or streamed entry by entry in
their stored order through ``iter_archive`` without random access.
"""

from __future__ import annotations

import hashlib
import logging
import shutil
import tarfile
import time
import zipfile
from collections.abc import Callable, Iterator, Mapping
from pathlib import Path, PurePosixPath
from typing import IO, Any
from urllib.parse import urlparse

import requests

from ..core.config import DownloadConfig
from ..core.io import md5_checksum
from ..core.logger import LogStyle
from ..core.paths import LOGGER_NAME
from ..exceptions import ChecksumMismatchError, ResourceUnavailableError

logger = logging.getLogger(LOGGER_NAME)

_REMOTE_SCHEMES = frozenset({"http", "https"})


def _map_nested(fn: Callable[[Any], Any], data: Any) -> Any:
    """Apply *fn* to every leaf of a str / list / tuple / dict structure."""
    if isinstance(data, Mapping):
        return {key: _map_nested(fn, value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [_map_nested(fn, item) for item in data]
    return fn(data)


def _is_hidden(name: str) -> bool:
    return any(part.startswith((".", "__")) for part in PurePosixPath(name).parts)


def _url_cache_name(url: str) -> str:
    digest = hashlib.sha256(url.encode("utf-8")).hexdigest()[:16]
    basename = PurePosixPath(urlparse(url).path).name or "resource"
    return f"{digest}_{basename}"


# ARCHIVE STREAMING
class ArchiveIterable:
    """
    Restartable view over the entries of a tar or zip archive.

    Each iteration re-opens the archive and yields ``(entry_path, file_obj)``
    once per regular file, in stored order. Tar archives are read in stream
    mode, so entries cannot be revisited; ``file_obj`` must be consumed
    before requesting the next entry. The archive handle is closed when the
    iteration ends or the consuming generator is closed.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def __iter__(self) -> Iterator[tuple[str, IO[bytes]]]:
        if not self.path.is_file():
            raise ResourceUnavailableError(str(self.path), "archive not found")

        if tarfile.is_tarfile(self.path):
            yield from self._iter_tar()
        elif zipfile.is_zipfile(self.path):
            yield from self._iter_zip()
        else:
            raise ResourceUnavailableError(str(self.path), "not a tar or zip archive")

    def _iter_tar(self) -> Iterator[tuple[str, IO[bytes]]]:
        with open(self.path, "rb") as raw, tarfile.open(fileobj=raw, mode="r|*") as tar:
            for member in tar:
                if not member.isfile():
                    continue
                name = member.name.removeprefix("./")
                if _is_hidden(name):
                    continue
                file_obj = tar.extractfile(member)
                if file_obj is not None:
                    yield name, file_obj

    def _iter_zip(self) -> Iterator[tuple[str, IO[bytes]]]:
        with zipfile.ZipFile(self.path) as archive:
            for info in archive.infolist():
                if info.is_dir() or _is_hidden(info.filename):
                    continue
                with archive.open(info) as file_obj:
                    yield info.filename, file_obj

    def __repr__(self) -> str:
        return f"ArchiveIterable({str(self.path)!r})"


class DownloadManager:
    """
    Default ``ResourceFetcher`` implementation.

    Attributes:
        cfg: Download settings.
        base_dir: Directory relative local paths are resolved against.
        expected_checksums: ``locator → md5`` to verify fetched resources against.
        recorded_checksums: ``locator → {"num_bytes", "checksum"}`` of fetched resources.
    """

    def __init__(
        self,
        cfg: DownloadConfig | None = None,
        base_dir: Path | None = None,
        expected_checksums: Mapping[str, str] | None = None,
    ) -> None:
        self.cfg = cfg if cfg is not None else DownloadConfig()
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
        self.expected_checksums = dict(expected_checksums or {})
        self.recorded_checksums: dict[str, dict[str, Any]] = {}

    @property
    def downloads_dir(self) -> Path:
        return self.cfg.cache_dir / "downloads"

    @property
    def extracted_dir(self) -> Path:
        return self.cfg.cache_dir / "extracted"

    # PUBLIC INTERFACE
    def download(self, url_or_urls: Any) -> Any:
        """
        Resolve one locator or a nested list/dict of locators to local paths.

        Raises:
            ResourceUnavailableError: A locator cannot be resolved or fetched.
            ChecksumMismatchError: A fetched file differs from its expected md5.
        """
        return _map_nested(self._download_one, url_or_urls)

    def extract(self, path_or_paths: Any) -> Any:
        """Extract tar/zip archives into the cache; other paths pass through."""
        return _map_nested(self._extract_one, path_or_paths)

    def download_and_extract(self, url_or_urls: Any) -> Any:
        return self.extract(self.download(url_or_urls))

    def iter_archive(self, path: Path | str) -> ArchiveIterable:
        """Sequential, restartable iteration over an archive's entries."""
        return ArchiveIterable(path)

    def iter_files(self, paths: Any) -> Iterator[Path]:
        """Yield files under the given files/directories, sorted, hidden files skipped."""
        if isinstance(paths, (str, Path)):
            paths = [paths]
        for entry in paths:
            entry = Path(entry)
            if entry.is_file():
                yield entry
                continue
            for path in sorted(entry.rglob("*")):
                if path.is_file() and not _is_hidden(path.relative_to(entry).as_posix()):
                    yield path

    # RESOLUTION
    def _download_one(self, locator: Any) -> Path:
        locator = str(locator)
        parsed = urlparse(locator)

        remote = parsed.scheme in _REMOTE_SCHEMES
        if remote:
            path = self._fetch_remote(locator)
        elif parsed.scheme == "file":
            path = self._resolve_local(locator, Path(parsed.path))
        elif parsed.scheme and len(parsed.scheme) > 1:
            raise ResourceUnavailableError(locator, f"unsupported scheme '{parsed.scheme}'")
        else:
            # plain path (single-letter "schemes" are Windows drive letters)
            path = self._resolve_local(locator, Path(locator))

        if path.is_file():
            try:
                self._record_checksum(locator, path)
            except ChecksumMismatchError:
                if remote:
                    # drop the bad copy so the next run downloads again
                    path.unlink(missing_ok=True)
                raise
        return path

    def _resolve_local(self, locator: str, path: Path) -> Path:
        path = path.expanduser()
        if not path.is_absolute():
            path = self.base_dir / path
        if not path.exists():
            raise ResourceUnavailableError(locator, "no such file or directory")
        return path

    def _record_checksum(self, locator: str, path: Path) -> None:
        actual = md5_checksum(path, chunk_size=self.cfg.chunk_size)
        expected = self.expected_checksums.get(locator)
        if self.cfg.verify_checksums and expected is not None and expected != actual:
            raise ChecksumMismatchError(locator, expected, actual)
        self.recorded_checksums[locator] = {"num_bytes": path.stat().st_size, "checksum": actual}

    def _fetch_remote(self, url: str) -> Path:
        """Download *url* into the cache, reusing an existing copy unless forced."""
        target = self.downloads_dir / _url_cache_name(url)

        if target.exists() and not self.cfg.force_download:
            logger.debug(LogStyle.kv("Cached", f"{url} → {target.name}"))
            return target

        logger.info(LogStyle.kv("Downloading", url))
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = target.with_suffix(target.suffix + ".tmp")
        retries = self.cfg.retries

        for attempt in range(1, retries + 1):
            try:
                _stream_download(url, tmp_path, self.cfg.timeout, self.cfg.chunk_size)
                tmp_path.replace(target)
                logger.info(LogStyle.kv("Downloaded", target.name, LogStyle.SUCCESS))
                return target

            except (requests.RequestException, ValueError, OSError) as e:
                if tmp_path.exists():
                    tmp_path.unlink()

                if attempt == retries:
                    logger.error(f"Download failed after {retries} attempts: {url}")
                    raise ResourceUnavailableError(url, str(e)) from e

                actual_delay = _retry_delay(e, self.cfg.delay, attempt)
                logger.warning(
                    f"Attempt {attempt}/{retries} failed: {e}. Retrying in {actual_delay}s..."
                )
                time.sleep(actual_delay)

        raise ResourceUnavailableError(url, "unexpected download state")  # pragma: no cover

    # EXTRACTION
    def _extract_one(self, path: Any) -> Path:
        path = Path(path)
        if path.is_dir():
            return path
        if not (tarfile.is_tarfile(path) or zipfile.is_zipfile(path)):
            return path

        stat = path.stat()
        fingerprint = f"{path.resolve()}:{stat.st_size}:{stat.st_mtime_ns}"
        key = hashlib.sha256(fingerprint.encode()).hexdigest()
        target = self.extracted_dir / key[:16]
        if target.is_dir() and not self.cfg.force_download:
            return target

        tmp_dir = target.with_name(target.name + ".tmp")
        if tmp_dir.exists():
            shutil.rmtree(tmp_dir)
        tmp_dir.mkdir(parents=True)

        logger.info(LogStyle.kv("Extracting", path.name))
        try:
            if tarfile.is_tarfile(path):
                with tarfile.open(path) as tar:
                    tar.extractall(tmp_dir, filter="data")
            else:
                with zipfile.ZipFile(path) as archive:
                    archive.extractall(tmp_dir)
        except (tarfile.TarError, zipfile.BadZipFile, OSError) as e:
            shutil.rmtree(tmp_dir, ignore_errors=True)
            raise ResourceUnavailableError(str(path), f"extraction failed: {e}") from e

        if target.exists():
            shutil.rmtree(target)
        tmp_dir.replace(target)
        return target


# PRIVATE HELPERS
def _retry_delay(exc: Exception, base_delay: float, attempt: int) -> float:
    """Compute retry delay with quadratic backoff for 429 responses."""
    response = getattr(exc, "response", None)
    if response is not None and response.status_code == 429:
        delay = base_delay * (attempt**2)
        logger.warning(f"Rate limited (429). Waiting {delay}s before retrying...")
        return delay
    return base_delay


def _stream_download(url: str, tmp_path: Path, timeout: int = 60, chunk_size: int = 8192) -> None:
    """Executes the streaming GET request and writes to a temporary file."""
    headers = {"Accept-Encoding": "identity"}

    with requests.get(
        url, headers=headers, timeout=timeout, stream=True, allow_redirects=True
    ) as r:
        r.raise_for_status()

        content_type = r.headers.get("Content-Type", "")
        if "text/html" in content_type:
            raise ValueError("Server returned an HTML page instead of the resource")

        with open(tmp_path, "wb") as f:
            for chunk in r.iter_content(chunk_size=chunk_size):
                if chunk:
                    f.write(chunk)
