"""HTTP downloads and the idempotent fetch-and-extract step.

``fetch_and_extract`` skips any destination that already exists: there is no
freshness check. Integrity is a non-empty check plus, when a digest is
supplied, SHA-256 verification.
"""

from __future__ import annotations

import shutil
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import httpx

from kotaemon_installer.config import MAX_ATTEMPTS
from kotaemon_installer.errors import DownloadError
from kotaemon_installer.logging import get_logger
from kotaemon_installer.retry import with_retries
from kotaemon_installer.security.archive import safe_extract_zip
from kotaemon_installer.signing.checks import is_nonempty, verify_sha256

log = get_logger(__name__)

ARCHIVE_NAME = "download.zip"
DOWNLOAD_TIMEOUT = 60.0


def make_client() -> httpx.Client:
    return httpx.Client(follow_redirects=True, timeout=DOWNLOAD_TIMEOUT)


@contextmanager
def client_scope(client: httpx.Client | None) -> Iterator[httpx.Client]:
    """Yield *client*, or a short-lived one that is closed afterwards."""
    if client is not None:
        yield client
        return
    with make_client() as own:
        yield own


def download(url: str, dest: Path, client: httpx.Client) -> Path:
    """Stream *url* into *dest*, raising httpx errors on failure."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    with client.stream("GET", url) as r:
        r.raise_for_status()
        with open(dest, "wb") as out:
            for chunk in r.iter_bytes():
                out.write(chunk)
    return dest


def fetch_text(url: str, client: httpx.Client) -> str:
    resp = client.get(url)
    resp.raise_for_status()
    return resp.text


def fetch_and_extract(
    url: str,
    dest: Path,
    *,
    client: httpx.Client | None = None,
    expected_sha256: str | None = None,
    retries: int = MAX_ATTEMPTS,
) -> bool:
    """Download the zip at *url* and unpack it into *dest*.

    Returns False when *dest* already exists and nothing was done.

    Raises
    ------
    DownloadError
        Every attempt failed or the downloaded file is empty. No extraction
        is attempted and the freshly created *dest* is removed.
    IntegrityError
        *expected_sha256* was given and does not match.
    ArchiveError
        The archive is unreadable or contains unsafe members.
    ValueError
        *retries* is below 1.
    """
    if retries < 1:
        raise ValueError(f"retries must be at least 1, got {retries}")
    if dest.exists():
        log.info("Directory %s already exists. Skipping download.", dest)
        return False

    dest.mkdir(parents=True)
    zip_file = dest / ARCHIVE_NAME
    try:
        with client_scope(client) as http:

            def attempt() -> bool:
                download(url, zip_file, http)
                return True

            log.info("Downloading %s to %s", url, zip_file)
            outcome = with_retries(
                attempt,
                attempts=retries,
                label="Download",
            )
        if not outcome.succeeded or not is_nonempty(zip_file):
            detail = "empty response" if outcome.succeeded else outcome.errors[-1]
            raise DownloadError(
                f"Download of {url} failed after {outcome.attempts} attempt(s): {detail}",
                hint="Check your network connection and rerun the installer.",
            )
        if expected_sha256:
            verify_sha256(zip_file, expected_sha256)

        log.info("Unzipping %s to %s", zip_file, dest)
        safe_extract_zip(zip_file, dest)
    except Exception:
        shutil.rmtree(dest, ignore_errors=True)
        raise

    zip_file.unlink(missing_ok=True)
    return True
