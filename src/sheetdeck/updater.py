"""Synchronize the Config and Slides tables with a versioned remote feed.

The feed is three files under one base URL::

    version.json   {"version": "1.2.1", "releaseDate": "...", "changes": [...]}
    config.csv     Setting,Value rows (comma-delimited)
    slides.csv     Slides table rows (pipe-delimited; bullets may hold commas)

``Synchronizer.preview`` only reads. ``Synchronizer.apply`` backs up the live
tables first and then overwrites them wholesale; if anything fails after the
backup, the live tables are left untouched and the backups stay in place.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from .exceptions import (
    BackupError,
    FetchExhausted,
    HttpStatusError,
    LoadError,
    UpdateError,
)
from .interfaces import HttpFetcher, KeyValueStore, Rows, TableStore
from .models import RemoteVersion, SyncEndpoint
from .sheet_parser import CONFIG_TABLE, SLIDES_TABLE, load_slides, read_config, read_slides

logger = logging.getLogger(__name__)

VERSION_KEY = 'SHEETDECK_DATA_VERSION'
CONFIG_DELIMITER = ','
SLIDES_DELIMITER = '|'
BACKUP_TIMESTAMP_FORMAT = '%Y-%m-%dT%H-%M-%S'
MAX_LISTED_CHANGES = 3


def fetch_with_retry(fetcher: HttpFetcher, url: str, max_attempts: int = 3,
                     timeout: float = 30, sleep: Callable[[float], None] = time.sleep,
                     base_delay: float = 1.0) -> str:
    """Fetch a URL, retrying with linear backoff.

    A non-2xx status or any transport error counts as a failed attempt.
    Between attempts the caller sleeps ``base_delay * attempt`` seconds.

    Args:
        fetcher: Single-attempt HTTP fetcher.
        url: URL to fetch.
        max_attempts: Total number of attempts.
        timeout: Per-attempt timeout in seconds.
        sleep: Sleep function (injected so tests do not wait).
        base_delay: Backoff unit in seconds.

    Returns:
        Response body text.

    Raises:
        FetchExhausted: After ``max_attempts`` failed attempts.
    """
    last_error: Optional[Exception] = None
    for attempt in range(1, max_attempts + 1):
        logger.info(f"Fetching {url} (attempt {attempt}/{max_attempts})")
        try:
            response = fetcher.fetch(url, timeout=timeout)
            logger.debug(f"Response code: {response.status}")
            if response.ok:
                return response.text
            raise HttpStatusError(response.status, response.text)
        except Exception as e:
            last_error = e
            logger.warning(f"Attempt {attempt} failed: {e}")
            if attempt < max_attempts:
                sleep(base_delay * attempt)

    raise FetchExhausted(url, max_attempts, last_error) from last_error


def _version_part(part: str) -> int:
    try:
        return int(part)
    except ValueError:
        return 0


def compare_versions(a: str, b: str) -> int:
    """Compare dot-separated numeric versions.

    Missing trailing components count as 0; non-numeric components count
    as 0.

    Returns:
        -1 if ``a < b``, 0 if equal, 1 if ``a > b``.

    Example:
        >>> compare_versions("1.2.0", "1.10.0")
        -1
        >>> compare_versions("1.0", "1.0.0")
        0
    """
    a_parts = [_version_part(p) for p in str(a).split('.')]
    b_parts = [_version_part(p) for p in str(b).split('.')]
    length = max(len(a_parts), len(b_parts))
    a_parts += [0] * (length - len(a_parts))
    b_parts += [0] * (length - len(b_parts))

    for left, right in zip(a_parts, b_parts):
        if left < right:
            return -1
        if left > right:
            return 1
    return 0


def parse_feed(text: str, delimiter: str) -> Rows:
    """Parse delimited feed text into rows, dropping blank lines."""
    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    return [row for row in reader if any(cell.strip() for cell in row)]


def parse_version(text: str) -> RemoteVersion:
    """Parse ``version.json`` content.

    Raises:
        UpdateError: If the content is not JSON or has no version.
    """
    try:
        return RemoteVersion.from_dict(json.loads(text))
    except (TypeError, ValueError) as e:
        raise UpdateError(f"Invalid version descriptor: {e}") from e


class SyncState(Enum):
    IDLE = "idle"
    CHECKING_VERSION = "checking version"
    UP_TO_DATE = "up to date"
    UPDATE_AVAILABLE = "update available"
    COMPARING_DATA = "comparing data"
    BACKING_UP = "backing up"
    FETCHING = "fetching"
    WRITING = "writing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class VersionCheck:
    """Outcome of comparing the local version with the remote descriptor."""
    current: str
    remote: Optional[RemoteVersion] = None
    error: Optional[Exception] = None

    @property
    def update_available(self) -> bool:
        return self.remote is not None and compare_versions(self.current, self.remote.version) < 0

    @property
    def state(self) -> SyncState:
        if self.remote is None:
            return SyncState.FAILED
        return SyncState.UPDATE_AVAILABLE if self.update_available else SyncState.UP_TO_DATE


@dataclass
class PreviewReport:
    """Read-only comparison of local data with the remote feed."""
    base_url: str
    version_check: VersionCheck
    local_settings: Optional[int] = None
    remote_settings: Optional[int] = None
    local_slides: Optional[int] = None
    remote_slides: Optional[int] = None
    data_error: Optional[str] = None

    @property
    def data_compared(self) -> bool:
        return self.remote_slides is not None and self.data_error is None

    @property
    def has_differences(self) -> bool:
        return self.data_compared and (
            self.local_settings != self.remote_settings
            or self.local_slides != self.remote_slides
        )

    def render(self) -> str:
        """Format the report as plain text."""
        check = self.version_check
        lines = ["VERSION & UPDATE PREVIEW", "=" * 50, ""]

        if check.remote is None:
            lines.append(f"VERSION CHECK: Could not check version ({check.error})")
            lines.append("")
        else:
            lines.append("VERSION CHECK:")
            lines.append(f"   Current:  v{check.current}")
            lines.append(f"   Remote:   v{check.remote.version}")
            if check.update_available:
                lines.append("   Status:   Update available!")
                lines.append(f"   Released: {check.remote.release_date}")
                lines.append("")
                lines.append(f"WHAT'S NEW IN v{check.remote.version}:")
                lines.extend(f"   • {change}" for change in check.remote.changes)
            else:
                lines.append("   Status:   You have the latest version")
            lines.append("")

        if check.update_available:
            if self.data_compared:
                lines.append("DATA COMPARISON:")
                lines.append(f"   Config:  {self.local_settings} settings (local) "
                             f"vs {self.remote_settings} (remote)")
                lines.append(f"   Slides:  {self.local_slides} slides (local) "
                             f"vs {self.remote_slides} (remote)")
                if self.has_differences:
                    lines.append("   Status:  Data differences detected")
                else:
                    lines.append("   Status:  Data appears current")
            else:
                lines.append(f"DATA COMPARISON: Could not compare data ({self.data_error})")
            lines.append("")
            lines.append("RECOMMENDED ACTION:")
            lines.append(f"   Run apply-updates to get v{check.remote.version}; "
                         f"your data will be backed up first")
        elif check.remote is not None:
            lines.append("NO UPDATES NEEDED")

        lines.append("")
        lines.append(f"Connected to: {self.base_url}")
        return "\n".join(lines)


@dataclass
class ApplyResult:
    """Outcome of an apply run."""
    success: bool
    backup_timestamp: str
    backups: list[str] = field(default_factory=list)
    version: Optional[str] = None
    config_rows: int = 0
    slide_rows: int = 0
    changes: tuple[str, ...] = ()
    error: Optional[Exception] = None

    def render(self) -> str:
        if not self.success:
            return (
                f"UPDATE FAILED\n\nCould not fetch updates:\n\n{self.error}\n\n"
                f"Your data is safe - live tables were not changed. "
                f"Backups created: {self.backup_timestamp}"
            )
        lines = [
            "UPDATE SUCCESSFUL!",
            f"Updated to v{self.version}",
            "",
            "Changes applied:",
            f"   • Config: {self.config_rows} settings",
            f"   • Slides: {self.slide_rows} slides",
            "",
            f"Backup created: {self.backup_timestamp}",
        ]
        if self.changes:
            lines.append("")
            lines.append("What's new:")
            lines.extend(f"   • {c}" for c in self.changes[:MAX_LISTED_CHANGES])
        return "\n".join(lines)


class Synchronizer:
    """Checks, previews and applies remote data updates.

    Args:
        endpoint: Where the feed lives and the fallback local version.
        fetcher: Single-attempt HTTP fetcher.
        tables: Live Config/Slides table store.
        state: Durable store for the locally known version.
        sleep: Sleep function used between fetch attempts.
        clock: Returns the current time (used for backup names).
        max_attempts: Fetch attempts per URL.
        timeout: Per-attempt timeout in seconds.
    """

    def __init__(self, endpoint: SyncEndpoint, fetcher: HttpFetcher,
                 tables: TableStore, state: KeyValueStore,
                 sleep: Callable[[float], None] = time.sleep,
                 clock: Callable[[], datetime] = datetime.now,
                 max_attempts: int = 3, timeout: float = 30):
        self.endpoint = endpoint
        self.fetcher = fetcher
        self.tables = tables
        self.store = state
        self.sleep = sleep
        self.clock = clock
        self.max_attempts = max_attempts
        self.timeout = timeout
        self.state = SyncState.IDLE

    def _transition(self, state: SyncState) -> None:
        logger.debug(f"Sync state: {self.state.value} -> {state.value}")
        self.state = state

    def _fetch(self, url: str) -> str:
        return fetch_with_retry(self.fetcher, url, max_attempts=self.max_attempts,
                                timeout=self.timeout, sleep=self.sleep)

    @property
    def current_version(self) -> str:
        """Locally stored version, or the endpoint's default."""
        return self.store.get(VERSION_KEY) or self.endpoint.current_version

    def check_version(self) -> VersionCheck:
        """Fetch the remote version descriptor and compare it with ours.

        Fetch and parse failures are captured on the result, not raised.
        """
        self._transition(SyncState.CHECKING_VERSION)
        check = VersionCheck(current=self.current_version)
        try:
            check.remote = parse_version(self._fetch(self.endpoint.version_url))
        except (FetchExhausted, UpdateError) as e:
            logger.warning(f"Could not check version: {e}")
            check.error = e
        self._transition(check.state)
        return check

    def preview(self) -> PreviewReport:
        """Build a report of available updates without changing anything."""
        check = self.check_version()
        report = PreviewReport(base_url=self.endpoint.base_url, version_check=check)
        if not check.update_available:
            return report

        self._transition(SyncState.COMPARING_DATA)
        try:
            report.local_settings = len(read_config(self.tables))
            report.local_slides = len(read_slides(self.tables))
            remote_config = parse_feed(self._fetch(self.endpoint.config_url), CONFIG_DELIMITER)
            remote_slides = parse_feed(self._fetch(self.endpoint.slides_url), SLIDES_DELIMITER)
            report.remote_settings = max(len(remote_config) - 1, 0)
            report.remote_slides = max(len(remote_slides) - 1, 0)
        except (FetchExhausted, LoadError) as e:
            logger.warning(f"Could not compare data: {e}")
            report.data_error = str(e)
        self._transition(check.state)
        return report

    def create_backups(self, timestamp: str) -> list[str]:
        """Copy the live Config and Slides tables to timestamped backups.

        A table that does not exist is skipped.

        Raises:
            BackupError: If a copy fails.
        """
        self._transition(SyncState.BACKING_UP)
        created = []
        for name in (CONFIG_TABLE, SLIDES_TABLE):
            if not self.tables.has_table(name):
                logger.info(f"No {name} sheet to back up")
                continue
            backup_name = f"{name}_Backup_{timestamp}"
            try:
                self.tables.copy_table(name, backup_name)
            except Exception as e:
                self._transition(SyncState.FAILED)
                raise BackupError(f"Could not back up {name}: {e}") from e
            created.append(backup_name)
        logger.info(f"Backup sheets created with timestamp: {timestamp}")
        return created

    def _fetch_remote(self) -> tuple[RemoteVersion, Rows, Rows]:
        self._transition(SyncState.FETCHING)
        version = parse_version(self._fetch(self.endpoint.version_url))
        config_rows = parse_feed(self._fetch(self.endpoint.config_url), CONFIG_DELIMITER)
        slide_rows = parse_feed(self._fetch(self.endpoint.slides_url), SLIDES_DELIMITER)

        if len(config_rows) < 2:
            raise UpdateError("Remote config feed has no settings")
        try:
            slides = load_slides(slide_rows)
        except LoadError as e:
            raise UpdateError(f"Remote slides feed is invalid: {e}") from e
        if not slides:
            raise UpdateError("Remote slides feed has no usable slides")
        return version, config_rows, slide_rows

    def apply(self) -> ApplyResult:
        """Back up, fetch and overwrite the live tables.

        Returns:
            ApplyResult; on a fetch or validation failure ``success`` is
            False and the live tables are unchanged.

        Raises:
            BackupError: If backups could not be created (nothing was fetched
                or written).
        """
        timestamp = self.clock().strftime(BACKUP_TIMESTAMP_FORMAT)
        backups = self.create_backups(timestamp)
        result = ApplyResult(success=False, backup_timestamp=timestamp, backups=backups)

        try:
            version, config_rows, slide_rows = self._fetch_remote()
        except (FetchExhausted, UpdateError) as e:
            logger.error(f"Update failed: {e}")
            self._transition(SyncState.FAILED)
            result.error = e
            return result

        self._transition(SyncState.WRITING)
        self.tables.write_table(CONFIG_TABLE, config_rows)
        self.tables.write_table(SLIDES_TABLE, slide_rows)
        self.store.set(VERSION_KEY, version.version)

        result.success = True
        result.version = version.version
        result.config_rows = len(config_rows) - 1
        result.slide_rows = len(slide_rows) - 1
        result.changes = version.changes
        self._transition(SyncState.DONE)
        logger.info(f"Update applied successfully to v{version.version}")
        return result
