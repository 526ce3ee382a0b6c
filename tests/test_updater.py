"""Tests for the remote feed synchronizer."""

import json
from datetime import datetime

import pytest

from conftest import ScriptedFetcher
from sheetdeck.exceptions import BackupError, FetchExhausted, HttpStatusError, UpdateError
from sheetdeck.interfaces import HttpResponse
from sheetdeck.models import SyncEndpoint
from sheetdeck.state import InMemoryStateStore, JsonStateStore
from sheetdeck.tables import InMemoryTableStore
from sheetdeck.updater import (
    VERSION_KEY,
    SyncState,
    Synchronizer,
    compare_versions,
    fetch_with_retry,
    parse_feed,
)

ENDPOINT = SyncEndpoint(owner='acme', repo='decks', branch='main', current_version='1.0.0')
BASE = 'https://raw.githubusercontent.com/acme/decks/main'

VERSION_JSON = json.dumps({
    'version': '1.1.0',
    'releaseDate': '2025-09-30',
    'changes': ['New agenda', 'Fixed typos', 'More charts', 'Extra'],
})
CONFIG_CSV = 'Setting,Value\nDeck Title,"Review, Q3"\nFooter Text,Internal\n'
SLIDES_CSV = (
    'Order|Layout|Title|Bullets\n'
    '1|Title|Welcome|\n'
    '2|Content|Agenda|One, two|Three\n'
)


def _fetcher(**overrides):
    script = {
        f'{BASE}/version.json': [VERSION_JSON],
        f'{BASE}/config.csv': [CONFIG_CSV],
        f'{BASE}/slides.csv': [SLIDES_CSV],
    }
    script.update({f'{BASE}/{name}': items for name, items in overrides.items()})
    return ScriptedFetcher(script)


def _sync(fetcher, tables, state=None, **kwargs):
    return Synchronizer(
        ENDPOINT, fetcher, tables, state or InMemoryStateStore(),
        sleep=lambda seconds: None,
        clock=lambda: datetime(2025, 10, 1, 9, 30, 15),
        **kwargs,
    )


class TestFetchWithRetry:
    def test_first_success(self):
        fetcher = ScriptedFetcher({'u': ['body']})
        assert fetch_with_retry(fetcher, 'u', sleep=lambda s: None) == 'body'
        assert fetcher.calls == ['u']

    def test_linear_backoff_then_success(self):
        sleeps = []
        fetcher = ScriptedFetcher({'u': [
            ConnectionError('down'), HttpResponse(503, 'busy'), 'ok',
        ]})
        assert fetch_with_retry(fetcher, 'u', sleep=sleeps.append) == 'ok'
        assert sleeps == [1.0, 2.0]

    def test_exhausted_after_max_attempts(self):
        sleeps = []
        fetcher = ScriptedFetcher({'u': [HttpResponse(404, 'Not Found')]})
        with pytest.raises(FetchExhausted) as exc_info:
            fetch_with_retry(fetcher, 'u', max_attempts=3, sleep=sleeps.append)

        assert len(fetcher.calls) == 3
        assert sleeps == [1.0, 2.0]
        assert isinstance(exc_info.value.last_error, HttpStatusError)
        assert exc_info.value.last_error.status == 404
        assert str(exc_info.value).startswith('Failed after 3 attempts: HTTP 404')

    def test_any_2xx_is_success(self):
        fetcher = ScriptedFetcher({'u': [HttpResponse(204, '')]})
        assert fetch_with_retry(fetcher, 'u', sleep=lambda s: None) == ''


class TestCompareVersions:
    @pytest.mark.parametrize("a, b, expected", [
        ("1.2.0", "1.10.0", -1),
        ("1.0", "1.0.0", 0),
        ("2.0.0", "1.9.9", 1),
        ("1.2.1", "1.2.1", 0),
        ("1", "1.0.1", -1),
        ("1.x.0", "1.0.0", 0),
    ])
    def test_numeric_component_comparison(self, a, b, expected):
        assert compare_versions(a, b) == expected

    def test_antisymmetric(self):
        assert compare_versions("1.10", "1.9") == -compare_versions("1.9", "1.10")


class TestParseFeed:
    def test_comma_feed_respects_quotes(self):
        rows = parse_feed(CONFIG_CSV, ',')
        assert rows[1] == ['Deck Title', 'Review, Q3']

    def test_pipe_feed_keeps_commas(self):
        rows = parse_feed(SLIDES_CSV, '|')
        assert rows[2][:3] == ['2', 'Content', 'Agenda']
        assert rows[2][3] == 'One, two'

    def test_blank_lines_dropped(self):
        assert parse_feed('a,b\n\n\nc,d\n', ',') == [['a', 'b'], ['c', 'd']]


class TestCheckVersion:
    def test_update_available(self, table_store):
        sync = _sync(_fetcher(), table_store)
        check = sync.check_version()
        assert check.current == '1.0.0'
        assert check.remote.version == '1.1.0'
        assert check.update_available
        assert sync.state is SyncState.UPDATE_AVAILABLE

    def test_stored_version_used(self, table_store):
        state = InMemoryStateStore({VERSION_KEY: '1.1.0'})
        sync = _sync(_fetcher(), table_store, state)
        assert sync.check_version().update_available is False
        assert sync.state is SyncState.UP_TO_DATE

    def test_fetch_failure_is_captured(self, table_store):
        sync = _sync(_fetcher(**{'version.json': [HttpResponse(500, 'oops')]}), table_store)
        check = sync.check_version()
        assert check.remote is None
        assert isinstance(check.error, FetchExhausted)
        assert sync.state is SyncState.FAILED

    def test_malformed_descriptor_is_captured(self, table_store):
        sync = _sync(_fetcher(**{'version.json': ['{"releaseDate": "x"}']}), table_store)
        assert sync.check_version().remote is None

    def test_non_list_changes_is_captured(self, table_store):
        descriptor = json.dumps({'version': '9.0.0', 'changes': 5})
        sync = _sync(_fetcher(**{'version.json': [descriptor]}), table_store)
        check = sync.check_version()
        assert check.remote is None
        assert isinstance(check.error, UpdateError)
        assert sync.state is SyncState.FAILED

        report = _sync(_fetcher(**{'version.json': [descriptor]}), table_store).preview()
        assert 'Could not check version' in report.render()


class TestPreview:
    def test_counts_compared_without_changes(self, table_store):
        before = {name: table_store.read_table(name) for name in table_store.table_names()}
        report = _sync(_fetcher(), table_store).preview()

        assert report.local_slides == 3
        assert report.remote_slides == 2
        assert report.remote_settings == 2
        assert report.local_settings == 10
        assert report.has_differences
        assert {n: table_store.read_table(n) for n in table_store.table_names()} == before

        text = report.render()
        assert 'v1.0.0' in text and 'v1.1.0' in text
        assert 'Data differences detected' in text
        assert '   • New agenda' in text

    def test_up_to_date_skips_data_fetch(self, table_store):
        fetcher = _fetcher()
        state = InMemoryStateStore({VERSION_KEY: '2.0.0'})
        report = _sync(fetcher, table_store, state).preview()
        assert fetcher.calls == [f'{BASE}/version.json']
        assert 'NO UPDATES NEEDED' in report.render()

    def test_data_fetch_failure_degrades_report(self, table_store):
        fetcher = _fetcher(**{'slides.csv': [ConnectionError('offline')]})
        report = _sync(fetcher, table_store).preview()
        assert report.data_error is not None
        assert 'Could not compare data' in report.render()

    def test_version_failure_degrades_report(self, table_store):
        fetcher = _fetcher(**{'version.json': [ConnectionError('offline')]})
        text = _sync(fetcher, table_store).preview().render()
        assert 'Could not check version' in text
        assert f'Connected to: {BASE}' in text

    def test_corrupt_state_file_falls_back_to_default_version(self, table_store, tmp_path):
        path = tmp_path / 'state.json'
        path.write_text('{not json')
        report = _sync(_fetcher(), table_store, JsonStateStore(path, user='u')).preview()
        assert report.version_check.current == '1.0.0'
        assert report.data_compared


class TestApply:
    def test_backs_up_then_overwrites(self, table_store, state_store):
        original_slides = table_store.read_table('Slides')
        result = _sync(_fetcher(), table_store, state_store).apply()

        assert result.success
        assert result.backup_timestamp == '2025-10-01T09-30-15'
        assert result.backups == [
            'Config_Backup_2025-10-01T09-30-15',
            'Slides_Backup_2025-10-01T09-30-15',
        ]
        assert table_store.read_table('Slides_Backup_2025-10-01T09-30-15') == original_slides
        assert table_store.read_table('Slides') == parse_feed(SLIDES_CSV, '|')
        assert table_store.read_table('Config') == parse_feed(CONFIG_CSV, ',')
        assert state_store.get(VERSION_KEY) == '1.1.0'
        assert result.config_rows == 2
        assert result.slide_rows == 2
        assert 'Extra' not in result.render()

    def test_fetch_failure_leaves_live_tables(self, table_store, state_store):
        live = {n: table_store.read_table(n) for n in ('Config', 'Slides')}
        fetcher = _fetcher(**{'slides.csv': [HttpResponse(404, 'missing')]})
        sync = _sync(fetcher, table_store, state_store)
        result = sync.apply()

        assert not result.success
        assert isinstance(result.error, FetchExhausted)
        assert sync.state is SyncState.FAILED
        assert {n: table_store.read_table(n) for n in ('Config', 'Slides')} == live
        assert table_store.has_table('Config_Backup_2025-10-01T09-30-15')
        assert state_store.get(VERSION_KEY) is None
        assert 'live tables were not changed' in result.render()

    def test_invalid_slides_feed_is_rejected(self, table_store, state_store):
        fetcher = _fetcher(**{'slides.csv': ['Order|Layout\n1|Title\n']})
        result = _sync(fetcher, table_store, state_store).apply()
        assert not result.success
        assert 'title' in str(result.error)
        assert table_store.read_table('Slides')[1][3] == 'Agenda'

    def test_one_bad_order_row_does_not_reject_feed(self, table_store, state_store):
        feed = 'Order|Title\n1|Welcome\nintro|Skipped\n2|Agenda\n'
        result = _sync(_fetcher(**{'slides.csv': [feed]}), table_store, state_store).apply()
        assert result.success
        assert table_store.read_table('Slides') == parse_feed(feed, '|')

    def test_feed_without_usable_slides_is_rejected(self, table_store, state_store):
        feed = 'Order|Title\nintro|Skipped\n'
        result = _sync(_fetcher(**{'slides.csv': [feed]}), table_store, state_store).apply()
        assert not result.success
        assert 'no usable slides' in str(result.error)

    def test_empty_config_feed_is_rejected(self, table_store, state_store):
        result = _sync(_fetcher(**{'config.csv': ['Setting,Value\n']}),
                       table_store, state_store).apply()
        assert not result.success

    def test_missing_live_table_not_backed_up(self, state_store):
        tables = InMemoryTableStore({'Slides': [['Order', 'Title'], [1, 'A']]})
        result = _sync(_fetcher(), tables, state_store).apply()
        assert result.backups == ['Slides_Backup_2025-10-01T09-30-15']
        assert result.success
        assert tables.has_table('Config')

    def test_backup_failure_aborts_before_fetching(self, table_store):
        class NoCopyTables(InMemoryTableStore):
            def copy_table(self, source, dest):
                raise OSError("read-only workbook")

        tables = NoCopyTables(table_store.tables)
        fetcher = _fetcher()
        with pytest.raises(BackupError):
            _sync(fetcher, tables).apply()
        assert fetcher.calls == []
