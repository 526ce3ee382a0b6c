"""Tests for the sheetdeck command-line interface."""

import json

import pytest
import yaml
from openpyxl import Workbook
from pptx import Presentation

from conftest import SLIDES_HEADER, ScriptedFetcher, slide_row
from sheetdeck import cli

BASE = 'https://raw.githubusercontent.com/acme/decks/main'


@pytest.fixture
def project(tmp_path):
    wb = Workbook()
    config_sheet = wb.active
    config_sheet.title = 'Config'
    for row in (['Setting', 'Value'], ['Deck Title', 'CLI Deck'], ['Presenter Name', 'Sam']):
        config_sheet.append(row)
    slides = wb.create_sheet('Slides')
    for row in (SLIDES_HEADER,
                slide_row(1, 'Welcome', layout='Title', subtitle='Hi'),
                slide_row(2, 'Numbers', layout='Chart', chart_ref='missing.png', bullets='x|y')):
        slides.append(row)
    wb.save(tmp_path / 'deck.xlsx')

    config_file = tmp_path / 'config.yaml'
    config_file.write_text(yaml.safe_dump({
        'paths': {
            'workbook': 'deck.xlsx',
            'assets_dir': 'assets',
            'output_dir': 'out',
            'state_file': 'state.json',
        },
        'sync': {'owner': 'acme', 'repo': 'decks', 'current_version': '1.0.0'},
    }))
    return tmp_path


def run(project, *args):
    return cli.main(['--config', str(project / 'config.yaml'), *args])


class TestArguments:
    def test_default_command_is_generate(self):
        assert cli.parse_arguments([]).command == 'generate'

    def test_global_overrides(self):
        args = cli.parse_arguments(['--workbook', 'w.xlsx', '--output-dir', 'o', 'validate'])
        assert (args.workbook, args.output_dir, args.command) == ('w.xlsx', 'o', 'validate')


class TestCommands:
    def test_missing_config_file(self, tmp_path, capsys):
        assert cli.main(['--config', str(tmp_path / 'nope.yaml'), 'generate']) == 1
        assert 'Configuration file not found' in capsys.readouterr().out

    def test_generate(self, project, capsys):
        assert run(project, 'generate') == 0
        out = capsys.readouterr().out
        assert 'Created 2 of 2 slides' in out

        deck = project / 'out' / 'CLI Deck.pptx'
        assert len(Presentation(str(deck)).slides) == 2

    def test_output_dir_override(self, project, tmp_path):
        target = tmp_path / 'elsewhere'
        assert run(project, '--output-dir', str(target), 'generate') == 0
        assert (target / 'CLI Deck.pptx').exists()

    def test_missing_workbook(self, project, capsys):
        assert run(project, '--workbook', str(project / 'none.xlsx'), 'generate') == 1
        assert 'Workbook not found' in capsys.readouterr().out

    def test_test_slide(self, project, capsys):
        assert run(project, 'test-slide') == 0
        out = capsys.readouterr().out
        assert 'Title:  Welcome' in out
        decks = list((project / 'out').glob('TEST_SingleSlide_*.pptx'))
        assert len(decks) == 1
        assert len(Presentation(str(decks[0])).slides) == 1

    def test_test_slide_loads_workbook_once(self, project, monkeypatch):
        calls = []
        load = cli.DeckGenerator.load

        def counting_load(generator):
            calls.append(generator)
            return load(generator)

        monkeypatch.setattr(cli.DeckGenerator, 'load', counting_load)
        assert run(project, 'test-slide') == 0
        assert len(calls) == 1

    def test_check_config(self, project, capsys):
        assert run(project, 'check-config') == 0
        out = capsys.readouterr().out
        assert 'Title: CLI Deck' in out
        assert 'Presenter: Sam' in out

    def test_validate_passes(self, project, capsys):
        assert run(project, 'validate') == 0
        assert 'Validation Passed' in capsys.readouterr().out

    def test_load_error_is_reported(self, project, capsys):
        wb = Workbook()
        wb.active.title = 'Slides'
        wb.save(project / 'deck.xlsx')
        assert run(project, 'check-config') == 1
        assert 'Config sheet not found' in capsys.readouterr().out

    def test_version(self, project, capsys):
        assert run(project, 'version') == 0
        out = capsys.readouterr().out
        assert f'sheetdeck v{cli.__version__}' in out
        assert 'Data version: v1.0.0' in out


class TestUpdateCommands:
    @pytest.fixture
    def fetcher(self, monkeypatch):
        fetcher = ScriptedFetcher({
            f'{BASE}/version.json': [json.dumps({'version': '1.1.0', 'changes': ['More']})],
            f'{BASE}/config.csv': ['Setting,Value\nDeck Title,Remote Deck\n'],
            f'{BASE}/slides.csv': ['Order|Title\n1|Remote slide\n'],
        })
        monkeypatch.setattr(cli, 'RequestsFetcher', lambda: fetcher)
        return fetcher

    def test_preview(self, project, fetcher, capsys):
        assert run(project, 'preview-updates') == 0
        out = capsys.readouterr().out
        assert 'Update available' in out
        assert '2 slides (local) vs 1 (remote)' in out

    def test_apply_then_version(self, project, fetcher, capsys):
        assert run(project, 'apply-updates') == 0
        assert 'Updated to v1.1.0' in capsys.readouterr().out

        assert run(project, 'check-config') == 0
        assert 'Title: Remote Deck' in capsys.readouterr().out

        assert run(project, 'version') == 0
        assert 'Data version: v1.1.0' in capsys.readouterr().out
