"""Command-line interface for the sheetdeck slide generator."""

import argparse
import sys
import logging
from pathlib import Path
from typing import Optional, Sequence

from . import __release_date__, __version__
from .config import Config
from .exceptions import BackupError, LoadError
from .fetcher import RequestsFetcher
from .generator import DeckGenerator
from .models import LayoutKind
from .sheet_parser import read_config, read_slides
from .slide_builders import resolve_layout_kind
from .state import JsonStateStore
from .updater import VERSION_KEY, Synchronizer
from .validation import describe_config, validate_slide_data


def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        prog='sheetdeck',
        description='Generate PowerPoint presentations from Config and Slides worksheets.'
    )

    parser.add_argument(
        '--config',
        default='config.yaml',
        help='Path to configuration file (default: config.yaml)'
    )
    parser.add_argument(
        '--workbook',
        help='Path to the .xlsx workbook with Config and Slides sheets (overrides config)'
    )
    parser.add_argument(
        '--output-dir',
        help='Directory for generated decks (overrides config)'
    )

    subparsers = parser.add_subparsers(dest='command')
    subparsers.add_parser('generate', help='Generate the full presentation')
    subparsers.add_parser('test-slide', help='Generate a deck with only the first slide')
    subparsers.add_parser('check-config', help='Show the deck settings from the Config sheet')
    subparsers.add_parser('validate', help='Check slide data for missing fields')
    subparsers.add_parser('preview-updates', help='Compare local data with the remote feed')
    subparsers.add_parser('apply-updates', help='Back up and replace data from the remote feed')
    subparsers.add_parser('version', help='Show tool and data versions')

    args = parser.parse_args(argv)
    if args.command is None:
        args.command = 'generate'
    return args


def print_banner(title: str, config: Config) -> None:
    print("=" * 60)
    print(title)
    print("=" * 60)
    print(f"Configuration: {config.config_path}")
    print(f"Workbook:      {config.workbook_path}")
    print(f"Output dir:    {config.output_dir}")
    print("=" * 60)


def print_done() -> None:
    print("\n" + "=" * 60)
    print("Done!")
    print("=" * 60)


def cmd_generate(config: Config) -> int:
    print_banner("Slide Deck Generator", config)
    result = DeckGenerator(config).generate()

    print(f"\nCreated {result.success_count} of {result.total_count} slides")
    if result.failed_count:
        print(f"{result.failed_count} slide(s) failed - see the log for details")
    diagnostics = result.all_diagnostics()
    if diagnostics:
        print(f"{len(diagnostics)} warning(s) while building slides")
    print(f"Saved to: {result.output_path}")
    print_done()
    return 0


def cmd_test_slide(config: Config) -> int:
    print_banner("Single Slide Test", config)
    result = DeckGenerator(config).generate_test_slide()
    first = result.slide_results[0].slide

    print(f"\nTitle:  {first.title}")
    print(f"Layout: {first.layout} ({resolve_layout_kind(first.layout).value})")
    print(f"Bullets: {first.bullets[:100] if first.bullets else 'None'}")
    if not result.success_count:
        print("The slide could not be created - see the log for details")
    print(f"Saved to: {result.output_path}")
    print_done()
    return 0 if result.success_count else 1


def cmd_check_config(config: Config) -> int:
    generator = DeckGenerator(config)
    print(describe_config(read_config(generator.tables)))
    return 0


def cmd_validate(config: Config) -> int:
    generator = DeckGenerator(config)
    report = validate_slide_data(read_slides(generator.tables))
    print(report.render())
    return 0 if report.passed else 1


def _synchronizer(config: Config) -> Synchronizer:
    generator = DeckGenerator(config)
    return Synchronizer(
        endpoint=config.sync_endpoint(),
        fetcher=RequestsFetcher(),
        tables=generator.tables,
        state=JsonStateStore(config.state_file),
        max_attempts=config.max_attempts,
        timeout=config.timeout,
    )


def cmd_preview_updates(config: Config) -> int:
    report = _synchronizer(config).preview()
    print(report.render())
    return 0


def cmd_apply_updates(config: Config) -> int:
    try:
        result = _synchronizer(config).apply()
    except BackupError as e:
        print(f"\nApply failed: {e}")
        print("No data was changed.")
        return 1
    print(result.render())
    return 0 if result.success else 1


def cmd_version(config: Config) -> int:
    state = JsonStateStore(config.state_file)
    data_version = state.get(VERSION_KEY) or config.get('sync.current_version')
    print(f"sheetdeck v{__version__} (released {__release_date__})")
    print(f"Data version: v{data_version}")
    print(f"Layouts: {', '.join(kind.value for kind in LayoutKind)}")
    return 0


COMMANDS = {
    'generate': cmd_generate,
    'test-slide': cmd_test_slide,
    'check-config': cmd_check_config,
    'validate': cmd_validate,
    'preview-updates': cmd_preview_updates,
    'apply-updates': cmd_apply_updates,
    'version': cmd_version,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the CLI.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = parse_arguments(argv)

    # Load configuration
    try:
        config = Config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        print(f"Please ensure the configuration file exists at: {args.config}")
        return 1
    except Exception as e:
        print(f"Error loading configuration: {e}")
        return 1

    # Apply CLI overrides if provided
    if args.workbook:
        config.set('paths.workbook', str(Path(args.workbook).resolve()))
    if args.output_dir:
        config.set('paths.output_dir', str(Path(args.output_dir).resolve()))

    try:
        return COMMANDS[args.command](config)
    except (FileNotFoundError, LoadError, ValueError) as e:
        print(f"\nError: {e}")
        return 1
    except Exception as e:
        logging.exception(f"Error running {args.command}")
        print(f"\nError running {args.command}: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
