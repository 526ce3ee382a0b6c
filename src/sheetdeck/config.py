"""Application configuration for the slide deck generator.

Settings come from a YAML file merged over built-in defaults. They describe
where the workbook, assets and output live, how the update feed is reached,
and the logging level. Deck styling is *not* configured here; it comes from
the workbook's Config table (see ``sheet_parser.load_config``).
"""

import copy
import yaml
import logging
from pathlib import Path
from typing import Dict, Any, Optional

from .models import SyncEndpoint

DEFAULT_SETTINGS: Dict[str, Any] = {
    'paths': {
        'workbook': 'deck.xlsx',
        'assets_dir': 'assets',
        'output_dir': '',
        'template': '',
        'state_file': '',
    },
    'sync': {
        'owner': '',
        'repo': '',
        'branch': 'main',
        'current_version': '1.0.0',
        'base_url': 'https://raw.githubusercontent.com/{owner}/{repo}/{branch}',
        'max_attempts': 3,
        'timeout': 30,
    },
    'settings': {
        'asset_subfolder': 'images',
        'logging': {
            'level': 'INFO',
        },
    },
}


def load_yaml_file(file_path: Path) -> Dict[str, Any]:
    """Load a YAML file and return its contents."""
    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    with open(file_path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


def merge_dicts(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge two dictionaries, overlay taking precedence."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


class Config:
    """Configuration manager that merges a YAML file over the defaults."""

    def __init__(self, config_path: str = 'config.yaml'):
        """Initialize configuration by loading the YAML file.

        Args:
            config_path: Path to main configuration file
        """
        self.config_path = Path(config_path)
        main_config = load_yaml_file(self.config_path)
        self._init_from(main_config, self.config_path.parent)
        logging.debug(f"Loaded config from: {self.config_path}")

    @classmethod
    def from_dict(cls, main_config: Dict[str, Any],
                  config_dir: Optional[Path] = None) -> "Config":
        """Create Config instance from a dictionary.

        Args:
            main_config: Configuration dictionary (already loaded)
            config_dir: Directory used to resolve ``paths.project_root``
                (defaults to the current directory)

        Returns:
            Configured Config instance
        """
        config = cls.__new__(cls)
        config_dir = Path(config_dir) if config_dir else Path.cwd()
        config.config_path = config_dir / "config.yaml"  # Virtual path
        config._init_from(main_config, config_dir)
        return config

    def _init_from(self, main_config: Dict[str, Any], config_dir: Path) -> None:
        self._config = merge_dicts(copy.deepcopy(DEFAULT_SETTINGS), main_config or {})

        # Set up project_root from paths.project_root if present
        paths_config = self._config.get('paths', {})
        if paths_config.get('project_root'):
            self.project_root = (config_dir / paths_config['project_root']).resolve()
        else:
            self.project_root = config_dir.resolve()

        self._paths = paths_config
        self._setup_logging()

    def _setup_logging(self):
        """Setup logging based on configuration."""
        log_level = str(self.get('settings.logging.level', 'INFO'))
        numeric_level = getattr(logging, log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=numeric_level,
            format='%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    def _resolve_path_value(self, value: str) -> Path:
        """Resolve a path value relative to project_root if not absolute."""
        p = Path(value).expanduser()
        if not p.is_absolute():
            return self.project_root / p
        return p.resolve()

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'sync.branch')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self._config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set a configuration value using dot notation (used for CLI overrides)."""
        keys = key_path.split('.')
        target = self._config
        for key in keys[:-1]:
            target = target.setdefault(key, {})
        target[keys[-1]] = value
        self._paths = self._config.get('paths', {})

    def get_path(self, key: str) -> Optional[Path]:
        """Get a path from configuration, resolved relative to project_root.

        Args:
            key: Path key in config (e.g., 'workbook', 'assets_dir')

        Returns:
            Resolved Path object, or None when the path is not configured
        """
        path_str = self._paths.get(key)
        if not path_str:
            return None
        return self._resolve_path_value(str(path_str))

    def validate_paths(self):
        """Validate that the workbook exists."""
        workbook = self.workbook_path
        if workbook is None or not workbook.exists():
            raise FileNotFoundError(f"Workbook not found: {workbook}")

    @property
    def workbook_path(self) -> Optional[Path]:
        """Workbook holding the Config and Slides tables."""
        return self.get_path('workbook')

    @property
    def assets_dir(self) -> Optional[Path]:
        """Root of the chart/image asset store."""
        return self.get_path('assets_dir')

    @property
    def output_dir(self) -> Path:
        """Where generated decks go; defaults to the workbook's folder."""
        configured = self.get_path('output_dir')
        if configured is not None:
            return configured
        workbook = self.workbook_path
        return workbook.parent if workbook is not None else self.project_root

    @property
    def template_path(self) -> Optional[Path]:
        """Optional .pptx template providing layouts and page size."""
        return self.get_path('template')

    @property
    def state_file(self) -> Path:
        """JSON file persisting the locally known data version."""
        configured = self.get_path('state_file')
        if configured is not None:
            return configured
        return Path.home() / '.sheetdeck' / 'state.json'

    @property
    def asset_subfolder(self) -> str:
        return str(self.get('settings.asset_subfolder', 'images') or '')

    @property
    def max_attempts(self) -> int:
        return int(self.get('sync.max_attempts', 3))

    @property
    def timeout(self) -> float:
        return float(self.get('sync.timeout', 30))

    def sync_endpoint(self) -> SyncEndpoint:
        """Build the update feed endpoint from the ``sync`` section.

        Raises:
            ValueError: If owner or repo is not configured.
        """
        owner = self.get('sync.owner')
        repo = self.get('sync.repo')
        if not owner or not repo:
            raise ValueError("sync.owner and sync.repo must be set to use updates")
        return SyncEndpoint(
            owner=str(owner),
            repo=str(repo),
            branch=str(self.get('sync.branch', 'main')),
            current_version=str(self.get('sync.current_version', '1.0.0')),
            base_url_template=str(self.get('sync.base_url', DEFAULT_SETTINGS['sync']['base_url'])),
        )
