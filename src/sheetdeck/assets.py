"""Named asset lookup for chart and image references."""

import logging
from pathlib import Path
from typing import Union

from .interfaces import AssetRef

logger = logging.getLogger(__name__)

DEFAULT_ASSET_SUBFOLDER = 'images'


def is_safe_filename(filename: str) -> bool:
    """Check if a filename is safe (no path traversal).

    Args:
        filename: The filename to check

    Returns:
        True if safe, False otherwise
    """
    if not filename:
        return False

    # Reject path traversal
    if filename.startswith('/') or filename.startswith('\\'):
        return False
    if '..' in filename.replace('\\', '/').split('/'):
        return False

    # Reject Windows drive prefixes
    if len(filename) > 1 and filename[1] == ':':
        return False

    return True


class DirectoryAssetStore:
    """Assets stored as files under a root directory.

    Names are looked up exactly, first in the conventional subfolder
    (``images/`` by default), then in the root. The first match wins.

    Args:
        root: Asset root directory.
        subfolder: Name of the conventional subfolder checked first.
    """

    def __init__(self, root: Union[str, Path], subfolder: str = DEFAULT_ASSET_SUBFOLDER):
        self.root = Path(root)
        self.subfolder = subfolder

    def _candidates(self, name: str) -> list[Path]:
        candidates = []
        if self.subfolder:
            candidates.append(self.root / self.subfolder / name)
        candidates.append(self.root / name)
        return candidates

    def find(self, name: str) -> AssetRef | None:
        """Locate an asset by exact file name.

        Returns:
            AssetRef pointing at the file, or None if no location has it.
        """
        if not is_safe_filename(name):
            logger.warning(f"Refusing unsafe asset name: {name!r}")
            return None

        for candidate in self._candidates(name):
            if candidate.is_file():
                logger.debug(f"Found asset '{name}' at {candidate}")
                return AssetRef(name=name, location=candidate)

        logger.debug(f"Asset '{name}' not found under {self.root}")
        return None

    def read_bytes(self, ref: AssetRef) -> bytes:
        return Path(ref.location).read_bytes()
