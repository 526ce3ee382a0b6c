"""Exception hierarchy for the slide deck generator.

Load errors are fatal and abort a run before any document exists. Slide,
style and media errors are absorbed by the layers that raise them; fetch
errors end an update operation but never touch the live tables.
"""


class SheetDeckError(Exception):
    """Base class for all generator errors."""
    pass


class TableNotFoundError(SheetDeckError):
    """Raised when a named table does not exist in a table store."""
    pass


# === Loading ===

class LoadError(SheetDeckError):
    """Raised when the source tables cannot be turned into a deck."""
    pass


class ConfigSheetMissing(LoadError):
    """Raised when the Config table does not exist."""

    def __init__(self, table_name: str = "Config"):
        self.table_name = table_name
        super().__init__(
            f"{table_name} sheet not found. Please create a {table_name} tab "
            f"with 'Setting' and 'Value' columns."
        )


class SlideSheetMissing(LoadError):
    """Raised when the Slides table does not exist."""

    def __init__(self, table_name: str = "Slides"):
        self.table_name = table_name
        super().__init__(f"{table_name} sheet not found")


class MissingRequiredColumn(LoadError):
    """Raised when the Slides header lacks a required column."""

    def __init__(self, column: str, found: list[str]):
        self.column = column
        self.found = list(found)
        super().__init__(
            f"Required column '{column}' not found in Slides sheet. "
            f"Found: {', '.join(self.found)}"
        )


class EmptySlideTable(LoadError):
    """Raised when the Slides table has no data rows."""

    def __init__(self, table_name: str = "Slides"):
        self.table_name = table_name
        super().__init__(f"{table_name} sheet appears to be empty")


class NoSlidesFound(LoadError):
    """Raised when no row has both an order and a title."""

    def __init__(self):
        super().__init__("No slides found. Check your Slides sheet.")


class InvalidSlideOrder(LoadError):
    """Raised when an order cell is not a number."""

    def __init__(self, row_number: int, value):
        self.row_number = row_number
        self.value = value
        super().__init__(
            f"Invalid order value {value!r} in Slides row {row_number}: "
            f"order must be numeric"
        )


# === Slide creation ===

class SlideCreationError(SheetDeckError):
    """Raised when a single slide cannot be created."""

    def __init__(self, index: int, title: str, cause: Exception):
        self.index = index
        self.title = title
        self.cause = cause
        super().__init__(f"Error creating slide {index + 1} ({title!r}): {cause}")


class StyleApplicationError(SheetDeckError):
    """Raised when text styling fails; content stays in place unstyled."""
    pass


class MediaResolutionError(SheetDeckError):
    """Raised when a chart or image reference cannot be placed."""
    pass


class AssetNotFound(MediaResolutionError):
    """Raised when an asset name matches no file in the asset store."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Asset not found: {name}")


# === Update synchronization ===

class HttpStatusError(SheetDeckError):
    """Raised when a fetch returns a non-2xx status."""

    def __init__(self, status: int, body: str = ""):
        self.status = status
        self.body = body
        if body:
            super().__init__(f"HTTP {status}: {body[:200]}")
        else:
            super().__init__(f"HTTP {status}")


class FetchExhausted(SheetDeckError):
    """Raised when every fetch attempt for a URL failed."""

    def __init__(self, url: str, attempts: int, last_error: Exception):
        self.url = url
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Failed after {attempts} attempts: {last_error}")


class UpdateError(SheetDeckError):
    """Raised when remote data is malformed or cannot be applied."""
    pass


class BackupError(UpdateError):
    """Raised when the pre-update backup could not be created."""
    pass
