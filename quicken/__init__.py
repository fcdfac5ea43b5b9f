"""Insert and repair import/require statements in JavaScript and TypeScript files."""

from .config import LanguageOptions, RootConfig, load_config
from .document import TextDocument, TextEdit
from .engine import ImportEngine
from .errors import ConfigError, QuickenError, UnsupportedDocumentError

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "ImportEngine",
    "LanguageOptions",
    "QuickenError",
    "RootConfig",
    "TextDocument",
    "TextEdit",
    "UnsupportedDocumentError",
    "load_config",
]
