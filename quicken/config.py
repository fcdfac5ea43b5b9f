"""Configuration for the import engine.

Options are stored per language in ``.quicken/config.json`` at the workspace
root, using the same camelCase keys as the editor settings:

    {
        "javascript": {"syntax": "import", "semiColons": true},
        "typescript": {"quoteCharacter": "double"},
        "historyLimit": 30
    }

Missing keys fall back to the defaults below. Booleans must be JSON booleans;
``"false"`` or ``1`` are rejected rather than coerced.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, ValidationError, field_validator

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_DIR = ".quicken"
CONFIG_FILE = "config.json"

Syntax = Literal["import", "require"]
QuoteCharacter = Literal["single", "double"]
NamingConvention = Literal["camelCase", "PascalCase", "snake_case", "lowercase", "none"]


def _config_error(e: ValidationError) -> ConfigError:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc']) or 'config'}: {error['msg']}" for error in e.errors()
    )
    return ConfigError(f"Invalid configuration: {problems}")


class LanguageOptions(BaseModel):
    """Import generation options for one language plugin."""

    model_config = ConfigDict(populate_by_name=True)

    syntax: Syntax = Field("import", description="Statement form: ES import or CommonJS require.")
    grouping: StrictBool = Field(True, description="Merge new bindings into an import of the same path.")
    file_extension: StrictBool = Field(False, alias="fileExtension")
    index_file: StrictBool = Field(False, alias="indexFile")
    quote_character: QuoteCharacter = Field("single", alias="quoteCharacter")
    semi_colons: StrictBool = Field(False, alias="semiColons")
    # regex source -> replacement, first match wins
    predefined_variable_names: Dict[str, str] = Field(default_factory=dict, alias="predefinedVariableNames")
    variable_naming_convention: NamingConvention = Field("camelCase", alias="variableNamingConvention")
    # document path regex -> candidate path regex, first match wins
    filtered_file_list: Dict[str, str] = Field(default_factory=dict, alias="filteredFileList")
    allow_typescript_files: StrictBool = Field(False, alias="allowTypeScriptFiles")

    @classmethod
    def from_dict(cls, data: Any) -> "LanguageOptions":
        """Build options from a camelCase settings mapping.

        Raises:
            ConfigError: If a value has the wrong type or an unknown choice
        """
        if isinstance(data, dict):
            known = {f.alias or name for name, f in cls.model_fields.items()}
            for key in data:
                if key not in known:
                    logger.debug(f"Ignoring unknown option {key!r}")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise _config_error(e) from e

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)

    @property
    def quote(self) -> str:
        return "'" if self.quote_character == "single" else '"'


class RootConfig(BaseModel):
    """All options consumed by the engine."""

    model_config = ConfigDict(populate_by_name=True)

    javascript: LanguageOptions = Field(default_factory=LanguageOptions)
    typescript: LanguageOptions = Field(default_factory=LanguageOptions)
    history_limit: StrictInt = Field(30, alias="historyLimit", description="Recently used ids kept per plugin.")

    @field_validator("history_limit")
    @classmethod
    def validate_history_limit(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"must be a non-negative integer, got {v}")
        return v

    @classmethod
    def from_dict(cls, data: Any) -> "RootConfig":
        """Build the root configuration from a settings mapping.

        Raises:
            ConfigError: If any section is malformed
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise _config_error(e) from e


def load_config_file(config_path: str | Path) -> RootConfig:
    """Load configuration from an explicit file.

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    config_path = Path(config_path)
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Could not read configuration {config_path}: {e}") from e
    return RootConfig.from_dict(data)


def load_config(workspace_root: str | Path, config_path: Optional[str | Path] = None) -> RootConfig:
    """Load the workspace configuration, falling back to defaults.

    Args:
        workspace_root: Root directory of the workspace
        config_path: Explicit config file; errors in it are raised

    Returns:
        RootConfig with defaults filled in
    """
    if config_path is not None:
        return load_config_file(config_path)

    default_path = Path(workspace_root) / CONFIG_DIR / CONFIG_FILE
    if not default_path.exists():
        return RootConfig()

    try:
        return load_config_file(default_path)
    except ConfigError as e:
        logger.warning(f"Failed to load {default_path}, using defaults: {e}")
        return RootConfig()
