import yaml
import logging
from typing import List, Optional, Dict, Any
from pathlib import Path
from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

# Default configuration values
DEFAULT_CONFIG_PATH = "polymerts-migrate.config.yaml"
DEFAULT_OUTPUT_PATH = "./polymerTsToPolymerDecoratorsOutput/"
DEFAULT_TARGET_VERSION = 2
DEFAULT_GLOB_IGNORE = ["bower_components/**", "node_modules/**"]
DEFAULT_QUOTE_STYLE = '"'
SUPPORTED_TARGET_VERSIONS = (2,)


class ConverterOptions(BaseModel):
    """
    Options for one conversion run.

    Every field may also be given by its camelCase name (``outputPath``,
    ``changeInline``, ...), the spelling used by existing PolymerTS
    migration configs.
    """
    output_path: str = Field(default=DEFAULT_OUTPUT_PATH)
    change_inline: bool = False
    target_version: int = Field(default=DEFAULT_TARGET_VERSION)
    move_single_property_observers_to_property: bool = True
    apply_declarative_event_listeners_mixin: bool = False
    apply_gesture_event_listeners_mixin: bool = False
    change_component_class_extension: bool = False
    path_to_bower_components: Optional[str] = None
    glob_ignore: List[str] = Field(default_factory=lambda: list(DEFAULT_GLOB_IGNORE))
    quote_style: str = Field(default=DEFAULT_QUOTE_STYLE)

    # Lifecycle callbacks (attached/detached) renamed to their custom-element names
    rename_lifecycle_callbacks: bool = False

    class Config:
        extra = "allow"
        populate_by_name = True
        alias_generator = to_camel

    @field_validator("target_version")
    @classmethod
    def _supported_version(cls, value: int) -> int:
        if value not in SUPPORTED_TARGET_VERSIONS:
            raise ValueError(f"target_version {value} is not supported (supported: {SUPPORTED_TARGET_VERSIONS})")
        return value

    @field_validator("quote_style")
    @classmethod
    def _single_quote_char(cls, value: str) -> str:
        if value not in ('"', "'"):
            raise ValueError("quote_style must be a single or double quote")
        return value


def option_name(key: str) -> str:
    """Field name for a config key given in either spelling."""
    if key in ConverterOptions.model_fields:
        return key
    for name in ConverterOptions.model_fields:
        if to_camel(name) == key:
            return name
    return key


def read_config_file(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Options from a YAML file, keyed by field name.

    The default file is optional; an explicit path that does not exist, an
    unreadable file or a file that is not a mapping is reported and ignored.
    Unknown keys are kept but reported, since they are usually typos.
    """
    path = Path(config_path or DEFAULT_CONFIG_PATH)
    if not path.is_file():
        if config_path:
            logging.warning(f"Config file not found at explicit path: {config_path}")
        else:
            logging.info(f"No config file found at {DEFAULT_CONFIG_PATH}, using defaults.")
        return {}

    try:
        with open(path, 'r', encoding='utf-8') as f:
            raw = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logging.warning(f"Failed to load config file {path}: {e}")
        return {}
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        logging.warning(f"Config file {path} does not contain a mapping; ignoring it")
        return {}

    options = {}
    for key, value in raw.items():
        name = option_name(str(key))
        if name not in ConverterOptions.model_fields:
            logging.warning(f"Unknown option '{key}' in {path}")
        options[name] = value
    logging.info(f"Loaded configuration from {path}")
    return options


def load_config(
    config_path: Optional[str] = None,
    cli_args: Optional[Dict[str, Any]] = None
) -> ConverterOptions:
    """
    Resolve the options of a run.

    CLI values that are not None win over the config file, which wins over
    the defaults of ``ConverterOptions``.

    Raises:
        pydantic.ValidationError: if a value is out of range.
    """
    options = read_config_file(config_path)
    for key, value in (cli_args or {}).items():
        if value is not None:
            options[option_name(key)] = value
    return ConverterOptions(**options)
