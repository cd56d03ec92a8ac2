'''
Configuration management system for the Chemometrics OSC Toolbox.

This module lets users change the toolbox defaults without touching source
code. Settings are grouped in dataclass sections and resolved in layers:

1. Default configurations built into the package
2. User-specific configuration file (JSON)
3. Environment variables (``CHEMOSC_<SECTION>_<OPTION>``)
4. Runtime modifications through :func:`set_config`

The numerical section supplies the defaults that :func:`chemosc.compute_osc`
and the OSC model classes fall back to when a caller omits the algorithm
variant, the number of components, the tolerance or the iteration bound.
'''

import os
import json
import logging
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from .exceptions import ConfigurationError
from .types import LogLevel

# Set up module-level logger
logger = logging.getLogger("chemosc.core.config")

# Constants for configuration paths and environment variables
CONFIG_ENV_PREFIX = "CHEMOSC_"
DEFAULT_CONFIG_FILENAME = "chemosc_config.json"
USER_CONFIG_DIR_ENV = "CHEMOSC_CONFIG_DIR"
LOG_LEVEL_ENV = "CHEMOSC_LOG_LEVEL"

_VALID_VARIANTS = ("wold", "sjoblom", "fearn")
_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigSection(Enum):
    """Enumeration of configuration sections."""
    CORE = "core"
    NUMERICAL = "numerical"
    OUTPUT = "output"
    LOGGING = "logging"


@dataclass
class CoreConfig:
    """
    Core configuration settings.

    Attributes:
        version: The version of the configuration format
        user_config_dir: Directory for user-specific configuration files
        enable_numba: Whether JIT-compiled kernels are used for the inner loops
    """
    version: str = "1.0.0"
    user_config_dir: Path = field(default_factory=lambda: Path.home() / ".chemosc")
    enable_numba: bool = True


@dataclass
class NumericalConfig:
    """
    Numerical defaults for orthogonal signal correction.

    Attributes:
        default_variant: Algorithm used when none is requested
        default_n_components: Number of orthogonal components removed by default
        default_tol: Relative-change tolerance of the inner loops
        default_max_iter: Iteration bound of the inner loops
        pinv_rtol: Relative cutoff for small singular values in pseudo-inverses
            (None uses SciPy's default)
        degeneracy_tol: Scale-relative threshold below which a norm or a
            response variance is treated as zero
    """
    default_variant: str = "wold"
    default_n_components: int = 1
    default_tol: float = 1e-6
    default_max_iter: int = 50
    pinv_rtol: Optional[float] = None
    degeneracy_tol: float = 1e-12


@dataclass
class OutputConfig:
    """
    Output configuration settings.

    Attributes:
        float_precision: Number of decimal places in text summaries
        summary_max_components: Maximum number of components listed in summaries
    """
    float_precision: int = 4
    summary_max_components: int = 10


@dataclass
class LoggingConfig:
    """
    Logging configuration settings.

    Attributes:
        log_level: Default logging level
        log_file: Path to log file (None for no file logging)
        log_format: Format string for log messages
        log_date_format: Format string for log message timestamps
        console_logging: Whether to log to console
        file_logging: Whether to log to file
    """
    log_level: LogLevel = "INFO"
    log_file: Optional[Path] = None
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_date_format: str = "%Y-%m-%d %H:%M:%S"
    console_logging: bool = True
    file_logging: bool = False


@dataclass
class OSCConfig:
    """
    Complete configuration combining all sections.

    Attributes:
        core: Core configuration settings
        numerical: Numerical defaults
        output: Output configuration settings
        logging: Logging configuration settings
    """
    core: CoreConfig = field(default_factory=CoreConfig)
    numerical: NumericalConfig = field(default_factory=NumericalConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _check_constraint(attr_name: str, value: Any) -> Optional[str]:
    """Return a description of the violated constraint, or None when valid."""
    if attr_name == "default_variant" and value not in _VALID_VARIANTS:
        return f"must be one of {', '.join(_VALID_VARIANTS)}"
    if attr_name == "default_n_components" and (not isinstance(value, int) or value < 0):
        return "must be a non-negative integer"
    if attr_name == "default_tol" and not value > 0:
        return "must be positive"
    if attr_name == "default_max_iter" and (not isinstance(value, int) or value < 1):
        return "must be an integer >= 1"
    if attr_name == "pinv_rtol" and value is not None and not value >= 0:
        return "must be None or non-negative"
    if attr_name == "degeneracy_tol" and not value >= 0:
        return "must be non-negative"
    if attr_name == "float_precision" and not 0 <= value <= 16:
        return "must be between 0 and 16"
    if attr_name == "summary_max_components" and value < 1:
        return "must be positive"
    if attr_name == "log_level" and value not in _VALID_LOG_LEVELS:
        return f"must be one of {', '.join(_VALID_LOG_LEVELS)}"
    return None


class ConfigManager:
    """
    Holds the live :class:`OSCConfig` and the layers that feed it.

    A manager starts out with the built-in defaults. :meth:`initialize` merges
    the user file and the environment on top, repairs invalid values and
    configures the ``chemosc`` logger; later calls are no-ops.
    """

    def __init__(self):
        self._config = OSCConfig()
        self._initialized = False
        self._config_file: Optional[Path] = None
        self._modified_keys = set()

    def initialize(self) -> None:
        if self._initialized:
            return

        self._resolve_user_config_dir()
        self._load_user_config()
        self._apply_env_overrides()
        self._validate_config()
        self._setup_logging()

        self._initialized = True
        logger.debug("Configuration layers merged")

    def _resolve_user_config_dir(self) -> None:
        override = os.environ.get(USER_CONFIG_DIR_ENV)
        if override:
            self._config.core.user_config_dir = Path(override)
        self._config_file = self._config.core.user_config_dir / DEFAULT_CONFIG_FILENAME

    def _load_user_config(self) -> None:
        """Merge the JSON user file, if one exists; an unreadable file is skipped."""
        if self._config_file is None or not self._config_file.is_file():
            logger.debug(f"No configuration file at {self._config_file}")
            return

        try:
            stored = json.loads(self._config_file.read_text())
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable configuration file {self._config_file}: {e}")
            return

        self._update_from_dict(stored)
        logger.debug(f"Merged configuration file {self._config_file}")

    def _env_entries(self):
        """Yield ``(variable, section, option, raw value)`` for matching variables."""
        reserved = (USER_CONFIG_DIR_ENV, LOG_LEVEL_ENV)
        for variable, raw in os.environ.items():
            if not variable.startswith(CONFIG_ENV_PREFIX) or variable in reserved:
                continue
            section, _, option = variable[len(CONFIG_ENV_PREFIX):].lower().partition('_')
            if self.has_section(section) and hasattr(getattr(self._config, section), option):
                yield variable, section, option, raw

    def _apply_env_overrides(self) -> None:
        """
        Overlay ``CHEMOSC_<SECTION>_<OPTION>`` variables, for instance
        ``CHEMOSC_NUMERICAL_DEFAULT_TOL=1e-8``. ``CHEMOSC_LOG_LEVEL`` is a
        shorthand for ``CHEMOSC_LOGGING_LOG_LEVEL``.
        """
        level = os.environ.get(LOG_LEVEL_ENV)
        if level:
            self._config.logging.log_level = level.upper()
            logger.debug(f"{LOG_LEVEL_ENV}={level} applied")

        for variable, section, option, raw in self._env_entries():
            target = getattr(self._config, section)
            try:
                setattr(target, option, self._coerce(target, option, raw))
            except (TypeError, ValueError) as e:
                logger.warning(f"Ignoring {variable}={raw!r}: {e}")
                continue
            logger.debug(f"{variable}={raw} applied")

    def _coerce(self, section_obj: Any, option: str, value: Any) -> Any:
        """Convert a raw value to the type of the option it will replace."""
        current = getattr(section_obj, option)
        optional = "Optional" in str({f.name: f.type for f in fields(section_obj)}[option])
        numeric_option = isinstance(current, float) or option == "pinv_rtol"

        if isinstance(value, str):
            text = value.strip()
            if optional and text.lower() in ("none", "null", ""):
                return None
            if isinstance(current, bool):
                return text.lower() in ('true', 'yes', '1', 'y')
            if isinstance(current, int):
                return int(text)
            if numeric_option:
                return float(text)
            if isinstance(current, Path) or option == "log_file":
                return Path(text)
            return text.upper() if option == "log_level" else text

        if value is None:
            if optional:
                return None
            raise TypeError(f"{option} does not accept None")
        if isinstance(current, bool):
            if not isinstance(value, bool):
                raise TypeError(f"{option} expects true or false")
            return value
        if isinstance(current, int):
            if isinstance(value, bool) or int(value) != value:
                raise TypeError(f"{option} expects a whole number")
            return int(value)
        if numeric_option:
            return float(value)
        return Path(value) if isinstance(current, Path) else value

    def _setup_logging(self) -> None:
        """Rebuild the handlers of the ``chemosc`` logger from the logging section."""
        settings = self._config.logging
        package_logger = logging.getLogger("chemosc")

        for handler in list(package_logger.handlers):
            package_logger.removeHandler(handler)
        package_logger.setLevel(getattr(logging, settings.log_level))

        handlers: List[logging.Handler] = []
        if settings.console_logging:
            handlers.append(logging.StreamHandler())
        if settings.file_logging and settings.log_file:
            try:
                Path(settings.log_file).parent.mkdir(parents=True, exist_ok=True)
                handlers.append(logging.FileHandler(settings.log_file))
            except OSError as e:
                logger.warning(f"File logging disabled, {settings.log_file} is not writable: {e}")

        formatter = logging.Formatter(fmt=settings.log_format, datefmt=settings.log_date_format)
        for handler in handlers:
            handler.setFormatter(formatter)
            package_logger.addHandler(handler)

    def _validate_config(self) -> None:
        """Put every option that breaks its constraint back to its default."""
        defaults = OSCConfig()
        for name in self._section_names():
            current = getattr(self._config, name)
            for f in fields(current):
                value = getattr(current, f.name)
                try:
                    issue = _check_constraint(f.name, value)
                except TypeError:
                    issue = "has an invalid type"
                if not issue:
                    continue
                fallback = getattr(getattr(defaults, name), f.name)
                logger.warning(f"{name}.{f.name}={value!r} {issue}; falling back to {fallback!r}")
                setattr(current, f.name, fallback)

    def _update_from_dict(self, config_dict: Dict[str, Any]) -> None:
        """Merge a ``{section: {option: value}}`` mapping, skipping unknown keys."""
        for name, options in config_dict.items():
            if not self.has_section(name) or not isinstance(options, dict):
                logger.warning(f"Skipping unknown configuration section {name!r}")
                continue

            target = getattr(self._config, name)
            for option, raw in options.items():
                if not hasattr(target, option):
                    logger.warning(f"Skipping unknown configuration option {name}.{option}")
                    continue
                try:
                    setattr(target, option, self._coerce(target, option, raw))
                except (TypeError, ValueError) as e:
                    logger.warning(f"Skipping {name}.{option}={raw!r}: {e}")

    def save_user_config(self) -> None:
        """
        Write every section to the user file as JSON, creating its directory.

        Raises:
            ConfigurationError: If the file cannot be written
        """
        if self._config_file is None:
            self._resolve_user_config_dir()

        try:
            self._config_file.parent.mkdir(parents=True, exist_ok=True)
            self._config_file.write_text(json.dumps(self.to_dict(), indent=2))
        except OSError as e:
            raise ConfigurationError(
                "Could not write the configuration file",
                config_file=self._config_file,
                issue=str(e)
            ) from e

        logger.debug(f"Configuration written to {self._config_file}")

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-ready ``{section: {option: value}}`` snapshot."""
        snapshot: Dict[str, Any] = {}
        for name in self._section_names():
            current = getattr(self._config, name)
            snapshot[name] = {
                f.name: str(v) if isinstance(v, Path) else v
                for f in fields(current)
                for v in (getattr(current, f.name),)
            }
        return snapshot

    def _lookup(self, section: str, option: Optional[str] = None, value: Any = None) -> Any:
        """Return the section object, checking that ``option`` exists in it."""
        setting = section if option is None else f"{section}.{option}"
        if not self.has_section(section):
            raise ConfigurationError(
                f"No configuration section named {section!r}",
                setting=setting,
                value=value,
                issue="Section not found"
            )
        target = getattr(self._config, section)
        if option is not None and not hasattr(target, option):
            raise ConfigurationError(
                f"Section {section!r} has no option {option!r}",
                setting=setting,
                value=value,
                issue="Option not found"
            )
        return target

    def get(self, section: str, option: str, default: Any = None) -> Any:
        """Return ``section.option``, or ``default`` when either name is unknown."""
        if not self.has_section(section):
            return default
        return getattr(getattr(self._config, section), option, default)

    def set(self, section: str, option: str, value: Any) -> None:
        """
        Change one option at runtime.

        Strings are converted to the option's type, so environment-style
        values such as ``"1e-9"`` are accepted. Changing a logging option
        reconfigures the package logger immediately.

        Raises:
            ConfigurationError: If the section or option is unknown, the value
                cannot be converted, or it violates the option's constraint
        """
        target = self._lookup(section, option, value)
        setting = f"{section}.{option}"

        try:
            converted = self._coerce(target, option, value)
            issue = _check_constraint(option, converted)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Cannot convert {value!r} for {setting}",
                setting=setting,
                value=value,
                issue=str(e)
            ) from e

        if issue:
            raise ConfigurationError(
                f"Rejected value for {setting}",
                setting=setting,
                value=value,
                issue=issue
            )

        setattr(target, option, converted)
        self._modified_keys.add(setting)
        if section == ConfigSection.LOGGING.value:
            self._setup_logging()
        logger.debug(f"{setting} set to {converted!r}")

    def reset(self, section: Optional[str] = None, option: Optional[str] = None) -> None:
        """
        Restore defaults for everything, one section, or one option.

        Raises:
            ConfigurationError: If the section or option is unknown
        """
        if section is None:
            self._config = OSCConfig()
            self._modified_keys.clear()
            logger.debug("All configuration restored to defaults")
            return

        self._lookup(section, option)
        defaults = getattr(OSCConfig(), section)

        if option is None:
            setattr(self._config, section, defaults)
            prefix = f"{section}."
            self._modified_keys = {k for k in self._modified_keys if not k.startswith(prefix)}
        else:
            setattr(getattr(self._config, section), option, getattr(defaults, option))
            self._modified_keys.discard(f"{section}.{option}")
        logger.debug(f"Restored defaults for {section}{'' if option is None else '.' + option}")

    def get_modified_options(self) -> List[str]:
        """Return the ``section.option`` keys changed at runtime."""
        return sorted(self._modified_keys)

    @staticmethod
    def _section_names() -> List[str]:
        return [s.value for s in ConfigSection]

    def has_section(self, section: str) -> bool:
        return section in self._section_names()

    def get_section(self, section: str) -> Any:
        """Return the live dataclass of ``section``."""
        return self._lookup(section)

    def get_config_file(self) -> Optional[Path]:
        return self._config_file


_config_manager = ConfigManager()


def _manager() -> ConfigManager:
    if not _config_manager._initialized:
        _config_manager.initialize()
    return _config_manager


def initialize_config() -> None:
    """Merge the user file and environment into the shared configuration."""
    _config_manager.initialize()


def get_config(section: str, option: str, default: Any = None) -> Any:
    """
    Read one option of the shared configuration.

    Args:
        section: Section name, for instance ``"numerical"``
        option: Option name within the section
        default: Returned when the section or option does not exist

    Returns:
        The current value, or ``default``
    """
    return _manager().get(section, option, default)


def set_config(section: str, option: str, value: Any) -> None:
    """Change one option of the shared configuration; see :meth:`ConfigManager.set`."""
    _manager().set(section, option, value)


def reset_config(section: Optional[str] = None, option: Optional[str] = None) -> None:
    """Restore defaults in the shared configuration; see :meth:`ConfigManager.reset`."""
    _manager().reset(section, option)


def save_config() -> None:
    _manager().save_user_config()


def get_config_manager() -> ConfigManager:
    return _manager()


def get_numerical_config() -> NumericalConfig:
    """Return the live numerical section (model defaults and tolerances)."""
    return _manager().get_section(ConfigSection.NUMERICAL.value)
