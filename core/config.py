"""
Configuration Management - YAML-based configuration with environment overrides
=============================================================================

This module handles all configuration aspects including:
- Loading from YAML files
- Environment variable overrides
- Default values
- Configuration validation
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional
from dataclasses import dataclass, field, asdict

from .exceptions import ConfigError


DEFAULT_SYSTEM_INSTRUCTION = (
    "You are an expert AI assistant called Annie, specializing in B2B financial "
    "services platform solutions in the UK, with a focus on streamlining payment "
    "processing, enhancing regulatory compliance, and providing robust API "
    "integrations for corporate clients.\n"
    "Your goal is to provide concise, accurate, and helpful information in a "
    "friendly manner specifically related to our platform's publicly available "
    "product offerings, features, benefits, and common use cases within the UK "
    "financial sector.\n"
    "Answer only questions relevant to this domain, including pricing structures "
    "(general understanding, not specific quotes), core features, service "
    "availability, high-level regulatory considerations (e.g., PSD2, Open "
    "Banking), and how our platform integrates with existing client systems.\n"
    "If a question is outside the scope of your canned responses and general "
    "information around B2B financial services or goes into "
    "confidential/proprietary details, politely state that you cannot assist "
    "with that specific topic and suggest they contact our sales or support "
    "team for personalized assistance.\n\n"
)


@dataclass
class LLMConfig:
    """
    Completion provider configuration.

    The API key is optional at load time: without one the chat still
    answers from canned responses and reports an error turn if the
    completion fallback is ever reached.
    """
    provider: str = "gemini"
    model: str = "gemini-2.0-flash"
    api_key: str = ""  # Loaded from environment
    api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout: int = 30

    def validate(self) -> None:
        """Validate completion provider configuration."""
        if not self.provider:
            raise ConfigError("LLM provider must not be empty")

        if not self.model:
            raise ConfigError("LLM model must not be empty")

        if self.timeout < 1:
            raise ConfigError(f"timeout must be positive, got {self.timeout}")


@dataclass
class ChatConfig:
    """
    Chat behaviour configuration.

    Controls the persona shown to the user, where the general rule
    tier is loaded from, and the fixed instruction sent with every
    completion request.
    """
    user_name: str = "Gordon"
    assistant_name: str = "Annie"
    welcome_template: str = (
        "Hello {user_name}! I'm {assistant_name}, your expert AI assistant. "
        "How can I help you today?"
    )

    # Empty means the rule file bundled with the package
    rules_file: str = ""
    use_local_rules: bool = True

    system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION

    def validate(self) -> None:
        """Validate chat configuration."""
        if not self.welcome_template.strip():
            raise ConfigError("welcome_template must not be empty")

        try:
            self.welcome_message()
        except (KeyError, IndexError) as e:
            raise ConfigError(
                f"welcome_template has an unknown placeholder: {e}",
                {"template": self.welcome_template}
            )

        if self.rules_file and not Path(self.rules_file).expanduser().exists():
            raise ConfigError(
                "Rules file does not exist",
                {"path": self.rules_file}
            )

    def welcome_message(self) -> str:
        """Render the greeting that opens every conversation."""
        return self.welcome_template.format(
            user_name=self.user_name,
            assistant_name=self.assistant_name,
        )


@dataclass
class UIConfig:
    """
    Web API server configuration.
    """
    web_host: str = "127.0.0.1"
    web_port: int = 8080
    web_debug: bool = False
    max_sessions: int = 1000

    def validate(self) -> None:
        """Validate UI configuration."""
        if self.web_port < 1 or self.web_port > 65535:
            raise ConfigError(f"Invalid web port: {self.web_port}")

        if self.max_sessions < 1:
            raise ConfigError("max_sessions must be at least 1")


@dataclass
class Config:
    """
    Main configuration container.

    Aggregates all configuration sections into a single object
    and provides methods for loading, saving, and validating.
    """
    app_name: str = "Portal Chat Assistant"
    version: str = "1.0.0"
    debug: bool = False

    llm: LLMConfig = field(default_factory=LLMConfig)
    chat: ChatConfig = field(default_factory=ChatConfig)
    ui: UIConfig = field(default_factory=UIConfig)

    # Paths (set at runtime)
    config_dir: str = ""
    log_dir: str = ""

    def validate(self) -> None:
        """
        Validate all configuration sections.

        Raises:
            ConfigError: If any configuration section is invalid
        """
        self.llm.validate()
        self.chat.validate()
        self.ui.validate()

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        llm = asdict(self.llm)
        # Never write secrets back to disk
        llm.pop("api_key", None)
        return {
            "app_name": self.app_name,
            "version": self.version,
            "debug": self.debug,
            "llm": llm,
            "chat": asdict(self.chat),
            "ui": asdict(self.ui),
        }


def get_default_config_dir() -> Path:
    """
    Get the default configuration directory path.

    Returns:
        Path to the configuration directory
    """
    if "PORTAL_CHAT_CONFIG_DIR" in os.environ:
        return Path(os.environ["PORTAL_CHAT_CONFIG_DIR"])

    if "XDG_CONFIG_HOME" in os.environ:
        return Path(os.environ["XDG_CONFIG_HOME"]) / "portal-chat"

    return Path.home() / ".config" / "portal-chat"


def load_config(config_path: Optional[str] = None, load_env: bool = True) -> Config:
    """
    Load configuration from YAML file with environment variable overrides.

    This function loads configuration in the following order:
    1. Default values from dataclass
    2. Values from YAML file
    3. Environment variable overrides

    Args:
        config_path: Path to configuration file (optional)
        load_env: Whether to load environment variable overrides

    Returns:
        Config object with loaded values

    Raises:
        ConfigError: If configuration is invalid or cannot be loaded
    """
    config = Config()
    config.config_dir = str(get_default_config_dir())
    config.log_dir = str(Path(config.config_dir) / "logs")

    if config_path:
        yaml_path = Path(config_path)
        if not yaml_path.exists():
            raise ConfigError("Config file does not exist", {"path": str(yaml_path)})
    else:
        yaml_path = Path(config.config_dir) / "config.yaml"

    if yaml_path.exists():
        try:
            with open(yaml_path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse config file: {e}", {"path": str(yaml_path)})
        except IOError as e:
            raise ConfigError(f"Failed to read config file: {e}", {"path": str(yaml_path)})

        if not isinstance(yaml_config, dict):
            raise ConfigError("Config file must contain a mapping", {"path": str(yaml_path)})

        _apply_yaml_config(config, yaml_config)

    if load_env:
        _apply_env_overrides(config)

    config.validate()

    return config


def _apply_yaml_config(config: Config, yaml_config: Dict[str, Any]) -> None:
    """
    Apply YAML configuration values to Config object.

    Unknown keys are ignored so older config files keep loading.
    """
    for key in ("app_name", "version", "debug"):
        if key in yaml_config:
            setattr(config, key, yaml_config[key])

    for section in ("llm", "chat", "ui"):
        values = yaml_config.get(section) or {}
        if not isinstance(values, dict):
            raise ConfigError(f"Config section '{section}' must be a mapping")

        section_obj = getattr(config, section)
        for key, value in values.items():
            if hasattr(section_obj, key):
                setattr(section_obj, key, value)


def _apply_env_overrides(config: Config) -> None:
    """
    Apply environment variable overrides to Config object.

    Environment variables follow the pattern: PORTAL_CHAT_SECTION_KEY
    For example: PORTAL_CHAT_LLM_API_KEY, PORTAL_CHAT_UI_WEB_PORT
    Mappings are applied in order; a later variable overrides an earlier
    one for the same setting.
    """
    env_mappings = {
        # Provider-native key name; applied first so PORTAL_CHAT_LLM_API_KEY wins
        "GEMINI_API_KEY": ("llm", "api_key"),

        # LLM settings
        "PORTAL_CHAT_LLM_PROVIDER": ("llm", "provider"),
        "PORTAL_CHAT_LLM_MODEL": ("llm", "model"),
        "PORTAL_CHAT_LLM_API_KEY": ("llm", "api_key"),
        "PORTAL_CHAT_LLM_API_BASE": ("llm", "api_base"),
        "PORTAL_CHAT_LLM_TIMEOUT": ("llm", "timeout", int),

        # Chat settings
        "PORTAL_CHAT_CHAT_USER_NAME": ("chat", "user_name"),
        "PORTAL_CHAT_CHAT_RULES_FILE": ("chat", "rules_file"),
        "PORTAL_CHAT_CHAT_USE_LOCAL_RULES": ("chat", "use_local_rules", bool),

        # UI settings
        "PORTAL_CHAT_UI_WEB_HOST": ("ui", "web_host"),
        "PORTAL_CHAT_UI_WEB_PORT": ("ui", "web_port", int),
        "PORTAL_CHAT_UI_WEB_DEBUG": ("ui", "web_debug", bool),
    }

    for env_var, mapping in env_mappings.items():
        value = os.environ.get(env_var)
        if value is None:
            continue

        section, key = mapping[0], mapping[1]
        converter = mapping[2] if len(mapping) > 2 else str

        if converter == bool:
            converted = value.lower() in ("true", "1", "yes", "on")
        else:
            try:
                converted = converter(value)
            except ValueError:
                raise ConfigError(
                    f"Invalid value for {env_var}: {value!r}",
                    {"expected": converter.__name__}
                )

        setattr(getattr(config, section), key, converted)


def save_config(config: Config, config_path: Optional[str] = None) -> None:
    """
    Save configuration to YAML file.

    Args:
        config: Config object to save
        config_path: Path to save configuration (optional)

    Raises:
        ConfigError: If configuration cannot be saved
    """
    if config_path:
        yaml_path = Path(config_path)
    else:
        yaml_path = Path(config.config_dir) / "config.yaml"

    yaml_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(yaml_path, "w", encoding="utf-8") as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
    except IOError as e:
        raise ConfigError(f"Failed to save config file: {e}", {"path": str(yaml_path)})
