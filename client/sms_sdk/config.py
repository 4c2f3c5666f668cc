"""
Client configuration

Values are resolved from explicit arguments, then environment variables, then
a JSON config file, then defaults. The config file lives at
``$XDG_CONFIG_HOME/sms_sdk/config.json`` unless ``SMS_API_CONFIG`` points
elsewhere:

    {
      "api_key": "sk_live_...",
      "base_url": "https://api.sms-sdk.dev",
      "timeout": 30,
      "webhook_secret": "whsec_...",
      "default_sender": "+15550001111"
    }
"""

import os
import json
import logging
from typing import Optional

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.sms-sdk.dev"
DEFAULT_TIMEOUT = 30


def get_default_config_dir() -> str:
    """Get the default configuration directory following XDG standards"""
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return os.path.join(xdg_config_home, "sms_sdk")

    home = os.environ.get("HOME")
    if home:
        return os.path.join(home, ".config", "sms_sdk")

    # Last resort: current directory
    return os.path.join(os.getcwd(), ".config", "sms_sdk")


class SMSAPIConfig:
    """Configuration for SMS API client"""

    def __init__(self, config_path: Optional[str] = None, api_key: Optional[str] = None,
                 base_url: Optional[str] = None, timeout: Optional[float] = None,
                 webhook_secret: Optional[str] = None, default_sender: Optional[str] = None):
        explicit_path = config_path is not None
        if config_path is None:
            config_path = os.environ.get("SMS_API_CONFIG")
            explicit_path = config_path is not None
            if config_path is None:
                config_path = os.path.join(get_default_config_dir(), "config.json")

        self.config_path = config_path
        self.api_key: str = ""
        self.base_url: str = DEFAULT_BASE_URL
        self.timeout: float = DEFAULT_TIMEOUT
        self.webhook_secret: Optional[str] = None
        self.default_sender: Optional[str] = None

        self._load_config(explicit_path)
        self._apply_env()

        # Explicit arguments win over everything else
        if api_key is not None:
            self.api_key = api_key
        if base_url is not None:
            self.base_url = base_url
        if timeout is not None:
            self.timeout = timeout
        if webhook_secret is not None:
            self.webhook_secret = webhook_secret
        if default_sender is not None:
            self.default_sender = default_sender

        self._validate()

    def _load_config(self, required: bool):
        """Load configuration from file"""
        if not os.path.exists(self.config_path):
            if required:
                raise FileNotFoundError(f"Config file not found: {self.config_path}")
            logger.debug(f"No config file at {self.config_path}, using environment/arguments")
            return

        with open(self.config_path, 'r') as f:
            try:
                config_data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError(f"Invalid JSON in config file {self.config_path}: {e}") from e

        if not isinstance(config_data, dict):
            raise ConfigError(f"Config file {self.config_path} must contain a JSON object")

        self.api_key = config_data.get('api_key', self.api_key)
        self.base_url = config_data.get('base_url', self.base_url)
        self.timeout = config_data.get('timeout', self.timeout)
        self.webhook_secret = config_data.get('webhook_secret')
        self.default_sender = config_data.get('default_sender')
        logger.debug(f"Loaded config from {self.config_path}")

    def _apply_env(self):
        env_map = {
            'SMS_API_KEY': 'api_key',
            'SMS_API_BASE_URL': 'base_url',
            'SMS_WEBHOOK_SECRET': 'webhook_secret',
        }
        for env_name, attr in env_map.items():
            value = os.environ.get(env_name)
            if value:
                setattr(self, attr, value)

    def _validate(self):
        if not self.api_key:
            raise ConfigError("Missing required config field: api_key")

        if not self.base_url:
            raise ConfigError("Missing required config field: base_url")
        self.base_url = self.base_url.rstrip('/')

        try:
            self.timeout = float(self.timeout)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"timeout must be a number, got {self.timeout!r}") from e
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout}")

    def __repr__(self):
        # Never include api_key or webhook_secret
        return f"SMSAPIConfig(base_url={self.base_url!r}, timeout={self.timeout}, config_path={self.config_path!r})"


def parse_endpoint_info(config_path: str) -> SMSAPIConfig:
    """
    Reads a config file to get the API key, base URL and webhook secret

    Args:
        config_path: Path to the configuration file

    Returns:
        SMSAPIConfig: Configuration object
    """
    return SMSAPIConfig(config_path)
