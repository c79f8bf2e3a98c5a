# ==============================================
# Configuration Management
# ==============================================
#
# PURPOSE:
#   Load and validate all configuration from environment
#   variables / .env file. Provides typed config objects
#   to all other modules.
#
# USAGE:
# ------
#   from dexusage.config import get_config
#   config = get_config()
#   print(config.store.file_path)
#   print(config.isa.supported_isas)
#
# ==============================================

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, List, Optional

from dotenv import load_dotenv

from dexusage.isa import supported_isas


DEFAULT_ABIS = ["arm64-v8a", "armeabi-v7a", "armeabi"]


@dataclass
class StoreConfig:
    """Where the usage file lives and how eagerly it is written."""
    data_dir: str = "data/system/"
    file_name: str = "package-dex-usage.list"
    write_delay_seconds: float = 10.0

    @property
    def file_path(self) -> Path:
        return Path(self.data_dir) / self.file_name


@dataclass
class IsaConfig:
    """ABIs supported by the device; the ISA vocabulary is derived from them."""
    supported_abis: List[str] = field(default_factory=lambda: list(DEFAULT_ABIS))

    @property
    def supported_isas(self) -> FrozenSet[str]:
        return supported_isas(self.supported_abis)


@dataclass
class LoggingConfig:
    """Logging configuration for the command line entry point."""
    level: str = "INFO"
    log_file: Optional[str] = None


@dataclass
class AppConfig:
    """Main application configuration."""
    store: StoreConfig = field(default_factory=StoreConfig)
    isa: IsaConfig = field(default_factory=IsaConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Singleton instance
_config_instance: Optional[AppConfig] = None


def _split_list(raw: str) -> List[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def load_config() -> AppConfig:
    """
    Build configuration from environment variables / .env file.

    Returns:
        AppConfig: A new configuration object
    """
    # Load .env file from project root
    env_path = Path(__file__).parent.parent / ".env"
    load_dotenv(dotenv_path=env_path)

    # Build store configuration
    store_config = StoreConfig(
        data_dir=os.getenv("DEX_USAGE_DIR", "data/system/"),
        file_name=os.getenv("DEX_USAGE_FILE", "package-dex-usage.list"),
        write_delay_seconds=float(os.getenv("DEX_USAGE_WRITE_DELAY_SECONDS", "10.0"))
    )

    # Build ISA configuration
    abis = os.getenv("DEX_USAGE_SUPPORTED_ABIS")
    isa_config = IsaConfig(
        supported_abis=_split_list(abis) if abis else list(DEFAULT_ABIS)
    )

    # Build logging configuration
    logging_config = LoggingConfig(
        level=os.getenv("DEX_USAGE_LOG_LEVEL", "INFO").upper(),
        log_file=os.getenv("DEX_USAGE_LOG_FILE") or None
    )

    return AppConfig(
        store=store_config,
        isa=isa_config,
        logging=logging_config
    )


def get_config() -> AppConfig:
    """
    Load configuration from environment variables / .env file.
    Returns the same singleton instance on repeated calls.

    Returns:
        AppConfig: Application configuration
    """
    global _config_instance

    if _config_instance is None:
        _config_instance = load_config()

    return _config_instance
