import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

from notecalc.formatter import DecimalPrecision, FormattingConfig
from notecalc.keywords import ParserKeywords, parser_keywords, resolve_language

logger = logging.getLogger(__name__)

# --- Configuration ---
DEBUG_MODE = False  # Set to True to enable debug logging and the Flask debugger
SERVER_HOST = "0.0.0.0"
SERVER_PORT = 5200
FIAT_RATES_URL = "https://open.er-api.com/v6/latest/USD"
CRYPTO_PRICES_URL = "https://api.coingecko.com/api/v3/simple/price"
EXCHANGE_RATE_CACHE_TTL = 300  # Cache rates for 5 minutes (in seconds)
REQUEST_TIMEOUT = 5  # seconds

CONFIG_DIR = Path(os.path.expanduser("~")) / ".config" / "notecalc"
SETTINGS_FILE = CONFIG_DIR / "settings.json"
HISTORY_FILE = os.path.join(os.path.expanduser("~"), ".notecalc_history")

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


@dataclass
class Settings:
    """User preferences read at the start of every evaluation pass."""

    language: str = "en"
    use_thousands_separator: bool = True
    decimal_precision: str = "auto"

    def formatting_config(self) -> FormattingConfig:
        return FormattingConfig(
            use_thousands_separator=self.use_thousands_separator,
            decimal_precision=DecimalPrecision.parse(self.decimal_precision),
            duration_words=self.keywords().duration_words,
        )

    def keywords(self) -> ParserKeywords:
        return parser_keywords(self.language)

    def validate(self) -> "Settings":
        """Raise ValueError when the language or precision is unknown."""
        resolve_language(self.language)
        DecimalPrecision.parse(self.decimal_precision)
        return self


def load_settings(path: Optional[Path] = None) -> Settings:
    """Load settings from disk, falling back to defaults."""
    settings_file = Path(path) if path is not None else SETTINGS_FILE
    if not settings_file.exists():
        return Settings()
    try:
        with open(settings_file, "r") as f:
            data = json.load(f)
        settings = Settings(
            language=str(data.get("language", "en")),
            use_thousands_separator=bool(data.get("use_thousands_separator", True)),
            decimal_precision=str(data.get("decimal_precision", "auto")),
        )
        return settings.validate()
    except json.JSONDecodeError:
        logger.warning(f"Settings file {settings_file} is not valid JSON, using defaults")
        return Settings()
    except (ValueError, AttributeError) as e:
        logger.warning(f"Ignoring invalid settings in {settings_file}: {e}")
        return Settings()


def save_settings(settings: Settings, path: Optional[Path] = None) -> Path:
    settings_file = Path(path) if path is not None else SETTINGS_FILE
    settings_file.parent.mkdir(parents=True, exist_ok=True)
    with open(settings_file, "w") as f:
        json.dump(asdict(settings), f, indent=2)
    return settings_file
