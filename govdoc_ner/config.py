import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

HUGGINGFACE_NER_URL = "https://api-inference.huggingface.co/models/monologg/koelectra-base-v3-discriminator"


def _optional_env(*names: str) -> Optional[str]:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


class Config:
    # NER backends
    NER_PRIMARY_URL: Optional[str] = _optional_env("NER_PRIMARY_URL", "NER_CLOUDFLARE_WORKER_URL")
    HUGGINGFACE_API_KEY: Optional[str] = _optional_env("HUGGINGFACE_API_KEY")
    NER_SECONDARY_URL: str = os.getenv("NER_SECONDARY_URL", HUGGINGFACE_NER_URL)
    NER_TIMEOUT_S: float = float(os.getenv("NER_TIMEOUT_S", "10"))
    NER_CONNECT_TIMEOUT_S: float = float(os.getenv("NER_CONNECT_TIMEOUT_S", "5"))
    NER_DEFAULT_CONFIDENCE: float = float(os.getenv("NER_DEFAULT_CONFIDENCE", "0.5"))

    # Grounding thresholds
    DATE_FUZZY_THRESHOLD: float = float(os.getenv("DATE_FUZZY_THRESHOLD", "0.7"))
    TEXT_MATCH_THRESHOLD: float = float(os.getenv("TEXT_MATCH_THRESHOLD", "0.7"))
    NAME_MATCH_THRESHOLD: float = float(os.getenv("NAME_MATCH_THRESHOLD", "0.8"))
    PHRASE_MATCH_THRESHOLD: float = float(os.getenv("PHRASE_MATCH_THRESHOLD", "0.6"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_DIR: Path = Path(os.getenv("LOG_DIR", "logs"))

    @classmethod
    def validate(cls):
        """Validate configuration"""
        thresholds = {
            "NER_DEFAULT_CONFIDENCE": cls.NER_DEFAULT_CONFIDENCE,
            "DATE_FUZZY_THRESHOLD": cls.DATE_FUZZY_THRESHOLD,
            "TEXT_MATCH_THRESHOLD": cls.TEXT_MATCH_THRESHOLD,
            "NAME_MATCH_THRESHOLD": cls.NAME_MATCH_THRESHOLD,
            "PHRASE_MATCH_THRESHOLD": cls.PHRASE_MATCH_THRESHOLD,
        }
        for name, value in thresholds.items():
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1, got {value}")

        if cls.NER_TIMEOUT_S <= 0 or cls.NER_CONNECT_TIMEOUT_S <= 0:
            raise ValueError(f"NER_TIMEOUT_S and NER_CONNECT_TIMEOUT_S must be positive, got {cls.NER_TIMEOUT_S} and {cls.NER_CONNECT_TIMEOUT_S}")

        return True


config = Config()


@dataclass(frozen=True)
class NERBackendConfig:
    """Remote NER backends handed to the extraction orchestrator.

    Leaving both ``primary_url`` and ``secondary_key`` unset is the explicit
    "no backend configured" state.
    """

    primary_url: Optional[str] = None
    secondary_key: Optional[str] = None
    secondary_url: str = HUGGINGFACE_NER_URL
    timeout_s: float = 10.0
    connect_timeout_s: float = 5.0
    default_confidence: float = 0.5

    @property
    def has_primary(self) -> bool:
        return bool(self.primary_url)

    @property
    def has_secondary(self) -> bool:
        return bool(self.secondary_key)

    @classmethod
    def from_env(cls, cfg: Config = config) -> "NERBackendConfig":
        return cls(
            primary_url=cfg.NER_PRIMARY_URL,
            secondary_key=cfg.HUGGINGFACE_API_KEY,
            secondary_url=cfg.NER_SECONDARY_URL,
            timeout_s=cfg.NER_TIMEOUT_S,
            connect_timeout_s=cfg.NER_CONNECT_TIMEOUT_S,
            default_confidence=cfg.NER_DEFAULT_CONFIDENCE,
        )
