"""
Configuration management for the assessment validation engine.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()


class Config:
    """Application configuration settings."""

    # Base paths
    PACKAGE_DIR: Path = Path(__file__).parent
    PROJECT_ROOT: Path = PACKAGE_DIR.parent
    DATA_DIR: Path = PACKAGE_DIR / "data"
    CLAIM_RULES_PATH: Path = Path(
        os.getenv("CLAIM_RULES_PATH", str(DATA_DIR / "claim_rules.yaml"))
    )

    # Logging settings
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Extraction settings
    DEEP_SEARCH_MAX_DEPTH: int = int(os.getenv("DEEP_SEARCH_MAX_DEPTH", "10"))
    WORKER_THREADS: int = int(os.getenv("WORKER_THREADS", "1"))

    # Validation settings
    MAX_PRIORITY_DATA_REQUESTS: int = int(os.getenv("MAX_PRIORITY_DATA_REQUESTS", "5"))
    EFFICIENCY_MARGIN_OF_ERROR: float = float(os.getenv("EFFICIENCY_MARGIN_OF_ERROR", "0.1"))

    # Aggregation settings
    CONSISTENCY_TOLERANCE: float = float(os.getenv("CONSISTENCY_TOLERANCE", "0.25"))
