"""Configuration management for the photonctl application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

class Config:
    """Application configuration with sensible defaults."""

    # Control plane endpoint
    PHOTON_TARGET: str = os.getenv("PHOTON_TARGET", "")
    PHOTON_TOKEN: str = os.getenv("PHOTON_TOKEN", "")
    PHOTON_TENANT: str = os.getenv("PHOTON_TENANT", "")
    PHOTON_PROJECT: str = os.getenv("PHOTON_PROJECT", "")

    # Timeouts (in seconds)
    API_TIMEOUT: int = int(os.getenv("API_TIMEOUT", "30"))
    TASK_POLL_TIMEOUT: float = float(os.getenv("TASK_POLL_TIMEOUT", "0"))  # 0 disables
    CLUSTER_POLL_TIMEOUT: float = float(os.getenv("CLUSTER_POLL_TIMEOUT", "3600"))  # 60 minutes

    # Polling
    TASK_POLL_DELAY: float = float(os.getenv("TASK_POLL_DELAY", "2.0"))
    CLUSTER_POLL_DELAY: float = float(os.getenv("CLUSTER_POLL_DELAY", "2.0"))
    PROGRESS_INTERVAL: float = float(os.getenv("PROGRESS_INTERVAL", "0.25"))

    # Retry configuration
    MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "3"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT: str = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Security
    REDACT_KEYS: tuple = ("token", "password", "secret", "ssh_key", "authorization")

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration."""
        required = {
            "PHOTON_TARGET": cls.PHOTON_TARGET,
        }
        missing = [k for k, v in required.items() if not v]
        if missing:
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")

# Don't validate on import to allow for dynamic configuration
# Call Config.validate() explicitly when needed
