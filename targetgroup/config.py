import os


class Config:
    """Base configuration class with common settings."""

    # Flask settings
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-in-production")
    JSON_SORT_KEYS = False

    # Stabilization settings for the target group create handler
    POLL_RETRY_DELAY_SECONDS = float(os.getenv("POLL_RETRY_DELAY_SECONDS", "30"))
    STATE_POLL_RETRIES = int(os.getenv("STATE_POLL_RETRIES", "20"))
    DELETING_PROXY_STATE = os.getenv("DELETING_PROXY_STATE", "deleting")

    # AWS settings (credentials fall back to the default boto3 chain)
    AWS_REGION = os.getenv("AWS_REGION", "us-east-1")
    AWS_ACCESS_KEY_ID = os.getenv("AWS_ACCESS_KEY_ID")
    AWS_SECRET_ACCESS_KEY = os.getenv("AWS_SECRET_ACCESS_KEY")

    # Redis settings for resume-state persistence
    REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    REDIS_SOCKET_CONNECT_TIMEOUT = 5
    REDIS_SOCKET_TIMEOUT = 5
    RESUME_STATE_TTL_SECONDS = int(os.getenv("RESUME_STATE_TTL_SECONDS", "86400"))

    # Background scheduler
    SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "True").lower() == "true"

    # Logging settings
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True
    TESTING = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")


class TestingConfig(Config):
    """Testing configuration."""

    TESTING = True
    DEBUG = True

    # No waiting between polls in tests
    POLL_RETRY_DELAY_SECONDS = 0.0
    STATE_POLL_RETRIES = 3

    # Tests inject their own clients and run jobs inline
    SCHEDULER_ENABLED = False


class ProductionConfig(Config):
    """Production configuration."""

    DEBUG = False
    TESTING = False

    SECRET_KEY = os.getenv(
        "SECRET_KEY",
        "prod-key-must-be-set-via-env",
    )


# Configuration dictionary for easy selection
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(config_name=None):
    """Get configuration class based on environment.

    Args:
        config_name: Configuration name ('development', 'testing', 'production').
                    If None, uses FLASK_ENV environment variable or defaults to 'development'.

    Returns:
        Configuration class.
    """
    if config_name is None:
        config_name = os.getenv("FLASK_ENV", "development")

    config_class = config.get(config_name, DevelopmentConfig)
    return config_class
