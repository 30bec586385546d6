import os


class Config:
    """Base configuration class with common settings."""

    # Flask settings
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-in-production")

    # Azure deployment target
    AZURE_SUBSCRIPTION_ID = os.getenv("AZURE_SUBSCRIPTION_ID", "")
    AZURE_TENANT_ID = os.getenv("AZURE_TENANT_ID", "")
    AZURE_CLIENT_ID = os.getenv("AZURE_CLIENT_ID", "")
    AZURE_CLIENT_SECRET = os.getenv("AZURE_CLIENT_SECRET", "")
    AZURE_RESOURCE_GROUP = os.getenv("AZURE_RESOURCE_GROUP", "")
    AZURE_LOCATION = os.getenv("AZURE_LOCATION", "eastus")

    # Provisioner settings
    PROVISIONER_DRY_RUN = os.getenv("PROVISIONER_DRY_RUN", "False").lower() == "true"
    PROVISIONER_STRICT_VALIDATION = (
        os.getenv("PROVISIONER_STRICT_VALIDATION", "True").lower() == "true"
    )
    PROVISIONER_RETRY_ATTEMPTS = int(os.getenv("PROVISIONER_RETRY_ATTEMPTS", "3"))
    PROVISIONER_RETRY_DELAY = float(os.getenv("PROVISIONER_RETRY_DELAY", "1.0"))
    PROVISIONER_RETRY_BACKOFF = float(os.getenv("PROVISIONER_RETRY_BACKOFF", "2.0"))
    PROVISIONER_TIMEOUT = int(os.getenv("PROVISIONER_TIMEOUT", "1800"))
    PROVISIONER_MAX_CONCURRENCY = int(os.getenv("PROVISIONER_MAX_CONCURRENCY", "5"))

    # Logging settings
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # API settings
    JSON_SORT_KEYS = False


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True
    TESTING = False
    PROPAGATE_EXCEPTIONS = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")


class TestingConfig(Config):
    """Testing configuration."""

    TESTING = True
    DEBUG = True

    # Never reach a real subscription from tests
    PROVISIONER_DRY_RUN = True
    AZURE_SUBSCRIPTION_ID = "00000000-0000-0000-0000-000000000000"
    AZURE_RESOURCE_GROUP = "rg-test"
    PROVISIONER_RETRY_DELAY = 0.0


class ProductionConfig(Config):
    """Production configuration."""

    DEBUG = False
    TESTING = False

    # Production should have SECRET_KEY set
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


def provisioner_settings(settings):
    """Build the get_provisioner() configuration from loaded app settings.

    Args:
        settings: Mapping with the upper-case keys defined on Config (e.g. app.config).

    Returns:
        Dictionary of ProvisionerConfig keyword arguments.
    """
    return {
        "credentials": {
            "subscription_id": settings["AZURE_SUBSCRIPTION_ID"],
            "tenant_id": settings["AZURE_TENANT_ID"],
            "client_id": settings["AZURE_CLIENT_ID"],
            "client_secret": settings["AZURE_CLIENT_SECRET"],
            "resource_group": settings["AZURE_RESOURCE_GROUP"],
        },
        "region": settings["AZURE_LOCATION"],
        "timeout": settings["PROVISIONER_TIMEOUT"],
        "retry_attempts": settings["PROVISIONER_RETRY_ATTEMPTS"],
        "retry_delay": settings["PROVISIONER_RETRY_DELAY"],
        "retry_backoff": settings["PROVISIONER_RETRY_BACKOFF"],
        "max_concurrency": settings["PROVISIONER_MAX_CONCURRENCY"],
        "dry_run": settings["PROVISIONER_DRY_RUN"],
        "strict_validation": settings["PROVISIONER_STRICT_VALIDATION"],
    }
