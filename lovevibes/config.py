import os


def _env_flag(name):
    return os.environ.get(name, "").lower() in ("1", "true", "yes")


class Config:
    """Base configuration. Shared across all environments."""

    # --- Required ---
    SECRET_KEY = os.environ.get("SECRET_KEY")

    # Handle DATABASE_URL: some PaaS providers (Railway, Heroku) use
    # "postgres://" which SQLAlchemy 1.4+ doesn't accept.
    _db_url = os.environ.get("DATABASE_URL", "")
    if _db_url.startswith("postgres://"):
        _db_url = _db_url.replace("postgres://", "postgresql://", 1)
    SQLALCHEMY_DATABASE_URI = _db_url or None

    # --- Stripe ---
    STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET")
    # Replay window for webhook signatures, in seconds.
    STRIPE_WEBHOOK_TOLERANCE = int(os.environ.get("STRIPE_WEBHOOK_TOLERANCE", 300))
    STRIPE_PRICE_PLUS_MONTHLY = os.environ.get("STRIPE_PRICE_PLUS_MONTHLY")
    STRIPE_PRICE_PLUS_YEARLY = os.environ.get("STRIPE_PRICE_PLUS_YEARLY")
    STRIPE_PRICE_PLATINUM_MONTHLY = os.environ.get("STRIPE_PRICE_PLATINUM_MONTHLY")
    STRIPE_PRICE_PLATINUM_YEARLY = os.environ.get("STRIPE_PRICE_PLATINUM_YEARLY")
    CREDITS_CURRENCY = os.environ.get("CREDITS_CURRENCY", "usd")

    APP_BASE_URL = os.environ.get("APP_BASE_URL", "http://localhost:3000")

    # --- Auth tokens ---
    AUTH_TOKEN_MAX_AGE = int(os.environ.get("AUTH_TOKEN_MAX_AGE", 60 * 60 * 24 * 7))

    # --- SQLAlchemy ---
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }

    # --- Rate limiting ---
    RATELIMIT_ENABLED = not _env_flag("RATELIMIT_DISABLED")

    @staticmethod
    def validate():
        """Fail fast if required env vars are missing."""
        required = [
            "SECRET_KEY",
            "DATABASE_URL",
            "STRIPE_SECRET_KEY",
            "STRIPE_WEBHOOK_SECRET",
            "APP_BASE_URL",
        ]
        missing = [v for v in required if not os.environ.get(v)]
        if missing:
            raise RuntimeError(
                f"Missing required environment variables: {', '.join(missing)}"
            )


class DevConfig(Config):
    """Local development."""

    DEBUG = True


class TestConfig(Config):
    """Testing — in-memory SQLite, fake Stripe credentials."""

    TESTING = True
    DEBUG = True
    SECRET_KEY = "test-secret-key-not-for-production"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    STRIPE_SECRET_KEY = "sk_test_fake"
    STRIPE_WEBHOOK_SECRET = "whsec_test_fake"
    STRIPE_WEBHOOK_TOLERANCE = 300
    STRIPE_PRICE_PLUS_MONTHLY = "price_plus_monthly_test"
    STRIPE_PRICE_PLUS_YEARLY = "price_plus_yearly_test"
    STRIPE_PRICE_PLATINUM_MONTHLY = "price_platinum_monthly_test"
    STRIPE_PRICE_PLATINUM_YEARLY = None  # left unset to exercise the misconfigured path
    APP_BASE_URL = "http://localhost:3000"
    RATELIMIT_ENABLED = False  # disable rate limiting in tests

    @staticmethod
    def validate():
        """Skip validation in test mode — everything is hardcoded."""
        pass


class ProdConfig(Config):
    """Production."""

    DEBUG = False


config_by_name = {
    "development": DevConfig,
    "production": ProdConfig,
    "testing": TestConfig,
}
