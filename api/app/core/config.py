"""Application configuration."""
import sys
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "postgresql://clearance_user:clearance_pass@db:5432/clearance_db"

    # Environment configuration
    ENVIRONMENT: str = "development"  # "development" or "production"
    LOG_LEVEL: str = "INFO"

    # CORS configuration - comma-separated origins
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Clearance workflow
    APPLICATION_NUMBER_PREFIX: str = "CLR"
    REJECTION_REMARKS_MIN_LENGTH: int = 10

    # Read projections
    RECENT_ACTIVITY_LIMIT: int = 5
    PROJECTION_CACHE_TTL_SECONDS: int = 60
    PROJECTION_CACHE_MAX_ENTRIES: int = 256

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def get_cors_origins(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    def validate_production_settings(self) -> None:
        """Validate settings for production environment.

        Raises SystemExit if the database is misconfigured for production.
        """
        if self.ENVIRONMENT == "production":
            if self.DATABASE_URL.startswith("sqlite"):
                print("FATAL: SQLite is not supported in production!", file=sys.stderr)
                print("Set DATABASE_URL to a PostgreSQL connection string.", file=sys.stderr)
                sys.exit(1)

            if self.PROJECTION_CACHE_TTL_SECONDS > 600:
                print("WARNING: Projection cache TTL exceeds 10 minutes in production!", file=sys.stderr)


settings = Settings()
# Validate on startup
settings.validate_production_settings()
