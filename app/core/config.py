# app/core/config.py
import os
from typing import Dict, List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv
from functools import lru_cache

# Determine the base directory of the project (where app/ and main.py live)
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# This will be used when running the app normally (e.g., with uvicorn)
# For tests, conftest.py sets the environment before the app is imported
DOTENV = os.getenv("DOTENV_PATH", os.path.join(BASE_DIR, '.env'))
if os.path.exists(DOTENV):
    load_dotenv(dotenv_path=DOTENV)

class Settings(BaseSettings):
    # App Environment
    ENVIRONMENT: str = "development"
    API_V1_STR: str = "/api/v1"

    model_config = SettingsConfigDict(
         case_sensitive=True,
         env_file_encoding = 'utf-8'
     )

    # Firebase
    FIREBASE_SERVICE_ACCOUNT_KEY_PATH: str = "service-account.json"

    # Sentry
    SENTRY_DSN: Optional[str] = None

    # Rate limits (slowapi syntax, e.g. "30/minute")
    RATE_LIMIT_DEFAULT: str = "120/minute"
    PLACES_READ_RATE_LIMIT: str = "60/minute"
    PLACES_WRITE_RATE_LIMIT: str = "30/minute"

    # Group memberships for the in-memory place store, as JSON: {"<groupId>": ["<userId>", ...]}
    PLACE_GROUP_MEMBERS: Dict[str, List[str]] = {}

# Use lru_cache to load settings only once in production/development,
# but for testing, we want to be able to reload it.
if os.getenv('ENVIRONMENT') == 'test':
    def get_settings() -> Settings:
        """Get settings without caching for tests."""
        return Settings()
else:
    @lru_cache()
    def get_settings() -> Settings:
        """Get cached settings for production/development."""
        return Settings()

# Create a singleton instance accessible throughout the app
settings = get_settings()
