"""
Environment Configuration.

The environment is determined by the `SINKSWAP_ENV` environment variable and
controls which .env files are loaded.
"""

import os


def current_environment() -> str:
    return os.getenv("SINKSWAP_ENV", "development")


def get_env_files(env: str | None = None) -> tuple[str, ...]:
    """
    Returns the .env files to load, lowest priority first.

    Later files override earlier ones:
    1. `.env` (base defaults)
    2. `.env.local` (local overrides, gitignored)
    3. `.env.{environment}` (environment-specific)
    4. `.env.{environment}.local` (local overrides, gitignored)
    """
    env = env or current_environment()
    return (
        ".env",
        ".env.local",
        f".env.{env}",
        f".env.{env}.local",
    )
