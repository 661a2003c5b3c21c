"""
Core package — cross-cutting concerns.

Modules:
    config          — environment variables & settings
    logging_config  — structured logging
    errors          — exception hierarchy & CLI error reporting
    health          — connectivity checks
    database        — SQLAlchemy connection
    cache           — Redis client & helpers
"""
