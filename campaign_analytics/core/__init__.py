"""
Core infrastructure package.

Provides:
- Configuration management via pydantic-settings
- Async PostgreSQL connectivity via asyncpg

FastAPI dependencies live in campaign_analytics.core.dependencies and are
imported from there directly, since they reference the services layer.

Usage Examples:
    from campaign_analytics.core import get_settings
    settings = get_settings()
    print(settings.fetch_page_size)

    from campaign_analytics.core import init_db, close_db

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await init_db()
        yield
        await close_db()
"""

# =============================================================================
# Re-exports from campaign_analytics.core.config
# =============================================================================
from campaign_analytics.core.config import Settings, get_settings

# =============================================================================
# Re-exports from campaign_analytics.core.database
# =============================================================================
from campaign_analytics.core.database import init_db, close_db

__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Database pool lifecycle (from database.py)
    'init_db',
    'close_db',
]
