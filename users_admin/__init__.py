"""
Users admin client - Three-layer architecture for the admin API users resource.

Layers:
- core: Typed data model, async HTTP client, response validation
- sdk: High-level UsersAdminClient with nice ergonomics
- cli: Command-line interface
"""

from users_admin.sdk import UsersAdminClient

__version__ = "0.1.0"
__all__ = ["UsersAdminClient"]
