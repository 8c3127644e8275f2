"""
L2 Resolver — ``__init__.py`` re-exports all resolver functions.

Resolvers READ remote metadata (GitHub API, checksum files, scraped
pages) but never touch the local filesystem.
"""

from sth.core.services.provision.resolver.checksum_resolution import (  # noqa: F401
    is_sha256,
    resolve_checksum,
)
from sth.core.services.provision.resolver.recipe_resolution import (  # noqa: F401
    resolve_artifact,
    resolve_recipe,
    template_context,
)
from sth.core.services.provision.resolver.version_resolution import (  # noqa: F401
    VERSION_STRATEGIES,
    resolve_version,
)
