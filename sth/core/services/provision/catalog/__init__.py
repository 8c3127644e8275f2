"""
Recipe catalog — ``__init__.py`` re-exports index functions.
"""

from sth.core.services.provision.catalog.recipe_index import (  # noqa: F401
    build_index,
    fetch_recipe,
    fetch_recipe_index,
    find_recipe,
    generate_index,
    get_recipe_index,
    index_key,
    list_recipes,
    parse_index,
    scan_recipes,
)
