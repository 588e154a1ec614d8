# Services package
#
# Module structure:
# - product_service.py: Business logic used by the routes
# - product_store.py: Store interface, snapshot fallback/seed policy, backend factory
# - json_store.py / redis_store.py / mongo_store.py / sql_store.py: one store per backend
# - auth.py: API key check for mutating requests
# - env_utils.py: Environment value helpers

from .product_service import ProductService
from .product_store import DeleteResult, ProductListing, ProductStore, create_store

__all__ = [
    'ProductService',
    'ProductStore',
    'ProductListing',
    'DeleteResult',
    'create_store',
]
