"""Web Forx online storefront: catalog, client cart and order checkout."""

__version__ = "1.0.0"
