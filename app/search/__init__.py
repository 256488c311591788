"""
Unified search and discovery package.

Exposes one blueprint (see `routes.py`) that searches products and shops
together, serves autocomplete suggestions and trending searches, and manages
each user's search history.
"""
