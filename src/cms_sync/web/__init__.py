"""Web layer for the CMS sync service.

FastAPI application exposing storefront reads merged with CMS content and
the admin sync endpoints.
"""
