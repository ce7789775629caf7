"""Adapters layer - Infrastructure implementations for sync operations.

This layer contains concrete implementations of the ports defined in the domain layer:
- CMSContentAPI: CMS REST implementation of ICMSContentAPI
- CMSFieldMapper: Field mapping implementation of IFieldMapper
- PostgresCommerceRepository: PostgreSQL implementation of ICommerceRepository
"""

from .cms_api_adapter import CMSContentAPI
from .field_mapper import CMSFieldMapper
from .postgres_commerce_repo import PostgresCommerceRepository

__all__ = [
    "CMSContentAPI",
    "CMSFieldMapper",
    "PostgresCommerceRepository",
]
