"""Event names consumed by the CMS sync service."""

PRODUCT_CREATED = "product.created"
PRODUCT_UPDATED = "product.updated"
PRODUCT_DELETED = "product.deleted"

VARIANT_CREATED = "product-variant.created"
VARIANT_UPDATED = "product-variant.updated"
VARIANT_DELETED = "product-variant.deleted"

COLLECTION_CREATED = "product-collection.created"
COLLECTION_UPDATED = "product-collection.updated"
COLLECTION_DELETED = "product-collection.deleted"

CATEGORY_CREATED = "product-category.created"
CATEGORY_UPDATED = "product-category.updated"
CATEGORY_DELETED = "product-category.deleted"

# Full resync triggers (emitted by the admin sync endpoint)
PRODUCTS_SYNC = "cms-products.sync"
COLLECTIONS_SYNC = "cms-collections.sync"
CATEGORIES_SYNC = "cms-categories.sync"
ALL_SYNC = "cms.sync"

RESYNC_EVENTS = (PRODUCTS_SYNC, COLLECTIONS_SYNC, CATEGORIES_SYNC)
