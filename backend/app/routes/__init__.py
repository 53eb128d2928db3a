# Routes package init
"""
Storefront Backend — API Routes Package
=========================================

Route Inventory:
    - users.py:       /api/users/...        (accounts, auth, profile)
    - products.py:    /api/products/...     (catalog CRUD, image upload)
    - categories.py:  /api/categories/...   (category records)
    - uploads.py:     /uploads/{path}       (stored images)
    - health.py:      /health

Routes stay THIN: extract request data, call a service, return a schema.
Errors are raised as application exceptions and formatted by the global
handlers in main.py.
"""
