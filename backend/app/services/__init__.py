# Services package init
"""
Storefront Backend — Services Layer
=====================================

Business logic between routes (HTTP) and the database (persistence).
Services take an AsyncSession per call, apply business rules, and return
response schemas or raise application exceptions.

Service Inventory:
    - AuthService: bcrypt password hashing and bearer token issue/verify
    - FileService: image upload validation, storage, and lookup
    - UserService: registration, login, profile, password, profile picture
    - CatalogService: product CRUD, image uploads, category membership

All four are constructed once by create_app() from the app's Settings.
"""
