"""
Storefront Backend — Pydantic Request/Response Schemas
========================================================

Request schemas declare which fields are required and which are optional;
FastAPI validates them before any service or database call. Response
schemas control exactly what leaves the API (the user's password hash is
never part of one).
"""
