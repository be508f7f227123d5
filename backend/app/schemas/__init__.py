"""Pydantic Schemas - request/response validation for API endpoints.

Invariants:
    - Schemas validate at system boundary (user input, API responses, cache payloads)
    - Domain types from core/ used for enum fields
"""
