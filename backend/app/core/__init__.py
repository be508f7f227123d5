"""Core Layer - domain types, errors, pure transforms and boundary Protocols.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Transforms (geo_encoder, structured_text, social_posts) are pure and deterministic
"""
