"""Relief Coordination Backend - geotagged incidents, cached lookups, live updates.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
