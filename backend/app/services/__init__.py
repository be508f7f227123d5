"""Services Layer - coordination logic over the database and collaborators.

Invariants:
    - Services depend on core Protocols, never on concrete adapters
    - One service per concern; construction is per request (see api/deps.py)
"""
