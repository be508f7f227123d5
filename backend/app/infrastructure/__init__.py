"""Infrastructure Layer - external service adapters and cross-cutting concerns.

Invariants:
    - Adapters implement the Protocols in core/repository_protocols.py
    - Every outbound failure is mapped to UpstreamError; nothing is retried
"""
