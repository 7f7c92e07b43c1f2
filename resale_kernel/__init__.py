"""
Resale Kernel - value objects, entities and infrastructure shared by the
advertising-budget resale dashboard.

- Decimal-only money with a single, documented coercion policy
- Immutable entity DTOs decoded from backend payloads
- Calendar periods for reporting buckets
- Typed exceptions and structured JSON logging
"""

__version__ = "0.1.0"
