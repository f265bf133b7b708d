"""
Shared Kernel Module
====================

Shared infrastructure used across bounded contexts (SLA and Complaints).

Architecture Pattern: Modular Monolith
- Each module (sla, complaints) is a bounded context
- Shared kernel contains only generic infrastructure: logging, request
  context, middleware

DO NOT add complaint or SLA business logic to the shared kernel.
"""

__version__ = "1.0.0"
