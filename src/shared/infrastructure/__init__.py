"""
Shared Infrastructure
=====================

Low-level technical concerns:
- Structured JSON logging with request context
"""
