"""
Domain Layer - Pure Business Logic

This layer contains:
- Entities: the account status value object and its transitions
- Exceptions: errors raised by domain rules

No external dependencies allowed in this layer.
"""
