"""Intent parsing and validation.

The intent layer converts a natural-language question about a wallet's lending positions into a
strict `QueryIntent` object, which is then compiled into deterministic SQL.
"""
