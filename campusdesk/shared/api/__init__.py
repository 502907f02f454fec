"""Shared HTTP layer: middleware, exception handlers, envelope and rate limits."""
