"""Foundation utilities shared by the client and helper packages.

This package provides:
- Error types used across the library
- Required and optional environment variable getters
- Retry policies and backoff strategies built on tenacity
- Session factories and body encoders for HTTP clients
- Structured JSON logging with sampling and request logs
"""
