"""
Portcullis Backend - Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [CORS] → [Request ID] → [Logging] → [Security Headers]
            → [Error Handler] → [Rate Limit] → Route (auth guard, validation)

    - Request ID first so every later log line carries it
    - Logging outside the error handler sees the final status of failures
    - Security headers outside the error handler also cover error envelopes
    - Error handler outside the rate limiter turns its 429 into an envelope
"""
