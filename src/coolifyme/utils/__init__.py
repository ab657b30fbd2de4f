# ABOUTME: Utilities package initialization for coolifyme
# ABOUTME: Contains the HTTP client, transport, retry, logging and .env helpers

"""
coolifyme Utilities Package

Shared utilities:
    - client.py: PlatformClient wrapper around httpx.AsyncClient
    - transport.py: Authenticating and tracing httpx transport
    - retry.py: Timeout and backoff policy for logical operations
    - logging.py: Structured logging with invocation IDs
    - redact.py: Secret masking for log output
    - envfile.py: .env file parsing, rendering and safe file access
"""
