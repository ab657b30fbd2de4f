# ABOUTME: coolifyme package initialization
# ABOUTME: Exposes version information for the CLI and client layer

"""
coolifyme - command-line client and async API layer for a self-hosted Coolify
platform.

=============================================================================
PACKAGE STRUCTURE OVERVIEW
=============================================================================

coolifyme/
├── __init__.py          <- YOU ARE HERE: Package entry point
├── cli.py               <- click command tree (thin surface over the core)
├── config.py            <- Profile models, env aliases, resolve_config()
├── errors.py            <- Exception hierarchy
├── profiles.py          <- YAML profile store on disk
├── utils/
│   ├── client.py        <- PlatformClient: HTTP lifecycle and status mapping
│   ├── transport.py     <- Bearer auth + request/response tracing
│   ├── retry.py         <- Per-call timeout with exponential backoff
│   ├── logging.py       <- structlog configuration
│   ├── redact.py        <- Secret masking for log events
│   └── envfile.py       <- .env parsing and writing
├── resources/           <- One facade per Platform resource kind
└── tools/
    ├── deploy.py        <- Deployment triggers and the watch loop
    ├── envsync.py       <- .env export / import / sync / cleanup
    └── bulk.py          <- Bounded-concurrency fan-out
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
