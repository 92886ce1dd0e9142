"""
Infrastructure layer package.

This package contains modules for interacting with the outside world:
- Dataset file discovery
- Table serialization
- JSON sidecar decoding
- Logging configuration
- Path utilities
"""
