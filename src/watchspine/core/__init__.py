"""
Core primitives shared by the sync and analytics engines.

- errors:      typed error hierarchy
- logging:     structlog configuration and step timing
- timestamps:  UTC helpers and tolerant timestamp parsing
- cursors:     per-channel sync cursors
- settings:    pydantic-settings process configuration
"""
