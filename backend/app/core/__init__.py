"""Core infrastructure shared by every bounded context.

- config: environment-driven settings
- errors: error hierarchy
- logging: structlog-based structured logging
- domain: entity and aggregate base classes
- events: domain events and the in-process event bus
"""
