"""Core: configuration, constants, exception handlers, lifespan, rate limiting."""
