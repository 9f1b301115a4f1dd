"""Infrastructure layer: persistence, cache, security and service adapters."""
