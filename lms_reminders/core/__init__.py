"""Configuration, clock and error types shared across the service."""
