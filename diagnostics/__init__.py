"""Logging, tracing and path-safety helpers shared by the runtime packages."""
