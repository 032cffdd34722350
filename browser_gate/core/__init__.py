"""Core utilities and shared application primitives.

Modules in this package should be framework-agnostic where possible and
focused on configuration, shared types, and request middleware.
"""
