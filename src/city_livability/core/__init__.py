"""Core business logic: scoring model, domain models and the error taxonomy.

This module is framework-agnostic and performs no I/O. The stores, the
scoring service, and the MCP server all import from here.
"""
