"""Tact Language Server: live compiler diagnostics for Tact contracts."""

__version__ = "0.1.0"
