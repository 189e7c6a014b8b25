"""
=============================================================================
HANDLERS MODULE
=============================================================================

A handler turns a parsed request into a response:

    ┌─────────┐            ┌───────────────────┐            ┌─────────────┐
    │ GET     │            │                   │            │ 200 OK      │
    │ /a.png  │ ─────────▶ │ StaticFileHandler │ ─────────▶ │ image/png   │
    │         │            │                   │            │ <open file> │
    └─────────┘            └───────────────────┘            └─────────────┘

This server has exactly one: StaticFileHandler, which maps targets onto
a document root and failures onto error pages.

=============================================================================
"""

from .static import StaticFileHandler

__all__ = [
    "StaticFileHandler",
]
