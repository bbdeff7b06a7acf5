"""CLI package exports for top-level command entry points."""

from __future__ import annotations

from .main import VMMProvModalCLI, main

__all__ = ['VMMProvModalCLI', 'main']
