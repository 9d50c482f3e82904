"""
CLI module for PagePal.

Provides command-line interface using Typer:
- text: Extract structured or simple page text
- visual: Capture viewport screenshots
- config: Configuration management
"""

from pagepal.cli.main import app

__all__ = ["app"]
