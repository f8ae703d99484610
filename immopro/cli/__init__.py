"""
Command line tools for the operators of the ImmoPro platform.

Run ``python -m immopro.cli --help`` (or the ``immopro-admin`` script) to list
the administration commands.
"""

from .admin import build_parser, main

__all__ = ["build_parser", "main"]
