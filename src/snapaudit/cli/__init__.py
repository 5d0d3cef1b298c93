#!/usr/bin/env python3
"""
snapaudit CLI package.
"""

from .parsers import build_parser, main
from .utils import SNAPAUDIT_CONFIG_FILE, console, create_platform

__all__ = [
    "build_parser",
    "main",
    "SNAPAUDIT_CONFIG_FILE",
    "console",
    "create_platform",
]
