# ABOUTME: Cross-cutting utilities and shared infrastructure
# ABOUTME: Supporting services: logging and console table rendering

"""
Utils Layer: Shared infrastructure and cross-cutting concerns

This layer provides:
- Logging configuration and structured loggers
- Rich table builders for the inspection CLI

Data Flow: Supporting services for all other layers
"""

from . import logging

__all__ = [
    "logging",
]
