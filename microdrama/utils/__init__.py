"""Utility helpers for MicroDrama.

Submodules:
- time: UTC clock, naive-datetime normalization, calendar-month arithmetic
"""

__all__: list[str] = []
