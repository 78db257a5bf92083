"""Utility helpers."""

from .flags import parse_flag

__all__ = ['parse_flag']
