"""
Practice Package

Wires Discord gateway events to the practice room service.
"""

from .events import PracticeEvents

__all__ = ["PracticeEvents"]
