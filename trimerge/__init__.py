"""
trimerge - region-based three-way text merge.
"""

from trimerge.core.merge.three_way import perform_merge

__version__ = "1.0.0"

__all__ = ['perform_merge', '__version__']
