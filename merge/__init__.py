"""
Canonical table build.

The engine replaces the canonical table from the approved roster rows and
then folds in every other staging relation, one set-based step at a time.

Usage:
    from merge.engine import MergeEngine

    built = await MergeEngine(session).build()
"""

__all__ = ["MergeEngine"]
