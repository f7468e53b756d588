"""Shardbook reader package.

This package provides the narrative-state and puzzle services for the
Shardbook branching story, including:

- Persistent per-reader state (visited choices, captured fragments, attempts)
- Randomised layout of the entry page choices
- The vanish-then-navigate transition between pages
- Fragment capture on fragment-reveal pages
- Ordering puzzle verification and full narrative reconstruction
- The Flask reader application serving every page
"""
