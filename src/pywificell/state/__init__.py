"""State layer.

This package is the single source of truth for the logical state, the
rules deciding which actions follow each observation, the policy that
gates them and the persisted snapshot restoring them across restarts.
"""
