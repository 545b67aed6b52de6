"""
Solvyn: headless computation resolution.

Routes free-text input through registered plugins, a deterministic local
evaluator, and (when policy allows) an external AI provider, recording every
completed attempt in a bounded, swappable history store.
"""

__version__ = "0.2.0"
