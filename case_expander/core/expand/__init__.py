"""Deterministic case expansion.

Expansion is a pure function of the declared slots and the strategy: the same
inputs always yield the same cases in the same order, so results can be
compared across runs and reported per case.
"""
