"""
Analysis package for commitwise.

This package contains the commit-intelligence pipeline: importance
ranking, token budget allocation, complexity assessment and commit
boundary detection. Every function here is a pure transformation of
its inputs and performs no I/O.
"""
