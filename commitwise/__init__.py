"""
commitwise: rank, budget and split large working-directory changes into
small, reviewable commit recommendations.
"""

from __future__ import annotations

__version__ = "0.1.0"
