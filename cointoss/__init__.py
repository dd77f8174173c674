"""
Animica private coin-toss package.

Round-based betting over private bet notes:
- bettors escrow a fixed amount and record a private bet note per round,
- the round is rolled once the bet window closes and the aggregated
  encrypted randomness is handed to an external resolver,
- the resolver's answer is authenticated by revealing its private key,
- winners reveal their notes and claim an equal share of the pool.

Only light, stable exports are surfaced here to avoid import cycles.
"""

from __future__ import annotations

from .version import __version__

__all__ = ["__version__"]
