"""
Cross-Chain Split Router

- calculate_optimal_split: gas-weighted allocation
- CrossChainSplitRouter: escrow, execution and inbound legs
"""

from .allocation import calculate_optimal_split
from .router import CrossChainSplitRouter

__all__ = ["calculate_optimal_split", "CrossChainSplitRouter"]
