# affiliate_system/utils/chain_walker.py
"""
Safe sponsor chain walking utilities.
Prevents infinite loops on corrupted sponsor links.
"""
from dataclasses import dataclass
from typing import Callable, List, Optional
import logging

from affiliate_system.config.constants import MAX_CHAIN_DEPTH

logger = logging.getLogger(__name__)

SponsorLookup = Callable[[str], Optional[str]]


@dataclass
class WalkResult:
    """Outcome of an upline walk."""
    processed: int = 0
    cycle_detected: bool = False
    cycle_at: Optional[str] = None


class ChainWalker:
    """
    Walks the upline of an affiliate through a sponsor lookup.

    The lookup is injected so the walker can run against the database
    (NetworkService.get_sponsor) or a plain dict in tests.
    """

    def __init__(self, get_sponsor: SponsorLookup):
        self.get_sponsor = get_sponsor

    def walk_upline(
            self,
            start_id: str,
            callback: Callable[[str, int], bool],
            max_depth: int = MAX_CHAIN_DEPTH
    ) -> WalkResult:
        """
        Walk up the sponsor chain, calling callback for each sponsor.

        Args:
            start_id: Affiliate whose upline is walked (not passed to callback)
            callback: Function(affiliate_id, level) -> continue_walking (bool)
            max_depth: Number of levels to ascend at most

        Returns:
            WalkResult; cycle_detected is set when a sponsor id repeats

        Example:
            def collect(affiliate_id, level):
                print(f"Level {level}: {affiliate_id}")
                return True  # Continue walking

            walker.walk_upline("aff-1", collect, max_depth=3)
        """
        result = WalkResult()
        visited = {start_id}
        current_id = start_id
        level = 1

        while level <= max_depth:
            sponsor_id = self.get_sponsor(current_id)
            if not sponsor_id:
                logger.debug(f"Chain of {start_id} ends at {current_id} (level {level - 1})")
                break

            # Check for cycles
            if sponsor_id in visited:
                logger.error(
                    f"Cycle detected in sponsor chain of {start_id}: "
                    f"{current_id} -> {sponsor_id} at level {level}"
                )
                result.cycle_detected = True
                result.cycle_at = sponsor_id
                break

            visited.add(sponsor_id)

            should_continue = callback(sponsor_id, level)
            result.processed += 1

            if not should_continue:
                break

            current_id = sponsor_id
            level += 1

        return result

    def get_upline_chain(self, start_id: str, max_depth: int = MAX_CHAIN_DEPTH) -> List[str]:
        """
        Get list of affiliate ids in upline chain.

        Returns:
            Ids from immediate sponsor upwards
        """
        chain = []

        def collect(affiliate_id, level):
            chain.append(affiliate_id)
            return True

        self.walk_upline(start_id, collect, max_depth)
        return chain

    def would_create_cycle(self, affiliate_id: str, sponsor_id: str) -> bool:
        """
        Check whether making sponsor_id the parent of affiliate_id closes a loop.

        True when sponsor_id is affiliate_id itself, when affiliate_id already
        appears in sponsor_id's upline, or when that upline is itself cyclic.
        """
        if affiliate_id == sponsor_id:
            return True

        found = [False]

        def check(upline_id, level):
            if upline_id == affiliate_id:
                found[0] = True
                return False
            return True

        result = self.walk_upline(sponsor_id, check, MAX_CHAIN_DEPTH)
        return found[0] or result.cycle_detected
