"""Replica placement across storage nodes."""

import random
from typing import List, Optional, Sequence

from common.logging_config import get_logger
from common.types import Placement

logger = get_logger(__name__)


class ReplicaPlacementPlanner:
    """
    Decides which storage node receives which chunk number in each replication round.

    Every round draws a fresh random permutation of the node pool and walks it
    round-robin by chunk number. A chunk number never gets a node it already
    holds a replica on while an unused node remains.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        """
        Initialize planner.

        Args:
            rng: Randomness source; pass a seeded Random for reproducible plans
        """
        self.rng = rng or random.Random()

    def shuffle(self, hosts: Sequence[str]) -> List[str]:
        """Return a uniformly random permutation of hosts."""
        return self.rng.sample(list(hosts), len(hosts))

    def plan(
        self,
        num_chunks: int,
        hosts: Sequence[str],
        replication_level: int
    ) -> List[List[Placement]]:
        """
        Plan replica placement for a file.

        Args:
            num_chunks: Number of chunks in the file
            hosts: Storage node hosts available for this write
            replication_level: Number of rounds (replicas per chunk)

        Returns:
            One list of placements per round, each with one entry per chunk number

        Raises:
            ValueError: If hosts is empty or replication_level < 1
        """
        if not hosts:
            raise ValueError("No storage nodes to place chunks on")
        if replication_level < 1:
            raise ValueError(f"replication_level must be >= 1, got {replication_level}")

        num_hosts = len(hosts)
        if num_hosts < replication_level:
            logger.warning(
                f"Only {num_hosts} storage nodes for replication level {replication_level}; "
                f"some chunks will hold more than one replica on the same node"
            )

        usage = [dict() for _ in range(num_chunks)]
        rounds = []

        for round_index in range(replication_level):
            permutation = self.shuffle(hosts)
            round_plan = []

            for chunk_number in range(num_chunks):
                host = self._pick(permutation, chunk_number % num_hosts, usage[chunk_number])
                usage[chunk_number][host] = usage[chunk_number].get(host, 0) + 1
                round_plan.append(Placement(round_index, chunk_number, host))

            rounds.append(round_plan)

        logger.debug(
            f"Planned {num_chunks * replication_level} placements "
            f"({num_chunks} chunks x {replication_level} rounds) over {num_hosts} nodes"
        )
        return rounds

    @staticmethod
    def _pick(permutation: List[str], start: int, used: dict) -> str:
        """First node from `start` onwards holding the fewest replicas of this chunk."""
        best = None
        best_count = None

        for offset in range(len(permutation)):
            host = permutation[(start + offset) % len(permutation)]
            count = used.get(host, 0)
            if count == 0:
                return host
            if best_count is None or count < best_count:
                best, best_count = host, count

        return best
