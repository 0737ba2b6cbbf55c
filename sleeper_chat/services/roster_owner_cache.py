"""
Session-scoped cache of roster ownership, keyed by (league_id, roster_id).
"""

import logging
from typing import Dict, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)


class RosterOwnerCache:
    """Maps (league_id, roster_id) to the owner's user ID for one chat session."""

    def __init__(self):
        self._owners: Dict[Tuple[str, str], Optional[str]] = {}

    def populate(self, league_id: str, rosters: Iterable[Dict]) -> int:
        """
        Record the owner of every roster in a league.

        Args:
            league_id: Sleeper league ID
            rosters: Roster dicts as returned by /league/{id}/rosters

        Returns:
            int: Number of rosters recorded
        """
        count = 0
        for roster in rosters:
            roster_id = roster.get("roster_id")
            if roster_id is None:
                continue
            owner_id = roster.get("owner_id")
            self._owners[(str(league_id), str(roster_id))] = str(owner_id) if owner_id is not None else None
            count += 1
        logger.info(f"Cached owners for {count} rosters in league {league_id}")
        return count

    def owner_of(self, league_id: str, roster_id: str) -> Optional[str]:
        return self._owners.get((str(league_id), str(roster_id)))

    def has(self, league_id: str, roster_id: str) -> bool:
        return (str(league_id), str(roster_id)) in self._owners

    def for_league(self, league_id: str) -> Dict[str, Optional[str]]:
        """All cached roster_id -> owner_id pairs of one league."""
        return {
            roster_id: owner_id
            for (cached_league, roster_id), owner_id in self._owners.items()
            if cached_league == str(league_id)
        }

    def __len__(self) -> int:
        return len(self._owners)
