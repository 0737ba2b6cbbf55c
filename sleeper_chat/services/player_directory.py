"""
Static NFL player reference table (player_id -> name, position, team).

The table ships with the package and is read once; nothing here touches the network.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import ValidationError

from sleeper_chat.models import Player

logger = logging.getLogger(__name__)

DEFAULT_PLAYER_DATA_PATH = Path(__file__).resolve().parent.parent / "data" / "players.json"

UNKNOWN_PLAYER = "Unknown Player"
UNKNOWN_POSITION = "Unknown Position"
FREE_AGENT = "Free Agent"


class PlayerDirectory:
    """Read-only lookup of players keyed by Sleeper player ID."""

    def __init__(self, players: Dict[str, Player]):
        self._players = players

    @classmethod
    def from_file(cls, path: Union[str, Path, None] = None) -> "PlayerDirectory":
        """Load the directory from a JSON object of {player_id: {first_name, last_name, position, team}}."""
        data_path = Path(path) if path else DEFAULT_PLAYER_DATA_PATH
        logger.info(f"Loading player reference table from {data_path}")

        with open(data_path, encoding="utf-8") as f:
            raw = json.load(f)

        players = {}
        skipped = 0
        for player_id, entry in raw.items():
            try:
                players[str(player_id)] = Player.model_validate(entry)
            except ValidationError as e:
                skipped += 1
                logger.warning(f"Skipping malformed player entry {player_id}: {e.error_count()} errors")

        logger.info(f"Loaded {len(players)} players ({skipped} skipped)")
        return cls(players)

    def __len__(self) -> int:
        return len(self._players)

    def __contains__(self, player_id: str) -> bool:
        return str(player_id) in self._players

    def get(self, player_id: str) -> Optional[Player]:
        return self._players.get(str(player_id))

    def resolve(self, player_id: str) -> Dict[str, Optional[str]]:
        """Resolve a player ID into display fields, with fallbacks for unknown IDs."""
        player = self.get(player_id)
        if player is None:
            return {
                "id": player_id,
                "name": UNKNOWN_PLAYER,
                "position": UNKNOWN_POSITION,
                "team": FREE_AGENT
            }
        return {
            "id": player_id,
            "name": player.full_name,
            "position": player.position,
            "team": player.team
        }

    def resolve_many(self, player_ids: List[str]) -> List[Dict[str, Optional[str]]]:
        return [self.resolve(player_id) for player_id in player_ids]
