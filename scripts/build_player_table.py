#!/usr/bin/env python3
"""
Regenerate the bundled NFL player reference table from Sleeper.

Fetches the full /players/nfl dump (~5MB, can take 30+ seconds) and writes
{player_id: {first_name, last_name, position, team}} to the package data file.
The chat service only ever reads the written file.

Usage:
    python scripts/build_player_table.py [output_path]
"""

import asyncio
import json
import logging
import sys
import time
from pathlib import Path
from typing import Dict, Optional

import httpx

project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from sleeper_chat.config import settings  # noqa: E402
from sleeper_chat.services.player_directory import DEFAULT_PLAYER_DATA_PATH  # noqa: E402

logger = logging.getLogger("build_player_table")


async def fetch_nfl_players(transport: Optional[httpx.AsyncBaseTransport] = None) -> Optional[Dict[str, Dict]]:
    """
    Get all NFL players from the Sleeper API.

    Returns:
        Dict: Dictionary of {player_id: player_data} or None on error
    """
    try:
        logger.info("Fetching NFL players from Sleeper API (this may take 30+ seconds)")
        start_time = time.time()

        async with httpx.AsyncClient(
            base_url=settings.SLEEPER_API_BASE_URL,
            timeout=60.0,
            headers={"User-Agent": "Sleeper Chat Assistant"},
            transport=transport
        ) as client:
            response = await client.get("/players/nfl")

            if response.status_code == 404:
                logger.warning("NFL players endpoint not found")
                return None

            response.raise_for_status()
            players_data = response.json()

        if not isinstance(players_data, dict):
            logger.error(f"Expected a player object, got {type(players_data).__name__}")
            return None

        response_size = len(response.content) / (1024 * 1024)
        logger.info(f"Retrieved {len(players_data)} NFL players from Sleeper API")
        logger.info(f"Response size: {response_size:.2f}MB, Duration: {time.time() - start_time:.2f}s")
        return players_data

    except httpx.TimeoutException:
        logger.error("Timeout fetching NFL players from Sleeper API")
        return None
    except httpx.HTTPStatusError as e:
        logger.error(f"Sleeper returned status {e.response.status_code} for /players/nfl")
        return None
    except httpx.RequestError as e:
        logger.error(f"Request error fetching NFL players: {e}")
        return None
    except ValueError as e:
        logger.error(f"JSON decode error fetching NFL players: {e}")
        return None


def transform_players(raw_players: Dict[str, Dict]) -> Dict[str, Dict]:
    """
    Reduce Sleeper's player schema to the reference table format.

    Entries without a first or last name are dropped. Position falls back to
    the first fantasy position; team stays None for free agents.
    """
    table = {}

    for player_id, player_data in raw_players.items():
        if not isinstance(player_data, dict):
            continue

        first_name = (player_data.get("first_name") or "").strip()
        last_name = (player_data.get("last_name") or "").strip()
        if not first_name or not last_name:
            continue

        position = player_data.get("position")
        if not position:
            fantasy_positions = player_data.get("fantasy_positions") or []
            position = fantasy_positions[0] if fantasy_positions else None

        table[str(player_id)] = {
            "first_name": first_name,
            "last_name": last_name,
            "position": position,
            "team": player_data.get("team")
        }

    logger.info(f"Transformed {len(table)} players from {len(raw_players)} raw entries")
    return table


def write_table(table: Dict[str, Dict], output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(table, f, sort_keys=True, indent=1)
        f.write("\n")
    logger.info(f"Wrote {len(table)} players to {output_path}")


async def build(output_path: Path, transport: Optional[httpx.AsyncBaseTransport] = None) -> bool:
    raw_players = await fetch_nfl_players(transport=transport)
    if raw_players is None:
        return False
    write_table(transform_players(raw_players), output_path)
    return True


def main():
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    output_path = Path(sys.argv[1] if len(sys.argv) > 1 else settings.PLAYER_DATA_PATH or DEFAULT_PLAYER_DATA_PATH)

    if not asyncio.run(build(output_path)):
        logger.error("❌ Player table was not updated")
        sys.exit(1)
    logger.info("✅ Player table updated")


if __name__ == "__main__":
    main()
