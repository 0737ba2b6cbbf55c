"""
Canned Sleeper payloads shared by the tests.
"""

SAMPLE_USER = {
    "user_id": "U9",
    "username": "gridironguru",
    "display_name": "Gridiron Guru",
    "avatar": "av9",
    "is_bot": False
}

SAMPLE_LEAGUES = [
    {"league_id": "L1", "name": "Sunday Legends", "sport": "nfl", "season": "2023", "status": "in_season"},
    {"league_id": "L2", "name": "Dynasty Crew", "sport": "nfl", "season": "2023", "status": "complete"}
]

SAMPLE_LEAGUE = {
    "league_id": "L1",
    "name": "Sunday Legends",
    "sport": "nfl",
    "season": "2023",
    "status": "in_season",
    "avatar": "lav1",
    "settings": {"num_teams": 12, "waiver_type": 2},
    "scoring_settings": {
        "pass_yd": 0.04, "rush_yd": 0.1, "rec_yd": 0.1,
        "pass_td": 4.0, "rush_td": 6.0, "rec_td": 6.0,
        "int": -2.0, "fum_lost": -2.0, "rec": 1.0
    },
    "roster_positions": ["QB", "RB", "RB", "WR", "WR", "TE", "FLEX", "BN"]
}

SAMPLE_ROSTERS = [
    {"roster_id": 1, "owner_id": "U1", "players": ["4046", "4034"]},
    {"roster_id": 5, "owner_id": "U9", "players": ["4984", "9999", "SF"]},
    {"roster_id": 7, "owner_id": None, "players": None}
]
