"""
Pydantic schemas for the Sleeper API payloads consumed by the chat assistant.

Sleeper owns these shapes; we only describe them. Every field the renderers read
is optional so partial payloads (e.g. an unknown username) degrade to missing
fields instead of validation failures. Unknown keys are kept.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


ScoringSettings = Dict[str, float]


class SleeperModel(BaseModel):
    """Base for Sleeper payloads; keeps fields we do not model and accepts numeric IDs."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)


class User(SleeperModel):
    """Sleeper user returned by /user/{username}."""

    user_id: Optional[str] = Field(None, description="Sleeper user ID")
    username: Optional[str] = Field(None, description="Sleeper username")
    display_name: Optional[str] = Field(None, description="Display name")
    avatar: Optional[str] = Field(None, description="Avatar ID on the Sleeper CDN")
    email: Optional[str] = Field(None, description="Email (rarely exposed publicly)")
    is_bot: bool = Field(False, description="Whether the account is a bot")
    verification: Optional[str] = None
    token: Optional[str] = None
    summoner_name: Optional[str] = None
    summoner_region: Optional[str] = None
    solicitable: Optional[bool] = None
    real_name: Optional[str] = None
    phone: Optional[str] = None
    pending: Optional[bool] = None
    notifications: Optional[bool] = None
    metadata: Optional[Any] = None
    deleted: Optional[bool] = None
    data_updated: Optional[int] = None
    currencies: Optional[List[str]] = None
    created: Optional[int] = None
    cookies: Optional[Any] = None


class LeagueSettings(SleeperModel):
    """League `settings` block: a flat map of API-defined numeric codes."""

    daily_waivers_last_ran: Optional[int] = None
    reserve_allow_cov: Optional[int] = None
    reserve_slots: Optional[int] = None
    leg: Optional[int] = None
    offseason_adds: Optional[int] = None
    bench_lock: Optional[int] = None
    trade_review_days: Optional[int] = None
    league_average_match: Optional[int] = None
    waiver_type: Optional[int] = Field(None, description="1 = standard waivers")
    max_keepers: Optional[int] = None
    type: Optional[int] = None
    pick_trading: Optional[int] = None
    disable_trades: Optional[int] = None
    daily_waivers: Optional[int] = None
    taxi_years: Optional[int] = None
    trade_deadline: Optional[int] = None
    veto_show_votes: Optional[int] = None
    reserve_allow_sus: Optional[int] = None
    reserve_allow_out: Optional[int] = None
    playoff_round_type: Optional[int] = None
    waiver_day_of_week: Optional[int] = None
    taxi_allow_vets: Optional[int] = None
    reserve_allow_dnr: Optional[int] = None
    veto_auto_poll: Optional[int] = None
    commissioner_direct_invite: Optional[int] = None
    reserve_allow_doubtful: Optional[int] = None
    waiver_clear_days: Optional[int] = None
    playoff_week_start: Optional[int] = None
    daily_waivers_days: Optional[int] = None
    last_scored_leg: Optional[int] = None
    taxi_slots: Optional[int] = None
    playoff_type: Optional[int] = None
    daily_waivers_hour: Optional[int] = None
    num_teams: Optional[int] = Field(None, description="Number of teams in the league")
    veto_votes_needed: Optional[int] = None
    playoff_teams: Optional[int] = None
    playoff_seed_type: Optional[int] = None
    start_week: Optional[int] = None
    reserve_allow_na: Optional[int] = None
    draft_rounds: Optional[int] = None
    taxi_deadline: Optional[int] = None
    disable_adds: Optional[int] = None
    waiver_budget: Optional[int] = None
    last_report: Optional[int] = None
    best_ball: Optional[int] = None
    # Not present on every league
    squads: Optional[int] = None
    waiver_bid_min: Optional[int] = None
    capacity_override: Optional[int] = None


class LeagueMetadata(SleeperModel):
    """League `metadata` block (free-form strings)."""

    trophy_winner_banner_text: Optional[str] = None
    trophy_winner_background: Optional[str] = None
    trophy_winner: Optional[str] = None
    trophy_loser_banner_text: Optional[str] = None
    trophy_loser_background: Optional[str] = None
    trophy_loser: Optional[str] = None
    latest_league_winner_roster_id: Optional[str] = None
    keeper_deadline: Optional[str] = None
    auto_continue: Optional[str] = None


class League(SleeperModel):
    """Sleeper league returned by /league/{id} and /user/{id}/leagues/{sport}/{season}."""

    league_id: Optional[str] = Field(None, description="Sleeper league ID")
    name: Optional[str] = Field(None, description="League name")
    sport: Optional[str] = Field(None, description="Sport, e.g. nfl")
    season: Optional[str] = Field(None, description="Season year")
    season_type: Optional[str] = None
    status: Optional[str] = Field(None, description="pre_draft, drafting, in_season, complete")
    type: Optional[Any] = None
    avatar: Optional[str] = None
    total_rosters: Optional[int] = None
    draft_id: Optional[str] = None
    previous_league_id: Optional[str] = None
    company_id: Optional[str] = None
    settings: LeagueSettings = Field(default_factory=LeagueSettings)
    scoring_settings: ScoringSettings = Field(default_factory=dict)
    roster_positions: List[str] = Field(default_factory=list)
    metadata: Optional[LeagueMetadata] = None


class Roster(SleeperModel):
    """Entry of /league/{id}/rosters."""

    roster_id: Optional[int] = Field(None, description="Roster ID within the league")
    owner_id: Optional[str] = Field(None, description="Owner's user ID (None for orphaned teams)")
    league_id: Optional[str] = None
    players: Optional[List[str]] = Field(None, description="Player IDs on the roster")
    starters: Optional[List[str]] = None
    reserve: Optional[List[str]] = None
    co_owners: Optional[List[str]] = None


class Player(BaseModel):
    """Static player reference entry."""

    first_name: str = Field(..., description="First name")
    last_name: str = Field(..., description="Last name")
    position: Optional[str] = Field(None, description="Position, e.g. QB")
    team: Optional[str] = Field(None, description="NFL team abbreviation (None for free agents)")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
