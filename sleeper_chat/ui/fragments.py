"""
Structured UI fragments streamed into the chat transcript, and the renderers
that build them from Sleeper payloads.

Fragments are plain JSON-serializable models; the client decides how to draw them.
"""

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from sleeper_chat.config import settings
from sleeper_chat.models import League, User

logger = logging.getLogger(__name__)

ROSTER_NOT_FOUND_MESSAGE = "Roster not found for the provided ID."

# (scoring key, label, unit) shown on the league details card
SCORING_DISPLAY = [
    ("pass_yd", "Passing Yards", "per yard"),
    ("rush_yd", "Rushing Yards", "per yard"),
    ("rec_yd", "Receiving Yards", "per yard"),
    ("pass_td", "Passing TDs", "points"),
    ("rush_td", "Rushing TDs", "points"),
    ("rec_td", "Receiving TDs", "points"),
    ("int", "Interceptions", "points"),
    ("fum_lost", "Fumbles Lost", "points"),
]


# ===== Fragment models =====

class DisplayField(BaseModel):
    """Label/value pair shown on a card."""
    label: str
    value: str


class SpinnerFragment(BaseModel):
    kind: Literal["spinner"] = "spinner"
    label: Optional[str] = Field(None, description="Optional loading text")


class TextFragment(BaseModel):
    kind: Literal["text"] = "text"
    role: Literal["user", "assistant"] = "assistant"
    content: str = ""


class UserProfileSection(BaseModel):
    avatar_url: Optional[str] = None
    display_name: Optional[str] = None
    handle: str = Field(..., description="@username")
    email: Optional[str] = None
    user_id: str
    is_bot: str = Field(..., description="Yes / No")
    summoner_name: Optional[str] = None
    summoner_region: Optional[str] = None


class UserCard(BaseModel):
    kind: Literal["user_card"] = "user_card"
    profile: Optional[UserProfileSection] = Field(None, description="Empty when the user was not found")
    leagues: Optional[List[str]] = Field(None, description="'{name} - {season}' lines; None hides the section")


class LeagueSummary(BaseModel):
    league_id: Optional[str] = None
    name: Optional[str] = None
    sport: Optional[str] = None
    season: Optional[str] = None
    status: Optional[str] = None


class LeagueListCard(BaseModel):
    kind: Literal["league_list"] = "league_list"
    title: Optional[str] = Field(None, description="'Your Leagues' when there is at least one league")
    leagues: List[LeagueSummary] = Field(default_factory=list)


class LeagueDetailCard(BaseModel):
    kind: Literal["league_details"] = "league_details"
    title: str = "League Details"
    avatar_url: Optional[str] = None
    details: List[DisplayField] = Field(default_factory=list)
    scoring_title: str = "Scoring Settings"
    scoring: List[DisplayField] = Field(default_factory=list)


class RosterPlayer(BaseModel):
    id: str
    name: str
    position: Optional[str] = None
    team: Optional[str] = None


class RosterCard(BaseModel):
    kind: Literal["roster"] = "roster"
    title: str = "Roster"
    players: List[RosterPlayer] = Field(default_factory=list)


class ErrorFragment(BaseModel):
    kind: Literal["error"] = "error"
    title: str = "Error"
    message: str


class PurchaseStatusFragment(BaseModel):
    kind: Literal["purchase_status"] = "purchase_status"
    message: str
    in_progress: bool = True


class SystemNoticeFragment(BaseModel):
    kind: Literal["system_notice"] = "system_notice"
    content: str


UIFragment = Union[
    SpinnerFragment, TextFragment, UserCard, LeagueListCard, LeagueDetailCard,
    RosterCard, ErrorFragment, PurchaseStatusFragment, SystemNoticeFragment
]


# ===== Formatting helpers =====

def format_fixed(value: Any, digits: int = 3) -> str:
    """Fixed-point formatting with half-away-from-zero rounding; non-numeric values give 'NaN'."""
    if value is None or isinstance(value, bool):
        return "NaN"
    try:
        number = Decimal(value) if isinstance(value, (int, float)) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return "NaN"
    if not number.is_finite():
        return "NaN"
    if number == 0:
        number = Decimal(0)
    quantum = Decimal(1).scaleb(-digits)
    return f"{number.quantize(quantum, rounding=ROUND_HALF_UP):f}"


def format_number(value: Union[int, float]) -> str:
    """Render a number the way it reads in text: 450.0 -> '450', 0.5 -> '0.5'."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_currency(value: Union[int, float]) -> str:
    """US dollar formatting, e.g. 1234.5 -> '$1,234.50'."""
    amount = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def avatar_url(avatar: Optional[str]) -> Optional[str]:
    if not avatar:
        return None
    return f"{settings.SLEEPER_AVATAR_BASE_URL}/{avatar}"


def _text(value: Any) -> str:
    return "" if value is None else str(value)


# ===== Renderers =====

def spinner(label: Optional[str] = None) -> SpinnerFragment:
    return SpinnerFragment(label=label)


def render_error(message: str, title: str = "Error") -> ErrorFragment:
    return ErrorFragment(title=title, message=message)


def render_user_card(user_info: Optional[Dict], user_leagues: List[Dict], username: Optional[str] = None) -> UserCard:
    """
    Build the profile card for getUserInfo.

    Args:
        user_info: Raw /user/{username} payload (may be None or partial)
        user_leagues: Raw league list for the user
        username: Username the lookup was made with, used when the payload lacks one
    """
    user = User.model_validate(user_info or {})

    if not user.user_id:
        logger.info(f"No user_id for '{username}', rendering empty user card")
        return UserCard()

    profile = UserProfileSection(
        avatar_url=avatar_url(user.avatar),
        display_name=user.display_name,
        handle=f"@{user.username or username or ''}",
        email=user.email,
        user_id=user.user_id,
        is_bot="Yes" if user.is_bot else "No",
        summoner_name=user.summoner_name,
        summoner_region=user.summoner_region if user.summoner_name else None
    )

    leagues = None
    if user_leagues:
        leagues = [f"{_text(league.get('name'))} - {_text(league.get('season'))}" for league in user_leagues]

    return UserCard(profile=profile, leagues=leagues)


def render_league_list(leagues: List[Dict]) -> LeagueListCard:
    """Build the 'Your Leagues' card for getAllUserLeaguesAndDetails."""
    if not leagues:
        return LeagueListCard()

    summaries = []
    for league in leagues:
        parsed = League.model_validate(league)
        summaries.append(LeagueSummary(
            league_id=parsed.league_id,
            name=parsed.name,
            sport=parsed.sport,
            season=parsed.season,
            status=parsed.status
        ))
    return LeagueListCard(title="Your Leagues", leagues=summaries)


def scoring_type(waiver_type: Optional[int]) -> str:
    return "Standard" if waiver_type == 1 else "PPR"


def render_league_details(league_data: Dict) -> LeagueDetailCard:
    """Build the league details card for getIndividualLeagueDetails."""
    league = League.model_validate(league_data)

    details = [
        DisplayField(label="Name", value=_text(league.name)),
        DisplayField(label="Type", value=_text(league.type)),
        DisplayField(label="Status", value=_text(league.status)),
        DisplayField(label="Sport", value=_text(league.sport)),
        DisplayField(label="Season", value=_text(league.season)),
        DisplayField(label="Number of Teams", value=_text(league.settings.num_teams)),
        DisplayField(label="Scoring Type", value=scoring_type(league.settings.waiver_type)),
        DisplayField(label="Positions", value=", ".join(league.roster_positions)),
    ]

    scoring = [
        DisplayField(label=label, value=f"{format_fixed(league.scoring_settings.get(key))} {unit}")
        for key, label, unit in SCORING_DISPLAY
    ]

    return LeagueDetailCard(
        avatar_url=avatar_url(league.avatar),
        details=details,
        scoring=scoring
    )


def render_roster(players: List[Dict]) -> RosterCard:
    """Build the roster card from resolved player dicts (id, name, position, team)."""
    return RosterCard(players=[RosterPlayer.model_validate(p) for p in players])


def fragment_from_dict(data: Dict) -> Optional[UIFragment]:
    """Parse a serialized fragment back into its model (used by clients and tests)."""
    kinds = {
        "spinner": SpinnerFragment,
        "text": TextFragment,
        "user_card": UserCard,
        "league_list": LeagueListCard,
        "league_details": LeagueDetailCard,
        "roster": RosterCard,
        "error": ErrorFragment,
        "purchase_status": PurchaseStatusFragment,
        "system_notice": SystemNoticeFragment,
    }
    model = kinds.get(data.get("kind"))
    if model is None:
        return None
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Invalid {data.get('kind')} fragment: {e}")
        return None
