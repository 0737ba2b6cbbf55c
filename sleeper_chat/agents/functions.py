"""
Function definitions for LLM function calling.
Provides Sleeper API lookups to the chat assistant.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sleeper_chat.config import settings
from sleeper_chat.models import Roster
from sleeper_chat.services.player_directory import PlayerDirectory
from sleeper_chat.services.roster_owner_cache import RosterOwnerCache
from sleeper_chat.services.sleeper_service import SleeperAPIError, SleeperService
from sleeper_chat.ui.fragments import (
    ROSTER_NOT_FOUND_MESSAGE, UIFragment, render_error, render_league_details,
    render_league_list, render_roster, render_user_card
)

logger = logging.getLogger(__name__)


# Function menu sent with every chat-completions request
SLEEPER_FUNCTIONS = [
    {
        "name": "getUserInfo",
        "description": "Retrieve the user information and their leagues. The username is a string, mostly letters and numbers.",
        "parameters": {
            "type": "object",
            "properties": {
                "username": {
                    "type": "string",
                    "description": "Username of the user"
                }
            },
            "required": ["username"]
        }
    },
    {
        "name": "getAllUserLeaguesAndDetails",
        "description": "Retrieve all leagues of a user with their sport, season and status, using the user's ID.",
        "parameters": {
            "type": "object",
            "properties": {
                "user_id": {
                    "type": "string",
                    "description": "User ID of the user"
                },
                "sport": {
                    "type": "string",
                    "description": "Type of sport, e.g., NFL"
                },
                "season": {
                    "type": "string",
                    "description": "Year of the season"
                }
            },
            "required": ["user_id", "sport", "season"]
        }
    },
    {
        "name": "getIndividualLeagueDetails",
        "description": "Retrieve detailed information of an individual league using its league ID. The league id is almost always numbers.",
        "parameters": {
            "type": "object",
            "properties": {
                "league_id": {
                    "type": "string",
                    "description": "League ID of the specific league"
                }
            },
            "required": ["league_id"]
        }
    },
    {
        "name": "getUserRosterByRosterId",
        "description": "Retrieve the roster of one team in a league, given the league id, roster id and the owner's user id.",
        "parameters": {
            "type": "object",
            "properties": {
                "league_id": {
                    "type": "string",
                    "description": "League ID of the specific league"
                },
                "roster_id": {
                    "type": "string",
                    "description": "Roster ID of the specific roster"
                },
                "owner_id": {
                    "type": "string",
                    "description": "User ID of the owner of the roster"
                }
            },
            "required": ["league_id", "roster_id", "owner_id"]
        }
    }
]


# ===== Argument models =====

class FunctionArguments(BaseModel):
    # LLMs sometimes send IDs as numbers
    model_config = ConfigDict(coerce_numbers_to_str=True, str_strip_whitespace=True)


class GetUserInfoArgs(FunctionArguments):
    username: str = Field(..., min_length=1)


class GetAllUserLeaguesArgs(FunctionArguments):
    user_id: str = Field(..., min_length=1)
    sport: str = ""
    season: str = ""


class GetIndividualLeagueArgs(FunctionArguments):
    league_id: str = Field(..., min_length=1)


class GetUserRosterArgs(FunctionArguments):
    league_id: str = Field(..., min_length=1)
    roster_id: str = ""
    owner_id: str = Field(..., min_length=1)


FUNCTION_ARGUMENT_MODELS: Dict[str, Type[FunctionArguments]] = {
    "getUserInfo": GetUserInfoArgs,
    "getAllUserLeaguesAndDetails": GetAllUserLeaguesArgs,
    "getIndividualLeagueDetails": GetIndividualLeagueArgs,
    "getUserRosterByRosterId": GetUserRosterArgs,
}


class FunctionArgumentsError(ValueError):
    """The model selected an unknown function or sent non-conforming arguments."""


def parse_function_arguments(name: str, raw_arguments: str) -> FunctionArguments:
    """
    Validate a function call emitted by the model.

    Args:
        name: Function name chosen by the model
        raw_arguments: JSON-encoded arguments string

    Returns:
        FunctionArguments: Validated arguments model
    """
    model = FUNCTION_ARGUMENT_MODELS.get(name)
    if model is None:
        raise FunctionArgumentsError(f"Unknown function '{name}'")

    try:
        arguments = json.loads(raw_arguments or "{}")
    except json.JSONDecodeError as e:
        raise FunctionArgumentsError(f"Arguments for {name} are not valid JSON: {e}") from e

    if not isinstance(arguments, dict):
        raise FunctionArgumentsError(f"Arguments for {name} must be a JSON object")

    try:
        return model.model_validate(arguments)
    except ValidationError as e:
        raise FunctionArgumentsError(f"Invalid arguments for {name}: {e.error_count()} validation error(s)") from e


class FunctionOutcome(BaseModel):
    """Rendered fragment plus the result snapshot stored in the conversation."""

    name: str
    fragment: UIFragment = Field(..., discriminator="kind")
    result: Any = None
    succeeded: bool = True

    @property
    def content(self) -> str:
        return json.dumps(self.result)


class ChatFunctions:
    """
    Function executor for the chat assistant.
    Runs the function the model selected and returns its rendered outcome.
    """

    def __init__(
        self,
        sleeper_service: SleeperService,
        player_directory: PlayerDirectory,
        roster_owners: RosterOwnerCache
    ):
        """Initialize functions with the services they need."""
        self.sleeper = sleeper_service
        self.players = player_directory
        self.roster_owners = roster_owners

    async def execute(self, name: str, arguments: FunctionArguments) -> FunctionOutcome:
        """
        Execute a validated function call.

        Sleeper failures become an error fragment and an {"error": ...} result
        so the turn still commits.
        """
        logger.info(f"🔧 Executing function: {name} with args: {arguments.model_dump()}")

        try:
            if name == "getUserInfo":
                return await self._get_user_info(arguments.username)

            elif name == "getAllUserLeaguesAndDetails":
                return await self._get_all_user_leagues(arguments.user_id, arguments.sport, arguments.season)

            elif name == "getIndividualLeagueDetails":
                return await self._get_individual_league_details(arguments.league_id)

            elif name == "getUserRosterByRosterId":
                return await self._get_user_roster(arguments.league_id, arguments.roster_id, arguments.owner_id)

            raise FunctionArgumentsError(f"Unknown function '{name}'")

        except SleeperAPIError as e:
            logger.error(f"Sleeper request failed while executing {name}: {e}")
            return self.error_outcome(name, f"Couldn't load data from Sleeper right now ({e}). Please try again.")
        except ValidationError as e:
            logger.error(f"Unexpected Sleeper payload while executing {name}: {e}")
            return self.error_outcome(name, "Sleeper returned data in an unexpected format.")

    @staticmethod
    def error_outcome(name: str, message: str, extra: Optional[Dict] = None) -> FunctionOutcome:
        result = dict(extra or {})
        result["error"] = message
        return FunctionOutcome(name=name, fragment=render_error(message), result=result, succeeded=False)

    async def _get_user_info(self, username: str) -> FunctionOutcome:
        """Fetch a user and that user's leagues for the default sport and season."""
        user_info = await self.sleeper.get_user(username)
        logger.info(f"User info for {username}: {user_info}")

        user_leagues: List[Dict] = []
        if user_info and user_info.get("user_id"):
            user_leagues = await self.sleeper.get_user_leagues(
                user_info["user_id"],
                settings.SLEEPER_DEFAULT_SPORT,
                settings.SLEEPER_DEFAULT_SEASON
            )
        logger.info(f"User leagues for {username}: {len(user_leagues)}")

        return FunctionOutcome(
            name="getUserInfo",
            fragment=render_user_card(user_info, user_leagues, username=username),
            result={"username": username, "userInfo": user_info, "userLeagues": user_leagues}
        )

    async def _get_all_user_leagues(self, user_id: str, sport: str, season: str) -> FunctionOutcome:
        """Fetch all leagues of a user for the requested sport and season."""
        sport = (sport or settings.SLEEPER_DEFAULT_SPORT).lower()
        season = season or settings.SLEEPER_DEFAULT_SEASON

        leagues = await self.sleeper.get_user_leagues(user_id, sport, season) or []
        logger.info(f"Leagues for user {user_id} ({sport} {season}): {len(leagues)}")

        return FunctionOutcome(
            name="getAllUserLeaguesAndDetails",
            fragment=render_league_list(leagues),
            result=leagues
        )

    async def _get_individual_league_details(self, league_id: str) -> FunctionOutcome:
        """Fetch a league, then its rosters to learn who owns which roster."""
        league_details = await self.sleeper.get_league(league_id)
        if not league_details:
            return self.error_outcome(
                "getIndividualLeagueDetails",
                f"League {league_id} was not found.",
                extra={"league_id": league_id}
            )

        league_rosters = await self.sleeper.get_league_rosters(league_id)
        self.roster_owners.populate(league_id, league_rosters)

        return FunctionOutcome(
            name="getIndividualLeagueDetails",
            fragment=render_league_details(league_details),
            result=league_details
        )

    async def _get_user_roster(self, league_id: str, roster_id: str, owner_id: str) -> FunctionOutcome:
        """Find the roster owned by owner_id and resolve its players."""
        logger.info(f"Fetching rosters for league_id: {league_id}")
        league_rosters = await self.sleeper.get_league_rosters(league_id)
        self.roster_owners.populate(league_id, league_rosters)

        cached_owner = self.roster_owners.owner_of(league_id, roster_id)
        if roster_id and cached_owner is not None and cached_owner != owner_id:
            logger.warning(
                f"Roster {roster_id} in league {league_id} belongs to {cached_owner}, "
                f"not {owner_id}; matching by owner"
            )

        rosters = [Roster.model_validate(roster) for roster in league_rosters]
        user_roster = next(
            (roster for roster in rosters if roster.owner_id is not None and roster.owner_id == owner_id),
            None
        )

        request = {"league_id": league_id, "roster_id": roster_id, "owner_id": owner_id}

        if user_roster is None:
            logger.error(f"No roster found for owner {owner_id} (roster_id: {roster_id}) in league {league_id}")
            return self.error_outcome("getUserRosterByRosterId", ROSTER_NOT_FOUND_MESSAGE, extra=request)

        user_players = self.players.resolve_many(user_roster.players or [])
        logger.info(f"Roster for owner {owner_id}: {len(user_players)} players")

        return FunctionOutcome(
            name="getUserRosterByRosterId",
            fragment=render_roster(user_players),
            result={**request, "players": user_players}
        )
