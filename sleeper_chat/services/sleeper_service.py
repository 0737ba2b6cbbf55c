"""
Sleeper API integration service for fetching users, leagues and rosters.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from sleeper_chat.config import settings

logger = logging.getLogger(__name__)


class SleeperAPIError(Exception):
    """Raised when the Sleeper API cannot be reached or returns unusable data."""

    def __init__(self, message: str, path: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.path = path
        self.status_code = status_code


class SleeperService:
    """Service for interacting with the Sleeper API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_backoff: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """Initialize Sleeper service with HTTP client."""
        self.base_url = base_url or settings.SLEEPER_API_BASE_URL
        self.timeout = timeout if timeout is not None else settings.SLEEPER_API_TIMEOUT
        self.max_retries = max_retries if max_retries is not None else settings.SLEEPER_API_MAX_RETRIES
        self.retry_backoff = retry_backoff if retry_backoff is not None else settings.SLEEPER_API_RETRY_BACKOFF
        self._transport = transport
        # Persistent client for singleton usage
        self.client = self._create_client()

    def _create_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"User-Agent": "Sleeper Chat Assistant"},
            transport=self._transport
        )

    async def __aenter__(self):
        """Async context manager entry."""
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    def _ensure_client(self):
        """Ensure the HTTP client is open and ready."""
        if self.client is None or self.client.is_closed:
            logger.info("Recreating closed Sleeper HTTP client")
            self.client = self._create_client()

    async def close(self):
        if self.client and not self.client.is_closed:
            await self.client.aclose()

    @staticmethod
    def _path(*segments: str) -> str:
        """Build an endpoint path, escaping each segment so IDs cannot change the route."""
        return "/" + "/".join(quote(str(segment), safe="") for segment in segments)

    @staticmethod
    def _check_shape(data: Any, expected: type, path: str) -> None:
        if not isinstance(data, expected):
            logger.error(f"Expected {expected.__name__} from {path}, got {type(data).__name__}")
            raise SleeperAPIError(f"Sleeper returned an unexpected payload for {path}", path)

    async def _get_json(self, path: str) -> Any:
        """
        GET a Sleeper endpoint and decode the JSON body.

        Transport errors, timeouts, unexpected status codes and undecodable bodies
        are retried with exponential backoff, then raised as SleeperAPIError.
        A 404 returns None.
        """
        self._ensure_client()
        last_error: Optional[SleeperAPIError] = None

        for attempt in range(self.max_retries + 1):
            if attempt:
                delay = self.retry_backoff * (2 ** (attempt - 1))
                logger.info(f"Retrying Sleeper request {path} in {delay:.2f}s (attempt {attempt + 1})")
                await asyncio.sleep(delay)

            try:
                response = await self.client.get(path)
            except httpx.TimeoutException:
                logger.error(f"Timeout fetching {path} from Sleeper")
                last_error = SleeperAPIError(f"Timed out contacting Sleeper for {path}", path)
                continue
            except httpx.RequestError as e:
                logger.error(f"Request error fetching {path} from Sleeper: {e}")
                last_error = SleeperAPIError(f"Could not reach Sleeper: {e}", path)
                continue

            if response.status_code == 404:
                logger.warning(f"Sleeper returned 404 for {path}")
                return None

            if response.status_code != 200:
                logger.error(f"Unexpected status code {response.status_code} for {path}")
                logger.error(f"Response body: {response.text[:500]}")
                last_error = SleeperAPIError(
                    f"Sleeper returned status {response.status_code}", path, response.status_code
                )
                continue

            try:
                return response.json()
            except ValueError as e:
                logger.error(f"JSON decode error for {path}: {e}")
                last_error = SleeperAPIError("Sleeper returned an unreadable response", path, response.status_code)

        raise last_error

    async def get_user(self, username: str) -> Optional[Dict]:
        """
        Get user data from Sleeper API by username.

        Args:
            username: Sleeper username

        Returns:
            Dict: User data with user_id, username, display_name, avatar, or None if not found
        """
        logger.info(f"Fetching Sleeper user: {username}")
        path = self._path("user", username)
        user_data = await self._get_json(path)

        if not user_data:
            logger.warning(f"Sleeper user not found: {username}")
            return None
        self._check_shape(user_data, dict, path)

        logger.info(f"Retrieved Sleeper user {username}: {user_data.get('user_id')}")
        return user_data

    async def get_user_leagues(self, user_id: str, sport: str, season: str) -> List[Dict]:
        """
        Get leagues for a user by user ID, sport, and season.

        Args:
            user_id: Sleeper user ID
            sport: Sport type, e.g. "nfl"
            season: Season year, e.g. "2023"

        Returns:
            List[Dict]: League data, empty when Sleeper has none
        """
        logger.info(f"Fetching Sleeper leagues for user {user_id}, sport {sport}, season {season}")
        path = self._path("user", user_id, "leagues", sport, season)
        leagues_data = await self._get_json(path)

        if not leagues_data:
            logger.info(f"No leagues found for Sleeper user {user_id} in {sport} {season}")
            return []
        self._check_shape(leagues_data, list, path)

        logger.info(f"Retrieved {len(leagues_data)} leagues for Sleeper user {user_id}")
        return leagues_data

    async def get_league(self, league_id: str) -> Optional[Dict]:
        """
        Get full league details including settings and metadata.

        Args:
            league_id: Sleeper league ID

        Returns:
            Dict: League object including scoring_settings, roster_positions, settings,
                  metadata or None if not found
        """
        logger.info(f"Fetching league details for league {league_id}")
        path = self._path("league", league_id)
        league_data = await self._get_json(path)

        if not league_data:
            logger.warning(f"League not found: {league_id}")
            return None
        self._check_shape(league_data, dict, path)

        logger.info(f"Retrieved league details for {league_id}: {league_data.get('name', 'Unknown')}")
        return league_data

    async def get_league_rosters(self, league_id: str) -> List[Dict]:
        """
        Get rosters for a league by league ID.

        Args:
            league_id: Sleeper league ID

        Returns:
            List[Dict]: Roster data, empty when the league has none or does not exist
        """
        logger.info(f"Fetching Sleeper rosters for league {league_id}")
        path = self._path("league", league_id, "rosters")
        rosters_data = await self._get_json(path)

        if not rosters_data:
            logger.warning(f"Empty rosters list returned for league {league_id}")
            return []
        self._check_shape(rosters_data, list, path)

        logger.info(f"Retrieved {len(rosters_data)} rosters for league {league_id}")
        return rosters_data


# Singleton instance for dependency injection
sleeper_service = SleeperService()
