"""
Reference data cache for agents, maps and weapons.

Display metadata comes from the public valorant-api.com endpoints. One
ReferenceDataCache is built per process (in the app lifespan) and handed to
whatever needs it; lookups are synchronous against the last successful
fetch and fall back to a static table when nothing has been fetched or the
API is unavailable.

Usage:
    cache = ReferenceDataCache()
    await cache.refresh()
    cache.map_info("/Game/Maps/Ascent/Ascent").name  # "Ascent"
"""
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AgentInfo:
    name: str
    icon: str
    role: str


@dataclass(frozen=True)
class MapInfo:
    name: str
    icon: str = ""
    display_icon: str = ""
    x_multiplier: float = 0.0
    y_multiplier: float = 0.0
    x_scalar_to_add: float = 0.0
    y_scalar_to_add: float = 0.0


@dataclass(frozen=True)
class WeaponInfo:
    name: str
    icon: str
    kill_stream_icon: str


UNKNOWN_AGENT = AgentInfo(name="Unknown", icon="", role="Unknown")

# Static fallback tables, keyed like the API data (lowercase uuid / map internal name)
FALLBACK_AGENTS = {
    "add6443a-41bd-e414-f6ad-e58d267f4e95": "Jett",
    "569fdd95-4d10-43ab-ca70-79becc718b46": "Sage",
    "eb93336a-449b-9c1b-0a54-a891f7921d69": "Phoenix",
    "320b2a48-4d9b-a075-30f1-1f93a9b638fa": "Sova",
    "a3bfb853-43b2-7238-a4f1-ad90e9e46bcc": "Reyna",
    "8e253930-4c05-31dd-1b6c-968525494517": "Omen",
    "9f0d8ba9-4140-b941-57d3-a7ad57c6b417": "Brimstone",
    "707eab51-4836-f488-046a-cda6bf494859": "Viper",
    "117ed9e3-49f3-6512-3ccf-0cada7e3823b": "Cypher",
    "1e58de9c-4950-5125-93e9-a0aee9f98746": "Killjoy",
    "f94c3b30-42be-e959-889c-5aa313dba261": "Raze",
    "5f8d3a7f-467b-97f3-062c-13acf203c006": "Breach",
    "6f2a04ca-43e0-be17-7f36-b3908627744d": "Skye",
    "7f94d92c-4234-0a36-9646-3a87eb8b5c89": "Yoru",
    "41fb69c1-4189-7b37-f117-bcaf1e96f1bf": "Astra",
    "601dbbe7-43ce-be57-2a40-4abd24953621": "KAY/O",
    "22697a3d-45bf-8dd7-4fec-84a9e28c69d7": "Chamber",
    "bb2a4828-46eb-8cd1-e765-15848195d751": "Neon",
    "dade69b4-4f5a-8528-247b-219e5a1facd6": "Fade",
    "95b78ed7-4637-86d9-7e41-71ba8c293152": "Harbor",
    "e370fa57-4757-3604-3648-499e1f642d3f": "Gekko",
    "cc8b64c8-4b25-4ff9-6e7f-37b4da43d235": "Deadlock",
    "0e38b510-41a8-5780-5e8f-568b2a4f2d6c": "Iso",
    "1dbf2edd-4729-0984-3115-daa5eed44993": "Clove",
}

FALLBACK_MAPS = {
    "ascent": "Ascent",
    "bonsai": "Split",
    "duality": "Bind",
    "triad": "Haven",
    "port": "Icebox",
    "foxtrot": "Breeze",
    "canyon": "Fracture",
    "pitt": "Pearl",
    "jam": "Lotus",
    "juliett": "Sunset",
    "infinity": "Abyss",
    "range": "The Range",
}


def map_internal_name(map_id: str) -> str:
    """'/Game/Maps/Pitt/Pitt' -> 'pitt'"""
    return map_id.rstrip("/").split("/")[-1].lower() if map_id else ""


class ReferenceDataCache:
    """
    TTL cache over the agents/maps/weapons endpoints with static fallback.

    A failed refresh keeps whatever was fetched before.
    """

    COLLECTIONS = ("agents", "maps", "weapons")

    def __init__(
        self,
        base_url: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_attempts: int = 3,
        wait=None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.base_url = (base_url or settings.REFERENCE_API_URL).rstrip("/")
        self.ttl_seconds = settings.REFERENCE_CACHE_TTL if ttl_seconds is None else ttl_seconds
        self.timeout = timeout or settings.REFERENCE_API_TIMEOUT
        self.max_attempts = max_attempts
        self._wait = wait or wait_exponential(multiplier=1, min=1, max=8)
        self._transport = transport
        self._clock = clock
        self._client: Optional[httpx.AsyncClient] = None

        self._agents: Optional[Dict[str, AgentInfo]] = None
        self._maps: Optional[Dict[str, MapInfo]] = None
        self._weapons: Optional[Dict[str, WeaponInfo]] = None
        self._fetched_at: Optional[float] = None

    # ========================================================================
    # HTTP
    # ========================================================================

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _fetch_collection(self, name: str) -> List[Dict[str, Any]]:
        client = self._get_client()
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._wait,
            retry=retry_if_exception_type(httpx.HTTPError),
            reraise=True,
        ):
            with attempt:
                response = await client.get(f"/{name}", params={"language": "en-US"})
                response.raise_for_status()
                return response.json().get("data") or []
        return []

    # ========================================================================
    # Refresh
    # ========================================================================

    def is_fresh(self) -> bool:
        if self._fetched_at is None:
            return False
        return self._clock() - self._fetched_at < self.ttl_seconds

    async def refresh(self, force: bool = False) -> bool:
        """
        Re-fetch all collections when the cache is stale (or forced).

        Returns:
            True if the cache holds fresh data afterwards
        """
        if not force and self.is_fresh():
            return True

        try:
            agents = await self._fetch_collection("agents")
            maps = await self._fetch_collection("maps")
            weapons = await self._fetch_collection("weapons")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Failed to fetch reference data, keeping previous/fallback data: {e}")
            return False

        self._agents = {
            a["uuid"].lower(): AgentInfo(
                name=a.get("displayName", "Unknown"),
                icon=a.get("displayIcon") or "",
                role=(a.get("role") or {}).get("displayName") or "Unknown",
            )
            for a in agents
            if a.get("uuid") and a.get("isPlayableCharacter")
        }
        self._maps = {
            m["mapUrl"]: MapInfo(
                name=m.get("displayName", "Unknown"),
                icon=m.get("listViewIcon") or "",
                display_icon=m.get("displayIcon") or "",
                x_multiplier=m.get("xMultiplier") or 0.0,
                y_multiplier=m.get("yMultiplier") or 0.0,
                x_scalar_to_add=m.get("xScalarToAdd") or 0.0,
                y_scalar_to_add=m.get("yScalarToAdd") or 0.0,
            )
            for m in maps
            if m.get("mapUrl")
        }
        self._weapons = {
            w["uuid"].lower(): WeaponInfo(
                name=w.get("displayName", "Unknown"),
                icon=w.get("displayIcon") or "",
                kill_stream_icon=w.get("killStreamIcon") or "",
            )
            for w in weapons
            if w.get("uuid")
        }
        self._fetched_at = self._clock()

        logger.info(
            "Reference data fetched and cached",
            extra={"agents": len(self._agents), "maps": len(self._maps), "weapons": len(self._weapons)},
        )
        return True

    # ========================================================================
    # Lookups
    # ========================================================================

    def agent_info(self, agent_id: Optional[str]) -> Optional[AgentInfo]:
        if not agent_id:
            return None
        key = agent_id.lower()

        if self._agents and key in self._agents:
            return self._agents[key]

        name = FALLBACK_AGENTS.get(key)
        if name:
            return AgentInfo(name=name, icon=f"/agents/{name.lower()}.png", role="Unknown")
        return UNKNOWN_AGENT

    def map_info(self, map_id: Optional[str]) -> MapInfo:
        if map_id and self._maps and map_id in self._maps:
            return self._maps[map_id]

        internal = map_internal_name(map_id or "")
        name = FALLBACK_MAPS.get(internal)
        if name:
            return MapInfo(name=name, icon=f"/maps/{internal}.png")
        return MapInfo(name=map_id or "Unknown")

    def weapon_info(self, weapon_id: Optional[str]) -> Optional[WeaponInfo]:
        if not weapon_id or not self._weapons:
            return None
        return self._weapons.get(weapon_id.lower())
