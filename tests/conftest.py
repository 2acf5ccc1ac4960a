"""Shared pytest fixtures for match-analytics-api tests."""
import copy
import sys
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional

import pytest
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create fresh test database session with isolated in-memory database."""
    from app.core.database import create_db_engine
    from app.models import Base

    # StaticPool keeps one connection so TestClient worker threads see the
    # same in-memory database
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)

    TestSessionLocal = sessionmaker(bind=engine, autoflush=False)
    session = TestSessionLocal()

    yield session

    session.close()
    engine.dispose()


@pytest.fixture(scope="function")
def test_client(db_session: Session):
    """FastAPI TestClient bound to the test session, without running the lifespan."""
    from fastapi.testclient import TestClient
    from httpx import MockTransport, Response
    from tenacity import wait_none

    from app.main import app
    from app.core.database import get_db
    from app.api.routes.matches import get_reference_data
    from app.services.reference_data import ReferenceDataCache

    def override_get_db():
        yield db_session

    # Remote reference data unavailable: lookups use the static tables
    reference_data = ReferenceDataCache(
        transport=MockTransport(lambda request: Response(503)),
        max_attempts=1,
        wait=wait_none(),
    )

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_reference_data] = lambda: reference_data

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()


# =============================================================================
# MATCH PAYLOADS
# =============================================================================

RED_PLAYERS = ("p-red-1", "p-red-2")
BLUE_PLAYERS = ("p-blue-1", "p-blue-2")


def _player(subject: str, team: str, name: str) -> Dict[str, Any]:
    return {
        "subject": subject,
        "gameName": name,
        "tagLine": "EUW",
        "teamId": team,
        "partyId": f"party-{team.lower()}",
        "characterId": "add6443a-41bd-e414-f6ad-e58d267f4e95",
        "competitiveTier": 18,
        "accountLevel": 120,
        "stats": {
            "score": 4200,
            "roundsPlayed": 3,
            "kills": 2,
            "deaths": 1,
            "assists": 1,
            "playtimeMillis": 1800000,
            "abilityCasts": {
                "grenadeCasts": 4,
                "ability1Casts": 3,
                "ability2Casts": 2,
                "ultimateCasts": 1,
            },
        },
    }


def _kill(killer: str, victim: str, assistants: Optional[List[Any]] = None) -> Dict[str, Any]:
    return {
        "gameTime": 1000,
        "roundTime": 35000,
        "killer": killer,
        "victim": victim,
        "victimLocation": {"x": 1200.5, "y": -340.0},
        "assistants": assistants or [],
        "playerLocations": [{"subject": killer, "viewRadians": 1.2, "location": {"x": 1.0, "y": 2.0}}],
        "finishingDamage": {"damageType": "Weapon", "damageItem": "vandal", "isSecondaryFireMode": False},
    }


def _stats(subject: str, kills=(), damage=()) -> Dict[str, Any]:
    return {
        "subject": subject,
        "score": 200 * len(kills),
        "kills": list(kills),
        "damage": [
            {"receiver": receiver, "damage": amount, "legshots": 0, "bodyshots": 1, "headshots": 1}
            for receiver, amount in damage
        ],
        "economy": {"loadoutValue": 3900, "weapon": "vandal", "armor": "heavy", "remaining": 150, "spent": 3900},
        "wasAfk": False,
        "wasPenalized": False,
        "stayedInSpawn": False,
    }


def build_match_payload(match_id: str = "match-1") -> Dict[str, Any]:
    """
    Three-round match won 2-1 by Red.

    Round 0 (Red): red-1 kills both blues, red-2 assists both (string and object form)
    Round 1 (Blue): blue-1 kills both reds, blue-2 assists the first
    Round 2 (Red): red-2 kills blue-1, blue-2 kills red-1
    """
    red1, red2 = RED_PLAYERS
    blue1, blue2 = BLUE_PLAYERS
    return {
        "matchInfo": {
            "matchId": match_id,
            "mapId": "/Game/Maps/Ascent/Ascent",
            "gamePodId": "pod-1",
            "gameLoopZone": "eu",
            "gameServerAddress": "10.0.0.1",
            "gameVersion": "release-09.00",
            "gameLengthMillis": 1800000,
            "gameStartMillis": 1712345678901,
            "provisioningFlowID": "CustomGame",
            "isCompleted": True,
            "customGameName": "",
            "queueID": "",
            "gameMode": "/Game/GameModes/Bomb/BombGameMode.BombGameMode_C",
            "isRanked": False,
            "seasonId": "season-1",
            "completionState": "Completed",
            "platformType": "PC",
        },
        "players": [
            _player(red1, "Red", "RedOne"),
            _player(red2, "Red", "RedTwo"),
            _player(blue1, "Blue", "BlueOne"),
            _player(blue2, "Blue", "BlueTwo"),
        ],
        "roundResults": [
            {
                "roundNum": 0,
                "roundResult": "Eliminated",
                "roundCeremony": "CeremonyDefault",
                "winningTeam": "Red",
                "bombPlanter": red1,
                "plantRoundTime": 40000,
                "plantLocation": {"x": 5000.0, "y": -2000.0},
                "plantSite": "A",
                "playerStats": [
                    _stats(
                        red1,
                        kills=[_kill(red1, blue1, [red2]), _kill(red1, blue2, [{"assistantId": red2}])],
                        damage=[(blue1, 150), (blue2, 140)],
                    ),
                    _stats(red2, damage=[(blue1, 30)]),
                    _stats(blue1),
                    _stats(blue2),
                ],
            },
            {
                "roundNum": 1,
                "roundResult": "Eliminated",
                "roundCeremony": "CeremonyDefault",
                "winningTeam": "Blue",
                "playerStats": [
                    _stats(red1),
                    _stats(red2),
                    _stats(blue1, kills=[_kill(blue1, red1, [blue2]), _kill(blue1, red2)], damage=[(red1, 150), (red2, 150)]),
                    _stats(blue2, damage=[(red1, 50)]),
                ],
            },
            {
                "roundNum": 2,
                "roundResult": "Bomb defused",
                "roundCeremony": "CeremonyClutch",
                "winningTeam": "Red",
                "bombDefuser": red2,
                "defuseRoundTime": 80000,
                "defuseLocation": {"x": 5010.0, "y": -1990.0},
                "plantSite": "",
                "playerStats": [
                    _stats(red1),
                    _stats(red2, kills=[_kill(red2, blue1)], damage=[(blue1, 160)]),
                    _stats(blue1),
                    _stats(blue2, kills=[_kill(blue2, red1)], damage=[(red1, 150)]),
                ],
            },
        ],
    }


@pytest.fixture
def match_payload() -> Dict[str, Any]:
    """A fresh, independently mutable copy of the sample match."""
    return copy.deepcopy(build_match_payload())


@pytest.fixture
def make_match_payload():
    """Factory for sample matches with a chosen match id."""
    return build_match_payload


@pytest.fixture
def team_with_member(db_session: Session):
    """Team T1 with member user-1, and team T2 with member user-2."""
    from app.models import Team, TeamMember

    db_session.add_all([
        Team(id="T1", name="Team One"),
        Team(id="T2", name="Team Two"),
    ])
    db_session.flush()
    db_session.add_all([
        TeamMember(team_id="T1", user_id="user-1", role="owner"),
        TeamMember(team_id="T2", user_id="user-2", role="owner"),
    ])
    db_session.commit()
    return "T1", "user-1"
