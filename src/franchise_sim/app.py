from __future__ import annotations

from .config import DEFAULT_NUM_TEAMS
from .models import Team

CONFERENCES = ("Eastern", "Western")

DIVISIONS: dict[str, list[tuple[str, str, str]]] = {
    "Atlantic": [
        ("Boston", "Harbor Hawks", "BOS"),
        ("Brooklyn", "Bridges", "BKN"),
        ("New York", "Empire", "NYE"),
        ("Philadelphia", "Liberty", "PHI"),
        ("Toronto", "Northmen", "TOR"),
    ],
    "Central": [
        ("Chicago", "Windrunners", "CHI"),
        ("Cleveland", "Ironworks", "CLE"),
        ("Detroit", "Motors", "DET"),
        ("Indiana", "Racers", "IND"),
        ("Milwaukee", "Lakers", "MIL"),
    ],
    "Southeast": [
        ("Atlanta", "Peaches", "ATL"),
        ("Charlotte", "Queens", "CHA"),
        ("Miami", "Surf", "MIA"),
        ("Orlando", "Comets", "ORL"),
        ("Washington", "Capitols", "WAS"),
    ],
    "Northwest": [
        ("Denver", "Altitude", "DEN"),
        ("Minneapolis", "Frost", "MIN"),
        ("Oklahoma City", "Thunderbirds", "OKC"),
        ("Portland", "Timber", "POR"),
        ("Salt Lake", "Summit", "SLC"),
    ],
    "Pacific": [
        ("Golden State", "Waves", "GSW"),
        ("Los Angeles", "Stars", "LAS"),
        ("Los Angeles", "Palms", "LAP"),
        ("Phoenix", "Heatwave", "PHX"),
        ("Sacramento", "Miners", "SAC"),
    ],
    "Southwest": [
        ("Dallas", "Longhorns", "DAL"),
        ("Houston", "Rockets", "HOU"),
        ("Memphis", "Blues", "MEM"),
        ("New Orleans", "Jazzmen", "NOL"),
        ("San Antonio", "Missions", "SAN"),
    ],
}


def build_default_teams(num_teams: int = DEFAULT_NUM_TEAMS) -> list[Team]:
    """Default league teams, tids in order, each with conference and division.

    Leagues larger than the built-in set get numbered expansion teams.
    """
    if num_teams < 1:
        raise ValueError(f"A league needs at least one team, got {num_teams}")

    division_cids: list[int] = []
    teams: list[Team] = []
    for did, (division, entries) in enumerate(DIVISIONS.items()):
        conference = "Eastern" if division in {"Atlantic", "Central", "Southeast"} else "Western"
        cid = CONFERENCES.index(conference)
        division_cids.append(cid)
        for region, name, abbrev in entries:
            if len(teams) >= num_teams:
                return teams
            teams.append(Team(tid=len(teams), cid=cid, did=did, region=region, name=name, abbrev=abbrev))

    while len(teams) < num_teams:
        tid = len(teams)
        did = tid % len(DIVISIONS)
        teams.append(
            Team(
                tid=tid,
                cid=division_cids[did],
                did=did,
                region="Expansion",
                name=f"Club {tid + 1}",
                abbrev=f"X{tid + 1:02d}",
            )
        )
    return teams
