from __future__ import annotations

from .random_source import RandomSource

FIRST_NAMES = [
    "Aaron", "Andre", "Anthony", "Avery", "Bennett", "Brandon", "Caleb", "Cameron", "Chris", "Darius",
    "Damian", "DeShawn", "Devin", "Dominic", "Elijah", "Emeka", "Evan", "Gabriel", "Isaiah", "Jalen",
    "Jamal", "Jaylen", "Jordan", "Josh", "Julian", "Justin", "Kendrick", "Kevin", "Kobe", "Lamar",
    "Luka", "Malik", "Marcus", "Mason", "Miles", "Nikola", "Noah", "Omar", "Patrick", "Quentin",
    "Reggie", "Rudy", "Scottie", "Terrence", "Tobias", "Trey", "Tyrese", "Victor", "Xavier", "Zion",
]

LAST_NAMES = [
    "Adams", "Allen", "Bailey", "Barnes", "Bell", "Brooks", "Bryant", "Carter", "Coleman", "Davis",
    "Edwards", "Evans", "Fields", "Fox", "Gibson", "Grant", "Green", "Harris", "Hayes", "Hill",
    "Holmes", "Irving", "Jackson", "James", "Johnson", "Jones", "King", "Lewis", "Mitchell", "Moore",
    "Murray", "Nelson", "Okafor", "Parker", "Porter", "Reed", "Robinson", "Sanders", "Simmons", "Smith",
    "Thomas", "Thompson", "Turner", "Walker", "Wallace", "Warren", "Washington", "White", "Williams", "Young",
]


class NameGenerator:
    def __init__(self, rng: RandomSource) -> None:
        self._rng = rng
        self._used: set[tuple[str, str]] = set()

    def reserve(self, names: list[tuple[str, str]]) -> None:
        self._used.update(names)

    def next_name(self) -> tuple[str, str]:
        # Prefer unused pairs; a crowded league falls back to repeats.
        for _attempt in range(50):
            candidate = (self._rng.choice(FIRST_NAMES), self._rng.choice(LAST_NAMES))
            if candidate not in self._used:
                self._used.add(candidate)
                return candidate
        return (self._rng.choice(FIRST_NAMES), self._rng.choice(LAST_NAMES))
