"""Static league configuration constants."""

# Ping-pong-ball combinations for the 14 lottery slots, worst team first.
LOTTERY_BASE_WEIGHTS: tuple[int, ...] = (250, 199, 156, 119, 88, 63, 43, 28, 17, 11, 8, 7, 6, 5)
LOTTERY_TOTAL_WEIGHT = 1000
LOTTERY_WINNER_SLOTS = 3
# Lottery winners slide behind their tied peers for later tiebreaks.
LOTTERY_WINNER_PENALTY = 30

DRAFT_ROUNDS = 2
FANTASY_DRAFT_ROUNDS = 12
FANTASY_SHUFFLE_ATTEMPTS = 1000
DRAFT_SELECTION_STDEV = 2.0

DEFAULT_NUM_TEAMS = 30
DEFAULT_MIN_CONTRACT = 500
DEFAULT_MAX_CONTRACT = 20000

# Rookie scale in thousands per year, sized for 30 teams x 2 rounds.
ROOKIE_SALARY_BASE: tuple[int, ...] = (
    5000, 4500, 4000, 3500, 3000, 2750, 2500, 2250, 2000, 1900,
    1800, 1700, 1600, 1500, 1400, 1300, 1200, 1100, 1000, 1000,
    1000, 1000, 1000, 1000, 1000, 1000, 1000, 1000, 1000, 1000,
    500, 500, 500, 500, 500, 500, 500, 500, 500, 500,
    500, 500, 500, 500, 500, 500, 500, 500, 500, 500,
    500, 500, 500, 500, 500, 500, 500, 500, 500, 500,
)
ROOKIE_SALARY_FLOOR = 500
ROOKIE_SALARY_SPREAD = 4500

ALL_STAR_HOME_TID = -1
ALL_STAR_AWAY_TID = -2

PROSPECTS_PER_30_TEAMS = 70
PROSPECT_BASE_AGE = 19
UPCOMING_GAMES_LIMIT = 5
ROSTER_SIZE = 13
