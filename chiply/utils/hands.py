"""Hand-count estimate for live games."""

# Approximate hands dealt per hour in a live game, by number of seated players.
HANDS_PER_HOUR = {
    2: 60,
    3: 50,
    4: 45,
    5: 40,
    6: 37,
    7: 34,
    8: 32,
    9: 30,
}
FULL_RING_HANDS_PER_HOUR = 28


def hands_per_hour(player_count: int) -> int:
    """Dealing rate for a table size. Tables of 1 use the heads-up rate."""
    if player_count >= 10:
        return FULL_RING_HANDS_PER_HOUR
    return HANDS_PER_HOUR[max(player_count, 2)]


def estimate_hands(player_count: int, minutes: int) -> int:
    """Estimate hands played over a stretch of time.

    Non-decreasing in minutes for a fixed player count.

    Args:
        player_count: Players seated in the session (> 0).
        minutes: Whole minutes played.

    Returns:
        Estimated number of hands, rounded down.
    """
    if player_count <= 0 or minutes <= 0:
        return 0
    return minutes * hands_per_hour(player_count) // 60
