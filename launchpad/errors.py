"""Exceptions raised by the training engine."""


class LaunchpadError(Exception):
    """Base class for engine errors."""


class VariantReplayError(LaunchpadError):
    """A stored move sequence cannot be replayed from the start position.

    Fatal for the whole session build: a partial index would skew the
    statistics of every variant overlapping the dropped one.
    """

    def __init__(self, pgn: str, reason: str):
        super().__init__(f"Invalid PGN for variant '{pgn}': {reason}")
        self.pgn = pgn
        self.reason = reason


class PositionError(LaunchpadError):
    """A call was made at a position that does not allow it (caller bug)."""

    def __init__(self, position: str, message: str):
        super().__init__(message)
        self.position = position


class NoApplicableMove(PositionError):
    def __init__(self, position: str, ply_index: int):
        super().__init__(
            position,
            f"No next move available for position '{position}' at ply {ply_index}.",
        )
        self.ply_index = ply_index


class UnknownPosition(PositionError):
    def __init__(self, position: str):
        super().__init__(
            position,
            f"Cannot complete - no variant is available for position '{position}'.",
        )


class AmbiguousCompletion(PositionError):
    def __init__(self, position: str, count: int):
        super().__init__(
            position,
            f"Cannot complete - {count} variants end at position '{position}'; "
            "one stored variant is a prefix of another.",
        )
        self.count = count


class StaleSnapshotError(LaunchpadError):
    """The stored repertoire changed since it was loaded."""

    def __init__(self, username: str, expected_version: int):
        super().__init__(
            f"Repertoire of '{username}' was modified concurrently (expected version {expected_version})."
        )
        self.username = username
        self.expected_version = expected_version
