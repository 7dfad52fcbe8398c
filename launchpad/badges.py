"""Repertoire progress numbers: oldest variant, 80th percentile age, error count."""

from models import BadgeSummary, RepertoireSnapshot


def percentile_index(n: int) -> int:
    return int(0.8 * (n - 1))


def calculate_eightieth_count(ages: list[int], current_eightieth: int) -> int:
    """How many of the oldest variants must be replayed to lower the 80th percentile age by one."""
    if current_eightieth <= 1:
        return 0

    target = current_eightieth - 1
    modified = sorted(ages)
    count = 0
    while modified:
        if modified[percentile_index(len(modified))] <= target:
            break
        # replaying the oldest variant resets its age to zero
        modified.pop()
        modified.insert(0, 0)
        count += 1
    return count


def summarize(snapshot: RepertoireSnapshot) -> BadgeSummary:
    if not snapshot.variants:
        return BadgeSummary()

    ages = sorted(max(snapshot.current_epoch - r.last_succeeded_epoch, 0) for r in snapshot.variants)
    oldest = ages[-1]
    eightieth = ages[percentile_index(len(ages))]
    return BadgeSummary(
        oldest=oldest,
        oldest_count=ages.count(oldest),
        eightieth=eightieth,
        eightieth_count=calculate_eightieth_count(ages, eightieth),
        errors_count=sum(1 for r in snapshot.variants if r.error_ema > 1),
        total=len(ages),
        daily_count=snapshot.daily_play_count,
    )
