"""
Practice session state machine.

Each presence event advances a member's :class:`SessionStart` by one step:

    NEVER_STARTED / COMMITTED --live--> ACTIVE(now)            STARTED
    ACTIVE                    --live--> ACTIVE (same start)    CARRIED
    ACTIVE                    --idle--> COMMITTED              COMMITTED (+elapsed)
    NEVER_STARTED / COMMITTED --idle--> unchanged              NOOP

A COMMITTED session behaves like one that never started on the next event,
so replaying a non-live event after a commit records nothing further.
"""

from utils.types import SessionStart, SessionTransition, TransitionKind


def advance_session(previous: SessionStart, is_live_now: bool, now: int) -> SessionTransition:
    """
    Compute the session transition for one presence event.

    Args:
        previous: Session state carried over from the previous event
        is_live_now: Live-session verdict for the new presence snapshot
        now: Current unix timestamp in seconds

    Returns:
        The transition kind, the session to carry forward and, for a
        commit, the number of seconds practiced
    """
    if is_live_now:
        if previous.is_active:
            # Moving between permitted rooms keeps the original start time
            return SessionTransition(TransitionKind.CARRIED, previous)
        return SessionTransition(TransitionKind.STARTED, SessionStart.active(now))

    if not previous.is_active:
        return SessionTransition(TransitionKind.NOOP, previous)

    elapsed = max(previous.elapsed(now), 0)
    return SessionTransition(
        TransitionKind.COMMITTED,
        SessionStart.committed(),
        elapsed_seconds=elapsed,
    )
