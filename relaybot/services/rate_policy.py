"""Sliding single-window rate policy.

Pure functions only: the session store decides when to call them and owns
all synchronization.
"""
from dataclasses import replace

from relaybot.models.session import ConversationSession

WINDOW_SECONDS = 60.0
# A window tolerates this many counted messages after the one that opened it.
COUNTER_LIMIT = 4


def evaluate(session: ConversationSession, now: float) -> ConversationSession:
    """Account for one more message at *now* and return the next state.

    Rollover is checked first; a message arriving exactly one window after the
    window start opens a new window rather than counting against the old one.
    """
    counter = session.request_counter + 1

    if now >= session.last_message_time + WINDOW_SECONDS:
        return replace(
            session,
            last_message_time=now,
            request_counter=0,
            is_allowed=True,
            is_notified=False,
            last_seen=now,
        )

    if counter > COUNTER_LIMIT:
        return replace(session, request_counter=counter, is_allowed=False, last_seen=now)

    return replace(session, request_counter=counter, last_seen=now)
