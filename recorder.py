"""Crowd Pick – vote / skip recording and live aggregates.

Interactions are append-only events.  A character's yes/no split is always
counted from the event log, never kept as a running counter, so concurrent
voters can only observe a slightly stale count, never corrupt one.
"""

import logging

from database import SQLITE_INT_MAX, SQLITE_INT_MIN
from errors import ValidationError

logger = logging.getLogger(__name__)

ACTION_VOTE = "vote"
ACTION_SKIP = "skip"


def aggregate_votes(grouped):
    """Fold (vote_value, count) pairs into {yesVotes, noVotes, totalVotes}.

    Rows whose vote value is None (skips) are ignored.
    """
    yes = no = 0
    for value, count in grouped:
        if value is None:
            continue
        if value:
            yes += count
        else:
            no += count
    return {"yesVotes": yes, "noVotes": no, "totalVotes": yes + no}


def _validate_character_id(character_id):
    if isinstance(character_id, bool):
        raise ValidationError("characterId must be an integer")
    try:
        character_id = int(character_id)
    except (TypeError, ValueError):
        raise ValidationError("characterId must be an integer") from None
    if not SQLITE_INT_MIN <= character_id <= SQLITE_INT_MAX:
        raise ValidationError("characterId out of range")
    return character_id


def _validate_visitor_id(visitor_id):
    if not isinstance(visitor_id, str) or not visitor_id.strip():
        raise ValidationError("sessionId required")
    return visitor_id


def record_vote(db, character_id, visitor_id, vote):
    """Append a vote and return the aggregate as it stands including this vote.

    The returned counts are computed from the pre-insert read plus this vote;
    they are not re-read after the insert.
    """
    character_id = _validate_character_id(character_id)
    visitor_id = _validate_visitor_id(visitor_id)
    if not isinstance(vote, bool):
        raise ValidationError("sessionId and voteType (boolean) required")

    current = aggregate_votes(db.get_vote_counts(character_id))
    new_yes = current["yesVotes"] + (1 if vote else 0)
    new_no = current["noVotes"] + (0 if vote else 1)

    db.insert_interaction(character_id, visitor_id, ACTION_VOTE, int(vote))
    logger.debug(
        "Vote %s on character %s by %s (%d/%d)",
        "yes" if vote else "no", character_id, visitor_id, new_yes, new_no,
    )
    return {
        "success": True,
        "characterId": character_id,
        "voteType": vote,
        "totalVotes": new_yes + new_no,
        "newYesVotes": new_yes,
        "newNoVotes": new_no,
    }


def record_skip(db, character_id, visitor_id):
    character_id = _validate_character_id(character_id)
    visitor_id = _validate_visitor_id(visitor_id)

    db.insert_interaction(character_id, visitor_id, ACTION_SKIP, None)
    logger.debug("Skip on character %s by %s", character_id, visitor_id)
    return {"success": True, "characterId": character_id}


def get_results(db, character_id):
    """Character plus its current vote split, or None if the id is unknown.

    Reading results never records anything.
    """
    character_id = _validate_character_id(character_id)
    character = db.get_character(character_id)
    if character is None:
        return None
    return {
        "character": character,
        "voteStats": aggregate_votes(db.get_vote_counts(character_id)),
    }


def get_interactions(db, visitor_id):
    """A visitor's interaction history, newest first."""
    visitor_id = _validate_visitor_id(visitor_id)
    events = db.get_interactions(visitor_id)
    for event in events:
        if event["vote_type"] is not None:
            event["vote_type"] = bool(event["vote_type"])
    return events
