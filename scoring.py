"""Crowd Pick – visitor scoring.

A vote is a *majority* vote when it lands on the side holding at least half
of the character's votes (this vote included).  At exactly 50% both sides
count as majority.

    majority points = floor((majority% - 50) * 2)
    minority points = floor((50 - minority%) * 3)

Skips earn nothing and leave streaks alone.
"""

import math
import random
import string

from config import VISITOR_ID_PREFIX

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_visitor_id():
    return VISITOR_ID_PREFIX + "".join(random.choices(_ID_ALPHABET, k=7))


def default_stats(visitor_id=None):
    return {
        "majorityStreak": 0,
        "minorityStreak": 0,
        "majorityTotal": 0,
        "minorityTotal": 0,
        "yesVotesTotal": 0,
        "noVotesTotal": 0,
        "skipsTotal": 0,
        "majorityPoints": 0,
        "minorityPoints": 0,
        "lastEarnedPoints": 0,
        "interactedCharacters": [],
        "sessionId": visitor_id or new_visitor_id(),
    }


def yes_percentage(yes_votes, total_votes):
    """Share of yes votes in percent, or None when nobody has voted."""
    if not total_votes:
        return None
    return yes_votes / total_votes * 100.0


def is_majority(vote, yes_pct):
    return (vote and yes_pct >= 50) or (not vote and yes_pct <= 50)


def points_for(majority, yes_pct):
    if majority:
        return math.floor((max(yes_pct, 100 - yes_pct) - 50) * 2)
    return math.floor((50 - min(yes_pct, 100 - yes_pct)) * 3)


def _copy(stats):
    new = dict(stats)
    new["interactedCharacters"] = list(stats.get("interactedCharacters", []))
    return new


def apply_vote(stats, character_id, vote, yes_pct):
    """Return the stats after a vote; ``stats`` itself is left untouched."""
    new = _copy(stats)
    majority = is_majority(vote, yes_pct)

    if vote:
        new["yesVotesTotal"] += 1
    else:
        new["noVotesTotal"] += 1

    earned = points_for(majority, yes_pct)
    if majority:
        new["majorityTotal"] += 1
        new["majorityStreak"] += 1
        new["minorityStreak"] = 0
        new["majorityPoints"] += earned
    else:
        new["minorityTotal"] += 1
        new["minorityStreak"] += 1
        new["majorityStreak"] = 0
        new["minorityPoints"] += earned
    new["lastEarnedPoints"] = earned

    new["interactedCharacters"].append(character_id)
    return new


def apply_skip(stats, character_id):
    new = _copy(stats)
    new["lastEarnedPoints"] = 0
    new["skipsTotal"] += 1
    new["interactedCharacters"].append(character_id)
    return new


def rating(stats):
    """Yes votes as a rounded share of all votes, None before the first vote."""
    pct = yes_percentage(
        stats["yesVotesTotal"], stats["yesVotesTotal"] + stats["noVotesTotal"]
    )
    return None if pct is None else round(pct)
