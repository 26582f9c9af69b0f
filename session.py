"""Crowd Pick – one visitor's voting session.

All per-visitor state (current character, in-flight guard, running stats,
tag filter) lives on a VotingSession owned by the caller.  The session talks
to a *backend*: ``client.ApiClient`` over HTTP, or ``LocalBackend`` against a
Database in the same process.
"""

import logging

import recorder
import selector
from scoring import apply_skip, apply_vote, is_majority, yes_percentage
from tag_filter import TagFilter

logger = logging.getLogger(__name__)


class LocalBackend:
    """Backend that calls the selector and recorder directly on a Database."""

    def __init__(self, db):
        self.db = db

    def get_tags(self):
        return self.db.get_all_tags()

    def random_character(self, included, excluded, seen):
        return selector.select_random(self.db, included, excluded, seen)

    def vote(self, character_id, visitor_id, vote):
        return recorder.record_vote(self.db, character_id, visitor_id, vote)

    def skip(self, character_id, visitor_id):
        return recorder.record_skip(self.db, character_id, visitor_id)

    def results(self, character_id):
        return recorder.get_results(self.db, character_id)


class VotingSession:
    def __init__(self, backend, store, tag_filter=None):
        self.backend = backend
        self.store = store
        self.tag_filter = tag_filter if tag_filter is not None else TagFilter()
        self.stats = store.load_current()
        self.current_character = None
        # Held from the moment a vote/skip is sent until the next character
        # loads.  A request that never settles keeps it held until abandon().
        self.awaiting_next_character = False

    @property
    def visitor_id(self):
        return self.stats["sessionId"]

    def load_tags(self):
        """Rebuild the tag filter over the current tag universe, keeping choices."""
        self.tag_filter = TagFilter.from_dict(
            self.backend.get_tags(), self.tag_filter.to_dict()
        )
        return self.tag_filter

    def load_character(self):
        """Fetch the next eligible character; None when the filters match nothing."""
        self.awaiting_next_character = False
        self.stats = self.store.load(self.visitor_id)
        included, excluded = self.tag_filter.selected()
        character = self.backend.random_character(
            included, excluded, self.stats["interactedCharacters"]
        )
        self.current_character = character
        if character is None:
            logger.info("No character matches the current filters")
        return character

    def _claim(self):
        if self.current_character is None or self.awaiting_next_character:
            return False
        self.awaiting_next_character = True
        return True

    def abandon(self):
        """Release the in-flight guard after a request that will never complete."""
        self.awaiting_next_character = False

    def vote(self, value):
        """Vote on the current character.  Returns the outcome, or None if ignored."""
        if not self._claim():
            return None
        character_id = self.current_character["id"]
        data = self.backend.vote(character_id, self.visitor_id, value)

        vote_stats = {
            "yesVotes": data["newYesVotes"],
            "noVotes": data["newNoVotes"],
            "totalVotes": data["totalVotes"],
        }
        yes_pct = yes_percentage(vote_stats["yesVotes"], vote_stats["totalVotes"])
        self.stats = apply_vote(self.stats, character_id, value, yes_pct)
        self.store.save(self.stats)
        return {
            "character": self.current_character,
            "voteType": value,
            "voteStats": vote_stats,
            "yesPercentage": yes_pct,
            "majority": is_majority(value, yes_pct),
            "earnedPoints": self.stats["lastEarnedPoints"],
            "stats": self.stats,
        }

    def skip(self):
        """Skip the current character.  Returns its community results, or None if ignored."""
        if not self._claim():
            return None
        character_id = self.current_character["id"]
        self.backend.skip(character_id, self.visitor_id)

        self.stats = apply_skip(self.stats, character_id)
        self.store.save(self.stats)

        results = self.backend.results(character_id)
        vote_stats = results["voteStats"] if results else {
            "yesVotes": 0, "noVotes": 0, "totalVotes": 0,
        }
        return {
            "character": self.current_character,
            "voteStats": vote_stats,
            "yesPercentage": yes_percentage(
                vote_stats["yesVotes"], vote_stats["totalVotes"]
            ),
            "earnedPoints": 0,
            "stats": self.stats,
        }

    def reset_stats(self):
        """Forget everything: new visitor id, empty seen set."""
        self.stats = self.store.reset()
        return self.stats
