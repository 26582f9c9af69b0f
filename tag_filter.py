"""Crowd Pick – tri-state tag filter.

Every known tag is in exactly one state: neutral, included or excluded.
The included and excluded sets are disjoint by construction because each
tag holds a single state value.

Transitions:
    primary   (include)  neutral -> included, included -> neutral, excluded -> included
    secondary (exclude)  neutral -> excluded, excluded -> neutral, included -> excluded
    reset                any -> neutral
"""

NEUTRAL = "neutral"
INCLUDED = "included"
EXCLUDED = "excluded"
STATES = (NEUTRAL, INCLUDED, EXCLUDED)

NO_FILTER_SUMMARY = "No filters applied (showing all results)"


def primary_toggle(state):
    """Next state after an include action."""
    return NEUTRAL if state == INCLUDED else INCLUDED


def secondary_toggle(state):
    """Next state after an exclude action."""
    return NEUTRAL if state == EXCLUDED else EXCLUDED


def query_params(included=(), excluded=()):
    """Query parameters for GET /api/character/random (without seen ids)."""
    params = {}
    if included:
        params["tags"] = ",".join(included)
    if excluded:
        params["exclude"] = ",".join(excluded)
    return params


class TagFilter:
    """Per-tag filter state plus lazily rebuilt summaries."""

    def __init__(self, tags=()):
        # dict keeps the universe in first-seen order
        self._states = {tag: NEUTRAL for tag in tags}
        self._search = ""
        self._summary = None
        self._payload = None

    # ── Universe ─────────────────────────────────────────────────────────
    @property
    def tags(self):
        return list(self._states)

    def state(self, tag):
        return self._states[tag]

    def __contains__(self, tag):
        return tag in self._states

    def __len__(self):
        return len(self._states)

    # ── Search ───────────────────────────────────────────────────────────
    @property
    def search(self):
        return self._search

    @search.setter
    def search(self, text):
        self._search = (text or "").lower()

    def visible(self):
        """Tags whose name contains the current search term (case-insensitive)."""
        return [t for t in self._states if self._search in t.lower()]

    # ── Transitions ──────────────────────────────────────────────────────
    def set_state(self, tag, state, _batch=False):
        if state not in STATES:
            raise ValueError(f"Unknown tag state: {state!r}")
        if tag not in self._states:
            raise KeyError(tag)
        self._states[tag] = state
        if not _batch:
            self._invalidate()
        return state

    def toggle_include(self, tag):
        return self.set_state(tag, primary_toggle(self._states[tag]))

    def toggle_exclude(self, tag):
        return self.set_state(tag, secondary_toggle(self._states[tag]))

    def reset(self, tag):
        return self.set_state(tag, NEUTRAL)

    def clear_all(self):
        for tag in self._states:
            self._states[tag] = NEUTRAL
        self._invalidate()

    def apply_to_visible(self, state):
        """Apply one state to every tag passing the search filter.

        Summaries are invalidated once after the whole batch.
        """
        changed = self.visible()
        for tag in changed:
            self.set_state(tag, state, _batch=True)
        self._invalidate()
        return changed

    def include_visible(self):
        return self.apply_to_visible(INCLUDED)

    def exclude_visible(self):
        return self.apply_to_visible(EXCLUDED)

    # ── Queries ──────────────────────────────────────────────────────────
    def selected(self):
        """Return (included, excluded) tag lists in universe order."""
        included = [t for t, s in self._states.items() if s == INCLUDED]
        excluded = [t for t, s in self._states.items() if s == EXCLUDED]
        return included, excluded

    @property
    def summary(self):
        if self._summary is None:
            self._summary = self._build_summary()
        return self._summary

    @property
    def payload(self):
        if self._payload is None:
            included, excluded = self.selected()
            self._payload = {"included": included, "excluded": excluded}
        return self._payload

    # ── Persistence ──────────────────────────────────────────────────────
    def to_dict(self):
        return {t: s for t, s in self._states.items() if s != NEUTRAL}

    @classmethod
    def from_dict(cls, tags, saved):
        """Rebuild a filter over ``tags``; saved states for unknown tags are dropped."""
        tag_filter = cls(tags)
        for tag, state in (saved or {}).items():
            if tag in tag_filter and state in STATES:
                tag_filter._states[tag] = state
        return tag_filter

    # ── Internals ────────────────────────────────────────────────────────
    def _invalidate(self):
        self._summary = None
        self._payload = None

    def _build_summary(self):
        included, excluded = self.selected()
        parts = []
        if included:
            parts.append(f"Must include: {', '.join(included)}")
        if excluded:
            parts.append(f"Must exclude: {', '.join(excluded)}")
        return " | ".join(parts) if parts else NO_FILTER_SUMMARY
