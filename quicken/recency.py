"""Most-recently-used candidates per language plugin."""

from typing import Sequence, TypeVar

T = TypeVar("T")


class RecencyTracker:
    """Bounded most-recent-first list of candidate ids per plugin.

    Re-selecting an id moves it to the front instead of duplicating it; the
    oldest id is dropped once a list exceeds ``limit``.
    """

    def __init__(self, limit: int = 30):
        self.limit = limit
        self._data: dict[str, list[str]] = {}

    def has(self, plugin: str) -> bool:
        return len(self._data.get(plugin, [])) > 0

    def rank(self, plugin: str, candidates: Sequence[T]) -> list[T]:
        """Stable-sort candidates by recency; unranked ones keep their order after."""
        if not self.has(plugin):
            return list(candidates)

        ranks = {candidate_id: rank for rank, candidate_id in enumerate(self._data[plugin])}
        unranked = len(ranks)
        return sorted(candidates, key=lambda candidate: ranks.get(candidate.id, unranked))

    def mark_used(self, plugin: str, candidate_id: str) -> None:
        history = self._data.setdefault(plugin, [])
        if candidate_id in history:
            history.remove(candidate_id)
        history.insert(0, candidate_id)
        del history[self.limit:]

    def recent_ids(self, plugin: str) -> list[str]:
        return list(self._data.get(plugin, []))

    def from_dict(self, data: dict[str, list[str]]) -> None:
        for plugin, history in data.items():
            self._data[plugin] = list(history or [])[:self.limit]

    def to_dict(self) -> dict[str, list[str]]:
        return {plugin: list(history) for plugin, history in self._data.items()}
