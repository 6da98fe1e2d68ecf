"""
Pattern Learner: usage-frequency learning and proactive suggestions.

Counts recurring (intent, sentiment, entity-shape) signatures and turns the
frequent ones into automation suggestions.

Behavioral Contract:
- Counters are loaded once, at construction.
- Every increment is written through to the PatternStore immediately.
- A failing store never breaks learning: the in-memory count still advances.
- Suggestions are advisory only. Nothing is automated without the user.
"""

import logging
from typing import Dict, List, Optional, Tuple

from action_kernel.persistence.store import InMemoryPatternStore, PatternStore

logger = logging.getLogger(__name__)

# (substring of pattern key, frequency that must be exceeded, suggestion)
SUGGESTION_RULES: List[Tuple[str, int, str]] = [
    ("call", 5, "You frequently make calls - would you like to create a speed dial routine?"),
    ("note", 3, "You take many notes - enable automatic summarization?"),
    ("sms", 4, "You send SMS often - create message templates?"),
]


class PatternLearner:
    """Frequency counter over pattern keys, persisted through a PatternStore."""

    def __init__(self, store: Optional[PatternStore] = None, insight_limit: int = 20):
        self.store = store or InMemoryPatternStore()
        self.insight_limit = insight_limit
        self._patterns: Dict[str, int] = self._load()

    def _load(self) -> Dict[str, int]:
        try:
            return self.store.load()
        except Exception as e:
            logger.error("Failed to load patterns, starting empty: %s", e)
            return {}

    def record_pattern(self, key: str) -> int:
        """Increment a pattern counter and persist the snapshot. Returns the new count."""
        count = self._patterns.get(key, 0) + 1
        self._patterns[key] = count
        self._save()
        return count

    def _save(self) -> None:
        try:
            self.store.save(dict(self._patterns))
        except Exception as e:
            logger.error("Failed to save patterns: %s", e)

    def get_frequency(self, key: str) -> int:
        return self._patterns.get(key, 0)

    def get_pattern_insights(self, limit: Optional[int] = None) -> List[dict]:
        """Top patterns as {"pattern", "frequency"}, most frequent first."""
        limit = self.insight_limit if limit is None else limit
        ranked = sorted(self._patterns.items(), key=lambda kv: kv[1], reverse=True)
        return [
            {"pattern": pattern, "frequency": frequency}
            for pattern, frequency in ranked[:limit]
        ]

    def recent_patterns(self, count: int = 10) -> List[Tuple[str, int]]:
        """The most recently introduced pattern keys with their counts."""
        return list(self._patterns.items())[-count:]

    def suggest_based_on_patterns(self) -> List[str]:
        """Human-readable automation suggestions for frequent patterns."""
        suggestions: List[str] = []
        for insight in self.get_pattern_insights():
            for needle, threshold, message in SUGGESTION_RULES:
                if (
                    insight["frequency"] > threshold
                    and needle in insight["pattern"]
                    and message not in suggestions
                ):
                    suggestions.append(message)
        return suggestions

    def reset(self) -> None:
        """Forget every pattern and persist the empty map."""
        self._patterns = {}
        self._save()
