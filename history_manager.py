"""
History Manager for SciCal
Keeps the most recent calculations in memory
"""
from collections import deque, namedtuple

import config
from evaluator import format_number

HistoryEntry = namedtuple("HistoryEntry", ["expression", "result"])


class HistoryManager:
    def __init__(self, limit=config.MAX_HISTORY_ITEMS):
        self.limit = limit
        self._entries = deque(maxlen=limit)

    def __len__(self):
        return len(self._entries)

    def add_calculation(self, expression, result):
        """Add a calculation to history, evicting the oldest past the limit"""
        entry = HistoryEntry(expression, result)
        self._entries.append(entry)
        return entry

    def get_calculation_history(self, limit=None):
        """Get calculation history, most recent first"""
        history = list(reversed(self._entries))
        if limit is not None:
            return history[:limit]
        return history

    def format_calculation_history(self):
        """Format calculation history for display"""
        return [format_entry(entry) for entry in self.get_calculation_history()]


def format_entry(entry):
    return f"{entry.expression} = {format_number(entry.result)}"
