from __future__ import annotations

import math
from typing import NamedTuple

from pp_processor.calculator import calculate_pp_weight
from pp_processor.models.pp import PPEntry

MAX_ENTRIES = 75


class InsertResult(NamedTuple):
    accepted: bool
    evicted_replay_needs_deletion: bool
    # Entries that left the list: a replaced same-beatmap entry and anything truncated.
    evicted: list[PPEntry]


class BestPlayRanker:
    def __init__(self, capacity: int = MAX_ENTRIES):
        self.capacity = capacity

    def can_insert(self, entries: list[PPEntry], entry: PPEntry) -> bool:
        """Cheap pre-check before computing anything expensive for ``entry``."""
        if len(entries) < self.capacity:
            return True
        current = next((e for e in entries if e.hash == entry.hash), entries[-1])
        return current.pp < entry.pp

    def insert(self, entries: list[PPEntry], entry: PPEntry) -> InsertResult:
        """Insert ``entry`` in place, keeping ``entries`` sorted by pp descending."""
        if math.isnan(entry.pp):
            return InsertResult(False, False, [])

        evicted: list[PPEntry] = []
        existing_index = next((i for i, e in enumerate(entries) if e.hash == entry.hash), None)

        if existing_index is not None:
            if entries[existing_index].pp >= entry.pp:
                return InsertResult(False, False, [])
            evicted.append(entries[existing_index])
            entries[existing_index] = entry
        elif len(entries) >= self.capacity and entries[-1].pp >= entry.pp:
            return InsertResult(False, False, [])
        else:
            entries.append(entry)

        entries.sort(key=lambda e: e.pp, reverse=True)

        # Stays False: a same-beatmap replacement keeps the length, and truncation only
        # reaches entries of other beatmaps. Callers still honour it.
        needs_deletion = False
        while len(entries) > self.capacity:
            removed = entries.pop()
            if removed.hash == entry.hash:
                needs_deletion = True
            evicted.append(removed)

        return InsertResult(True, needs_deletion, evicted)


def calculate_total_pp(entries: list[PPEntry]) -> float:
    ordered = sorted(entries, key=lambda e: e.pp, reverse=True)
    return sum(e.pp * calculate_pp_weight(i) for i, e in enumerate(ordered))


def calculate_weighted_accuracy(entries: list[PPEntry]) -> float:
    if not entries:
        return 1.0

    ordered = sorted(entries, key=lambda e: e.pp, reverse=True)
    acc_sum = 0.0
    weight = 0.0
    for i, e in enumerate(ordered):
        acc_sum += e.accuracy * calculate_pp_weight(i)
        weight += calculate_pp_weight(i)
    return acc_sum / weight
