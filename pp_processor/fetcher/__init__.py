from .beatmap import BeatmapFetcher
from .beatmap_raw import BeatmapRawFetcher
from .replay import ReplayFetcher


class Fetcher(BeatmapFetcher, BeatmapRawFetcher, ReplayFetcher):
    """A class that combines all fetchers for easy access."""

    pass


__all__ = ["BeatmapFetcher", "BeatmapRawFetcher", "Fetcher", "ReplayFetcher"]
