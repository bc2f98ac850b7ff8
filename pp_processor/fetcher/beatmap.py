from typing import Any

from pp_processor.log import fetcher_logger

from ._base import BaseFetcher

logger = fetcher_logger("BeatmapFetcher")


class BeatmapFetcher(BaseFetcher):
    async def get_beatmap(self, id_or_hash: int | str) -> dict[str, Any] | None:
        """Fetch beatmap metadata in osu! API v1 format, ``None`` if it cannot be obtained."""
        params = {"key": self.api_key}
        if isinstance(id_or_hash, int):
            params["id"] = str(id_or_hash)
        else:
            params["hash"] = id_or_hash

        logger.opt(colors=True).debug(f"get_beatmap: <y>{id_or_hash}</y>")
        resp = await self._request(f"{self.base_url}/getbeatmap", params)
        if resp is None or resp.status_code >= 400:
            return None

        data = resp.json()
        if isinstance(data, list):
            return data[0] if data else None
        return data or None
