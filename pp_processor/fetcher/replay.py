from pp_processor.log import fetcher_logger

from ._base import BaseFetcher

logger = fetcher_logger("ReplayFetcher")


class ReplayFetcher(BaseFetcher):
    async def get_replay(self, folder: str, score_id: int) -> bytes | None:
        url = f"{self.remote_replay_url}/{folder}/{score_id}.odr"
        logger.opt(colors=True).debug(f"get_replay: <y>{url}</y>")
        resp = await self._request(url)
        if resp is None or resp.status_code >= 400:
            return None
        return resp.content
