from pp_processor.log import fetcher_logger

from httpx import AsyncClient, HTTPError, Response

logger = fetcher_logger("Fetcher")


class BaseFetcher:
    def __init__(self, base_url: str, api_key: str = "", remote_replay_url: str = "", timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.remote_replay_url = remote_replay_url.rstrip("/")
        self._client = AsyncClient(timeout=timeout)

    async def _request(self, url: str, params: dict[str, str] | None = None) -> Response | None:
        try:
            return await self._client.get(url, params=params)
        except HTTPError as e:
            logger.warning(f"Request to {url} failed: {e}")
            return None

    async def close(self) -> None:
        await self._client.aclose()
