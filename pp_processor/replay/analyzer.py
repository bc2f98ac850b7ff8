import abc
import importlib

from pp_processor.log import log
from pp_processor.models.replay import ReplayData

logger = log("ReplayAnalyzer")


class ReplayAnalyzerError(Exception):
    """The replay analyzer could not be loaded."""


class ReplayAnalyzer(abc.ABC):
    """Decodes raw ``.odr`` replay bytes."""

    @abc.abstractmethod
    async def analyze(self, raw: bytes) -> ReplayData | None:
        raise NotImplementedError

    async def init(self) -> None:
        """Initialize the analyzer (if needed)."""
        pass


async def load_replay_analyzer(path: str) -> ReplayAnalyzer:
    """Import an analyzer given as ``module:ClassName``."""
    if not path:
        raise ReplayAnalyzerError("No replay analyzer is configured")

    module_name, _, class_name = path.partition(":")
    try:
        module = importlib.import_module(module_name)
        analyzer = getattr(module, class_name or "ReplayAnalyzer")()
    except (ImportError, AttributeError, TypeError) as e:
        raise ReplayAnalyzerError(f"Failed to import replay analyzer {path}") from e

    if not isinstance(analyzer, ReplayAnalyzer):
        raise ReplayAnalyzerError(f"{path} is not a ReplayAnalyzer")
    await analyzer.init()
    return analyzer


async def decode_replay(analyzer: ReplayAnalyzer, raw: bytes | None, description: str) -> ReplayData | None:
    if raw is None:
        return None
    try:
        return await analyzer.analyze(raw)
    except Exception as e:
        logger.warning(f"{description} cannot be parsed: {e}")
        return None
