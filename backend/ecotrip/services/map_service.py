import logging
import threading
from typing import Iterator, Optional

from ecotrip.llm.errors import InvalidResponseError
from ecotrip.llm.gemini_backend import GeminiContentBackend, MapFeature
from ecotrip.llm.stream import peek_first

logger = logging.getLogger(__name__)


class MapPlannerService:
    def __init__(self, backend: GeminiContentBackend):
        self.backend = backend

    def stream_features(
        self,
        prompt: str,
        planner_mode: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterator[MapFeature]:
        """
        Start a map plan and return its features as a lazy iterator.

        The first feature is pulled before returning so that an empty or
        tool-less answer is reported as an error instead of an empty stream.
        """
        features = self.backend.plan_map(prompt, planner_mode=planner_mode, cancel_event=cancel_event)
        first, rest = peek_first(features)
        if first is None:
            raise InvalidResponseError("Could not generate any results. Try again.")
        logger.info("Map plan started for prompt %r (planner_mode=%s)", prompt[:80], planner_mode)
        return rest
