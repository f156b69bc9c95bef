import logging
from dataclasses import dataclass
from typing import Optional, Iterable

from sightpath.schemas.detection import Detection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProminentObject:
    name: str
    size: float


def select_prominent(detections: Iterable[Detection]) -> Optional[ProminentObject]:
    """
    Pick the instance with the largest width + height (normalized units).

    This is a sum of sides, not an area. Ties keep the first instance seen.
    """
    best: Optional[ProminentObject] = None
    for detection in detections:
        for instance in detection.instances:
            box = instance.bounding_box
            if box is None:
                continue
            size = box.width + box.height
            if best is None or size > best.size:
                best = ProminentObject(name=detection.name, size=size)
    return best


def describe_prominent(detections: Iterable[Detection], template: str, empty_sentence: str) -> str:
    prominent = select_prominent(detections)
    if prominent is None:
        return empty_sentence
    return template.format(name=prominent.name)


class SelectedLabelStore:
    """
    Latest spoken summary per session.

    The ``None`` key is the single process-wide slot older clients rely on;
    concurrent callers sharing it may read each other's sentence.
    """

    def __init__(self):
        self._labels: dict[Optional[str], str] = {}

    def set(self, sentence: str, session_id: Optional[str] = None):
        self._labels[session_id] = sentence
        logger.info(f"Selected label for session {session_id or '<shared>'}: {sentence}")

    def get(self, session_id: Optional[str] = None) -> Optional[str]:
        return self._labels.get(session_id)

    def clear(self):
        self._labels.clear()


label_store = SelectedLabelStore()
