"""In-memory text storage for boxes."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Optional


@dataclass(slots=True)
class Box:
    text: str
    last_updated: float


class BoxStore:
    """Key-value store of box id to its current text and modification time.

    The store does no locking of its own; callers go through ``BoxRegistry``.
    """

    def __init__(self) -> None:
        self._boxes: Dict[str, Box] = {}

    def get(self, box_id: str) -> Optional[Box]:
        return self._boxes.get(box_id)

    def set(self, box_id: str, text: str, timestamp: float) -> Box:
        box = self._boxes.get(box_id)
        if box is None:
            box = Box(text=text, last_updated=timestamp)
            self._boxes[box_id] = box
        else:
            box.text = text
            box.last_updated = timestamp
        return box

    def delete(self, box_id: str) -> bool:
        return self._boxes.pop(box_id, None) is not None

    def __contains__(self, box_id: object) -> bool:
        return box_id in self._boxes

    def items(self) -> Iterator[tuple[str, Box]]:
        return iter(list(self._boxes.items()))
