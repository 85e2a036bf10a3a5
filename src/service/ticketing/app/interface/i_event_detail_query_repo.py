from abc import ABC, abstractmethod
from typing import List

from src.service.ticketing.domain.entity.event_detail_entity import EventDetail


class IEventDetailQueryRepo(ABC):
    @abstractmethod
    async def get_by_ids(self, *, event_detail_ids: List[int]) -> List[EventDetail]:
        """Batch read, joined with the parent event title. Unknown ids are absent."""
        pass
