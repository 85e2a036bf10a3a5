from abc import ABC, abstractmethod
from typing import List, Optional

from src.service.ticketing.domain.entity.user_entity import UserEntity


class IUserQueryRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, user_id: int) -> Optional[UserEntity]:
        pass

    @abstractmethod
    async def get_by_ids(self, *, user_ids: List[int]) -> List[UserEntity]:
        pass
