from typing import Optional

import attrs


UNKNOWN_EMAIL = 'unknown@example.com'


@attrs.define
class UserEntity:
    email: str = ''
    first_name: str = ''
    last_name: str = ''
    id: Optional[int] = None

    @property
    def full_name(self) -> str:
        name = f'{self.first_name} {self.last_name}'.strip()
        return name or self.email

    @staticmethod
    def email_or_unknown(user: Optional['UserEntity']) -> str:
        """Actor email for audit rows when the user record is gone"""
        return user.email if user and user.email else UNKNOWN_EMAIL
