"""
In-memory identity table: Discord user ID -> the Google identity they verified as.

Not durable: the table is empty after a restart. Writes are single dict
assignments, so concurrent callbacks for the same user simply overwrite each
other (last write wins). Swap in a DB-backed class with the same methods for
persistence.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Optional


@dataclass(frozen=True)
class IdentityRecord:
    external_identity: str
    roles: frozenset

    @classmethod
    def create(cls, external_identity: str, roles: Iterable[str]) -> 'IdentityRecord':
        return cls(external_identity=external_identity, roles=frozenset(roles))


class IdentityStore:
    def __init__(self):
        self._data: Dict[str, IdentityRecord] = {}

    def put(self, chat_user_id: str, record: IdentityRecord) -> None:
        self._data[chat_user_id] = record

    def get(self, chat_user_id: str) -> Optional[IdentityRecord]:
        return self._data.get(chat_user_id)

    def __contains__(self, chat_user_id) -> bool:
        return chat_user_id in self._data

    def __len__(self) -> int:
        return len(self._data)
