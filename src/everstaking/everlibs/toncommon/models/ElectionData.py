from dataclasses import dataclass, field, asdict
from typing import List


@dataclass
class ElectionMember(object):
    id: str
    stake: int
    max_factor: int
    addr: str
    adnl_addr: str


@dataclass
class ParticipantList(object):
    elect_at: int
    elect_close: int
    min_stake: int
    total_stake: int
    participants: List[ElectionMember] = field(default_factory=list)
    failed: int = 0
    finished: int = 0

    def to_json(self) -> dict:
        return asdict(self)
