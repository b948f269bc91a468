from typing import Optional

from everstaking.everlibs.toncommon.utils import HexUtils


class DePoolEvent(object):

    def __init__(self, eid: str, name: str, created_at: int = 0):
        self.eid = eid
        self.name = name
        self.created_at = created_at
        self.data = None

    def set_data(self, data: dict):
        self.data = data
        self._init(data)

    def _init(self, data: dict):
        # for custom implementations
        pass

    @staticmethod
    def create(eid: str, name: str, data: dict, created_at: int = 0) -> 'DePoolEvent':
        event_cls = DePoolEvent
        if name == DePoolElectionEvent.NAME:
            event_cls = DePoolElectionEvent
        event = event_cls(eid, name, created_at=created_at)
        event.set_data(data or {})
        return event

    def __str__(self):
        return f"Event {self.name}"

    def __repr__(self):
        return f"Event: {self.name}: {self.data}"


class DePoolElectionEvent(DePoolEvent):
    NAME = "StakeSigningRequested"

    election_id: Optional[int] = None
    proxy: Optional[str] = None

    def _init(self, data: dict):
        if data.get("electionId") is not None:
            self.election_id = HexUtils.hex_to_int(data.get("electionId"))
        self.proxy = data.get("proxy")

    def __str__(self):
        return f"Election {self.election_id}, {self.proxy}"
