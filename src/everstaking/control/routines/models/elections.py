from typing import List, Optional


class ElectionRecord(object):
    """
    Durable state of one election cycle, keyed by election id (election start timestamp).
    """
    HISTORY_FIELDS = ('id', 'key', 'public_key', 'adnl_key', 'stake',
                      'last_stake_sending_time', 'participation_confirmed')

    def __init__(self, election_id: int, key: str = None, adnl_key: str = None,
                 secrets: Optional[List] = None, public_key: str = None, signature: str = None,
                 stake: int = 0, last_stake_sending_time: int = None,
                 participation_confirmed: bool = False,
                 post_elections_ticktock_is_sent: bool = False):
        self.election_id = election_id
        self.key = key
        self.adnl_key = adnl_key
        self.secrets = secrets
        self.public_key = public_key
        self.signature = signature
        self.stake = stake
        self.last_stake_sending_time = last_stake_sending_time
        self.participation_confirmed = participation_confirmed
        self.post_elections_ticktock_is_sent = post_elections_ticktock_is_sent

    def has_key_material(self) -> bool:
        return bool(self.key and self.adnl_key)

    def has_signature(self) -> bool:
        return bool(self.public_key and self.signature)

    def set_key_material(self, key: str, adnl_key: str, secrets: List):
        self.key = key
        self.adnl_key = adnl_key
        self.secrets = secrets

    def set_signature(self, public_key: str, signature: str):
        self.public_key = public_key
        self.signature = signature

    @staticmethod
    def from_json(data: dict) -> 'ElectionRecord':
        return ElectionRecord(election_id=data['id'],
                              key=data.get('key'),
                              adnl_key=data.get('adnl_key'),
                              secrets=data.get('secrets'),
                              public_key=data.get('public_key'),
                              signature=data.get('signature'),
                              stake=int(data.get('stake') or 0),
                              last_stake_sending_time=data.get('last_stake_sending_time'),
                              participation_confirmed=bool(data.get('participation_confirmed', False)),
                              post_elections_ticktock_is_sent=bool(data.get('post_elections_ticktock_is_sent', False)))

    def to_json(self) -> dict:
        data = {
            'id': self.election_id,
            'key': self.key,
            'adnl_key': self.adnl_key,
            'secrets': self.secrets,
            'public_key': self.public_key,
            'signature': self.signature,
            'stake': self.stake,
            'last_stake_sending_time': self.last_stake_sending_time,
            'participation_confirmed': self.participation_confirmed,
            'post_elections_ticktock_is_sent': self.post_elections_ticktock_is_sent
        }
        # unset fields are not stored
        return {k: v for k, v in data.items() if v is not None and v is not False}

    def to_history(self) -> dict:
        data = self.to_json()
        return {field: data[field] for field in self.HISTORY_FIELDS if field in data}

    def __eq__(self, other):
        return isinstance(other, ElectionRecord) and self.to_json() == other.to_json()

    def __str__(self):
        return "[{}] [stake {}] [confirmed {}]".format(self.election_id, self.stake,
                                                       self.participation_confirmed)

    def __repr__(self):
        return str(self)
