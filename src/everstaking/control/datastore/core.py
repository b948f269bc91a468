import json
import logging
import os
import tempfile
from typing import List, Optional, Union

from everstaking.control.exceptions.staking import StakingValidationError
from everstaking.control.routines.models.elections import ElectionRecord
from everstaking.control.settings.core import StakingSettings
from everstaking.control.utils.serialization import defaults_deep

log = logging.getLogger("datastore")


class Datastore(object):
    """
    Single JSON document holding staking settings and history of elections:
        {"settings": {...}, "elections": [{"id": 1700000000, ...}, ...]}
    Every write replaces the document atomically and is flushed to disk before returning.
    """

    def __init__(self, path: str):
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def _load(self) -> dict:
        if not os.path.exists(self._path) or not os.path.getsize(self._path):
            return {}
        with open(self._path) as f:
            return json.load(f)

    def _save(self, document: dict):
        directory = os.path.dirname(os.path.abspath(self._path))
        if not os.path.exists(directory):
            os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".db-", suffix=".json")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(json.dumps(document, indent=2))
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self._path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get_elections_info(self, election_id: int = None) -> Union[ElectionRecord, List[ElectionRecord]]:
        elections = self._load().get("elections", [])
        if election_id is None:
            return [ElectionRecord.from_json(e) for e in sorted(elections, key=lambda e: e["id"])]
        for election in elections:
            if election["id"] == election_id:
                return ElectionRecord.from_json(election)
        return ElectionRecord(election_id=election_id)

    def set_elections_info(self, record: ElectionRecord, inc_stake: bool = False) -> ElectionRecord:
        if isinstance(record.election_id, bool) or not isinstance(record.election_id, int):
            raise StakingValidationError("Election id must be an integer, got: {}".format(record.election_id))
        document = self._load()
        elections = document.setdefault("elections", [])
        data = record.to_json()
        for i, election in enumerate(elections):
            if election["id"] == record.election_id:
                if inc_stake:
                    data["stake"] = int(election.get("stake") or 0) + int(record.stake or 0)
                elections[i] = data
                break
        else:
            elections.append(data)
        elections.sort(key=lambda e: e["id"])
        self._save(document)
        stored = self.get_elections_info(record.election_id)
        log.debug("Election {} stored: stake {}".format(stored.election_id, stored.stake))
        return stored

    def get_settings(self) -> dict:
        return defaults_deep(self._load().get("settings", {}), StakingSettings.defaults())

    def set_settings(self, settings: dict) -> dict:
        document = self._load()
        document["settings"] = defaults_deep(settings, document.get("settings", {}))
        self._save(document)
        return self.get_settings()

    def skip_next_elections(self, value: Optional[bool] = None) -> bool:
        if value is not None:
            self.set_settings({"SKIP_NEXT_ELECTIONS": bool(value)})
        return bool(self.get_settings().get("SKIP_NEXT_ELECTIONS"))

    def next_stake_size(self, value: Optional[int] = None) -> Optional[int]:
        """
        Getter/setter of operator stake size override in tokens, 0 clears the override.
        """
        if value is not None:
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise StakingValidationError("Stake size must be a non-negative integer, got: {}".format(value))
            self.set_settings({"NEXT_STAKE_SIZE": value or None})
        return self.get_settings().get("NEXT_STAKE_SIZE")

    def get_wallet_address(self) -> Optional[str]:
        return self.get_settings()["WALLET"].get("ADDR")

    def get_funding_address(self) -> Optional[str]:
        return self.get_settings()["FUNDING"].get("ADDR")
