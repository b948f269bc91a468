import copy
from enum import Enum
from typing import List


def defaults_deep(data: dict, defaults: dict) -> dict:
    """
    Recursively fills gaps of `data` with values from `defaults`, values of `data` win.
    Neither of the arguments is mutated.
    """
    result = copy.deepcopy(defaults) if isinstance(defaults, dict) else {}
    for key, value in (data or {}).items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = defaults_deep(value, result[key])
        else:
            result[key] = copy.deepcopy(value)
    return result


class JsonAware(object):

    def __init__(self):
        # class-level defaults must not be shared between instances
        for attr in self._public_attrs():
            value = getattr(self, attr)
            if isinstance(value, (JsonAware, list, dict)):
                setattr(self, attr, copy.deepcopy(value))

    def _public_attrs(self) -> List[str]:
        return [attr for attr in dir(self)
                if not attr.startswith("_") and not callable(getattr(self, attr))]

    @classmethod
    def get_class_code_name(cls) -> str:
        return cls.__qualname__

    @classmethod
    def create(cls, data: dict):
        instance = cls()
        for item, val in (data or {}).items():
            try:
                default_val = getattr(instance, item)
            except AttributeError:
                continue
            if isinstance(default_val, Enum) and val is not None:
                val = default_val.__class__(val)
            elif isinstance(default_val, JsonAware) and isinstance(val, dict):
                val = default_val.__class__.create(val)
            setattr(instance, item, val)
        return instance

    def to_json(self, with_class: bool = False) -> dict:
        result = {}
        if with_class:
            result["__class"] = self.get_class_code_name()
        for attr in self._public_attrs():
            value = getattr(self, attr)
            if isinstance(value, JsonAware):
                result[attr] = value.to_json(with_class=with_class)
            elif isinstance(value, list):
                result[attr] = []
                for item in value:
                    if isinstance(item, JsonAware):
                        item = item.to_json(with_class=with_class)
                    result[attr].append(item)
            elif isinstance(value, Enum):
                result[attr] = value.value
            else:
                result[attr] = copy.deepcopy(value)
        return result

