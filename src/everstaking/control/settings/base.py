from everstaking.control.utils.serialization import JsonAware


class BaseStakingSettings(JsonAware):
    # attributes holding secrets, masked in string representation
    _SENSITIVE = ("KEYS", "CLIENT_PRIVATE_KEY", "HEADERS")

    def __str__(self):
        result = ""
        for attr in self._public_attrs():
            value = getattr(self, attr)
            if attr in self._SENSITIVE and value:
                value = "***"
            str_val = str(value).splitlines()
            str_fmt_val = str_val[0] if str_val else ""
            for s_val in str_val[1:]:
                str_fmt_val = "{}\n  {}".format(str_fmt_val, s_val)
            result = "{}\n{}({}) = {}".format(result, attr, type(value).__name__, str_fmt_val)
        return result
