from typing import Any, List, Optional


class HexUtils(object):

    @staticmethod
    def hex_to_int(val) -> int:
        if isinstance(val, int):
            return val
        val = str(val).strip()
        if val.startswith("-0x"):
            return -int(val[1:], 0)
        if val.startswith("0x"):
            return int(val, 0)
        return int(val)


def unwrap_cons_list(cons: Optional[list], limit: Optional[int] = None) -> List[Any]:
    """
    Flattens nested ``[head, [head, [head, null]]]`` structures returned by TVM get-methods.
    :param cons: outer cons cell, None/empty for an empty list
    :param limit: stop after this many elements
    :return: list of heads in original order
    """
    items = []
    node = cons
    while node:
        if limit is not None and len(items) >= limit:
            break
        items.append(node[0])
        node = node[1] if len(node) > 1 else None
    return items
