import base64
import math
from typing import List, Union

BOC_MAGIC = bytes.fromhex("b5ee9c72")
MAX_CELL_BITS = 1023
MAX_CELL_REFS = 4


class CellBuilder(object):
    """
    Minimal ordinary-cell builder: unsigned integers, raw bit-strings and child references.
    """

    def __init__(self):
        self.bits: List[int] = []
        self.refs: List['CellBuilder'] = []

    def _append_bits(self, bits: List[int]):
        if len(self.bits) + len(bits) > MAX_CELL_BITS:
            raise ValueError("Cell overflow: {} bits".format(len(self.bits) + len(bits)))
        self.bits.extend(bits)

    def store_uint(self, value: int, size: int) -> 'CellBuilder':
        if value < 0 or value >= (1 << size):
            raise ValueError("Value {} does not fit into {} bits".format(value, size))
        self._append_bits([(value >> (size - i - 1)) & 1 for i in range(size)])
        return self

    def store_bytes(self, data: bytes) -> 'CellBuilder':
        return self.store_uint(int.from_bytes(data, "big"), len(data) * 8) if data else self

    def store_bit_string(self, hex_value: str) -> 'CellBuilder':
        return self.store_bytes(bytes.fromhex(hex_value))

    def store_ref(self, cell: 'CellBuilder') -> 'CellBuilder':
        if len(self.refs) >= MAX_CELL_REFS:
            raise ValueError("Cell can't hold more than {} references".format(MAX_CELL_REFS))
        self.refs.append(cell)
        return self

    def descriptors(self) -> bytes:
        d1 = len(self.refs)
        d2 = math.ceil(len(self.bits) / 8) + len(self.bits) // 8
        return bytes([d1, d2])

    def data(self) -> bytes:
        bits = list(self.bits)
        if len(bits) % 8:
            # completion tag
            bits.append(1)
            bits.extend([0] * (-len(bits) % 8))
        return bytes(int("".join(str(b) for b in bits[i:i + 8]), 2) for i in range(0, len(bits), 8))


def _topological_order(root: CellBuilder) -> List[CellBuilder]:
    order = []
    visited = set()
    stack = [(root, False)]
    while stack:
        cell, expanded = stack.pop()
        if expanded:
            order.append(cell)
            continue
        if id(cell) in visited:
            continue
        visited.add(id(cell))
        stack.append((cell, True))
        for ref in cell.refs:
            stack.append((ref, False))
    order.reverse()
    return order


def _bytes_needed(value: int) -> int:
    return max(1, (value.bit_length() + 7) // 8)


def to_boc(root: CellBuilder) -> bytes:
    """
    Serializes the cell tree into a bag of cells with a single root, no index and no crc.
    """
    cells = _topological_order(root)
    index = {id(cell): i for i, cell in enumerate(cells)}
    size_bytes = _bytes_needed(len(cells))
    payloads = []
    for cell in cells:
        payload = cell.descriptors() + cell.data()
        for ref in cell.refs:
            payload += index[id(ref)].to_bytes(size_bytes, "big")
        payloads.append(payload)
    cells_data = b"".join(payloads)
    off_bytes = _bytes_needed(len(cells_data))
    header = BOC_MAGIC
    header += bytes([size_bytes, off_bytes])
    header += len(cells).to_bytes(size_bytes, "big")
    header += (1).to_bytes(size_bytes, "big")
    header += (0).to_bytes(size_bytes, "big")
    header += len(cells_data).to_bytes(off_bytes, "big")
    header += (0).to_bytes(size_bytes, "big")
    return header + cells_data


def to_boc_base64(root: Union[CellBuilder, bytes]) -> str:
    if isinstance(root, CellBuilder):
        root = to_boc(root)
    return base64.b64encode(root).decode()
