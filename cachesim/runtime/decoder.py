from __future__ import annotations
from dataclasses import dataclass

from ..config import CacheGeometry


@dataclass(frozen=True)
class AddressFields:
    """An address split into its cache fields. `offset` is for reporting only."""
    tag: int
    index: int
    offset: int


class AddressDecoder:
    """Splits raw addresses into tag, index and offset for one cache geometry."""

    def __init__(self, geometry: CacheGeometry):
        # CacheGeometry already guarantees power-of-two line size and set count
        self.geometry = geometry

        # Calculate bit shifts and masks for address decomposition
        self.offset_bits = geometry.offset_bits
        self.index_bits = geometry.index_bits
        self.offset_mask = geometry.line_size_bytes - 1
        self.index_mask = geometry.num_sets - 1
        self.tag_shift = self.offset_bits + self.index_bits

    def decode(self, address: int) -> AddressFields:
        """Decomposes an address into tag, index, and offset."""
        offset = address & self.offset_mask
        index = (address >> self.offset_bits) & self.index_mask
        tag = address >> self.tag_shift
        return AddressFields(tag=tag, index=index, offset=offset)

    def compose(self, fields: AddressFields) -> int:
        """Reassembles an address from its fields."""
        return (fields.tag << self.tag_shift) | (fields.index << self.offset_bits) | fields.offset

    def block_address(self, tag: int, index: int) -> int:
        """Reconstructs the block start address from tag and index."""
        return (tag << self.tag_shift) | (index << self.offset_bits)
