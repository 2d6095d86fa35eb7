# src/slashkeeper/storage/signing_info.py
from dataclasses import dataclass, asdict
from typing import Dict, Iterator, List, Optional

from ..exceptions import ValidationError
from ..utils.config import Config

SIGNING_INFO_PREFIX = "signing_info:"
MISSED_CHUNK_PREFIX = "missed_chunk:"
KEY_SEPARATOR = ":"

@dataclass
class ValidatorSigningInfo:
    """Liveness bookkeeping for one validator, keyed by consensus address"""
    address: str
    start_height: int = 0
    index_offset: int = 0
    jailed_until: int = 0
    tombstoned: bool = False
    missed_blocks_counter: int = 0

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> "ValidatorSigningInfo":
        return cls(
            address=data["address"],
            start_height=int(data.get("start_height", 0)),
            index_offset=int(data.get("index_offset", 0)),
            jailed_until=int(data.get("jailed_until", 0)),
            tombstoned=bool(data.get("tombstoned", False)),
            missed_blocks_counter=int(data.get("missed_blocks_counter", 0))
        )

class SigningInfoStore:
    """Persists signing infos and their missed-block bit arrays.

    The backend is anything exposing get/put/delete/iter_prefix: a Database
    for direct access, or a StateCache while a block is being processed.
    Bits live in fixed-size chunks; a chunk with no bit set is not stored.
    """

    def __init__(self, backend, chunk_size: int = Config.MISSED_BLOCKS_CHUNK_SIZE):
        self.backend = backend
        self.chunk_size = chunk_size

    def check_address(self, address: str) -> None:
        """Addresses are embedded in keys, so they cannot hold the key separator"""
        if not address or KEY_SEPARATOR in address:
            raise ValidationError(f"Invalid validator address {address!r}")

    # Signing info

    def get_or_none(self, address: str) -> Optional[ValidatorSigningInfo]:
        data = self.backend.get(SIGNING_INFO_PREFIX + address)
        if data is None:
            return None
        return ValidatorSigningInfo.from_dict(data)

    def get(self, address: str) -> ValidatorSigningInfo:
        """Return the stored info, or a zero-value info when absent"""
        info = self.get_or_none(address)
        return info if info is not None else ValidatorSigningInfo(address=address)

    def has(self, address: str) -> bool:
        return self.backend.get(SIGNING_INFO_PREFIX + address) is not None

    def set(self, address: str, info: ValidatorSigningInfo) -> None:
        if info.address != address:
            raise ValueError(f"Signing info for {info.address} stored under {address}")
        self.check_address(address)
        self.backend.put(SIGNING_INFO_PREFIX + address, info.to_dict())

    def iterate(self) -> Iterator[ValidatorSigningInfo]:
        """Yield every signing info ordered by address"""
        for _, data in self.backend.iter_prefix(SIGNING_INFO_PREFIX):
            yield ValidatorSigningInfo.from_dict(data)

    # Missed-block bit array

    def _chunk_key(self, address: str, chunk: int) -> str:
        return f"{MISSED_CHUNK_PREFIX}{address}{KEY_SEPARATOR}{chunk:08d}"

    def _read_chunk(self, address: str, chunk: int) -> int:
        value = self.backend.get(self._chunk_key(address, chunk))
        return int(value, 16) if value else 0

    def get_bit(self, address: str, index: int) -> bool:
        chunk, offset = divmod(index, self.chunk_size)
        return bool((self._read_chunk(address, chunk) >> offset) & 1)

    def set_bit(self, address: str, index: int, missed: bool) -> None:
        self.check_address(address)
        chunk, offset = divmod(index, self.chunk_size)
        bits = self._read_chunk(address, chunk)
        if missed:
            bits |= 1 << offset
        else:
            bits &= ~(1 << offset)

        key = self._chunk_key(address, chunk)
        if bits:
            self.backend.put(key, format(bits, 'x'))
        else:
            self.backend.delete(key)

    def clear_bit_array(self, address: str) -> None:
        self.check_address(address)
        prefix = f"{MISSED_CHUNK_PREFIX}{address}{KEY_SEPARATOR}"
        for key in [key for key, _ in self.backend.iter_prefix(prefix)]:
            self.backend.delete(key)

    def missed_blocks(self, address: str) -> List[int]:
        """Indices currently marked as missed, ascending"""
        self.check_address(address)
        prefix = f"{MISSED_CHUNK_PREFIX}{address}{KEY_SEPARATOR}"
        indices = []
        for key, value in self.backend.iter_prefix(prefix):
            chunk = int(key[len(prefix):])
            bits = int(value, 16)
            offset = 0
            while bits:
                if bits & 1:
                    indices.append(chunk * self.chunk_size + offset)
                bits >>= 1
                offset += 1
        return indices
