# File: src/slashkeeper/api/models.py
from pydantic import BaseModel
from typing import List

class ParamsResponse(BaseModel):
    max_evidence_age: int
    signed_blocks_window: int
    min_signed_per_window: str
    downtime_jail_duration: int
    slash_fraction_double_sign: str
    slash_fraction_downtime: str
    validator_update_delay: int

class SigningInfo(BaseModel):
    address: str
    start_height: int
    index_offset: int
    jailed_until: int
    tombstoned: bool
    missed_blocks_counter: int

class SigningInfosResponse(BaseModel):
    signing_infos: List[SigningInfo]
    total: int
    offset: int
    limit: int

class MissedBlocksResponse(BaseModel):
    address: str
    window: int
    missed: List[int]
