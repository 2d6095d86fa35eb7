# src/slashkeeper/genesis.py
"""Export and import of the slashing module's section of chain state."""
from typing import Any, Dict, Optional
import json
import logging
import time

from .exceptions import ValidationError
from .params import SlashingParams
from .storage.signing_info import SigningInfoStore, ValidatorSigningInfo

logger = logging.getLogger(__name__)

PARAMS_KEY = "params"
GENESIS_VERSION = "1.0.0"

def load_params(backend) -> Optional[SlashingParams]:
    """Params persisted by init_genesis, if any"""
    data = backend.get(PARAMS_KEY)
    return SlashingParams.from_dict(data) if data is not None else None

def save_params(backend, params: SlashingParams) -> None:
    backend.put(PARAMS_KEY, params.to_dict())

def export_genesis(store: SigningInfoStore, params: SlashingParams) -> Dict[str, Any]:
    """Dump params, signing infos and missed-block bits"""
    signing_infos = []
    missed_blocks = []
    for info in store.iterate():
        signing_infos.append(info.to_dict())
        missed = store.missed_blocks(info.address)
        if missed:
            missed_blocks.append({"address": info.address, "missed": missed})

    logger.debug(f"Exported {len(signing_infos)} signing infos")
    return {
        "params": params.to_dict(),
        "signing_infos": signing_infos,
        "missed_blocks": missed_blocks,
        "metadata": {
            "timestamp": int(time.time()),
            "version": GENESIS_VERSION
        }
    }

def init_genesis(store: SigningInfoStore, state: Dict[str, Any]) -> SlashingParams:
    """Load a genesis section into an empty store.

    A signing info's counter must match the number of missed bits imported
    for it, and every bit must fall inside the window. The whole section is
    checked before anything is written, so a rejected file leaves the store
    untouched.
    """
    params = SlashingParams.from_dict(state.get("params", {}))
    window = params.signed_blocks_window

    missed_by_address = {
        entry["address"]: entry["missed"] for entry in state.get("missed_blocks", [])
    }
    infos = [ValidatorSigningInfo.from_dict(data) for data in state.get("signing_infos", [])]
    known = {info.address for info in infos}
    for address in missed_by_address:
        if address not in known:
            raise ValidationError(f"Missed blocks for {address} without signing info")

    imports = []
    for info in infos:
        missed = sorted(set(missed_by_address.get(info.address, [])))
        if not 0 <= info.index_offset < window:
            raise ValidationError(f"Index offset outside window for {info.address}")
        if any(index < 0 or index >= window for index in missed):
            raise ValidationError(f"Missed block index outside window for {info.address}")
        if len(missed) != info.missed_blocks_counter:
            raise ValidationError(
                f"Counter {info.missed_blocks_counter} for {info.address} does not match "
                f"{len(missed)} missed blocks"
            )
        store.check_address(info.address)
        imports.append((info, missed))

    for info, missed in imports:
        store.set(info.address, info)
        store.clear_bit_array(info.address)
        for index in missed:
            store.set_bit(info.address, index, True)

    save_params(store.backend, params)
    logger.info(f"Imported {len(infos)} signing infos")
    return params

def write_genesis_file(path: str, state: Dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(state, f, indent=2, sort_keys=True)

def read_genesis_file(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
