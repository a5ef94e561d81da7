import json
from dataclasses import dataclass
from typing import Tuple

from constraints import Constraints


@dataclass(frozen=True)
class BlindedPath:
    introduction_node: str
    blinded_nodes: Tuple[str, ...]
    fee_base_msat: int
    fee_proportional_millionths: int
    htlc_minimum_msat: int
    cltv_expiry_delta: int
    max_cltv_expiry: int

    def constraints(self):
        return Constraints.from_blinded_path(self)

    @classmethod
    def from_dict(cls, d):
        return cls(
            introduction_node=d['introduction_node'],
            blinded_nodes=tuple(d['blinded_nodes']),
            fee_base_msat=int(d['fee_base_msat']),
            fee_proportional_millionths=int(d['fee_proportional_millionths']),
            htlc_minimum_msat=int(d['htlc_minimum_msat']),
            cltv_expiry_delta=int(d['cltv_expiry_delta']),
            max_cltv_expiry=int(d['max_cltv_expiry']),
        )


def read_blinded_path(file_path):
    with open(file_path) as f:
        return BlindedPath.from_dict(json.load(f))
