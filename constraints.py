import re
from dataclasses import dataclass, fields

import numpy as np

from settings import DEFAULT_STANDARDIZATION, STANDARDIZATION_FIELDS


class MalformedPolicyError(ValueError):
    """A forwarding policy carries a cost field that is not an integer."""


def _parse_policy_int(policy, key):
    """Policy cost fields are unsigned integers, given as int or as a digit string."""
    if policy is None:
        raise MalformedPolicyError(f"no policy to read {key!r} from")
    if key not in policy:
        raise MalformedPolicyError(f"policy field {key!r} is missing")
    value = policy[key]
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    if isinstance(value, str) and re.fullmatch(r'\+?[0-9]+', value):
        return int(value)
    raise MalformedPolicyError(f"policy field {key!r} is not a non-negative integer: {value!r}")


@dataclass(frozen=True)
class Constraints:
    """
    Accumulated routing cost of a path, or the cost a blinded path advertises.

    The default value is the single hop envelope of the introduction node.
    """
    path_length: int = 1
    fee_base_msat: int = 0
    htlc_minimum_msat: int = 0
    cltv_expiry_delta: int = 0

    def __add__(self, other):
        if not isinstance(other, Constraints):
            return NotImplemented
        # TODO: accumulate fee_proportional_millionths once the forwarded amount can be estimated
        # htlc minimum must hold at every hop, so the largest one binds the whole path
        return Constraints(
            path_length=self.path_length + other.path_length,
            fee_base_msat=self.fee_base_msat + other.fee_base_msat,
            htlc_minimum_msat=max(self.htlc_minimum_msat, other.htlc_minimum_msat),
            cltv_expiry_delta=self.cltv_expiry_delta + other.cltv_expiry_delta,
        )

    def exceeds(self, other):
        """
        True when any single field is strictly greater than in other.

        Not an ordering: a.exceeds(b) and b.exceeds(a) can both hold. Used only
        to prune routes that already broke the advertised budget somewhere.
        """
        return (self.path_length > other.path_length or
                self.fee_base_msat > other.fee_base_msat or
                self.htlc_minimum_msat > other.htlc_minimum_msat or
                self.cltv_expiry_delta > other.cltv_expiry_delta)

    def standardize(self, params=None):
        """z-score every field with the (mean, stddev) pairs of params."""
        if params is None:
            params = DEFAULT_STANDARDIZATION
        values = []
        for name in STANDARDIZATION_FIELDS:
            mean, stddev = params[name]
            values.append((getattr(self, name) - mean) / stddev if stddev else float('nan'))
        return np.array(values, dtype=float)

    def as_dict(self):
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_node_policy(cls, node_policy):
        return cls(
            path_length=1,
            fee_base_msat=_parse_policy_int(node_policy, 'fee_base_msat'),
            htlc_minimum_msat=_parse_policy_int(node_policy, 'min_htlc'),
            cltv_expiry_delta=_parse_policy_int(node_policy, 'time_lock_delta'),
        )

    @classmethod
    def from_blinded_path(cls, blinded_path):
        return cls(
            path_length=len(blinded_path.blinded_nodes) + 1,  # including the introduction node
            fee_base_msat=blinded_path.fee_base_msat,
            htlc_minimum_msat=blinded_path.htlc_minimum_msat,
            cltv_expiry_delta=blinded_path.cltv_expiry_delta,
        )
