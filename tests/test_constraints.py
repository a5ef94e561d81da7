"""
Tests for the Constraints cost envelope.

Tests cover:
- accumulation (sum, max of htlc minimum, identity envelope)
- the any-field exceeds comparison
- derivation from forwarding policies and blinded paths
- standardization
"""

import math

import numpy as np
import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from constraints import Constraints, MalformedPolicyError
from graph_builders import make_blinded_path, make_policy


class TestAccumulation:

    def test_fields_add_and_htlc_minimum_takes_max(self):
        a = Constraints(path_length=2, fee_base_msat=1000, htlc_minimum_msat=500, cltv_expiry_delta=40)
        b = Constraints(path_length=1, fee_base_msat=300, htlc_minimum_msat=2000, cltv_expiry_delta=144)

        total = a + b

        assert total == Constraints(path_length=3, fee_base_msat=1300,
                                    htlc_minimum_msat=2000, cltv_expiry_delta=184)

    def test_identity_plus_identity_counts_two_hops(self):
        assert Constraints() + Constraints() == Constraints(path_length=2)

    def test_identity_only_adds_a_hop(self):
        c = Constraints(path_length=3, fee_base_msat=10, htlc_minimum_msat=20, cltv_expiry_delta=30)
        expected = Constraints(path_length=4, fee_base_msat=10, htlc_minimum_msat=20, cltv_expiry_delta=30)

        assert c + Constraints() == expected
        assert Constraints() + c == expected

    def test_associative(self):
        a = Constraints(1, 100, 3000, 40)
        b = Constraints(2, 250, 1000, 18)
        c = Constraints(1, 7, 4000, 144)

        assert (a + b) + c == a + (b + c)

    def test_add_returns_new_value(self):
        a = Constraints(1, 100, 100, 10)
        a + Constraints(1, 1, 1, 1)
        assert a == Constraints(1, 100, 100, 10)

    def test_add_other_type_not_supported(self):
        with pytest.raises(TypeError):
            Constraints() + 1


class TestExceeds:

    def test_any_greater_field_exceeds(self):
        # only cltv is larger, everything else smaller
        c1 = Constraints(path_length=3, fee_base_msat=2000, htlc_minimum_msat=1000, cltv_expiry_delta=160)
        c2 = Constraints(path_length=4, fee_base_msat=2500, htlc_minimum_msat=1000, cltv_expiry_delta=150)

        assert c1.exceeds(c2)

    def test_not_symmetric(self):
        c1 = Constraints(path_length=3, fee_base_msat=2000, htlc_minimum_msat=1000, cltv_expiry_delta=160)
        c2 = Constraints(path_length=4, fee_base_msat=2500, htlc_minimum_msat=1000, cltv_expiry_delta=150)

        assert c1.exceeds(c2) and c2.exceeds(c1)

    def test_equal_does_not_exceed(self):
        c = Constraints(2, 100, 100, 40)
        assert not c.exceeds(Constraints(2, 100, 100, 40))

    def test_all_smaller_does_not_exceed(self):
        assert not Constraints(1, 0, 0, 0).exceeds(Constraints(3, 10, 10, 10))

    @pytest.mark.parametrize("field", ["path_length", "fee_base_msat", "htlc_minimum_msat", "cltv_expiry_delta"])
    def test_each_field_alone_exceeds(self, field):
        bound = Constraints(5, 5, 5, 5)
        values = bound.as_dict()
        values[field] += 1

        assert Constraints(**values).exceeds(bound)


class TestDerivation:

    def test_from_node_policy(self):
        policy = make_policy(fee_base_msat=1200, min_htlc=1000, time_lock_delta=144)

        assert Constraints.from_node_policy(policy) == Constraints(1, 1200, 1000, 144)

    def test_from_node_policy_malformed_fee(self):
        policy = make_policy()
        policy["fee_base_msat"] = "12abc"

        with pytest.raises(MalformedPolicyError, match="fee_base_msat"):
            Constraints.from_node_policy(policy)

    def test_malformed_policy_is_value_error(self):
        policy = make_policy()
        policy["min_htlc"] = ""

        with pytest.raises(ValueError):
            Constraints.from_node_policy(policy)

    def test_missing_policy(self):
        with pytest.raises(MalformedPolicyError):
            Constraints.from_node_policy(None)

    @pytest.mark.parametrize("field, value", [
        ("fee_base_msat", "-5000"),
        ("fee_base_msat", " 12 "),
        ("fee_base_msat", "12.0"),
        ("min_htlc", "1_000"),
        ("min_htlc", -1),
        ("time_lock_delta", 40.9),
        ("time_lock_delta", True),
        ("time_lock_delta", None),
    ])
    def test_only_non_negative_integers_accepted(self, field, value):
        policy = make_policy()
        policy[field] = value

        with pytest.raises(MalformedPolicyError, match=field):
            Constraints.from_node_policy(policy)

    def test_missing_field(self):
        policy = make_policy()
        del policy["min_htlc"]

        with pytest.raises(MalformedPolicyError, match="min_htlc"):
            Constraints.from_node_policy(policy)

    def test_int_and_plus_signed_strings_accepted(self):
        policy = make_policy()
        policy["fee_base_msat"] = "+1000"
        policy["min_htlc"] = 0

        assert Constraints.from_node_policy(policy) == Constraints(1, 1000, 0, 40)

    def test_from_blinded_path_counts_introduction_node(self):
        blinded_path = make_blinded_path("A", blinded_hops=3, fee_base_msat=3000,
                                         htlc_minimum_msat=1000, cltv_expiry_delta=144)

        c = Constraints.from_blinded_path(blinded_path)

        assert c == Constraints(path_length=4, fee_base_msat=3000, htlc_minimum_msat=1000, cltv_expiry_delta=144)
        assert blinded_path.constraints() == c


class TestStandardize:

    def test_population_mean_is_zero(self):
        c = Constraints(path_length=10, fee_base_msat=2000, htlc_minimum_msat=1500, cltv_expiry_delta=80)

        np.testing.assert_allclose(c.standardize(), np.zeros(4))

    def test_one_stddev_away(self):
        c = Constraints(path_length=20, fee_base_msat=1000, htlc_minimum_msat=2000, cltv_expiry_delta=120)

        np.testing.assert_allclose(c.standardize(), [1.0, -1.0, 1.0, 2.0])

    def test_custom_params(self):
        params = {
            "path_length": (0.0, 1.0),
            "fee_base_msat": (0.0, 1.0),
            "htlc_minimum_msat": (0.0, 1.0),
            "cltv_expiry_delta": (0.0, 1.0),
        }
        c = Constraints(2, 3, 4, 5)

        np.testing.assert_allclose(c.standardize(params), [2, 3, 4, 5])

    def test_zero_stddev_gives_nan(self):
        params = {
            "path_length": (10.0, 0.0),
            "fee_base_msat": (0.0, 1.0),
            "htlc_minimum_msat": (0.0, 1.0),
            "cltv_expiry_delta": (0.0, 1.0),
        }
        assert math.isnan(Constraints().standardize(params)[0])
