import hashlib
from unittest.mock import patch

import pytest

from pico_ab.experiments import Variant
from pico_ab.selector import HASH_SPACE, VariantSelector, stable_hash


class TestStableHash:
    def test_matches_sha256_prefix_little_endian(self):
        digest = hashlib.sha256(b"forecast_exp:user-1").digest()
        assert stable_hash("forecast_exp", "user-1") == int.from_bytes(digest[:8], "little")

    def test_deterministic(self):
        assert stable_hash("exp", "key") == stable_hash("exp", "key")

    def test_in_range(self):
        for i in range(100):
            assert 0 <= stable_hash("exp", f"user-{i}") < HASH_SPACE

    def test_salted_by_experiment(self):
        assert stable_hash("exp_a", "user-1") != stable_hash("exp_b", "user-1")

    def test_unicode_keys(self):
        digest = hashlib.sha256("exp:usuário-ñ".encode("utf-8")).digest()
        assert stable_hash("exp", "usuário-ñ") == int.from_bytes(digest[:8], "little")


class TestVariantSelector:
    def test_empty_returns_none(self, selector):
        assert selector.pick([], "user-1") is None

    def test_single_variant_always_selected(self, selector):
        only = Variant("search", "exp", "only", 0.001, "search_v1")
        for i in range(50):
            assert selector.pick([only], f"user-{i}") is only

    def test_same_key_same_variant(self, selector, two_variants):
        first = selector.pick(two_variants, "user-42")
        for _ in range(20):
            assert selector.pick(two_variants, "user-42") is first

    def test_new_selector_same_result(self, two_variants):
        assert VariantSelector().pick(two_variants, "abc") == VariantSelector().pick(two_variants, "abc")

    def test_weighted_distribution(self, selector, two_variants):
        counts = {"control": 0, "candidate": 0}
        total = 10_000
        for i in range(total):
            counts[selector.pick(two_variants, f"user-{i}").treatment] += 1

        share = counts["control"] / total
        assert 0.72 <= share <= 0.78

    def test_equal_weights_split_roughly_evenly(self, selector):
        variants = (
            Variant("f", "forecast_exp", "detailed", 0.5, "f_detailed"),
            Variant("f", "forecast_exp", "concise", 0.5, "f_concise"),
        )
        picked = [selector.pick(variants, f"session-{i}").treatment for i in range(4_000)]
        share = picked.count("detailed") / len(picked)
        assert 0.45 <= share <= 0.55

    def test_experiments_split_independently(self, selector):
        exp_a = (Variant("x", "exp_a", "a", 1.0, "x1"), Variant("x", "exp_a", "b", 1.0, "x2"))
        exp_b = (Variant("y", "exp_b", "a", 1.0, "y1"), Variant("y", "exp_b", "b", 1.0, "y2"))

        differs = sum(
            selector.pick(exp_a, f"user-{i}").treatment != selector.pick(exp_b, f"user-{i}").treatment
            for i in range(500)
        )
        assert differs > 0

    def test_first_variant_experiment_salts_hash(self, selector):
        variants = (Variant("x", "exp_a", "a", 1.0, "x1"), Variant("x", "exp_b", "b", 1.0, "x2"))
        with patch("pico_ab.selector.stable_hash", return_value=0) as mocked:
            selector.pick(variants, "user-1")
        mocked.assert_called_once_with("exp_a", "user-1")

    @pytest.mark.parametrize(
        "hash_value,expected",
        [
            (0, "a"),
            (HASH_SPACE // 2, "a"),
            (HASH_SPACE // 2 + 2**12, "b"),
            (HASH_SPACE - 1, "b"),
        ],
    )
    def test_slice_boundaries(self, selector, hash_value, expected):
        variants = (Variant("x", "e", "a", 1.0, "x1"), Variant("x", "e", "b", 1.0, "x2"))
        with patch("pico_ab.selector.stable_hash", return_value=hash_value):
            assert selector.pick(variants, "k").treatment == expected

    def test_top_of_range_falls_in_last_slice(self, selector):
        variants = (Variant("x", "e", "a", 2.0, "x1"), Variant("x", "e", "b", 1.0, "x2"))
        with patch("pico_ab.selector.stable_hash", return_value=HASH_SPACE - 1):
            assert selector.pick(variants, "k").treatment == "b"
