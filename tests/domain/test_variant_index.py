"""Unit tests for the variant lookup helpers."""

from stockledger.domain.service.variant_index import (
    NO_COLOR,
    clone_variants,
    color_key,
    find_size_entry,
    find_variant,
    normalize,
    normalize_comparable,
    read_stock,
    sum_variant_stock,
)


class TestNormalize:

    def test_trims(self):
        assert normalize("  Blue ") == "Blue"

    def test_blank_is_none(self):
        assert normalize(None) is None
        assert normalize("") is None
        assert normalize("   ") is None

    def test_non_string_is_stringified(self):
        assert normalize(42) == "42"

    def test_comparable_lowercases(self):
        assert normalize_comparable(" ReD ") == "red"
        assert normalize_comparable("  ") is None

    def test_color_key_uses_sentinel(self):
        assert color_key(None) == NO_COLOR
        assert color_key("") == NO_COLOR
        assert color_key("Blue") == "blue"


class TestFindVariant:

    VARIANTS = [
        {"color": "Blue", "sizes": [{"size": "M", "stock": 5}]},
        {"color": None, "sizes": [{"size": "U", "stock": 2}]},
        {"color": "red", "sizes": []},
    ]

    def test_matches_case_insensitively(self):
        assert find_variant(self.VARIANTS, "blue") is self.VARIANTS[0]
        assert find_variant(self.VARIANTS, "red") is self.VARIANTS[2]

    def test_no_partial_match(self):
        assert find_variant(self.VARIANTS, "blu") is None

    def test_sentinel_matches_colorless_variant(self):
        assert find_variant(self.VARIANTS, NO_COLOR) is self.VARIANTS[1]
        assert find_variant(self.VARIANTS, None) is self.VARIANTS[1]

    def test_absent_color_key_counts_as_no_color(self):
        variants = [{"sizes": [{"size": "U", "stock": 1}]}]
        assert find_variant(variants, NO_COLOR) is variants[0]

    def test_sentinel_never_matches_empty_string_color(self):
        variants = [{"color": "", "sizes": [{"size": "M", "stock": 1}]}]
        assert find_variant(variants, NO_COLOR) is None

    def test_first_match_wins(self):
        variants = [
            {"color": "Blue", "sizes": [], "image": "a"},
            {"color": "BLUE", "sizes": [], "image": "b"},
        ]
        assert find_variant(variants, "blue")["image"] == "a"

    def test_ignores_malformed_entries(self):
        assert find_variant(["oops", None], "blue") is None


class TestFindSizeEntry:

    def test_matches_trimmed_case_insensitive(self):
        variant = {"sizes": [{"size": " m ", "stock": 3}]}
        assert find_size_entry(variant, "m")["stock"] == 3

    def test_missing_size(self):
        variant = {"sizes": [{"size": "M", "stock": 3}]}
        assert find_size_entry(variant, "l") is None

    def test_missing_sizes_list(self):
        assert find_size_entry({"color": "Blue"}, "m") is None


class TestStockHelpers:

    def test_read_stock(self):
        assert read_stock({"stock": 4}) == 4
        assert read_stock({"stock": "7"}) == 7
        assert read_stock({"stock": None}) is None
        assert read_stock({"stock": "lots"}) is None
        assert read_stock({"stock": float("nan")}) is None
        assert read_stock({}) is None

    def test_sum_variant_stock_skips_negative_and_garbage(self):
        variants = [
            {"color": "Blue", "sizes": [{"size": "M", "stock": 5}, {"size": "L", "stock": -2}]},
            {"color": "Red", "sizes": [{"size": "M", "stock": "x"}, {"size": "S", "stock": 3}]},
            {"color": "Green"},
        ]
        assert sum_variant_stock(variants) == 8

    def test_sum_variant_stock_non_list(self):
        assert sum_variant_stock(None) == 0

    def test_clone_is_deep(self):
        variants = [{"color": "Blue", "sizes": [{"size": "M", "stock": 5}]}]
        cloned = clone_variants(variants)
        cloned[0]["sizes"][0]["stock"] = 0
        assert variants[0]["sizes"][0]["stock"] == 5
        assert clone_variants(None) == []
