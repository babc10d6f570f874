"""ValidatorCache tests: structural keys, TTL expiry and eviction.

Time is driven by an injectable clock; no test sleeps.
"""

import pytest

from toolspine.kernel.validation import (
    SchemaCompiler,
    ValidationOptions,
    ValidatorCache,
    number_field,
    string_field,
)
from toolspine.kernel.validation.cache import make_cache_key, schema_fingerprint, structural_hash
from toolspine.kernel.validation.compiler import CompiledValidator


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def compiled() -> CompiledValidator:
    return SchemaCompiler(ValidationOptions()).compile({}, "input")


def key(index: int) -> tuple[str, str, str]:
    return ("input", f"schema-{index}", "options")


@pytest.mark.unit
@pytest.mark.P0
@pytest.mark.deterministic
class TestCacheKeys:
    """Keys depend on structure only."""

    def test_structurally_equal_schemas_share_a_key(self) -> None:
        """Independently built but equal schemas produce the same key."""
        first = {"city": string_field().required().build()}
        second = {"city": string_field().required().build()}

        assert make_cache_key("input", first, ValidationOptions()) == make_cache_key(
            "input", second, ValidationOptions()
        )

    def test_attribute_order_does_not_matter(self) -> None:
        """Builder call order does not change the fingerprint."""
        first = {"days": number_field().min(1).max(14).build()}
        second = {"days": number_field().max(14).min(1).build()}

        assert schema_fingerprint(first) == schema_fingerprint(second)

    def test_kind_and_options_are_part_of_the_key(self) -> None:
        """The same fields under other options or another kind get other keys."""
        fields = {"city": string_field().build()}
        base = make_cache_key("input", fields, ValidationOptions())

        assert make_cache_key("config", fields, ValidationOptions()) != base
        assert make_cache_key("input", fields, ValidationOptions(abort_early=True)) != base

    def test_different_constraints_get_different_keys(self) -> None:
        """Changing a constraint changes the fingerprint."""
        first = {"city": string_field().min_length(2).build()}
        second = {"city": string_field().min_length(3).build()}

        assert schema_fingerprint(first) != schema_fingerprint(second)

    def test_structural_hash_ignores_mapping_order(self) -> None:
        """Mappings hash equally regardless of insertion order."""
        assert structural_hash({"a": 1, "b": 2}) == structural_hash({"b": 2, "a": 1})


@pytest.mark.unit
@pytest.mark.P0
@pytest.mark.deterministic
class TestValidatorCache:
    """TTL and eviction behavior."""

    def test_hit_after_put(self) -> None:
        """A stored validator is returned and the hit counted."""
        cache = ValidatorCache()
        validator = compiled()
        cache.put(key(1), validator)

        assert cache.get(key(1)) is validator
        assert cache.hit_count(key(1)) == 1
        assert cache.get(key(2)) is None

    def test_entry_expires_after_ttl(self) -> None:
        """Entries older than the TTL are treated as misses and dropped."""
        clock = FakeClock()
        cache = ValidatorCache(ttl_seconds=300, clock=clock)
        cache.put(key(1), compiled())

        clock.advance(300)
        assert cache.get(key(1)) is not None

        clock.advance(0.001)
        assert cache.get(key(1)) is None
        assert key(1) not in cache

    def test_lookups_do_not_refresh_age(self) -> None:
        """Expiry is absolute from insertion, not sliding."""
        clock = FakeClock()
        cache = ValidatorCache(ttl_seconds=10, clock=clock)
        cache.put(key(1), compiled())

        for _ in range(3):
            clock.advance(4)
            cache.get(key(1))

        assert key(1) not in cache

    def test_evicts_oldest_quarter_when_full(self) -> None:
        """Inserting past capacity drops the oldest 25% by insertion time."""
        clock = FakeClock()
        cache = ValidatorCache(max_size=1000, clock=clock)
        for index in range(1000):
            cache.put(key(index), compiled())
            clock.advance(0.01)

        cache.put(key(1000), compiled())

        assert len(cache) == 751
        assert key(0) not in cache
        assert key(249) not in cache
        assert key(250) in cache
        assert key(1000) in cache

    def test_hits_do_not_protect_from_eviction(self) -> None:
        """Eviction is by insertion order, not recency of use."""
        cache = ValidatorCache(max_size=4)
        for index in range(4):
            cache.put(key(index), compiled())
        cache.get(key(0))

        cache.put(key(4), compiled())

        assert key(0) not in cache
        assert len(cache) == 4

    def test_never_exceeds_capacity(self) -> None:
        """Size stays bounded across many insertions."""
        cache = ValidatorCache(max_size=10)
        for index in range(100):
            cache.put(key(index), compiled())
            assert len(cache) <= 10

    def test_clear(self) -> None:
        """clear empties the cache."""
        cache = ValidatorCache()
        cache.put(key(1), compiled())
        cache.clear()

        assert len(cache) == 0
