# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for CacheMetricsAdapter: construction, counters, wireup and containment."""

import threading
from datetime import UTC, datetime

import pytest

from cachemetrics.cache import CacheOptions, InMemoryCache
from cachemetrics.events import CacheEvent, CacheEvents, CacheEventType, EvictionReason
from cachemetrics.kernel.exceptions import AdapterStateException, InvalidArgumentException
from cachemetrics.metrics import AdapterState, CacheMetricsAdapter, SemanticConventions, instrument
from cachemetrics.testing import InMemoryMetricsRecorder


class _FakeCache:
    """Bare event surface, so tests control exactly which events fire."""

    def __init__(self, name: str = "products") -> None:
        self.name = name
        self.events = CacheEvents()
        self.items: list[str] = []

    def __len__(self) -> int:
        return len(self.items)

    def fire(self, event_type: CacheEventType, **kwargs) -> None:
        self.events.emit(CacheEvent(event_type=event_type, cache_name=self.name, key="k", **kwargs))


class _BrokenRecorder:
    def increment(self, definition, tags, amount=1.0):
        raise ConnectionError("metrics backend down")

    def set_gauge(self, definition, tags, sampler):
        raise ConnectionError("metrics backend down")


@pytest.fixture
def recorder() -> InMemoryMetricsRecorder:
    return InMemoryMetricsRecorder()


@pytest.fixture
def cache() -> _FakeCache:
    return _FakeCache()


@pytest.fixture
def wired(recorder: InMemoryMetricsRecorder, cache: _FakeCache) -> CacheMetricsAdapter:
    adapter = CacheMetricsAdapter("products", recorder, store=cache)
    adapter.wireup(cache)
    return adapter


class TestConstruction:
    def test_tag_set_is_cache_name(self, recorder):
        adapter = CacheMetricsAdapter("products", recorder)
        assert adapter.tags == {"cache_name": "products"}
        assert adapter.cache_name == "products"

    def test_tag_key_follows_conventions(self, recorder):
        adapter = CacheMetricsAdapter("products", recorder, conventions=SemanticConventions(cache_name_tag="cacheName"))
        assert adapter.tags == {"cacheName": "products"}

    def test_tag_set_is_immutable(self, recorder):
        adapter = CacheMetricsAdapter("products", recorder)
        with pytest.raises(TypeError):
            adapter.tags["cache_name"] = "other"  # type: ignore[index]

    @pytest.mark.parametrize("name", ["", " ", "\t\n"])
    def test_blank_cache_name_rejected(self, recorder, name):
        with pytest.raises(InvalidArgumentException) as exc_info:
            CacheMetricsAdapter(name, recorder)
        assert exc_info.value.context["argument"] == "cache_name"

    def test_blank_cache_name_rejected_even_without_metrics(self):
        with pytest.raises(InvalidArgumentException) as exc_info:
            CacheMetricsAdapter("", None)  # type: ignore[arg-type]
        assert exc_info.value.context["argument"] == "cache_name"

    def test_non_string_cache_name_rejected(self, recorder):
        with pytest.raises(InvalidArgumentException):
            CacheMetricsAdapter(None, recorder)  # type: ignore[arg-type]

    def test_missing_metrics_rejected(self):
        with pytest.raises(InvalidArgumentException) as exc_info:
            CacheMetricsAdapter("products", None)  # type: ignore[arg-type]
        assert exc_info.value.code == "ADAPTER_002"

    def test_starts_unwired(self, recorder):
        adapter = CacheMetricsAdapter("products", recorder)
        assert adapter.state is AdapterState.UNWIRED
        assert adapter.bindings == ()

    def test_unsized_store_is_ignored(self, recorder):
        adapter = CacheMetricsAdapter("products", recorder, store=object())  # type: ignore[arg-type]
        adapter.record_hit()
        assert recorder.gauge_samples == 0


class TestCounterOperations:
    @pytest.mark.parametrize(
        ("operation", "metric"),
        [
            ("record_hit", "cache_hit"),
            ("record_stale_hit", "cache_stale_hit"),
            ("record_miss", "cache_miss"),
            ("record_removal", "cache_removed"),
            ("record_expiration_eviction", "cache_expired_evict"),
            ("record_capacity_eviction", "cache_capacity_evict"),
            ("record_background_refresh", "cache_background_refresh"),
            ("record_background_refresh_error", "cache_background_refresh_error"),
            ("record_factory_error", "cache_factory_error"),
            ("record_factory_synthetic_timeout", "cache_factory_synthetic_timeout"),
            ("record_fail_safe_activation", "cache_fail_safe_activate"),
        ],
    )
    def test_each_operation_increments_one_counter(self, recorder, operation, metric):
        adapter = CacheMetricsAdapter("products", recorder)
        getattr(adapter, operation)()
        assert recorder.counter(metric, cache_name="products") == 1
        assert recorder.counter_names() == {metric}

    def test_prefix_applies_to_metric_names(self, recorder):
        adapter = CacheMetricsAdapter("products", recorder, conventions=SemanticConventions(prefix="shop_"))
        adapter.record_miss()
        assert recorder.counter("shop_cache_miss", cache_name="products") == 1

    def test_hit_and_miss_sample_item_count(self, recorder, cache):
        adapter = CacheMetricsAdapter("products", recorder, store=cache)
        cache.items.extend(["a", "b"])
        adapter.record_hit()
        assert recorder.gauge("cache_item_count", cache_name="products") == 2
        cache.items.append("c")
        adapter.record_miss()
        assert recorder.gauge("cache_item_count", cache_name="products") == 3

    def test_stale_hit_does_not_sample_item_count(self, recorder, cache):
        adapter = CacheMetricsAdapter("products", recorder, store=cache)
        adapter.record_stale_hit()
        assert recorder.gauge_samples == 0

    def test_no_store_never_touches_gauge(self, recorder):
        adapter = CacheMetricsAdapter("products", recorder)
        adapter.record_hit()
        adapter.record_miss()
        assert recorder.gauge_samples == 0
        assert recorder.gauge("cache_item_count", cache_name="products") is None

    def test_backend_failure_is_swallowed(self, cache):
        adapter = CacheMetricsAdapter("products", _BrokenRecorder(), store=cache)
        adapter.record_hit()
        adapter.record_miss()
        adapter.record_factory_error()

    def test_failing_sampler_does_not_block_counter(self, recorder):
        class ExplodingStore:
            def __len__(self) -> int:
                raise RuntimeError("store disposed")

        adapter = CacheMetricsAdapter("products", recorder, store=ExplodingStore())
        adapter.record_hit()
        assert recorder.counter("cache_hit", cache_name="products") == 1


class TestWireup:
    def test_wireup_binds_every_category(self, wired, cache):
        assert wired.state is AdapterState.WIRED
        assert {b.event_type for b in wired.bindings} == set(CacheEventType)
        for event_type in CacheEventType:
            assert cache.events.subscriber_count(event_type) == 1

    def test_fresh_hit(self, wired, cache, recorder):
        cache.fire(CacheEventType.HIT, is_stale=False)
        assert recorder.counter("cache_hit", cache_name="products") == 1
        assert recorder.counter("cache_stale_hit", cache_name="products") == 0
        assert recorder.counter("cache_miss", cache_name="products") == 0

    def test_stale_hit(self, wired, cache, recorder):
        cache.fire(CacheEventType.HIT, is_stale=True)
        assert recorder.counter("cache_stale_hit", cache_name="products") == 1
        assert recorder.counter("cache_hit", cache_name="products") == 0

    def test_eviction_capacity(self, wired, cache, recorder):
        cache.fire(CacheEventType.EVICTION, reason=EvictionReason.CAPACITY)
        assert recorder.counter_names() == {"cache_capacity_evict"}

    def test_eviction_expired(self, wired, cache, recorder):
        cache.fire(CacheEventType.EVICTION, reason=EvictionReason.EXPIRED)
        assert recorder.counter_names() == {"cache_expired_evict"}

    @pytest.mark.parametrize("reason", [EvictionReason.REMOVED, EvictionReason.REPLACED, None])
    def test_other_eviction_reasons_count_nothing(self, wired, cache, recorder, reason):
        cache.fire(CacheEventType.EVICTION, reason=reason)
        assert recorder.counter_names() == set()

    @pytest.mark.parametrize(
        ("event_type", "metric"),
        [
            (CacheEventType.MISS, "cache_miss"),
            (CacheEventType.REMOVE, "cache_removed"),
            (CacheEventType.BACKGROUND_FACTORY_SUCCESS, "cache_background_refresh"),
            (CacheEventType.BACKGROUND_FACTORY_ERROR, "cache_background_refresh_error"),
            (CacheEventType.FACTORY_ERROR, "cache_factory_error"),
            (CacheEventType.FACTORY_SYNTHETIC_TIMEOUT, "cache_factory_synthetic_timeout"),
            (CacheEventType.FAIL_SAFE_ACTIVATE, "cache_fail_safe_activate"),
        ],
    )
    def test_event_routes_to_counter(self, wired, cache, recorder, event_type, metric):
        cache.fire(event_type)
        assert recorder.counter(metric, cache_name="products") == 1
        assert recorder.counter_names() == {metric}

    def test_hit_and_miss_events_sample_gauge(self, wired, cache, recorder):
        cache.items.extend(["a", "b", "c"])
        cache.fire(CacheEventType.HIT)
        assert recorder.gauge("cache_item_count", cache_name="products") == 3
        cache.items.pop()
        cache.fire(CacheEventType.MISS)
        assert recorder.gauge("cache_item_count", cache_name="products") == 2

    def test_second_wireup_rejected(self, wired, cache):
        with pytest.raises(AdapterStateException):
            wired.wireup(cache)

    def test_cache_without_events_rejected(self, recorder):
        adapter = CacheMetricsAdapter("products", recorder)
        with pytest.raises(InvalidArgumentException):
            adapter.wireup(object())  # type: ignore[arg-type]
        assert adapter.state is AdapterState.UNWIRED

    def test_invalid_options_rejected(self, recorder, cache):
        adapter = CacheMetricsAdapter("products", recorder)
        with pytest.raises(InvalidArgumentException):
            adapter.wireup(cache, options={"name": "products"})  # type: ignore[arg-type]

    def test_options_accepted(self, recorder, cache):
        adapter = CacheMetricsAdapter("products", recorder)
        adapter.wireup(cache, options=CacheOptions(name="products"))
        assert adapter.state is AdapterState.WIRED

    def test_listener_never_raises_into_dispatch(self, cache):
        adapter = CacheMetricsAdapter("products", _BrokenRecorder(), store=cache)
        adapter.wireup(cache)
        handler = next(b.handler for b in adapter.bindings if b.event_type is CacheEventType.HIT)
        handler(CacheEvent(event_type=CacheEventType.HIT, cache_name="products", timestamp=datetime.now(UTC)))

    def test_malformed_event_is_contained(self, wired, cache):
        handler = next(b.handler for b in wired.bindings if b.event_type is CacheEventType.HIT)
        handler(object())  # type: ignore[arg-type]


class TestUnwire:
    def test_unwire_detaches_listeners(self, wired, cache, recorder):
        wired.unwire()
        cache.fire(CacheEventType.MISS)
        assert recorder.counter("cache_miss", cache_name="products") == 0
        assert wired.state is AdapterState.UNWIRED
        assert wired.bindings == ()

    def test_rewire_after_unwire(self, wired, cache, recorder):
        wired.unwire()
        wired.wireup(cache)
        cache.fire(CacheEventType.MISS)
        assert recorder.counter("cache_miss", cache_name="products") == 1

    def test_context_manager_closes(self, recorder, cache):
        with CacheMetricsAdapter("products", recorder) as adapter:
            adapter.wireup(cache)
        assert adapter.state is AdapterState.UNWIRED
        assert cache.events.subscriber_count(CacheEventType.HIT) == 0

    def test_unwire_when_unwired_is_noop(self, recorder):
        adapter = CacheMetricsAdapter("products", recorder)
        adapter.unwire()
        assert adapter.state is AdapterState.UNWIRED


class TestConcurrency:
    def test_concurrent_events_lose_no_updates(self, wired, cache, recorder):
        threads_count = 16
        per_thread = 250
        barrier = threading.Barrier(threads_count)

        def worker() -> None:
            barrier.wait()
            for _ in range(per_thread):
                cache.fire(CacheEventType.MISS)

        threads = [threading.Thread(target=worker) for _ in range(threads_count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert recorder.counter("cache_miss", cache_name="products") == threads_count * per_thread


class TestWithInMemoryCache:
    def test_instrument_counts_real_cache_traffic(self, recorder):
        cache = InMemoryCache(CacheOptions(name="users", max_size=1))
        adapter = instrument(cache, recorder)

        assert cache.get("a") is None
        cache.set("a", 1)
        assert cache.get("a") == 1
        cache.set("b", 2)
        cache.remove("b")

        assert adapter.tags == {"cache_name": "users"}
        assert recorder.counter("cache_miss", cache_name="users") == 1
        assert recorder.counter("cache_hit", cache_name="users") == 1
        assert recorder.counter("cache_capacity_evict", cache_name="users") == 1
        assert recorder.counter("cache_removed", cache_name="users") == 1
        assert recorder.gauge("cache_item_count", cache_name="users") == 1

    def test_instrument_without_item_count(self, recorder):
        cache = InMemoryCache(CacheOptions(name="users"))
        instrument(cache, recorder, track_item_count=False)
        cache.get("a")
        assert recorder.gauge_samples == 0

    def test_fail_safe_values_count_as_stale_hits(self, recorder):
        now = [1000.0]
        cache = InMemoryCache(
            CacheOptions(name="users", duration=10, fail_safe=True, fail_safe_throttle_duration=5),
            clock=lambda: now[0],
        )
        instrument(cache, recorder)
        cache.set("a", "old")
        now[0] += 20

        def factory():
            raise ConnectionError("db down")

        assert cache.get_or_set("a", factory) == "old"
        assert recorder.counter("cache_stale_hit", cache_name="users") == 1
        assert recorder.counter("cache_fail_safe_activate", cache_name="users") == 1
        assert recorder.counter("cache_factory_error", cache_name="users") == 1
        assert recorder.counter("cache_miss", cache_name="users") == 0

        assert cache.get("a") == "old"
        assert recorder.counter("cache_stale_hit", cache_name="users") == 2
        assert recorder.counter("cache_hit", cache_name="users") == 0
