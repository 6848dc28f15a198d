import asyncio

import pytest

from linkcrawler.crawler.scheduler import CrawlerScheduler
from linkcrawler.crawler.signals import RunState
from linkcrawler.utils.config import Config


def _config(**crawler):
    settings = {
        'seed_url': 'A',
        'max_depth': 1,
        'timeout': 5,
        'politeness_delay': 0,
        'stats_interval': 0,
    }
    settings.update(crawler)
    return Config.from_dict({'crawler': settings})


def _run(scheduler, before=None):
    async def scenario():
        await scheduler.initialize()
        if before:
            before(scheduler)
        try:
            return await scheduler.start_crawling()
        finally:
            await scheduler.close()

    return asyncio.run(scenario())


def test_seed_failure_with_error_budget_of_one(fake_source):
    source = fake_source({})
    scheduler = CrawlerScheduler(_config(max_errors=1), source=source)

    report = _run(scheduler)

    assert report.state is RunState.BUDGET_EXHAUSTED
    assert report.failures == 1
    assert report.successes == 0
    assert report.visited == {}
    assert scheduler.crawler.spawned == 0
    assert source.calls == ['A']


def test_result_budget_ends_run(fake_source):
    source = fake_source({
        'A': ('a', ['B', 'C', 'D']),
        'B': ('b', []),
        'C': ('c', []),
        'D': ('d', []),
    })
    scheduler = CrawlerScheduler(_config(max_results=2), source=source)

    report = _run(scheduler)

    assert report.state is RunState.BUDGET_EXHAUSTED
    assert report.successes == 2
    assert scheduler.crawler.in_flight == 0


def test_timeout_ends_run(fake_source):
    source = fake_source({'A': ('a', ['B'])}, hang={'B'})
    scheduler = CrawlerScheduler(_config(timeout=0.1), source=source)

    report = _run(scheduler)

    assert report.state is RunState.TIMED_OUT
    assert report.successes == 1
    assert report.visited == {'A': 'a'}
    assert scheduler.crawler.in_flight == 0


def test_stalled_seed_cannot_outlive_timeout(fake_source):
    source = fake_source({}, hang={'A'})
    scheduler = CrawlerScheduler(_config(timeout=0.1), source=source)

    report = _run(scheduler)

    assert report.state is RunState.TIMED_OUT
    assert report.successes == 0
    assert report.failures == 0


def test_interrupt_ends_run(fake_source):
    source = fake_source({'A': ('a', ['B'])}, hang={'B'})
    scheduler = CrawlerScheduler(_config(timeout=30), source=source)

    def interrupt_soon(s):
        asyncio.get_running_loop().call_later(0.05, s.interrupt)

    report = _run(scheduler, before=interrupt_soon)

    assert report.state is RunState.INTERRUPTED
    assert report.elapsed < 5
    assert scheduler.interrupt_trigger.fired == 1


def test_depth_trigger_raises_ceiling_during_run(fake_source):
    source = fake_source({'A': ('a', ['B'])}, hang={'B'})
    scheduler = CrawlerScheduler(_config(max_depth=1, depth_step=2, timeout=0.2), source=source)

    def raise_twice(s):
        s.raise_depth()
        s.raise_depth()

    report = _run(scheduler, before=raise_twice)

    assert report.max_depth == 5
    assert scheduler.depth_trigger.fired == 2


def test_scenario_cycle_through_scheduler(fake_source):
    source = fake_source({
        'A': ('Page A', ['B', 'C']),
        'B': ('Page B', ['A']),
        'C': ('Page C', ['A']),
    })
    scheduler = CrawlerScheduler(_config(max_depth=1, max_results=3), source=source)

    report = _run(scheduler)

    assert report.state is RunState.BUDGET_EXHAUSTED
    assert report.visited == {'A': 'Page A', 'B': 'Page B', 'C': 'Page C'}
    assert sorted(source.calls) == ['A', 'B', 'C']


def test_start_crawling_twice_is_rejected(fake_source):
    scheduler = CrawlerScheduler(_config(max_errors=1), source=fake_source({}))

    async def scenario():
        await scheduler.start_crawling()
        try:
            with pytest.raises(RuntimeError):
                await scheduler.start_crawling()
        finally:
            await scheduler.close()

    asyncio.run(scenario())
    assert scheduler.state is RunState.BUDGET_EXHAUSTED


def test_get_stats_after_run(fake_source):
    scheduler = CrawlerScheduler(_config(max_results=1), source=fake_source({'A': ('a', [])}))

    _run(scheduler)
    stats = scheduler.get_stats()

    assert stats['state'] == 'budget_exhausted'
    assert stats['visited'] == 1
    assert stats['successes'] == 1


class _BrokenSource:
    def __init__(self):
        self.calls = []

    async def extract(self, url):
        self.calls.append(url)
        raise ValueError("malformed markup")


def test_unexpected_extract_error_charges_error_budget():
    source = _BrokenSource()
    scheduler = CrawlerScheduler(_config(max_errors=1, timeout=5), source=source)

    report = _run(scheduler)

    assert report.state is RunState.BUDGET_EXHAUSTED
    assert report.failures == 1
    assert report.successes == 0
    assert report.elapsed < 5
    assert source.calls == ['A']


def test_depth_raise_updates_ceiling_gauge(fake_source):
    source = fake_source({'A': ('a', ['B'])}, hang={'B'})
    scheduler = CrawlerScheduler(_config(max_depth=1, depth_step=2, timeout=0.2), source=source)

    report = _run(scheduler, before=lambda s: s.raise_depth())

    assert report.max_depth == 3
    assert 'crawler_depth_ceiling 3.0' in scheduler.monitor.metrics.export_text()
