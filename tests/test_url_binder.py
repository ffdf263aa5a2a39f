"""Tests for the URL binder."""

import time
from typing import Callable, List, Tuple

import pytest

from chartstate.chart_url import ChartUrl
from chartstate.config import ChartConfig
from chartstate.url_binder import (
    DEFAULT_DEBOUNCE_SECONDS,
    InMemoryLocation,
    Scheduler,
    ThreadingScheduler,
    TimerHandle,
    UrlBinder,
    UrlBinderError,
)


class FakeTimerHandle(TimerHandle):
    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler(Scheduler):
    """Scheduler driven by a manual clock."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: List[FakeTimerHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = FakeTimerHandle(self.now + delay, callback)
        self.timers.append(handle)
        return handle

    def advance(self, seconds: float) -> None:
        self.now += seconds
        due = [t for t in self.timers if t.due <= self.now and not t.cancelled]
        self.timers = [t for t in self.timers if t not in due]
        for timer in due:
            timer.callback()

    @property
    def pending(self) -> List[FakeTimerHandle]:
        return [t for t in self.timers if not t.cancelled]


def _bound_chart() -> Tuple[
    ChartConfig, ChartUrl, InMemoryLocation, FakeScheduler, UrlBinder
]:
    config = ChartConfig(min_time=1950, max_time=2000)
    url = ChartUrl(config)
    location = InMemoryLocation()
    scheduler = FakeScheduler()
    binder = UrlBinder(location, scheduler)
    binder.bind_to_window(url)
    return config, url, location, scheduler, binder


def test_immediate_push_when_not_debouncing():
    """Test each change is pushed straight away outside debounce mode."""
    config, _, location, scheduler, _ = _bound_chart()

    config.max_time = 2001
    config.max_time = 2002
    config.tab = "map"

    assert location.history == [
        "?time=1950..2001",
        "?time=1950..2002",
        "?tab=map&time=1950..2002",
    ]
    assert scheduler.pending == []


def test_changes_that_do_not_alter_params_are_not_pushed():
    """Test config changes outside the URL leave the location alone."""
    config, _, location, _, _ = _bound_chart()

    config.slug = "renamed"
    config.max_time = 2000

    assert location.history == []


def test_debounced_pushes_are_coalesced():
    """Test rapid changes in debounce mode produce a single, latest push."""
    config, url, location, scheduler, _ = _bound_chart()
    url.debounce_mode = True

    for year in range(2001, 2011):
        config.max_time = year
        scheduler.advance(0.01)

    assert location.history == []

    scheduler.advance(DEFAULT_DEBOUNCE_SECONDS)
    assert location.history == ["?time=1950..2010"]
    assert location.get_query_str() == "?time=1950..2010"


def test_debounced_push_carries_every_change_in_the_window():
    """Test the push reflects all changes made before it fires."""
    config, url, location, scheduler, _ = _bound_chart()
    url.debounce_mode = True

    config.max_time = 2005
    scheduler.advance(0.05)
    config.min_time = 1960

    scheduler.advance(1)
    assert location.history == ["?time=1960..2005"]


def test_immediate_push_replaces_pending_debounced_push():
    """Test leaving debounce mode pushes now and drops the stale timer."""
    config, url, location, scheduler, _ = _bound_chart()
    url.debounce_mode = True
    config.max_time = 2005

    url.debounce_mode = False
    config.max_time = 2006
    assert location.history == ["?time=1950..2006"]

    scheduler.advance(1)
    assert location.history == ["?time=1950..2006"]


def test_cancelled_timer_firing_late_does_not_push():
    """Test a timer that fires after being replaced leaves the newer one alone."""
    config, url, location, scheduler, _ = _bound_chart()
    url.debounce_mode = True

    config.max_time = 2005
    stale = scheduler.timers[0]
    config.max_time = 2006
    assert stale.cancelled

    stale.callback()
    assert location.history == []
    assert len(scheduler.pending) == 1

    scheduler.advance(1)
    assert location.history == ["?time=1950..2006"]


def test_pending_push_stays_cancellable_after_late_timer():
    """Test an immediate push still cancels the live timer after a stale one ran."""
    config, url, location, scheduler, _ = _bound_chart()
    url.debounce_mode = True

    config.max_time = 2005
    stale = scheduler.timers[0]
    config.max_time = 2006
    stale.callback()

    url.debounce_mode = False
    config.max_time = 2007
    assert location.history == ["?time=1950..2007"]

    for timer in scheduler.timers:
        timer.callback()
    assert location.history == ["?time=1950..2007"]


def test_unbind_cancels_pending_push():
    """Test no push happens after unbinding, even if one was scheduled."""
    config, url, location, scheduler, binder = _bound_chart()
    url.debounce_mode = True
    config.max_time = 2005

    binder.unbind_from_window()
    assert binder.is_bound is False
    scheduler.advance(1)

    config.max_time = 2010
    url.debounce_mode = False
    config.max_time = 2011

    assert location.history == []


def test_double_unbind_is_a_no_op():
    """Test unbinding twice does nothing the second time."""
    _, _, location, _, binder = _bound_chart()

    binder.unbind_from_window()
    binder.unbind_from_window()

    assert binder.is_bound is False
    assert location.history == []


def test_bind_while_bound_raises():
    """Test binding twice without unbinding is rejected."""
    _, url, _, _, binder = _bound_chart()

    with pytest.raises(UrlBinderError, match="already bound"):
        binder.bind_to_window(url)


def test_rebind_after_unbind():
    """Test a binder can be bound again after unbinding."""
    config, url, location, _, binder = _bound_chart()
    binder.unbind_from_window()
    binder.bind_to_window(url)

    config.tab = "table"
    assert location.history == ["?tab=table"]


def test_threading_scheduler_pushes_after_delay():
    """Test the default scheduler performs the debounced push on its own."""
    config = ChartConfig()
    url = ChartUrl(config)
    url.debounce_mode = True
    location = InMemoryLocation()
    binder = UrlBinder(location, ThreadingScheduler(), debounce_seconds=0.01)
    binder.bind_to_window(url)

    config.tab = "map"
    deadline = time.monotonic() + 2
    while not location.history and time.monotonic() < deadline:
        time.sleep(0.01)

    binder.unbind_from_window()
    assert location.history == ["?tab=map"]
