from shockbot.dedup import MessageDeduplicator


def test_first_sighting_passes_repeat_is_rejected(clock):
    dedup = MessageDeduplicator(ttl_seconds=60, clock=clock)
    assert dedup.check_and_mark(1)
    assert not dedup.check_and_mark(1)
    assert dedup.check_and_mark(2)


def test_entries_expire_after_ttl(clock):
    dedup = MessageDeduplicator(ttl_seconds=60, clock=clock)
    dedup.check_and_mark(1)
    clock.advance(61)
    assert dedup.check_and_mark(1)


def test_size_bound_drops_oldest(clock):
    dedup = MessageDeduplicator(ttl_seconds=600, max_entries=3, clock=clock)
    for mid in range(5):
        dedup.check_and_mark(mid)
        clock.advance(1)
        assert len(dedup) <= 3
    dedup.check_and_mark(99)
    assert len(dedup) == 3
    assert dedup.check_and_mark(0)
    assert not dedup.check_and_mark(4)
    assert len(dedup) == 3


def test_size_bound_keeps_newest_on_timestamp_tie(clock):
    dedup = MessageDeduplicator(ttl_seconds=600, max_entries=2, clock=clock)
    for mid in (1, 2, 3):
        assert dedup.check_and_mark(mid)
    assert len(dedup) == 2
    assert not dedup.check_and_mark(3)
