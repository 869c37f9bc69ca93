from datetime import datetime, timedelta, timezone

import pytest

from nicpk.types import DoseEvent
from nicpk.events import edit_pouch, from_explicit_log, pouch, remove_pouch, to_timestamp
from nicpk.helpers import active_events, dedupe_events, sorted_events

T0 = 1_704_067_200.0


def test_to_timestamp_naive_is_utc():
    assert to_timestamp(datetime(2024, 1, 1)) == T0
    plus_two = timezone(timedelta(hours=2))
    assert to_timestamp(datetime(2024, 1, 1, 2, tzinfo=plus_two)) == T0


def test_pouch_builds_validated_event():
    e = pouch(6.0, T0, event_id="abc")
    assert e == DoseEvent(id="abc", dose_mg=6.0, inserted_at=T0)
    assert not e.is_removed
    assert pouch(4.0, T0).id  # generated


@pytest.mark.parametrize("kwargs", [
    dict(dose_mg=0.0, inserted_at=T0),
    dict(dose_mg=-1.0, inserted_at=T0),
    dict(dose_mg=float("nan"), inserted_at=T0),
    dict(dose_mg=6.0, inserted_at=float("inf")),
    dict(dose_mg=6.0, inserted_at=T0, removed_at=T0 - 1),
    dict(dose_mg=6.0, inserted_at=T0, full_release_s=0.0),
])
def test_pouch_rejects_bad_input(kwargs):
    with pytest.raises(ValueError):
        pouch(**kwargs)


def test_remove_pouch_returns_copy_once():
    e = pouch(6.0, T0, event_id="a")
    out = remove_pouch(e, T0 + 1800)
    assert out.removed_at == T0 + 1800
    assert e.removed_at is None
    with pytest.raises(ValueError, match="already removed"):
        remove_pouch(out, T0 + 3600)
    with pytest.raises(ValueError):
        remove_pouch(e, T0 - 10)


def test_remove_pouch_after_unreadable_removal_time():
    """A NaN removal stamp reads as "still in", so the pouch can be taken out."""
    stale = DoseEvent(id="a", dose_mg=6.0, inserted_at=T0, removed_at=float("nan"))
    out = remove_pouch(stale, T0 + 1800)
    assert out.removed_at == T0 + 1800
    assert out.id == "a"


def test_edit_pouch_keeps_identity():
    e = pouch(6.0, T0, T0 + 1800, event_id="a", full_release_s=2700.0)
    fixed = edit_pouch(e, dose_mg=4.0)
    assert fixed.id == "a"
    assert fixed.dose_mg == 4.0
    assert fixed.removed_at == T0 + 1800
    assert fixed.full_release_s == 2700.0
    with pytest.raises(ValueError):
        edit_pouch(e, inserted_at=T0 + 3600)  # would start after removal


def test_from_explicit_log_sorted():
    events = from_explicit_log([(T0 + 3600, None, 4.0), (T0, T0 + 1800, 6.0)])
    assert [e.dose_mg for e in events] == [6.0, 4.0]
    assert events[1].removed_at is None


def test_sorted_events_by_start_then_id():
    a = DoseEvent(id="b", dose_mg=1.0, inserted_at=T0)
    b = DoseEvent(id="a", dose_mg=1.0, inserted_at=T0)
    c = DoseEvent(id="c", dose_mg=1.0, inserted_at=None)
    d = DoseEvent(id="d", dose_mg=1.0, inserted_at=T0 - 60)
    assert [e.id for e in sorted_events([c, a, b, d])] == ["d", "a", "b", "c"]


def test_dedupe_keeps_last_version():
    old = DoseEvent(id="a", dose_mg=6.0, inserted_at=T0)
    other = DoseEvent(id="b", dose_mg=4.0, inserted_at=T0)
    new = DoseEvent(id="a", dose_mg=8.0, inserted_at=T0)
    out = dedupe_events([old, other, new])
    assert [(e.id, e.dose_mg) for e in out] == [("a", 8.0), ("b", 4.0)]


def test_active_events():
    in_mouth = DoseEvent(id="in", dose_mg=6.0, inserted_at=T0 - 600)
    out_already = DoseEvent(id="out", dose_mg=6.0, inserted_at=T0 - 3600, removed_at=T0 - 1800)
    future = DoseEvent(id="later", dose_mg=6.0, inserted_at=T0 + 60)
    broken = DoseEvent(id="broken", dose_mg=None, inserted_at=T0 - 60)
    assert [e.id for e in active_events([in_mouth, out_already, future, broken], T0)] == ["in"]
