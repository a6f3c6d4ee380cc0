"""Tests for the Supabase data access helpers."""
from datetime import date

import pytest

from habitgrid import store
from habitgrid.store import StoreError
from habitgrid.validation import ValidationError

USER = "3c877140-0000-0000-0000-000000000001"
DAY = date(2025, 6, 2)


class TestLoads:
    def test_load_activities_scoped_and_ordered(self, fake_supabase):
        fake_supabase.rows["activities"] = [{"id": "a1"}]
        assert store.load_activities(fake_supabase, USER, DAY) == [{"id": "a1"}]
        q = fake_supabase.executed[0]
        assert q.table == "activities"
        assert q.called("select") == [(store.ACTIVITY_WITH_TYPE,)]
        assert ("user_id", USER) in q.called("eq")
        assert ("date", "2025-06-02") in q.called("eq")
        assert q.called("order") == [("start_time",)]

    def test_load_activities_between(self, fake_supabase):
        store.load_activities_between(fake_supabase, USER, date(2025, 6, 1), date(2025, 6, 7))
        q = fake_supabase.executed[0]
        assert q.called("gte") == [("date", "2025-06-01")]
        assert q.called("lte") == [("date", "2025-06-07")]

    def test_reversed_range_rejected(self, fake_supabase):
        with pytest.raises(ValueError):
            store.load_activities_between(fake_supabase, USER, date(2025, 6, 7), date(2025, 6, 1))
        assert fake_supabase.executed == []

    def test_missing_user_rejected(self, fake_supabase):
        with pytest.raises(ValueError):
            store.load_plans(fake_supabase, "", DAY)

    def test_none_data_is_empty_list(self, fake_supabase):
        fake_supabase.rows["activity_types"] = None
        assert store.load_activity_types(fake_supabase, USER) == []

    def test_failure_wrapped(self, fake_supabase):
        fake_supabase.failures["plans"] = RuntimeError("boom")
        with pytest.raises(StoreError) as exc:
            store.load_plans(fake_supabase, USER, DAY)
        assert exc.value.operation == "load_plans"
        assert "boom" in str(exc.value)


class TestWrites:
    def test_add_plan_forces_unfinished(self, fake_supabase, london):
        fake_supabase.rows["plans"] = [{"id": "p1"}]
        created = store.add_plan(fake_supabase, USER, DAY, {
            "plan_name": "Read", "start_time": "9:00 PM", "end_time": "10:00 PM", "is_finished": True,
        }, london)
        assert created == {"id": "p1"}
        (rows,) = fake_supabase.executed[0].called("insert")[0]
        assert rows[0]["is_finished"] is False
        assert rows[0]["user_id"] == USER
        assert rows[0]["date"] == "2025-06-02"

    def test_add_plan_stores_utc_instants(self, fake_supabase, london):
        store.add_plan(fake_supabase, USER, DAY, {
            "plan_name": "Read", "start_time": "9:00 PM", "end_time": "10:00 PM",
        }, london)
        (rows,) = fake_supabase.executed[0].called("insert")[0]
        assert rows[0]["start_time"] == "2025-06-02T20:00:00+00:00"
        assert rows[0]["end_time"] == "2025-06-02T21:00:00+00:00"

    def test_add_plan_keeps_instants(self, fake_supabase, london):
        store.add_plan(fake_supabase, USER, DAY, {
            "plan_name": "Read", "start_time": "2025-06-02T20:00:00Z", "end_time": "10:00 PM",
        }, london)
        (rows,) = fake_supabase.executed[0].called("insert")[0]
        assert rows[0]["start_time"] == "2025-06-02T20:00:00Z"
        assert rows[0]["end_time"] == "2025-06-02T21:00:00+00:00"

    def test_add_plan_rejects_bad_time_before_writing(self, fake_supabase, london):
        with pytest.raises(ValidationError) as exc:
            store.add_plan(fake_supabase, USER, DAY, {
                "plan_name": "Read", "start_time": "noon", "end_time": "10:00 PM",
            }, london)
        assert "start_time" in exc.value.errors
        assert fake_supabase.executed == []

    def test_update_plan_stores_utc_instants(self, fake_supabase, london):
        store.update_plan(fake_supabase, USER, "p1", date(2025, 1, 10), {
            "plan_name": "Read", "start_time": "9:00 PM", "end_time": "10:00 PM",
        }, london)
        q = fake_supabase.executed[0]
        (row,) = q.called("update")[0]
        assert row["start_time"] == "2025-01-10T21:00:00+00:00"
        assert row["end_time"] == "2025-01-10T22:00:00+00:00"
        assert q.called("eq") == [("id", "p1"), ("user_id", USER)]

    def test_add_activity_validates_first(self, fake_supabase):
        with pytest.raises(ValidationError):
            store.add_activity(fake_supabase, USER, DAY, {"activity_name": "Run"})
        assert fake_supabase.executed == []

    def test_add_activity_keeps_clock_strings(self, fake_supabase):
        store.add_activity(fake_supabase, USER, DAY, {
            "activity_name": "Run", "activity_type_id": "t1", "start_time": "7:00 AM", "end_time": "8:00 AM",
        })
        (rows,) = fake_supabase.executed[0].called("insert")[0]
        assert (rows[0]["start_time"], rows[0]["end_time"]) == ("7:00 AM", "8:00 AM")

    def test_update_activity_scoped_to_user(self, fake_supabase, london):
        store.update_activity(fake_supabase, USER, "a1", DAY, {
            "activity_name": "Run", "activity_type_id": "t1", "start_time": "7:00 AM", "end_time": "8:00 AM",
        }, london)
        q = fake_supabase.executed[0]
        assert q.called("eq") == [("id", "a1"), ("user_id", USER)]
        (row,) = q.called("update")[0]
        assert row["start_time"] == "2025-06-02T06:00:00+00:00"
        assert row["end_time"] == "2025-06-02T07:00:00+00:00"

    def test_delete_counts_rows(self, fake_supabase):
        fake_supabase.rows["activities"] = [{"id": "a1"}]
        assert store.delete_activity(fake_supabase, USER, "a1") == 1
        assert fake_supabase.executed[0].called("delete") == [()]

    def test_toggle_plan_flips_flag(self, fake_supabase):
        fake_supabase.rows["plans"] = [{"id": "p1", "is_finished": True}]
        updated = store.toggle_plan(fake_supabase, USER, {"id": "p1", "is_finished": False})
        assert updated["is_finished"] is True
        assert fake_supabase.executed[0].called("update") == [({"is_finished": True},)]

    def test_toggle_plan_requires_id(self, fake_supabase):
        with pytest.raises(ValueError):
            store.toggle_plan(fake_supabase, USER, {"is_finished": False})

    def test_activity_type_crud(self, fake_supabase):
        fake_supabase.rows["activity_types"] = [{"id": "t1", "name": "Sport", "color": "#112233"}]
        assert store.add_activity_type(fake_supabase, USER, {"name": "Sport", "color": "#112233"})["id"] == "t1"
        store.update_activity_type(fake_supabase, USER, "t1", {"name": "Gym"})
        assert store.delete_activity_type(fake_supabase, USER, "t1") == 1
        assert [q.table for q in fake_supabase.executed] == ["activity_types"] * 3
