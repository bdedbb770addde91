"""Tests for dependency collection and ComputedUpdater."""

import pytest

from surveymodel import (
    Base,
    ComputedUpdater,
    NestedDependenciesError,
    PropertyValue,
    computed,
    finish_collecting,
    start_collecting,
)
from surveymodel._tracking import is_collecting


class Cell(Base):
    x = PropertyValue()
    y = PropertyValue()
    total = PropertyValue()


class TestCollecting:
    def test_records_reads(self):
        a, b = Cell(), Cell()
        start_collecting(lambda value: None)
        a.x
        b.y
        deps = finish_collecting()
        assert deps.dependencies == [(a, "x"), (b, "y")]

    def test_ignores_duplicates_and_owner(self):
        a = Cell()
        start_collecting(lambda value: None, a, "total")
        a.x
        a.x
        a.total
        deps = finish_collecting()
        assert deps.dependencies == [(a, "x")]

    def test_localized_text_read_is_recorded(self):
        a = Cell()
        a.create_localizable_string("title")
        start_collecting(lambda value: None)
        a.get_localizable_string_text("title")
        deps = finish_collecting()
        assert deps.dependencies == [(a, "title")]

    def test_nested_is_fatal(self):
        start_collecting(lambda value: None)
        try:
            with pytest.raises(NestedDependenciesError):
                start_collecting(lambda value: None)
        finally:
            finish_collecting()
        assert not is_collecting()

    def test_finish_without_start(self):
        assert finish_collecting() is None

    def test_no_collection_outside_scope(self):
        a = Cell()
        a.x
        start_collecting(lambda value: None)
        deps = finish_collecting()
        assert len(deps) == 0

    def test_unique_ids(self):
        start_collecting(lambda value: None)
        first = finish_collecting()
        start_collecting(lambda value: None)
        second = finish_collecting()
        assert first.id != second.id

    def test_subscribe_and_dispose(self):
        a = Cell()
        calls = []
        start_collecting(calls.append)
        a.x
        deps = finish_collecting()
        a.x = 1
        assert calls == []  # not subscribed yet
        deps.subscribe()
        a.x = 2
        assert calls == [2]
        deps.dispose()
        a.x = 3
        assert calls == [2]

    def test_dispose_leaves_other_listeners(self):
        a = Cell()
        other = []
        a.register_function_on_property_value_changed("x", other.append, "other")
        start_collecting(lambda value: None)
        a.x
        deps = finish_collecting()
        deps.subscribe()
        deps.dispose()
        a.x = 1
        assert other == [1]


class TestComputedUpdater:
    def test_attach_evaluates(self):
        a, b, target = Cell(), Cell(), Cell()
        a.x, b.y = 1, 2
        target.total = ComputedUpdater(lambda: a.x + b.y)
        assert target.total == 3

    def test_re_evaluates_once_per_change(self):
        a, b, c, target = Cell(), Cell(), Cell(), Cell()
        a.x, b.y, c.x = 1, 2, 0
        runs = []

        def total():
            runs.append(1)
            return a.x + b.y

        target.total = computed(total)
        assert len(runs) == 1
        a.x = 10
        assert len(runs) == 2
        assert target.total == 12
        b.y = 20
        assert len(runs) == 3
        assert target.total == 30
        c.x = 99
        assert len(runs) == 3

    def test_notifies_target_listeners(self):
        a, target = Cell(), Cell()
        a.x = 1
        target.total = computed(lambda: a.x * 2)
        seen = []
        target.on_property_changed.add(lambda sender, options: seen.append(options["new_value"]))
        a.x = 5
        assert seen == [10]

    def test_dynamic_dependencies(self):
        flag, a, b, target = Cell(), Cell(), Cell(), Cell()
        flag.x, a.x, b.x = True, "a", "b"
        target.total = computed(lambda: a.x if flag.x else b.x)
        assert target.total == "a"
        b.x = "b2"
        assert target.total == "a"
        flag.x = False
        assert target.total == "b2"
        a.x = "a2"
        assert target.total == "b2"
        b.x = "b3"
        assert target.total == "b3"

    def test_dispose_stops_updates(self):
        a, target = Cell(), Cell()
        a.x = 1
        updater = computed(lambda: a.x)
        target.total = updater
        updater.dispose()
        a.x = 2
        assert target.total == 1
        assert a._on_prop_change_functions == []

    def test_plain_assignment_detaches(self):
        a, target = Cell(), Cell()
        a.x = 1
        target.total = computed(lambda: a.x)
        target.total = 100
        a.x = 2
        assert target.total == 100

    def test_target_dispose_detaches(self):
        a, target = Cell(), Cell()
        a.x = 1
        target.total = computed(lambda: a.x)
        target.dispose()
        a.x = 2
        assert target.total == 1
        assert a._on_prop_change_functions == []

    def test_attach_to_disposed_target_is_rejected(self, caplog):
        a, target = Cell(), Cell()
        a.x = 1
        target.dispose()
        runs = []

        def total():
            runs.append(1)
            return a.x

        target.total = computed(total)
        a.x = 2
        assert runs == []
        assert a._on_prop_change_functions is None
        assert "total" in caplog.text

    def test_chained(self):
        a, mid, target = Cell(), Cell(), Cell()
        a.x = 2
        mid.total = computed(lambda: a.x * 2)
        target.total = computed(lambda: mid.total + 1)
        assert target.total == 5
        a.x = 10
        assert mid.total == 20
        assert target.total == 21

    def test_error_releases_collection(self):
        target = Cell()

        def broken():
            raise ZeroDivisionError

        with pytest.raises(ZeroDivisionError):
            target.total = computed(broken)
        assert not is_collecting()

    def test_repr(self):
        def doubled():
            return 2

        assert "doubled" in repr(computed(doubled))
