"""Tests for PropertyArray — structural diffs, callbacks and owner integration."""

import pytest

from surveymodel import ArrayChanges, Base, LocalizableString, PropertyArray, settings


def _tracked(items=None):
    """A standalone array that records every notification it sends."""
    log = []
    arr = PropertyArray(items, notify=lambda changes, old_value: log.append(changes))
    return arr, log


class Item:
    def __init__(self, value):
        self.value = value
        self.loc_owner = None
        self.owner_property_name = None
        self.loc_text = LocalizableString(None)


class Choices(Base):
    def __init__(self):
        super().__init__()
        self.pushed = []
        self.removed = []
        self.create_new_array("choices", lambda item, index: self.pushed.append((item, index)), self.removed.append)
        self.changes = []

    def on_property_value_changed_callback(self, name, old_value, new_value, sender, array_changes):
        self.changes.append((name, old_value, new_value, array_changes))

    @property
    def choices(self):
        return self.get_property_value("choices")

    @choices.setter
    def choices(self, value):
        self.set_property_value("choices", value)


class TestDiffs:
    def test_append(self):
        arr, log = _tracked(["a", "b", "c"])
        arr.append("x")
        assert log == [ArrayChanges(3, 0, ["x"], [])]
        assert arr == ["a", "b", "c", "x"]

    def test_popleft(self):
        arr, log = _tracked(["a", "b", "c"])
        assert arr.popleft() == "a"
        assert log == [ArrayChanges(2, 1, [], ["a"])]
        assert arr == ["b", "c"]

    def test_popleft_empty_is_noop(self):
        arr, log = _tracked()
        assert arr.popleft() is None
        assert log == []

    def test_appendleft(self):
        arr, log = _tracked(["b"])
        arr.appendleft("a")
        assert log == [ArrayChanges(0, 0, ["a"], [])]
        assert arr == ["a", "b"]

    def test_pop(self):
        arr, log = _tracked(["a", "b", "c"])
        assert arr.pop() == "c"
        assert log == [ArrayChanges(2, 1, [], ["c"])]

    def test_pop_empty_is_noop(self):
        arr, log = _tracked()
        assert arr.pop() is None
        assert log == []

    def test_pop_at_index_is_splice(self):
        arr, log = _tracked(["a", "b", "c"])
        assert arr.pop(0) == "a"
        assert log == [ArrayChanges(0, 1, [], ["a"])]

    def test_pop_out_of_range_emits_nothing(self):
        arr, log = _tracked([1, 2, 3])
        with pytest.raises(IndexError):
            arr.pop(5)
        assert arr == [1, 2, 3]
        assert log == []

    def test_pop_negative_index(self):
        arr, log = _tracked(["a", "b", "c"])
        assert arr.pop(-3) == "a"
        assert log == [ArrayChanges(0, 1, [], ["a"])]

    def test_splice(self):
        arr, log = _tracked(["a", "b", "c", "d"])
        removed = arr.splice(1, 2, "x", "y", "z")
        assert removed == ["b", "c"]
        assert arr == ["a", "x", "y", "z", "d"]
        assert log == [ArrayChanges(1, 2, ["x", "y", "z"], ["b", "c"])]

    def test_splice_clamps(self):
        arr, log = _tracked(["a", "b"])
        assert arr.splice(-1, 10) == ["b"]
        assert log == [ArrayChanges(1, 1, [], ["b"])]

    def test_generic_operations_route_through_splice(self):
        arr, log = _tracked(["a", "b"])
        arr.insert(1, "x")
        arr[0] = "z"
        del arr[2]
        arr.extend(["c", "d"])
        assert arr == ["z", "x", "c", "d"]
        assert log == [
            ArrayChanges(1, 0, ["x"], []),
            ArrayChanges(0, 1, ["z"], ["a"]),
            ArrayChanges(2, 1, [], ["b"]),
            ArrayChanges(2, 0, ["c", "d"], []),
        ]

    def test_clear(self):
        arr, log = _tracked(["a", "b"])
        arr.clear()
        assert len(arr) == 0
        assert log == [ArrayChanges(0, 2, [], ["a", "b"])]
        arr.clear()
        assert len(log) == 1

    def test_replace(self):
        arr, log = _tracked(["a", "b"])
        removed = arr.replace([1, 2, 3], transform=lambda v: v * 10)
        assert removed == ["a", "b"]
        assert arr == [10, 20, 30]
        assert log == [ArrayChanges(0, 2, [10, 20, 30], ["a", "b"])]


class TestCallbacks:
    def test_order(self):
        order = []
        arr = PropertyArray(
            on_push=lambda item, index: order.append("push"),
            notify=lambda changes, old_value: order.append("owner"),
        )
        arr.on_array_changed.add(lambda sender, changes: order.append("array"))
        arr.append(1)
        assert order == ["push", "owner", "array"]

    def test_on_push_index(self):
        pushed = []
        arr = PropertyArray(["a"], on_push=lambda item, index: pushed.append((item, index)))
        arr.append("b")
        arr.splice(0, 0, "x", "y")
        assert pushed == [("b", 1), ("x", 0), ("y", 1)]

    def test_on_remove(self):
        removed = []
        arr = PropertyArray(["a", "b", "c"], on_remove=removed.append)
        arr.pop()
        arr.popleft()
        arr.remove("b")
        assert removed == ["c", "a", "b"]

    def test_disposed_owner_silences(self):
        disposed = [False]
        arr, log = _tracked()
        arr._is_disposed = lambda: disposed[0]
        disposed[0] = True
        arr.append(1)
        assert arr == [1]
        assert log == []


class TestOwnedArray:
    def test_mutation_runs_owner_pipeline(self):
        q = Choices()
        arr = q.choices
        events = []
        q.on_property_changed.add(lambda sender, options: events.append(options))
        arr.append("a")
        assert q.changes == [("choices", arr, arr, ArrayChanges(0, 0, ["a"], []))]
        assert events[0]["old_value"] is events[0]["new_value"] is arr
        assert q.pushed == [("a", 0)]

    def test_assign_replaces_in_place(self):
        q = Choices()
        arr = q.choices
        arr.append("a")
        q.changes.clear()
        q.choices = ["x", "y"]
        assert q.choices is arr
        assert arr == ["x", "y"]
        name, old_value, new_value, changes = q.changes[0]
        assert old_value == ["a"]
        assert new_value is arr
        assert changes == ArrayChanges(0, 1, ["x", "y"], ["a"])
        assert q.removed == ["a"]

    def test_assign_equal_is_noop(self):
        q = Choices()
        q.choices = [1, 2]
        q.changes.clear()
        q.choices = [1, 2]
        q.choices = (1, 2)
        assert q.changes == []

    def test_assign_none_clears(self):
        q = Choices()
        q.choices = [1, 2]
        q.choices = None
        assert q.choices == []
        assert q.changes[-1][3] == ArrayChanges(0, 2, [], [1, 2])

    def test_disposed_owner(self, caplog):
        q = Choices()
        arr = q.choices
        q.dispose()
        arr.append("late")
        assert arr == ["late"]
        assert q.changes == []
        q.choices = ["x"]
        assert arr == ["late"]
        assert "choices" in caplog.text

    def test_ensure_array_is_idempotent(self):
        q = Choices()
        arr = q.choices
        assert q.ensure_array("choices") is None
        assert q.choices is arr
        assert isinstance(q.ensure_array("other"), PropertyArray)


class TestItemValues:
    def test_items_are_owned(self):
        class Question(Base):
            def __init__(self):
                super().__init__()
                self.create_item_values("choices")

        q = Question()
        item = Item(1)
        q.get_property_value("choices").append(item)
        assert item.loc_owner is q
        assert item.owner_property_name == "choices"

    def test_factory_wraps_raw_values(self, monkeypatch):
        created = []

        def factory(value, item_type):
            created.append(item_type)
            return Item(value)

        monkeypatch.setattr(settings, "item_value_factory", factory)

        class Question(Base):
            def __init__(self):
                super().__init__()
                self.create_item_values("choices")

            def get_item_value_type(self):
                return "itemvalue"

        q = Question()
        q.set_property_value("choices", [1, 2])
        items = q.get_property_value("choices")
        assert [item.value for item in items] == [1, 2]
        assert all(item.loc_owner is q for item in items)
        assert created == ["itemvalue", "itemvalue"]

    def test_loc_strs_changed_hook(self, monkeypatch):
        seen = []
        monkeypatch.setattr(settings, "item_value_loc_str_changed", seen.append)

        class Question(Base):
            def __init__(self):
                super().__init__()
                self.create_item_values("choices")

        q = Question()
        q.get_property_value("choices").append(Item(1))
        q.loc_strs_changed()
        assert len(seen) == 1
        assert seen[0] is q.get_property_value("choices")
