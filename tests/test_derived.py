"""Tests for derived properties and cascading recomputation."""

import random

import pytest

from propsmodel import DuplicateNameError, NoSuchPropertyError, PropsModel


def _rectangle():
    m = PropsModel()
    m.define_property("length", 10).define_property("width", 20)
    m.define_derived_property("area", ["length", "width"], lambda l, w: l * w)
    m.define_derived_property("perimeter", ["length", "width"], lambda l, w: 2 * (l + w))
    return m


class TestDerivedProperty:
    def test_initial_compute(self):
        m = _rectangle()
        assert m.get("area") == 200
        assert m.get("perimeter") == 60
        assert m.is_derived("area")

    def test_dependency_values_in_declared_order(self):
        m = PropsModel().define_property("a", "x").define_property("b", "y")
        m.define_derived_property("ba", ["b", "a"], lambda b, a: b + a)
        assert m.get("ba") == "yx"

    def test_recomputes_on_change(self):
        m = _rectangle()
        settles = []
        m.on_settle(lambda names: settles.append(set(names)))
        m.set("length", 15)
        assert m.get("area") == 300
        assert m.get("perimeter") == 70
        assert settles == [{"length", "area", "perimeter"}]

    def test_chained_derivation(self):
        m = PropsModel().define_property("x", 3)
        m.define_derived_property("doubled", ["x"], lambda x: x * 2)
        m.define_derived_property("quadrupled", ["doubled"], lambda d: d * 2)
        assert m.get("quadrupled") == 12
        m.set("x", 5)
        assert m.get("quadrupled") == 20

    def test_unknown_dependency(self):
        m = PropsModel()
        with pytest.raises(NoSuchPropertyError):
            m.define_derived_property("y", ["x"], lambda x: x)
        assert "y" not in m

    def test_no_self_reference(self):
        """Dependencies must already exist, so a property cannot depend on itself."""
        with pytest.raises(NoSuchPropertyError):
            PropsModel().define_derived_property("x", ["x"], lambda x: x)

    def test_duplicate_name(self):
        m = _rectangle()
        with pytest.raises(DuplicateNameError):
            m.define_derived_property("area", ["length"], lambda l: l)
        assert m.get("area") == 200

    def test_unchanged_result_stops_cascade(self):
        m = PropsModel().define_property("x", 1)
        m.define_derived_property("sign", ["x"], lambda x: x > 0)
        calls = []
        m.define_derived_property("label", ["sign"], lambda s: calls.append(s) or str(s))
        calls.clear()
        m.set("x", 5)
        assert calls == []
        m.set("x", -5)
        assert calls == [False]
        assert m.get("label") == "False"

    def test_derived_change_events(self):
        m = _rectangle()
        log = []
        m.on_any(["area"], lambda name, new, old: log.append((new, old)))
        m.set("width", 30)
        assert log == [(300, 200)]


class TestInitialValue:
    def test_explicit_initial_value_skips_compute(self):
        calls = []
        m = PropsModel().define_property("x", 1)
        m.define_derived_property("y", ["x"], lambda x: calls.append(x) or x, initial_value=99)
        assert calls == []
        assert m.get("y") == 99

    @pytest.mark.parametrize("falsy", [0, "", None, [], False])
    def test_falsy_initial_value_is_present(self, falsy):
        m = PropsModel().define_property("x", 1)
        m.define_derived_property("y", ["x"], lambda x: "computed", initial_value=falsy)
        assert m.get("y") == falsy

    def test_recomputes_after_initial_value(self):
        m = PropsModel().define_property("x", 1)
        m.define_derived_property("y", ["x"], lambda x: x + 1, initial_value=0)
        m.set("x", 4)
        assert m.get("y") == 5


class TestBulkWithDerived:
    def test_bulk_shares_one_settle(self):
        m = _rectangle()
        settles = []
        m.on_settle(lambda names: settles.append(set(names)))
        m.set({"length": 1, "width": 2})
        assert m.get("area") == 2
        assert m.get("perimeter") == 6
        assert settles == [{"length", "width", "area", "perimeter"}]

    def test_derived_sees_every_bulk_value(self):
        m = _rectangle()
        seen = []
        m.on_any(["area"], lambda name, new, old: seen.append(new))
        m.set({"length": 2, "width": 3})
        # recomputed with both new values on the first event; the second is no change
        assert seen == [6]


class TestDerivedInvariant:
    def test_matches_compute_after_every_write(self):
        rng = random.Random(7)
        m = _rectangle()
        m.define_derived_property("ratio", ["area", "perimeter"], lambda a, p: a / p)
        for _ in range(50):
            if rng.random() < 0.3:
                m.set({"length": rng.randint(1, 9), "width": rng.randint(1, 9)})
            else:
                m.set(rng.choice(["length", "width"]), rng.randint(1, 9))
            length, width = m.get("length"), m.get("width")
            assert m.get("area") == length * width
            assert m.get("perimeter") == 2 * (length + width)
            assert m.get("ratio") == m.get("area") / m.get("perimeter")


class TestDeliveryOrder:
    def test_handler_reads_recomputed_dependent(self):
        m = _rectangle()
        seen = []
        m.on_any(["length"], lambda name, new, old: seen.append(m.get("area")))
        m.set("length", 15)
        assert seen == [300]

    def test_change_handler_reads_fresh_values(self):
        m = _rectangle()
        seen = []
        m.create_change_handler(
            ["length"], lambda length, *event: seen.append((length, m.get("perimeter")))
        )
        m.set("length", 15)
        assert seen == [(15, 70)]

    def test_handlers_run_in_subscription_order(self):
        """A handler added before a derived property is defined sees the old value."""
        m = PropsModel().define_property("x", 1)
        early = []
        m.on_any(["x"], lambda name, new, old: early.append(m.get("doubled")))
        m.define_derived_property("doubled", ["x"], lambda x: x * 2)
        late = []
        m.on_any(["x"], lambda name, new, old: late.append(m.get("doubled")))
        m.set("x", 5)
        assert early == [2]
        assert late == [10]

    def test_dependents_in_definition_order(self):
        m = _rectangle()
        assert m.dependents("length") == ["area", "perimeter"]
        assert m.dependents("area") == []
        with pytest.raises(NoSuchPropertyError):
            m.dependents("nope")
