"""Record Binder — tests for partial, ignore-aware binding."""

from dataclasses import dataclass

import pytest

from recordgate.core.errors import InvalidSourceTypeError
from recordgate.core.record_binder import bindable_values, normalize_ignore, source_fields

DECLARED = ["id", "title", "catid", "ordering"]


def test_only_declared_fields_are_bound():
    values = bindable_values(DECLARED, {"title": "Hello", "unknown": 1})
    assert values == {"title": "Hello"}


def test_ignored_fields_are_not_bound():
    values = bindable_values(DECLARED, {"id": 5, "title": "Hello"}, ignore=["id"])
    assert values == {"title": "Hello"}


def test_ignore_accepts_space_separated_string():
    values = bindable_values(
        DECLARED, {"id": 5, "title": "Hello", "catid": 2}, ignore="id catid",
    )
    assert values == {"title": "Hello"}


def test_absent_fields_are_left_out():
    values = bindable_values(DECLARED, {"catid": 3})
    assert values == {"catid": 3}


def test_none_values_present_in_source_are_bound():
    values = bindable_values(DECLARED, {"title": None})
    assert values == {"title": None}


def test_object_source_uses_public_attributes():
    @dataclass
    class Form:
        title: str
        catid: int

    form = Form(title="From form", catid=4)
    form._secret = "x"
    assert bindable_values(DECLARED, form) == {"title": "From form", "catid": 4}


def test_private_attributes_never_read():
    class Source:
        pass

    source = Source()
    source._ordering = 9
    assert source_fields(source) == {}


@pytest.mark.parametrize("source", [5, "title=x", None, 3.5, b"raw"])
def test_non_record_shaped_sources_rejected(source):
    with pytest.raises(InvalidSourceTypeError):
        bindable_values(DECLARED, source, record_type="ContentTable")


def test_invalid_source_message_names_record_type():
    with pytest.raises(InvalidSourceTypeError, match=r"ContentTable\.bind\(\*int\*\)"):
        source_fields(5, "ContentTable")


def test_normalize_ignore_handles_empty_inputs():
    assert normalize_ignore(None) == set()
    assert normalize_ignore("") == set()
    assert normalize_ignore(("a", "b")) == {"a", "b"}


def test_slotted_object_fields_are_read():
    @dataclass(slots=True)
    class Slotted:
        title: str
        catid: int = 0

    assert bindable_values(DECLARED, Slotted(title="x", catid=2)) == {"title": "x", "catid": 2}


def test_unset_slots_are_left_out():
    class Partial:
        __slots__ = ("title", "ordering")

    source = Partial()
    source.title = "only title"
    assert bindable_values(DECLARED, source) == {"title": "only title"}


def test_record_like_source_binds_through_properties():
    class RecordLike:
        def __init__(self):
            self._fields = {"title": "copied", "catid": 4}

        def properties(self):
            return dict(self._fields)

    assert bindable_values(DECLARED, RecordLike()) == {"title": "copied", "catid": 4}
