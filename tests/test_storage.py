import logging
from dataclasses import dataclass
from enum import Enum

import pytest
from pydantic import BaseModel

from store.memory_store import MemoryStore
from storebox.box import Box


class Keys(str, Enum):
    NAME = "name"
    COUNT = "count"
    RATIO = "ratio"
    ENABLED = "enabled"
    AVATAR = "avatar"
    HOMEPAGE = "homepage"
    PROFILE = "profile"
    TAGS = "tags"


class Profile(BaseModel):
    username: str
    age: int


@dataclass
class Window:
    width: int
    height: int


class Opaque:
    pass


@pytest.fixture
def box():
    return Box(MemoryStore(), key_type=Keys)


# ============================================================
# exists / set_if_absent
# ============================================================

class TestPresence:
    def test_exists(self, box):
        assert box.exists(Keys.NAME) is False
        box.set(Keys.NAME, "ada")
        assert box.exists(Keys.NAME) is True

    def test_falsy_values_exist(self, box):
        box.set(Keys.ENABLED, False)
        box.set(Keys.COUNT, 0)
        assert box.exists(Keys.ENABLED)
        assert box.exists(Keys.COUNT)

    def test_set_if_absent(self, box):
        box.set_if_absent("first", Keys.NAME)
        box.set_if_absent("second", Keys.NAME)
        assert box.get(Keys.NAME) == "first"


# ============================================================
# set_encodable / get_decodable
# ============================================================

class TestEncodable:
    def test_model_roundtrip(self, box):
        box.set_encodable(Profile(username="ada", age=36), Keys.PROFILE)
        assert isinstance(box.get(Keys.PROFILE), bytes)
        assert box.get_decodable(Profile, Keys.PROFILE) == Profile(username="ada", age=36)

    def test_dataclass_roundtrip(self, box):
        box.set_encodable(Window(width=800, height=600), Keys.PROFILE)
        assert box.get_decodable(Window, Keys.PROFILE) == Window(width=800, height=600)

    def test_encode_failure_is_logged_without_mutation(self, box, caplog):
        box.set(Keys.PROFILE, b"previous")
        with caplog.at_level(logging.ERROR):
            box.set_encodable(Opaque(), Keys.PROFILE)
        assert box.get(Keys.PROFILE) == b"previous"
        assert "encode failed" in caplog.text

    def test_unsupported_type_decodes_to_none(self, box):
        box.set(Keys.PROFILE, b'{"a": 1}')
        assert box.get_decodable(Opaque, Keys.PROFILE) is None

    def test_missing_returns_none(self, box):
        assert box.get_decodable(Profile, Keys.PROFILE) is None

    def test_wrong_shape_returns_none(self, box):
        box.set_encodable({"unrelated": True}, Keys.PROFILE)
        assert box.get_decodable(Profile, Keys.PROFILE) is None

    def test_non_bytes_returns_none(self, box):
        box.set(Keys.PROFILE, "not bytes")
        assert box.get_decodable(Profile, Keys.PROFILE) is None


# ============================================================
# get_as / get_or_set
# ============================================================

class TestTypedGet:
    def test_get_as_match(self, box):
        box.set(Keys.NAME, "ada")
        assert box.get_as(str, Keys.NAME) == "ada"

    def test_get_as_mismatch_returns_none(self, box):
        box.set(Keys.NAME, "ada")
        assert box.get_as(int, Keys.NAME) is None

    def test_bool_is_not_int_and_int_is_not_float(self, box):
        box.set(Keys.ENABLED, True)
        box.set(Keys.COUNT, 3)
        assert box.get_as(int, Keys.ENABLED) is None
        assert box.get_as(float, Keys.COUNT) is None

    def test_get_as_default(self, box):
        assert box.get_as(int, Keys.COUNT, 5) == 5
        box.set(Keys.COUNT, "three")
        assert box.get_as(int, Keys.COUNT, 5) == 5

    def test_get_or_set_fills_absent(self, box):
        assert box.get_or_set(int, Keys.COUNT, 10) == 10
        assert box.get(Keys.COUNT) == 10

    def test_get_or_set_keeps_existing(self, box):
        box.set(Keys.COUNT, 2)
        assert box.get_or_set(int, Keys.COUNT, 10) == 2

    def test_get_or_set_does_not_overwrite_mismatch(self, box):
        box.set(Keys.COUNT, "two")
        assert box.get_or_set(int, Keys.COUNT, 10) == 10
        assert box.get(Keys.COUNT) == "two"

    def test_get_or_set_persists(self):
        store = MemoryStore()
        Box(store, key_type=Keys).get_or_set(str, Keys.NAME, "guest")
        assert Box(store, key_type=Keys).get(Keys.NAME) == "guest"


# ============================================================
# Convenience readers
# ============================================================

class TestReaders:
    def test_zero_value_fallbacks(self, box):
        assert box.get_int(Keys.COUNT) == 0
        assert box.get_double(Keys.RATIO) == 0.0
        assert box.get_float(Keys.RATIO) == 0.0
        assert box.get_bool(Keys.ENABLED) is False

    def test_absent_fallbacks(self, box):
        assert box.get_string(Keys.NAME) is None
        assert box.get_bytes(Keys.AVATAR) is None
        assert box.get_url(Keys.HOMEPAGE) is None
        assert box.get_dict(Keys.PROFILE) is None
        assert box.get_list(Keys.TAGS) is None

    def test_mismatch_fallbacks(self, box):
        box.set(Keys.COUNT, "7")
        box.set(Keys.ENABLED, 1)
        box.set(Keys.NAME, 5)
        assert box.get_int(Keys.COUNT) == 0
        assert box.get_bool(Keys.ENABLED) is False
        assert box.get_string(Keys.NAME) is None

    def test_present_values(self, box):
        box.set(Keys.COUNT, 7)
        box.set(Keys.RATIO, 0.5)
        box.set(Keys.ENABLED, True)
        box.set(Keys.NAME, "ada")
        box.set(Keys.AVATAR, b"\x89PNG")
        box.set(Keys.PROFILE, {"a": 1})
        box.set(Keys.TAGS, ["x"])
        assert box.get_int(Keys.COUNT) == 7
        assert box.get_double(Keys.RATIO) == 0.5
        assert box.get_bool(Keys.ENABLED) is True
        assert box.get_string(Keys.NAME) == "ada"
        assert box.get_bytes(Keys.AVATAR) == b"\x89PNG"
        assert box.get_dict(Keys.PROFILE) == {"a": 1}
        assert box.get_list(Keys.TAGS) == ["x"]

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("https://example.com/path", "https://example.com/path"),
            ("file:///tmp/x", "file:///tmp/x"),
            ("example.com", None),
            ("not a url", None),
        ],
    )
    def test_get_url(self, box, value, expected):
        box.set(Keys.HOMEPAGE, value)
        assert box.get_url(Keys.HOMEPAGE) == expected
