import logging

from lc_color import normalize_color_metadata


def test_unknown_fields_default_to_bt709():
    meta = {"color_space": "unknown", "color_transfer": "bt709", "color_primaries": "unknown"}
    assert normalize_color_metadata(meta) == {
        "color_space": "bt709",
        "color_transfer": "bt709",
        "color_primaries": "bt709",
    }


def test_known_fields_untouched():
    meta = {"color_space": "bt2020nc", "color_transfer": "smpte2084", "color_primaries": "bt2020"}
    assert normalize_color_metadata(meta) == meta


def test_input_is_not_mutated():
    meta = {"color_space": "unknown", "color_transfer": "unknown", "color_primaries": "unknown"}
    normalize_color_metadata(meta)
    assert meta["color_space"] == "unknown"


def test_idempotent():
    meta = {"color_space": "unknown", "color_transfer": "smpte170m", "color_primaries": "unknown"}
    once = normalize_color_metadata(meta)
    assert normalize_color_metadata(once) == once


def test_missing_key_is_treated_as_unknown():
    assert normalize_color_metadata({"color_space": "gbr"})["color_primaries"] == "bt709"


def test_notice_names_defaulted_field(caplog, monkeypatch):
    monkeypatch.setattr(logging.getLogger("lincompare"), "propagate", True)
    with caplog.at_level(logging.INFO, logger="lincompare"):
        normalize_color_metadata({"color_space": "bt709", "color_transfer": "unknown", "color_primaries": "bt709"})
    messages = [r.getMessage() for r in caplog.records]
    assert messages == ["[color] color_transfer is unknown, defaulting to bt709"]
