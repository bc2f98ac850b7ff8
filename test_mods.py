"""osu!droid 模组描述解析"""

from pp_processor.models.mods import (
    DroidMods,
    construct_mod_descriptor,
    droid_mods_to_api,
    parse_mod_descriptor,
)

import pytest


def test_parse_descriptor():
    mods = parse_mod_descriptor("rh|x1.25|AR9.5|OD8")
    assert mods == DroidMods(mods="hr", speed_multiplier=1.25, force_ar=9.5, force_od=8)
    assert mods.clock_rate == 1.25


def test_parse_ignores_unknown_segments():
    assert parse_mod_descriptor("h|xfast|ZZ1|") == DroidMods(mods="h")
    assert parse_mod_descriptor(None) == DroidMods()


def test_construct_descriptor_is_canonical():
    assert construct_mod_descriptor(DroidMods(mods="rh", speed_multiplier=1.25, force_cs=4)) == "hr|x1.25|CS4"
    assert construct_mod_descriptor(parse_mod_descriptor("dh|OD8")) == "dh|OD8"


@pytest.mark.parametrize(
    "mods,acronyms,rate",
    [
        ("hd", ["DT", "HD"], 1.5),
        ("cd", ["NC"], 1.5),
        ("t", ["HT"], 0.75),
        ("hs", ["HD"], 1.0),
    ],
)
def test_api_mods(mods, acronyms, rate):
    assert [m["acronym"] for m in droid_mods_to_api(mods)] == acronyms
    assert DroidMods(mods=mods).clock_rate == rate


def test_forced_statistics_count_as_custom():
    assert not parse_mod_descriptor("h|x1.25").uses_custom_statistics
    assert parse_mod_descriptor("h|CS4").uses_custom_statistics
