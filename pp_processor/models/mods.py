from typing import NotRequired, TypedDict

from pp_processor.utils import sort_alphabet

from pydantic import BaseModel


class APIMod(TypedDict):
    acronym: str
    settings: NotRequired[dict[str, bool | float | str | int]]


# osu!droid stores every mod as a single character.
DROID_MOD_TO_ACRONYM: dict[str, str] = {
    "a": "AT",  # Autoplay
    "x": "RX",  # Relax
    "p": "AP",  # Autopilot
    "e": "EZ",  # Easy
    "n": "NF",  # No Fail
    "r": "HR",  # Hard Rock
    "h": "HD",  # Hidden
    "i": "FL",  # Flashlight
    "d": "DT",  # Double Time
    "c": "NC",  # Nightcore
    "t": "HT",  # Half Time
    "u": "SD",  # Sudden Death
    "f": "PF",  # Perfect
    "v": "V2",  # Score V2
    "b": "TC",  # Traceable
    "s": "PR",  # Precise
    "l": "RE",  # Really Easy
    "m": "SC",  # Small Circle
}

# Mods that only exist on osu!droid and are not understood by the calculator.
DROID_ONLY_MODS = {"s", "l", "m"}

DESCRIPTOR_SEPARATOR = "|"
FORCE_STATISTICS = ("AR", "OD", "CS", "HP")


class DroidMods(BaseModel):
    mods: str = ""
    speed_multiplier: float = 1.0
    force_ar: float | None = None
    force_od: float | None = None
    force_cs: float | None = None
    force_hp: float | None = None

    @property
    def droid_string(self) -> str:
        return sort_alphabet(self.mods)

    @property
    def clock_rate(self) -> float:
        return get_speed_rate(self.mods) * self.speed_multiplier

    @property
    def uses_custom_statistics(self) -> bool:
        return any(v is not None for v in (self.force_ar, self.force_od, self.force_cs, self.force_hp))

    def to_api_mods(self) -> list[APIMod]:
        return droid_mods_to_api(self.mods)


def parse_mod_descriptor(descriptor: str | None) -> DroidMods:
    """Parse a stored mod descriptor such as ``hd|x1.25|AR9.5|OD8``."""
    if not descriptor:
        return DroidMods()

    segments = descriptor.split(DESCRIPTOR_SEPARATOR)
    parsed = DroidMods(mods=sort_alphabet("".join(c for c in segments[0] if c in DROID_MOD_TO_ACRONYM)))
    for segment in segments[1:]:
        if not segment:
            continue
        try:
            if segment.startswith("x"):
                parsed.speed_multiplier = float(segment[1:])
                continue
            prefix, value = segment[:2], segment[2:]
            if prefix in FORCE_STATISTICS:
                setattr(parsed, f"force_{prefix.lower()}", float(value))
        except ValueError:
            # unknown segment
            continue
    return parsed


def construct_mod_descriptor(mods: DroidMods) -> str:
    segments = [mods.droid_string]
    if mods.speed_multiplier != 1:
        segments.append(f"x{mods.speed_multiplier:g}")
    for stat in FORCE_STATISTICS:
        value = getattr(mods, f"force_{stat.lower()}")
        if value is not None:
            segments.append(f"{stat}{value:g}")
    return DESCRIPTOR_SEPARATOR.join(segments)


def droid_mods_to_api(mods: str) -> list[APIMod]:
    acronyms = {DROID_MOD_TO_ACRONYM[c] for c in mods if c in DROID_MOD_TO_ACRONYM and c not in DROID_ONLY_MODS}
    # Nightcore already implies Double Time.
    if "NC" in acronyms:
        acronyms.discard("DT")
    return [APIMod(acronym=acronym) for acronym in sorted(acronyms)]


def get_speed_rate(mods: str) -> float:
    if "d" in mods or "c" in mods:
        return 1.5
    if "t" in mods:
        return 0.75
    return 1.0
