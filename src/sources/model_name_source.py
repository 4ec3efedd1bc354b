# src/sources/model_name_source.py — v1
"""Specifications derived from the model string alone.

Storage, memory, monitors and motherboards encode most of their headline
specs in the product name ("Samsung 990 PRO 2TB NVMe", "CMK32GX5M2B6000
DDR5 2x16GB", "LG 27GP850-B 27\" QHD 165Hz Nano IPS"). This source pulls
those out with pattern matching, which makes it fast, offline and
moderately trustworthy (confidence 0.6).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from hwenrich.core.models import (
    DeviceIdentifier,
    DeviceType,
    PartialDeviceInfo,
    SpecCategory,
    SpecItem,
)
from hwenrich.sources.base_source import BaseDeviceSource

logger = logging.getLogger(__name__)

SOURCE_NAME = "Model Name Heuristics"
CONFIDENCE = 0.6


@dataclass
class _Spec:
    key: str
    label: str
    value: str
    unit: str | None = None
    category: str = "General"


# === Manufacturer detection ===

# (canonical name, keywords, support page) per device type; first match wins.
_BRANDS: dict[DeviceType, list[tuple[str, tuple[str, ...], str | None]]] = {
    DeviceType.STORAGE: [
        ("Samsung", ("samsung",), "https://www.samsung.com/us/support/"),
        ("Western Digital", ("western digital", "wdc", "wd ", "sandisk"), "https://support-en.wd.com/"),
        ("Seagate", ("seagate", "barracuda", "ironwolf", "firecuda"), "https://www.seagate.com/support/"),
        ("Crucial", ("crucial", "micron"), "https://www.crucial.com/support"),
        ("Kingston", ("kingston",), "https://www.kingston.com/support"),
        ("SK Hynix", ("hynix",), "https://ssd.skhynix.com/"),
        ("Intel/Solidigm", ("intel", "solidigm"), "https://www.solidigm.com/support.html"),
        ("Toshiba/Kioxia", ("toshiba", "kioxia"), "https://personal.kioxia.com/support/"),
        ("Corsair", ("corsair",), "https://www.corsair.com/support"),
        ("Sabrent", ("sabrent",), "https://www.sabrent.com/support"),
    ],
    DeviceType.MEMORY: [
        ("Corsair", ("corsair", "vengeance", "dominator"), "https://www.corsair.com/support"),
        ("G.Skill", ("g.skill", "gskill", "trident", "ripjaws"), "https://www.gskill.com/support"),
        ("Kingston", ("kingston", "fury", "hyperx"), "https://www.kingston.com/support"),
        ("Crucial", ("crucial", "ballistix"), "https://www.crucial.com/support"),
        ("TeamGroup", ("teamgroup", "t-force"), "https://www.teamgroupinc.com/en/support/"),
        ("Samsung", ("samsung",), "https://www.samsung.com/us/support/"),
        ("SK Hynix", ("hynix",), None),
        ("Micron", ("micron",), None),
        ("ADATA", ("adata", "xpg"), "https://www.adata.com/en/support/"),
        ("Patriot", ("patriot", "viper"), "https://www.patriotmemory.com/pages/support"),
    ],
    DeviceType.MONITOR: [
        ("Dell", ("dell", "alienware"), "https://www.dell.com/support"),
        ("Samsung", ("samsung", "odyssey"), "https://www.samsung.com/support"),
        ("LG", ("lg ", "lg electronics", "ultragear", "ultrawide"), "https://www.lg.com/support"),
        ("ASUS", ("asus", "rog ", "proart"), "https://www.asus.com/support"),
        ("Acer", ("acer", "predator", "nitro"), "https://www.acer.com/support"),
        ("BenQ", ("benq", "zowie"), "https://www.benq.com/support"),
        ("MSI", ("msi", "optix"), "https://www.msi.com/support"),
        ("ViewSonic", ("viewsonic",), "https://www.viewsonic.com/support"),
        ("AOC", ("aoc", "agon"), "https://aoc.com/support"),
        ("HP", ("hp ", "hewlett", "omen"), "https://support.hp.com"),
        ("Lenovo", ("lenovo", "legion"), "https://support.lenovo.com"),
        ("Gigabyte", ("gigabyte", "aorus"), "https://www.gigabyte.com/Support"),
    ],
    DeviceType.MOTHERBOARD: [
        ("ASUS", ("asus", "rog ", "tuf ", "prime "), "https://www.asus.com/support/"),
        ("Gigabyte", ("gigabyte", "aorus"), "https://www.gigabyte.com/Support"),
        ("MSI", ("msi", "meg ", "mpg ", "mag "), "https://www.msi.com/support"),
        ("ASRock", ("asrock",), "https://www.asrock.com/support/"),
        ("EVGA", ("evga",), "https://www.evga.com/support/"),
        ("Biostar", ("biostar",), "https://www.biostar.com.tw/app/en/support/"),
    ],
}


def detect_brand(
    device_type: DeviceType, manufacturer: str, model: str
) -> tuple[str, str | None] | None:
    """Return (canonical brand, support page) or None if unrecognized."""
    combined = f" {manufacturer} {model} ".lower()
    for brand, keywords, support in _BRANDS.get(device_type, []):
        if any(k in combined for k in keywords):
            return brand, support
    return None


# === Storage ===

_CAPACITY_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(TB|GB)\b", re.IGNORECASE)
_PCIE_GEN_RE = re.compile(r"(?:pcie\s*|gen\s*)([3-5])(?:\.0)?\b", re.IGNORECASE)
_HDD_HINTS = ("hdd", "barracuda", "ironwolf", "skyhawk", "exos", "wd red", "wd blue", "wd purple", "wd gold")

_KNOWN_DRIVE_PERF: list[tuple[str, str, str]] = [
    # (model fragment, sequential read, sequential write) in MB/s
    ("990 pro", "7,450", "6,900"),
    ("980 pro", "7,000", "5,100"),
    ("970 evo", "3,500", "3,300"),
    ("sn850x", "7,300", "6,600"),
    ("sn770", "5,150", "4,900"),
    ("mx500", "560", "510"),
]


def _storage_kind(model: str) -> str | None:
    lowered = model.lower()
    if any(h in lowered for h in ("nvme", "m.2", "pcie")):
        return "NVMe SSD"
    if any(h in lowered for h in _HDD_HINTS):
        return "HDD"
    if "sata" in lowered or "ssd" in lowered:
        return "SATA SSD"
    return None


def parse_storage(model: str) -> list[_Spec]:
    specs: list[_Spec] = []
    kind = _storage_kind(model)
    lowered = model.lower()

    if kind is not None:
        specs.append(_Spec("type", "Type", kind))
        if kind == "NVMe SSD":
            gen = _PCIE_GEN_RE.search(model)
            interface = f"PCIe {gen.group(1)}.0 x4 NVMe" if gen else "NVMe"
            form_factor = "M.2 2280"
        elif kind == "HDD":
            interface = "SAS" if re.search(r"\bsas\b", lowered) else "SATA III (6 Gb/s)"
            form_factor = '3.5"'
        else:
            interface = "SATA III (6 Gb/s)"
            form_factor = '2.5"'
        specs.append(_Spec("interface", "Interface", interface))
        specs.append(_Spec("form_factor", "Form Factor", form_factor))

    capacity = _CAPACITY_RE.search(model)
    if capacity:
        specs.append(
            _Spec("capacity", "Capacity", f"{capacity.group(1)}{capacity.group(2).upper()}")
        )

    for fragment, read, write in _KNOWN_DRIVE_PERF:
        if fragment in lowered:
            specs.append(_Spec("seq_read", "Sequential Read", read, "MB/s", "Performance"))
            specs.append(_Spec("seq_write", "Sequential Write", write, "MB/s", "Performance"))
            break
    return specs


# === Memory ===

_DDR_RE = re.compile(r"\b(?:LP)?DDR([2-5])X?\b", re.IGNORECASE)
_KIT_RE = re.compile(r"\b([1-8])\s*x\s*(\d{1,3})\s*(?:GB|G)?\b", re.IGNORECASE)
_MEM_CAPACITY_RE = re.compile(r"\b(\d{1,3})\s*GB\b", re.IGNORECASE)
_SPEED_RE = re.compile(r"(\d{4})")
_MIN_SPEED, _MAX_SPEED = 1333, 9600


def parse_memory(model: str) -> list[_Spec]:
    specs: list[_Spec] = []
    ddr = _DDR_RE.search(model)
    generation = f"DDR{ddr.group(1)}" if ddr else None
    if generation:
        specs.append(_Spec("memory_type", "Memory Type", generation))

    kit = _KIT_RE.search(model)
    capacity = _MEM_CAPACITY_RE.search(model)
    if capacity:
        specs.append(_Spec("capacity", "Capacity", f"{capacity.group(1)} GB"))
    elif kit:
        total = int(kit.group(1)) * int(kit.group(2))
        specs.append(_Spec("capacity", "Capacity", f"{total} GB"))
    if kit:
        specs.append(
            _Spec("kit_config", "Kit Configuration", f"{kit.group(1)}x{kit.group(2)}GB")
        )

    for candidate in _SPEED_RE.findall(model):
        speed = int(candidate)
        if _MIN_SPEED <= speed <= _MAX_SPEED:
            value = f"{generation}-{speed}" if generation else f"{speed} MT/s"
            specs.append(_Spec("speed", "Speed", value))
            break

    lowered = model.lower()
    if "sodimm" in lowered or "so-dimm" in lowered:
        specs.append(_Spec("form_factor", "Form Factor", "SO-DIMM"))
    elif generation:
        specs.append(_Spec("form_factor", "Form Factor", "DIMM"))
    return specs


# === Monitor ===

_RESOLUTIONS: list[tuple[str, str, str]] = [
    # (token, resolution, marketing name); longest/most specific first
    ("8K", "7680x4320", "8K UHD"),
    ("5K", "5120x2880", "5K"),
    ("4K", "3840x2160", "4K UHD"),
    ("UHD", "3840x2160", "4K UHD"),
    ("2160P", "3840x2160", "4K UHD"),
    ("WQHD", "3440x1440", "WQHD Ultrawide"),
    ("1440P", "2560x1440", "QHD"),
    ("QHD", "2560x1440", "QHD"),
    ("2K", "2560x1440", "QHD"),
    ("1080P", "1920x1080", "FHD"),
    ("FHD", "1920x1080", "FHD"),
    ("FULLHD", "1920x1080", "FHD"),
]
_EXPLICIT_RES_RE = re.compile(r"\b(\d{4})\s*x\s*(\d{3,4})\b", re.IGNORECASE)
_REFRESH_RE = re.compile(r"\b(\d{2,3})\s*hz\b", re.IGNORECASE)
_SCREEN_RE = re.compile(r"\b(\d{2}(?:\.\d)?)\s*(?:\"|''|-?inch\b|in\b)", re.IGNORECASE)
_PANELS: list[tuple[tuple[str, ...], str]] = [
    (("QD-OLED",), "QD-OLED"),
    (("OLED",), "OLED"),
    (("MINI-LED", "MINILED"), "Mini-LED"),
    (("NANO IPS", "NANO-IPS"), "Nano IPS"),
    (("IPS",), "IPS"),
    (("VA",), "VA"),
    (("TN",), "TN"),
]
_SYNC: list[tuple[tuple[str, ...], str]] = [
    (("G-SYNC ULTIMATE",), "G-SYNC Ultimate"),
    (("G-SYNC", "GSYNC"), "G-SYNC"),
    (("FREESYNC PREMIUM PRO",), "FreeSync Premium Pro"),
    (("FREESYNC PREMIUM",), "FreeSync Premium"),
    (("FREESYNC",), "FreeSync"),
]


def _has_token(upper: str, token: str) -> bool:
    return re.search(rf"(?<![A-Z0-9]){re.escape(token)}(?![A-Z0-9])", upper) is not None


def parse_monitor(model: str) -> list[_Spec]:
    specs: list[_Spec] = []
    upper = model.upper()

    screen = _SCREEN_RE.search(model)
    if screen:
        inches = int(float(screen.group(1)) + 0.5)
        specs.append(_Spec("screen_size", "Screen Size", f'{inches}"', category="Display"))

    explicit = _EXPLICIT_RES_RE.search(model)
    if explicit:
        specs.append(
            _Spec("resolution", "Resolution", f"{explicit.group(1)}x{explicit.group(2)}", category="Display")
        )
    else:
        for token, resolution, label in _RESOLUTIONS:
            if _has_token(upper, token):
                specs.append(
                    _Spec("resolution", "Resolution", f"{label} ({resolution})", category="Display")
                )
                break

    refresh = _REFRESH_RE.search(model)
    if refresh:
        specs.append(_Spec("refresh_rate", "Refresh Rate", refresh.group(1), "Hz", "Display"))

    for tokens, panel in _PANELS:
        if any(_has_token(upper, t) for t in tokens):
            specs.append(_Spec("panel_type", "Panel Type", panel, category="Display"))
            break

    for tokens, sync in _SYNC:
        if any(t in upper for t in tokens):
            specs.append(_Spec("adaptive_sync", "Adaptive Sync", sync, category="Display"))
            break
    return specs


# === Motherboard ===

# chipset -> (platform, socket)
_CHIPSETS: dict[str, tuple[str, str]] = {
    **{c: ("Intel", "LGA1851") for c in ("Z890", "B860", "H810")},
    **{c: ("Intel", "LGA1700") for c in ("Z790", "B760", "H770", "H710", "Z690", "B660", "H670", "H610")},
    **{c: ("Intel", "LGA1200") for c in ("Z590", "B560", "H570", "H510", "Z490", "B460", "H470", "H410")},
    **{c: ("Intel", "LGA1151") for c in ("Z390", "B365", "B360", "H370", "H310")},
    **{c: ("AMD", "AM5") for c in ("X870E", "X870", "B850", "B840", "X670E", "X670", "B650E", "B650", "A620")},
    **{c: ("AMD", "AM4") for c in ("X570", "B550", "A520", "X470", "B450", "A320")},
    "TRX50": ("AMD", "sTR5"),
    "TRX40": ("AMD", "sTRX4"),
    "WRX80": ("AMD", "sWRX8"),
}
_BOARD_FORM_FACTORS: list[tuple[tuple[str, ...], str]] = [
    (("e-atx", "eatx", "extended"), "E-ATX"),
    (("micro", "m-atx", "matx"), "Micro-ATX"),
    (("mini", "m-itx", "itx"), "Mini-ITX"),
    (("atx",), "ATX"),
]


def parse_motherboard(model: str) -> list[_Spec]:
    specs: list[_Spec] = []
    upper = model.upper()

    # longest names first so "X670E" is not reported as "X670"
    for chipset in sorted(_CHIPSETS, key=len, reverse=True):
        if chipset in upper:
            platform, socket = _CHIPSETS[chipset]
            specs.append(_Spec("chipset", "Chipset", chipset))
            specs.append(_Spec("platform", "Platform", platform))
            specs.append(_Spec("socket", "Socket", socket))
            break

    lowered = model.lower()
    for hints, form_factor in _BOARD_FORM_FACTORS:
        if any(h in lowered for h in hints):
            specs.append(_Spec("form_factor", "Form Factor", form_factor))
            break
    return specs


_PARSERS = {
    DeviceType.STORAGE: parse_storage,
    DeviceType.MEMORY: parse_memory,
    DeviceType.MONITOR: parse_monitor,
    DeviceType.MOTHERBOARD: parse_motherboard,
}


def _to_partial_fields(
    derived: list[_Spec], manufacturer: str
) -> tuple[dict[str, str], list[SpecCategory]]:
    specs: dict[str, str] = {"manufacturer": manufacturer}
    grouped: dict[str, list[SpecItem]] = {
        "General": [SpecItem(label="Manufacturer", value=manufacturer)]
    }
    for spec in derived:
        specs[spec.key] = f"{spec.value} {spec.unit}" if spec.unit else spec.value
        grouped.setdefault(spec.category, []).append(
            SpecItem(label=spec.label, value=spec.value, unit=spec.unit)
        )
    categories = [SpecCategory(name=name, specs=items) for name, items in grouped.items()]
    return specs, categories


class ModelNameSource(BaseDeviceSource):
    """Offline source parsing specifications out of the model string."""

    @property
    def name(self) -> str:
        return SOURCE_NAME

    @property
    def priority(self) -> int:
        return 50

    @property
    def device_types(self) -> list[DeviceType]:
        return list(_PARSERS)

    def supports(self, device_type: DeviceType, identifier: DeviceIdentifier) -> bool:
        return device_type in _PARSERS and bool(identifier.model.strip())

    async def fetch(
        self, device_type: DeviceType, identifier: DeviceIdentifier
    ) -> PartialDeviceInfo:
        parser = _PARSERS.get(device_type)
        if parser is None:
            raise self._error("no_match", f"{device_type.value} not handled")

        derived = parser(identifier.model)
        if not derived:
            raise self._error(
                "no_match", f"nothing recognizable in model name {identifier.model!r}"
            )

        brand = detect_brand(device_type, identifier.manufacturer, identifier.model)
        manufacturer = brand[0] if brand else identifier.manufacturer.strip()
        specs, categories = _to_partial_fields(derived, manufacturer)
        logger.debug("Derived %d specs from model name", len(derived))

        return PartialDeviceInfo(
            specs=specs,
            categories=categories,
            description=f"{identifier.manufacturer.strip()} {identifier.model.strip()}",
            support_page=brand[1] if brand else None,
            source_name=SOURCE_NAME,
            confidence=CONFIDENCE,
        )
