"""Geofencing rules that order providers for a coordinate.

Rules are plain tuples evaluated top to bottom and the first match wins.
The order is policy, so overlapping boxes are resolved by where a rule sits
in its table, never by which box happens to be tighter.

Weather (first match):

1. ``europe``           lat 35..71,   lon -25..40       -> metno
2. ``us-conterminous``  lat 24.5..49, lon -125..-66     -> nws
3. ``us-alaska``        lat 51..71,   lon -180..-130 / 172..180 -> nws
4. ``us-hawaii``        lat 18..23,   lon -160..-154    -> nws
5. anything else                                        -> openweather

Open-Meteo needs no key and is always appended last.

Marine regions follow the Copernicus (CMEMS) macro-regions and are checked
in the order BLK, BAL, MED, IBI, NWS, ARC; a textual region label is matched
first, then bounding boxes, then the global ``GLO`` product. Keywords are
whole-word phrases, so "black sea" never fires on "Blackpool".
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple

from .entities import Metric

METNO = "metno"
NWS = "nws"
OPENWEATHER = "openweather"
OPENMETEO = "openmeteo"
STORMGLASS = "stormglass"


@dataclass(frozen=True)
class BoundingBox:
    lat_min: float
    lat_max: float
    lon_min: float
    lon_max: float

    def contains(self, latitude: float, longitude: float) -> bool:
        return self.lat_min <= latitude <= self.lat_max and self.lon_min <= longitude <= self.lon_max


@dataclass(frozen=True)
class WeatherRule:
    name: str
    boxes: Tuple[BoundingBox, ...]
    providers: Tuple[str, ...]


@dataclass(frozen=True)
class CopernicusDatasets:
    physics: str
    biogeochemistry: str
    transparency: str
    waves: str
    salinity: Optional[str] = None


@dataclass(frozen=True)
class MarineRegion:
    code: str
    name: str
    keywords: Tuple[str, ...]
    boxes: Tuple[BoundingBox, ...]
    datasets: CopernicusDatasets


@dataclass(frozen=True)
class RegionMatch:
    code: str
    name: str
    matched_by: str
    datasets: CopernicusDatasets


WEATHER_RULES: Tuple[WeatherRule, ...] = (
    WeatherRule("europe", (BoundingBox(35.0, 71.0, -25.0, 40.0),), (METNO, OPENWEATHER)),
    WeatherRule("us-conterminous", (BoundingBox(24.5, 49.0, -125.0, -66.0),), (NWS, OPENWEATHER)),
    WeatherRule(
        "us-alaska",
        (BoundingBox(51.0, 71.0, -180.0, -130.0), BoundingBox(51.0, 71.0, 172.0, 180.0)),
        (NWS, OPENWEATHER),
    ),
    WeatherRule("us-hawaii", (BoundingBox(18.0, 23.0, -160.0, -154.0),), (NWS, OPENWEATHER)),
)
GLOBAL_WEATHER: Tuple[str, ...] = (OPENWEATHER,)
NO_KEY_FALLBACK = OPENMETEO

_GLO_WAVES = "cmems_mod_glo_wav_anfc_0.083deg_PT3H-i"

MARINE_REGIONS: Tuple[MarineRegion, ...] = (
    MarineRegion(
        code="BLK",
        name="Black Sea",
        keywords=("black sea", "bulgarian black", "romanian black", "turkish black", "ukrainian", "georgian coast", "crimea"),
        boxes=(BoundingBox(40.5, 47.0, 27.0, 42.0),),
        datasets=CopernicusDatasets(
            physics="cmems_mod_blk_phy_anfc_2.5km_P1D-m",
            biogeochemistry="cmems_mod_blk_bgc_anfc_2.5km_P1D-m",
            transparency="cmems_obs-oc_blk_bgc-transp_nrt_l3-multi-1km_P1D",
            waves="cmems_mod_blk_wav_anfc_2.5km_PT1H-i",
        ),
    ),
    MarineRegion(
        code="BAL",
        name="Baltic Sea",
        keywords=("baltic", "finnish", "gulf of finland", "gulf of bothnia", "swedish baltic", "polish baltic", "danish baltic"),
        boxes=(BoundingBox(53.0, 59.5, 9.5, 30.5), BoundingBox(59.5, 66.0, 16.0, 30.5)),
        datasets=CopernicusDatasets(
            physics="cmems_mod_bal_phy_anfc_P1D-m",
            biogeochemistry="cmems_mod_bal_bgc_anfc_P1D-m",
            transparency="cmems_obs-oc_bal_bgc-transp_nrt_l3-olci-300m_P1D",
            waves=_GLO_WAVES,
        ),
    ),
    MarineRegion(
        code="MED",
        name="Mediterranean Sea",
        keywords=(
            "mediterranean", "adriatic", "aegean", "ionian", "tyrrhenian", "ligurian",
            "italian", "greek", "croatian", "albanian", "slovenian", "montenegrin",
            "malta", "cyprus", "sicily", "sardinia", "corsica", "mallorca", "menorca",
            "ibiza", "crete", "rhodes", "dodecanese", "cyclades", "corfu", "peloponnese",
        ),
        boxes=(BoundingBox(30.0, 42.5, -6.0, 3.0), BoundingBox(30.0, 46.0, 3.0, 36.5)),
        datasets=CopernicusDatasets(
            physics="cmems_mod_med_phy_anfc_4.2km_P1D-m",
            biogeochemistry="cmems_mod_med_bgc-bio_anfc_4.2km_P1D-m",
            transparency="cmems_obs-oc_med_bgc-transp_nrt_l3-multi-1km_P1D",
            waves=_GLO_WAVES,
        ),
    ),
    MarineRegion(
        code="IBI",
        name="Iberia-Biscay-Ireland",
        keywords=(
            "ibi", "portuguese", "galician", "bay of biscay", "irish", "ireland",
            "celtic sea", "cornwall", "devon", "bristol channel", "wales", "pembrokeshire",
            "cardigan bay", "anglesey", "merseyside", "lancashire", "cumbria",
            "hebrides", "west of scotland",
        ),
        boxes=(
            BoundingBox(26.0, 48.5, -19.0, -1.0),
            BoundingBox(48.5, 54.5, -19.0, -2.7),
            BoundingBox(54.5, 60.0, -19.0, -4.5),
        ),
        datasets=CopernicusDatasets(
            physics="cmems_mod_ibi_phy_anfc_0.027deg-3D_P1D-m",
            biogeochemistry="cmems_mod_ibi_bgc_anfc_0.027deg-3D_P1D-m",
            transparency="cmems_obs-oc_atl_bgc-transp_nrt_l3-multi-1km_P1D",
            waves="cmems_mod_ibi_wav_anfc_0.027deg_PT1H-i",
        ),
    ),
    MarineRegion(
        code="NWS",
        name="Northwest European Shelf",
        keywords=(
            "north sea", "english channel", "skagerrak", "dutch coast", "danish north",
            "norwegian", "scottish", "shetland", "orkney", "dogger bank", "yorkshire",
            "county durham", "northumberland", "lincolnshire", "north norfolk", "suffolk",
            "thames", "sussex", "hampshire", "dorset",
        ),
        boxes=(BoundingBox(46.0, 65.0, -12.0, 13.0),),
        datasets=CopernicusDatasets(
            physics="cmems_mod_glo_phy-thetao_anfc_0.083deg_P1D-m",
            salinity="cmems_mod_glo_phy-so_anfc_0.083deg_P1D-m",
            biogeochemistry="cmems_mod_glo_bgc-bio_anfc_0.25deg_P1D-m",
            transparency="cmems_obs-oc_atl_bgc-transp_nrt_l3-multi-1km_P1D",
            waves=_GLO_WAVES,
        ),
    ),
    MarineRegion(
        code="ARC",
        name="Arctic",
        keywords=("arctic", "barents", "svalbard"),
        boxes=(BoundingBox(65.0, 90.0, -180.0, 180.0),),
        datasets=CopernicusDatasets(
            physics="cmems_mod_arc_phy_anfc_6km_detided_P1D-m",
            biogeochemistry="cmems_mod_arc_bgc_anfc_ecosmo_P1D-m",
            transparency="cmems_obs-oc_arc_bgc-transp_nrt_l4-multi-4km_P1M",
            waves=_GLO_WAVES,
        ),
    ),
)

GLOBAL_REGION = MarineRegion(
    code="GLO",
    name="Global Ocean",
    keywords=(),
    boxes=(),
    datasets=CopernicusDatasets(
        physics="cmems_mod_glo_phy-thetao_anfc_0.083deg_P1D-m",
        salinity="cmems_mod_glo_phy-so_anfc_0.083deg_P1D-m",
        biogeochemistry="cmems_mod_glo_bgc-bio_anfc_0.25deg_P1D-m",
        transparency="cmems_obs-oc_glo_bgc-transp_nrt_l4-gapfree-multi-4km_P1D",
        waves=_GLO_WAVES,
    ),
)

# Norwegian oceanforecast only covers the northern shelf seas.
MARINE_PROVIDERS = {
    "NWS": (METNO, OPENMETEO, STORMGLASS),
    "ARC": (METNO, OPENMETEO, STORMGLASS),
}
DEFAULT_MARINE_PROVIDERS: Tuple[str, ...] = (OPENMETEO, STORMGLASS)
BIOGEOCHEMICAL_PROVIDERS: Tuple[str, ...] = (STORMGLASS,)

_KEYWORD_PATTERNS = {
    region.code: tuple(re.compile(r"\b" + re.escape(keyword) + r"\b") for keyword in region.keywords)
    for region in MARINE_REGIONS
}


def _normalise_label(label: str) -> str:
    return " ".join(label.lower().replace("-", " ").split())


def _match(region: MarineRegion, matched_by: str) -> RegionMatch:
    return RegionMatch(code=region.code, name=region.name, matched_by=matched_by, datasets=region.datasets)


def resolve_marine_region(
    latitude: float, longitude: float, region_label: Optional[str] = None
) -> RegionMatch:
    if region_label:
        label = _normalise_label(region_label)
        for region in MARINE_REGIONS:
            if any(pattern.search(label) for pattern in _KEYWORD_PATTERNS[region.code]):
                return _match(region, "keyword")
    for region in MARINE_REGIONS:
        if any(box.contains(latitude, longitude) for box in region.boxes):
            return _match(region, "bbox")
    return _match(GLOBAL_REGION, "fallback")


def region_for_code(code: str) -> RegionMatch:
    code = code.upper()
    for region in MARINE_REGIONS + (GLOBAL_REGION,):
        if region.code == code:
            return _match(region, "code")
    raise KeyError(f"unknown marine region {code!r}")


def weather_rule_for(latitude: float, longitude: float) -> Optional[WeatherRule]:
    for rule in WEATHER_RULES:
        if any(box.contains(latitude, longitude) for box in rule.boxes):
            return rule
    return None


def select_providers(
    latitude: float,
    longitude: float,
    metric: Metric = Metric.WEATHER,
    region_label: Optional[str] = None,
) -> Tuple[str, ...]:
    """Ordered provider ids to try for ``metric`` at the given point."""
    metric = Metric(metric)
    if metric is Metric.WEATHER:
        rule = weather_rule_for(latitude, longitude)
        ordered = rule.providers if rule else GLOBAL_WEATHER
        return tuple(p for p in ordered if p != NO_KEY_FALLBACK) + (NO_KEY_FALLBACK,)
    if metric is Metric.MARINE:
        region = resolve_marine_region(latitude, longitude, region_label)
        return MARINE_PROVIDERS.get(region.code, DEFAULT_MARINE_PROVIDERS)
    return BIOGEOCHEMICAL_PROVIDERS


__all__ = [
    "BoundingBox",
    "CopernicusDatasets",
    "MARINE_REGIONS",
    "METNO",
    "NWS",
    "OPENMETEO",
    "OPENWEATHER",
    "RegionMatch",
    "STORMGLASS",
    "WEATHER_RULES",
    "region_for_code",
    "resolve_marine_region",
    "select_providers",
    "weather_rule_for",
]
