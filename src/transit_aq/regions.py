# src/transit_aq/regions.py
from __future__ import annotations

from enum import Enum
from typing import NamedTuple, Optional


class City(Enum):
    """Canonical identifiers for the tracked metropolitan areas."""
    CHICAGO = "chicago"
    SEATTLE = "seattle"
    NEW_YORK = "new_york"
    MIAMI = "miami"
    LOS_ANGELES = "los_angeles"


class Pollutant(Enum):
    PM25 = "pm25"
    SO2 = "so2"
    NO2 = "no2"


class CityInfo(NamedTuple):
    """How each source names a city."""
    name: str
    # OpenAQ v2 "city" facet (metro area name)
    openaq_metro: str
    # Google mobility report sub_region_1 / sub_region_2
    state: str
    county: str


class PollutantInfo(NamedTuple):
    label: str
    unit: str
    description: str


CITIES: dict[City, CityInfo] = {
    City.CHICAGO: CityInfo(
        name="Chicago",
        openaq_metro="Chicago-Naperville-Joliet",
        state="Illinois",
        county="Cook County",
    ),
    City.SEATTLE: CityInfo(
        name="Seattle",
        openaq_metro="Seattle-Tacoma-Bellevue",
        state="Washington",
        county="King County",
    ),
    City.NEW_YORK: CityInfo(
        name="New York",
        openaq_metro="New York-Northern New Jersey-Long Island",
        state="New York",
        county="New York County",
    ),
    City.MIAMI: CityInfo(
        name="Miami",
        openaq_metro="Miami-Fort Lauderdale-Miami Beach",
        state="Florida",
        county="Miami-Dade County",
    ),
    City.LOS_ANGELES: CityInfo(
        name="Los Angeles",
        openaq_metro="Los Angeles-Long Beach-Santa Ana",
        state="California",
        county="Los Angeles County",
    ),
}

POLLUTANTS: dict[Pollutant, PollutantInfo] = {
    Pollutant.PM25: PollutantInfo(
        label="PM2.5",
        unit="µg/m³",
        description=(
            "Particulate matter less than 2.5 micrometers in diameter (PM2.5) are fine "
            "inhalable particles. They originate from a variety of sources, including power "
            "plants, motor vehicles, airplane emissions, residential wood burning, and certain "
            "industrial processes. PM2.5 can penetrate deeply into the respiratory system, "
            "posing significant health risks."
        ),
    ),
    Pollutant.SO2: PollutantInfo(
        label="SO2",
        unit="ppm",
        description=(
            "Sulfur dioxide (SO2) is a gas produced by volcanic eruptions and in various "
            "industrial processes. Coal and petroleum often contain sulfur compounds, and "
            "their combustion generates sulfur dioxide."
        ),
    ),
    Pollutant.NO2: PollutantInfo(
        label="NO2",
        unit="ppm",
        description=(
            "Nitrogen dioxide (NO2) is one of a group of highly reactive gasses known as "
            "oxides of nitrogen (NOx). NO2 forms from emissions from cars, trucks and buses, "
            "power plants, and off-road equipment."
        ),
    ),
}


class Phase(NamedTuple):
    name: str
    start: str
    end: str


LOCKDOWN_PHASES: tuple[Phase, ...] = (
    Phase("Pre-Lockdown", "2020-01-01", "2020-02-29"),
    Phase("Lockdown", "2020-03-01", "2020-05-31"),
    Phase("Post-Lockdown", "2020-06-01", "2020-12-31"),
)

_METRO_TO_CITY = {info.openaq_metro: city for city, info in CITIES.items()}
_COUNTY_TO_CITY = {(info.state, info.county): city for city, info in CITIES.items()}


def list_cities() -> list[City]:
    return list(City)


def get_city_info(city: City) -> CityInfo:
    return CITIES[city]


def get_pollutant_info(pollutant: Pollutant) -> PollutantInfo:
    return POLLUTANTS[pollutant]


def city_from_metro(metro_name: str) -> Optional[City]:
    """Map an OpenAQ metro name to a city, or None if it is not tracked."""
    return _METRO_TO_CITY.get(metro_name)


def city_from_county(state: str, county: str) -> Optional[City]:
    """Map a mobility report (sub_region_1, sub_region_2) pair to a city, or None."""
    # blank CSV cells arrive as NaN / pd.NA
    if not isinstance(state, str) or not isinstance(county, str):
        return None
    return _COUNTY_TO_CITY.get((state, county))


def series_id(city: City, signal: Pollutant | str) -> str:
    suffix = signal.value if isinstance(signal, Pollutant) else signal
    return f"{city.value}_{suffix}"
