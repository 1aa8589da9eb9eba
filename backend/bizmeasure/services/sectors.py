"""
sectors.py — GICS Sector / Industry Group Reference Data

Purpose:
- Provide the 11 GICS sectors and 25 industry groups offered by onboarding.
- Resolve free-text sector answers ("Technology", "healthcare", "45") onto a
  canonical GICS sector name so the valuation aggregator can pick multiples.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class GicsSector:
    id: str
    name: str
    description: str


@dataclass(frozen=True)
class GicsIndustryGroup:
    id: str
    sector_id: str
    name: str
    description: str


GICS_SECTORS: List[GicsSector] = [
    GicsSector("10", "Energy", "Companies involved in exploration, production, refining, and marketing of oil, gas, coal, and other consumable fuels."),
    GicsSector("15", "Materials", "Companies involved in discovering, developing, and processing raw materials, including mining, chemicals, construction materials, metals, and paper products."),
    GicsSector("20", "Industrials", "Companies involved in manufacturing, distribution of capital goods, provision of commercial services and supplies, or transportation services."),
    GicsSector("25", "Consumer Discretionary", "Industries that tend to be the most sensitive to economic cycles, including automotive, consumer durables, apparel, hotels, restaurants, and leisure."),
    GicsSector("30", "Consumer Staples", "Companies whose businesses are less sensitive to economic cycles, including food, beverages, tobacco, and household and personal products."),
    GicsSector("35", "Health Care", "Companies involved in health care equipment and supplies, health care providers and services, pharmaceuticals, and biotechnology."),
    GicsSector("40", "Financials", "Companies involved in banking, diversified financials, insurance, and real estate."),
    GicsSector("45", "Information Technology", "Companies involved in software, IT services, hardware, semiconductor equipment, and communication equipment."),
    GicsSector("50", "Communication Services", "Companies involved in telecommunication services, media, and entertainment."),
    GicsSector("55", "Utilities", "Companies involved in electric, gas, and water utilities as well as independent power producers and energy traders."),
    GicsSector("60", "Real Estate", "Companies engaged in real estate development and operation."),
]

GICS_INDUSTRY_GROUPS: List[GicsIndustryGroup] = [
    GicsIndustryGroup("1010", "10", "Energy", "Exploration, production, refining, marketing, storage, and transportation of oil, gas, coal, and consumable fuels."),
    GicsIndustryGroup("1510", "15", "Materials", "Chemicals, construction materials, glass, paper, forest products, containers, metals, minerals, and mining products."),
    GicsIndustryGroup("2010", "20", "Capital Goods", "Machinery, electrical equipment, aerospace and defense, construction, engineering, and building products."),
    GicsIndustryGroup("2020", "20", "Commercial & Professional Services", "Commercial services, supplies, HR, employment, environmental, office, printing, security, and other support services."),
    GicsIndustryGroup("2030", "20", "Transportation", "Air freight, airlines, marine, road, rail, and logistics services."),
    GicsIndustryGroup("2510", "25", "Automobiles & Components", "Automobiles, auto parts, tires, and motorcycles."),
    GicsIndustryGroup("2520", "25", "Consumer Durables & Apparel", "Consumer durables, apparel, accessories, footwear, textiles, and luxury goods."),
    GicsIndustryGroup("2530", "25", "Consumer Services", "Hotels, restaurants, leisure facilities, and education services."),
    GicsIndustryGroup("2550", "25", "Retailing", "Department stores, specialized consumer retailers, and multi-line retailers."),
    GicsIndustryGroup("3010", "30", "Food & Staples Retailing", "Retail of food, medicine, tobacco, household goods, and personal products."),
    GicsIndustryGroup("3020", "30", "Food, Beverage & Tobacco", "Food products, soft drinks, alcoholic beverages, and tobacco products."),
    GicsIndustryGroup("3030", "30", "Household & Personal Products", "Household and personal products, including cosmetics and personal care."),
    GicsIndustryGroup("3510", "35", "Health Care Equipment & Services", "Medical equipment, supplies, providers, services, technology, distributors, and managed care."),
    GicsIndustryGroup("3520", "35", "Pharmaceuticals, Biotechnology & Life Sciences", "Research, development, production, and marketing of pharmaceuticals and biotechnology products."),
    GicsIndustryGroup("4010", "40", "Banks", "General banking and financial services, including large and regional banks."),
    GicsIndustryGroup("4020", "40", "Diversified Financials", "Capital markets, consumer finance, and financial exchanges."),
    GicsIndustryGroup("4030", "40", "Insurance", "Insurance and reinsurance services."),
    GicsIndustryGroup("4510", "45", "Software & Services", "Internet services, software, IT consulting, data processing, and outsourced services."),
    GicsIndustryGroup("4520", "45", "Technology Hardware & Equipment", "Communication equipment, computers, electronic equipment, instruments, and components."),
    GicsIndustryGroup("4530", "45", "Semiconductors & Semiconductor Equipment", "Design, manufacture, and sale of semiconductors and semiconductor equipment."),
    GicsIndustryGroup("5010", "50", "Telecommunication Services", "Wireless, wireline, and satellite communications."),
    GicsIndustryGroup("5020", "50", "Media & Entertainment", "Media, advertising, broadcasting, entertainment, and interactive media services."),
    GicsIndustryGroup("5510", "55", "Utilities", "Electric, gas, water utilities, and independent power producers."),
    GicsIndustryGroup("6010", "60", "Real Estate", "Real estate development, operation, management, and investment of properties."),
    GicsIndustryGroup("6020", "60", "REITs", "Real Estate Investment Trusts that own and operate income-producing real estate."),
]

# Common onboarding answers that are not GICS names
SECTOR_ALIASES: Dict[str, str] = {
    "technology": "Information Technology",
    "tech": "Information Technology",
    "it": "Information Technology",
    "software": "Information Technology",
    "healthcare": "Health Care",
    "health": "Health Care",
    "finance": "Financials",
    "financial services": "Financials",
    "fs": "Financials",
    "retail": "Consumer Discretionary",
    "manufacturing": "Industrials",
    "telecom": "Communication Services",
    "media": "Communication Services",
    "property": "Real Estate",
}

_SECTORS_BY_ID = {s.id: s for s in GICS_SECTORS}
_SECTORS_BY_NAME = {s.name.lower(): s for s in GICS_SECTORS}
_GROUPS_BY_ID = {g.id: g for g in GICS_INDUSTRY_GROUPS}


def get_sector_by_id(sector_id: str) -> Optional[GicsSector]:
    return _SECTORS_BY_ID.get(sector_id)


def get_industry_group_by_id(group_id: str) -> Optional[GicsIndustryGroup]:
    return _GROUPS_BY_ID.get(group_id)


def get_industry_groups_by_sector_id(sector_id: str) -> List[GicsIndustryGroup]:
    return [g for g in GICS_INDUSTRY_GROUPS if g.sector_id == sector_id]


def get_sector_by_industry_group_id(group_id: str) -> Optional[GicsSector]:
    group = get_industry_group_by_id(group_id)
    if group is None:
        return None
    return get_sector_by_id(group.sector_id)


def resolve_sector_name(value: Optional[str]) -> Optional[str]:
    """
    Map a sector answer (GICS id, GICS name in any case, or a common alias)
    to the canonical GICS sector name. Unknown answers return None.
    """
    if not value:
        return None
    key = value.strip()
    if key in _SECTORS_BY_ID:
        return _SECTORS_BY_ID[key].name
    if key in _GROUPS_BY_ID:
        return get_sector_by_industry_group_id(key).name
    lowered = key.lower()
    if lowered in _SECTORS_BY_NAME:
        return _SECTORS_BY_NAME[lowered].name
    return SECTOR_ALIASES.get(lowered)
