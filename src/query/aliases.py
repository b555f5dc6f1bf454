"""
Static lookup tables for the query tool.

  FIELD_ALIASES      human query tokens -> canonical record attributes
  FIELD_DESCRIPTIONS attribute -> description shown by ``show fields``
  NUMERIC_FIELDS     attributes compared as numbers
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping

# ── Alias table ──────────────────────────────────────────

FIELD_ALIASES: Mapping[str, str] = MappingProxyType({
    # identity
    "name":                "name",
    "company":             "name",
    "company name":        "name",
    "urn name":            "name",
    # location
    "city":                "city",
    "state":               "state",
    "location":            "location",
    # classification
    "sector":              "sector",
    "industry":            "industry_description",
    "sub industry":        "sub_industry_description",
    "subindustry":         "sub_industry_description",
    "tech client":         "tech_client",
    "client type":         "client_type_overwrite",
    "company size":        "company_size",
    "it spend":            "it_spend_estimate",
    # coverage / territory
    "branch":              "branch_description",
    "territory":           "branch_description",
    "sub branch":          "sub_branch_description",
    "coverage":            "coverage_name",
    "coverage name":       "coverage_name",
    "coverage type":       "coverage_client_type",
    "coverage subtype":    "coverage_client_subtype",
    # revenue
    "revenue":             "revenue_2024",
    "revenue 2024":        "revenue_2024",
    "revenue 2023":        "revenue_2023",
    "revenue 2022":        "revenue_2022",
    "rev 2024":            "revenue_2024",
    "rev 2023":            "revenue_2023",
    "rev 2022":            "revenue_2022",
    "growth":              "growth",
    "employees":           "employee_count",
    "employee count":      "employee_count",
    # partners
    "partner":             "key_bp",
    "key bp":              "key_bp",
    "data ai partner":     "top_data_ai_business_partner",
    "automation partner":  "top_it_auto_app_mod_business_partner",
    # products
    "product":             "products",
    "products":            "products",
})

# ── Description table ────────────────────────────────────

FIELD_DESCRIPTIONS: Mapping[str, str] = MappingProxyType({
    "name":                     "Company / account name",
    "tech_client":              "Whether the account is classified as a tech client",
    "client_type_overwrite":    "Manual client type override",
    "coverage_name":            "Name of the coverage (sales team) owning the account",
    "coverage_name_normalized": "Coverage name in lowercase snake case",
    "coverage_client_type":     "Coverage client type",
    "coverage_client_subtype":  "Coverage client sub type",
    "branch_description":       "Branch / territory the account belongs to",
    "sub_branch_description":   "Sub branch within the territory",
    "industry_description":     "Industry of the account",
    "sub_industry_description": "Sub industry of the account",
    "sector":                   "Market sector",
    "employee_count":           "Number of employees",
    "it_spend_estimate":        "Estimated IT spend",
    "company_size":             "Company size band",
    "city":                     "Primary city",
    "state":                    "Primary state / province",
    "location":                 "City and state combined",
    "revenue_2024":             "Total revenue in 2024",
    "revenue_2023":             "Total revenue in 2023",
    "revenue_2022":             "Total revenue in 2022",
    "growth":                   "Revenue growth 2023 -> 2024 in percent",
    "top_data_ai_business_partner":         "Top Data & AI business partner",
    "top_it_auto_app_mod_business_partner": "Top IT automation & app modernisation business partner",
    "key_bp":                   "Key business partner",
    "original":                 "Raw CSV values for the row",
    "products":                 "Products installed at the account",
    "clean_products":           "Installed products keyed by normalised name",
})

NUMERIC_FIELDS: frozenset[str] = frozenset({
    "revenue_2024",
    "revenue_2023",
    "revenue_2022",
    "growth",
    "employee_count",
})

# Raw CSV columns holding the original spelling of a canonical attribute.
ORIGINAL_COLUMNS: Mapping[str, str] = MappingProxyType({
    "name":                   "URN NAME",
    "city":                   "Prmry City Name",
    "branch_description":     "BRNCH_DSCR 1H25",
    "sub_branch_description": "SUB_BRNCH_DSCR 1H25",
    "coverage_name":          "Cov Name 1H25",
})


def resolve_field(token: str, known_fields: Iterable[str] = ()) -> str | None:
    """Map a query token to a canonical attribute name.

    Tries the alias table (underscores read as spaces), then a
    case-insensitive match against *known_fields*.  Returns ``None`` when
    the token is not recognised.
    """
    key = token.strip().strip("\"'").lower()
    if not key:
        return None
    alias = FIELD_ALIASES.get(key) or FIELD_ALIASES.get(key.replace("_", " "))
    if alias:
        return alias
    for field in known_fields:
        if field.lower() == key:
            return field
    return None
