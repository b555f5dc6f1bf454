"""
Shared fixtures -- a small, heterogeneous customer collection.
"""
from __future__ import annotations

import copy

import pytest

ACME = {
    "name": "Acme Corp",
    "city": "Atlanta",
    "sector": "Financial Services",
    "revenue_2024": 50000,
    "revenue_2023": 40000,
    "products": {"mq": True},
}

_RECORDS = [
    {
        **ACME,
        "state": "Georgia",
        "tech_client": "No",
        "industry_description": "Banking",
        "branch_description": "Atlanta Enterprise",
        "coverage_name": "Georgia Named 1",
        "revenue_2022": 30000,
        "growth": "25.00",
    },
    {
        "name": "Peachtree Logistics",
        "city": "Johns Creek",
        "state": "Georgia",
        "sector": "Distribution",
        "industry_description": "Travel & Transportation",
        "tech_client": "Yes",
        "branch_description": "Atlanta Enterprise",
        "sub_branch_description": "GA Metro",
        "coverage_name": "Georgia Named 2",
        "coverage_name_normalized": "georgia_named_2",
        "revenue_2024": 120000,
        "revenue_2023": 100000,
        "revenue_2022": 90000,
        "growth": "20.00",
        "products": {"WebSphere Application Server": True, "MQ Advanced": True},
        "clean_products": {"websphere_application_server": True, "mq_advanced": True},
        "original": {
            "URN NAME": "Peachtree Logistics, Inc.",
            "Prmry City Name": "Johns Creek",
            "BRNCH_DSCR 1H25": "GA - Atlanta Enterprise",
            "SUB_BRNCH_DSCR 1H25": "GA-Metro North",
        },
    },
    {
        "name": "Magnolia Health",
        "city": "Jackson",
        "state": "Mississippi",
        "sector": "Public",
        "industry_description": "Healthcare",
        "tech_client": "No",
        "branch_description": "Alabama/Mississippi",
        "coverage_name": "Mississippi Territory 2",
        "company_size": "Large",
        "revenue_2024": 0,
        "revenue_2023": 0,
        "revenue_2022": 5000,
        "growth": "N/A",
        "products": {},
    },
    {
        "name": "Vulcan Steel",
        "city": "Birmingham",
        "state": "Alabama",
        "sector": "Industrial",
        "industry_description": "Industrial Products",
        "tech_client": "Yes",
        "branch_description": "Alabama/Mississippi",
        "coverage_name": "Alabama Named 1",
        "employee_count": 5400,
        "revenue_2024": 300000,
        "revenue_2023": 200000,
        "revenue_2022": 150000,
        "growth": "50.00",
        "products": {"API Connect": True},
    },
]


@pytest.fixture
def acme():
    return copy.deepcopy(ACME)


@pytest.fixture
def records():
    return copy.deepcopy(_RECORDS)
