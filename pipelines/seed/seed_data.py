"""
Seed data generator -- creates a realistic account-universe CSV export.

Generates ~500 accounts across Alabama, Georgia and Mississippi with
the raw export headers (URN NAME, Prmry City Name, TOTAL IBM REV 2024,
...) followed by one column per installed product, so the file can be
fed straight into ``src.ingest.convert_csv`` or ``src.ingest.prepare``.

Run:  python -m pipelines.seed.seed_data [--rows 500] [--output sample_accounts.csv]
"""
from __future__ import annotations

import argparse
import random
import sys
from pathlib import Path

import pandas as pd
from faker import Faker

fake = Faker("en_US")

# ── Tunables ─────────────────────────────────────────────
NUM_ACCOUNTS = 500
DEFAULT_OUTPUT = "sample_accounts.csv"

CITIES = {
    "GA": ["Atlanta", "Savannah", "Augusta", "Macon", "Alpharetta", "Columbus"],
    "AL": ["Birmingham", "Huntsville", "Montgomery", "Mobile", "Tuscaloosa"],
    "MS": ["Jackson", "Gulfport", "Hattiesburg", "Tupelo"],
}
STATE_NAMES = {"GA": "Georgia", "AL": "Alabama", "MS": "Mississippi"}

SECTORS = {
    "Financial Services": ["Banking", "Insurance", "Financial Markets"],
    "Industrial": ["Industrial Products", "Automotive", "Aerospace & Defense"],
    "Distribution": ["Retail", "Consumer Products", "Travel & Transportation"],
    "Public": ["Government", "Education", "Healthcare"],
    "Communications": ["Telecommunications", "Media & Entertainment", "Energy & Utilities"],
}
BRANCHES = ["Georgia Commercial", "Atlanta Enterprise", "Alabama/Mississippi", "Southeast Public"]
COVERAGE_TYPES = [("Named", "Core"), ("Territory", "Select"), ("Digital", "Growth")]
COMPANY_SIZES = ["Small", "Medium", "Large", "Enterprise"]
PARTNERS = ["Converge Technology", "Ahead", "Sirius", "Mainline", "Presidio", ""]

PRODUCTS = [
    "API Connect", "App Connect Enterprise", "Aspera", "Cloud Pak for Integration",
    "DataPower Appliances", "Event Automation", "Instana", "MQ", "MQ Advanced",
    "Turbonomic", "UrbanCode", "WebSphere Application Server",
    "WebSphere Application Server Network Deployment", "WebSphere Hybrid Edition",
    "Workload Automation",
]


# ── Generators ───────────────────────────────────────────

def _money(value: float) -> str:
    return f"${value:,.0f}" if value else ""


def gen_account() -> dict[str, str]:
    state = random.choice(list(CITIES))
    sector = random.choice(list(SECTORS))
    cov_type, cov_subtype = random.choice(COVERAGE_TYPES)
    rev_2022 = random.choice([0, random.uniform(5_000, 3_000_000)])
    rev_2023 = rev_2022 * random.uniform(0.6, 1.5) if rev_2022 else random.choice([0, random.uniform(5_000, 500_000)])
    rev_2024 = rev_2023 * random.uniform(0.7, 1.6) if rev_2023 else random.choice([0, random.uniform(5_000, 250_000)])

    row = {
        "URN NAME": fake.company(),
        "Tech Client": random.choice(["Yes", "No"]),
        "Client Type Overwrite": random.choice(["", "Strategic", "Growth"]),
        "Cov Name 1H25": f"{STATE_NAMES[state]} {cov_type} {random.randint(1, 4)}",
        "Cov Client Type 1H25": cov_type,
        "Cov Client Sub Type 1H25": cov_subtype,
        "BRNCH_DSCR 1H25": random.choice(BRANCHES),
        "SUB_BRNCH_DSCR 1H25": f"{state} {random.choice(['North', 'South', 'Metro'])}",
        "SUB IND DSCR": fake.bs().title(),
        "IND_DSCR": random.choice(SECTORS[sector]),
        "Sector": sector,
        "FIRMO LE EMP CNT (Number of Employees)": f"{random.randint(10, 60_000):,}",
        "IT Spend Estimate": _money(random.uniform(50_000, 40_000_000)),
        "Company Size": random.choice(COMPANY_SIZES),
        "Prmry City Name": random.choice(CITIES[state]),
        "PRMRY ST PROV NAME": STATE_NAMES[state],
        "TOTAL IBM REV 2024": _money(rev_2024),
        "TOTAL IBM REV 2023": _money(rev_2023),
        "TOTAL IBM REV 2022": _money(rev_2022),
        "Top Data & AI Business Parter": random.choice(PARTNERS),
        "Top IT Auto & App Mod Business Parter": random.choice(PARTNERS),
        "Key BP": random.choice(PARTNERS),
    }
    installed = set(random.sample(PRODUCTS, random.randint(0, 5)))
    for product in PRODUCTS:
        row[product] = str(random.randint(1, 12)) if product in installed else ""
    return row


def gen_accounts(n: int = NUM_ACCOUNTS, seed: int | None = 42) -> list[dict[str, str]]:
    if seed is not None:
        Faker.seed(seed)
        random.seed(seed)
    return [gen_account() for _ in range(n)]


def write_csv(rows: list[dict[str, str]], path: str | Path) -> Path:
    path = Path(path)
    pd.DataFrame(rows).to_csv(path, index=False)
    return path


# ── Main ─────────────────────────────────────────────────

def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate a sample account-universe CSV.")
    parser.add_argument("--rows", type=int, default=NUM_ACCOUNTS)
    parser.add_argument("--output", default=DEFAULT_OUTPUT)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args(argv)

    print("═══ Seed Data Generator ═══")
    rows = gen_accounts(args.rows, args.seed)
    path = write_csv(rows, args.output)
    print(f"\nDone: wrote {len(rows):,} accounts with {len(PRODUCTS)} product columns to {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
