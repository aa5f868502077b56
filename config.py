"""
Australian tax and leasing constants for the novated lease estimator.

All monetary values in AUD. Income tax year 2025/26. A new tax year
should only need edits in this file.
"""

# ── General assumptions ──────────────────────────────────────────────
BASE_TAX_YEAR = 2025     # 2025 means 2025/26
MONTHS_PER_YEAR = 12
FORTNIGHTS_PER_YEAR = 26

# ── Income Tax (resident rates) ──────────────────────────────────────
# Brackets: (min, max, rate, base tax at min). Last bracket has no upper
# limit (use inf).
TAX_BRACKETS = [
    (0, 18_200, 0.00, 0),
    (18_201, 45_000, 0.16, 0),
    (45_001, 135_000, 0.30, 4_288),
    (135_001, 190_000, 0.37, 31_288),
    (190_001, float("inf"), 0.45, 51_638),
]

MEDICARE_LEVY_RATE = 0.02       # flat, no low-income phase-in

# ── GST ──────────────────────────────────────────────────────────────
GST_RATE = 0.10

# ── Fringe Benefits Tax (statutory formula) ──────────────────────────
FBT_RATE = 0.47                 # top marginal rate + Medicare
FBT_TYPE1_GROSS_UP = 2.0802     # benefits with a GST credit
FBT_DEFAULT_STATUTORY_RATE = 0.20
FBT_BASE_VALUE_FACTOR = 2 / 3   # base value step-down per lease year

# ── ATO minimum residual values ──────────────────────────────────────
# Lease term in years -> residual as a fraction of the vehicle price.
ATO_RESIDUAL_RATES = {
    1: 0.6563,
    2: 0.5625,
    3: 0.4688,
    4: 0.3750,
    5: 0.2813,
}
FALLBACK_RESIDUAL_TERM = 5      # used for any term not in the table
MAX_DURATION_YEARS = 30         # longest term accepted anywhere

# ── Buy outright / market value model ────────────────────────────────
DEPRECIATION_RATE = 0.15        # flat annual, not make/model specific
OPPORTUNITY_COST_RATE = 0.05    # simple interest on the cash price

# ── Post-lease scenarios ─────────────────────────────────────────────
RETURN_HANDLING_COST = 500
EXTEND_REFINANCE_RATE = 0.07
EXTEND_TERM_YEARS = 3           # independent of the original term

# ── Quote validation ─────────────────────────────────────────────────
COST_DISCREPANCY_PCT = 5.0      # payments, charges, totals
SAVINGS_DISCREPANCY_PCT = 10.0  # tax and GST savings estimates

# Significant discrepancy count -> assessment (upper bound inclusive).
ASSESSMENT_BUCKETS = [
    (0, "accurate"),
    (2, "minor_differences"),
    (4, "significant_differences"),
    (float("inf"), "major_concerns"),
]

# ── Saved quotes ─────────────────────────────────────────────────────
STORAGE_KEY = "novated_lease_saved_quotes"
DEFAULT_STORE_PATH = "saved_quotes.json"
STORE_PATH_ENV = "NOVATED_LEASE_STORE"
MAX_COMPARE_QUOTES = 3

# ── Default quote ────────────────────────────────────────────────────
DEFAULT_VEHICLE = {"make": "Toyota", "model": "RAV4", "year": 2024, "purchase_price": 50_000}
DEFAULT_DURATION_YEARS = 3
DEFAULT_INTEREST_RATE = 0.07
DEFAULT_ANNUAL_KM = 15_000
DEFAULT_FEES = {"establishment_fee": 500, "monthly_admin_fee": 10, "end_of_lease_fee": 350}
DEFAULT_RUNNING_COSTS = {
    "fuel": 2_000,
    "insurance": 1_200,
    "maintenance": 800,
    "registration": 800,
    "tyres": 200,
}
DEFAULT_SALARY = 80_000
