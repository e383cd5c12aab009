"""Protocol constants shared by the pricing, fee and lifecycle code."""

# Sqrt price bounds of the concentrated-liquidity pool the curve migrates into.
MIN_SQRT_PRICE = 4295048016
MAX_SQRT_PRICE = 79226673521066979257578248091

# Q64.64 fixed point
RESOLUTION = 64
ONE_Q64 = 1 << RESOLUTION

MAX_CURVE_POINT = 4

# 1B tokens with 6 decimals
TOKEN_TOTAL_SUPPLY = 1_000_000_000_000_000

# Virtual-reserve curves scale the base side to offset the 9 vs 6 decimals gap.
CONSTANT_PRODUCT_BASE_SCALE = 1000

# Share of the migration quote threshold the curve may absorb past its last point.
DEFAULT_SWALLOW_PERCENTAGE = 20

# Fee rates are expressed out of FEE_DENOMINATOR. MAX_FEE_BASIS_POINTS caps the
# configured gross rate and is compared against the raw value, not a share of it.
FEE_DENOMINATOR = 100_000
MAX_FEE_BASIS_POINTS = 10_000
MAX_CREATOR_FEE_BASIS_POINTS = 1_000

MIN_BASE_DECIMAL = 6
MAX_BASE_DECIMAL = 9

# Cashback rates per tier, out of FEE_DENOMINATOR.
CASHBACK_WOOD_BPS = 50
CASHBACK_BRONZE_BPS = 100
CASHBACK_SILVER_BPS = 125
CASHBACK_GOLD_BPS = 150
CASHBACK_PLATINUM_BPS = 175
CASHBACK_DIAMOND_BPS = 200
CASHBACK_CHAMPION_BPS = 250

CASHBACK_CLAIM_COOLDOWN = 7 * 24 * 60 * 60
CASHBACK_INACTIVE_PERIOD = 365 * 24 * 60 * 60
