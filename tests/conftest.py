from __future__ import annotations

import copy
from typing import Any

import pytest

from amm_core.constants import MAX_SQRT_PRICE
from amm_core.models import Config
from utils.config_loader import build_config

INITIAL_SQRT_PRICE = 112263311001264267
MIGRATION_SQRT_PRICE = 371637737252560528

SEGMENTED_MAPPING: dict[str, Any] = {
    "quote_mint": "So11111111111111111111111111111111111111112",
    "fee_claimer": "treasury",
    "base_decimal": 6,
    "quote_decimal": 9,
    "fee_basis_points": 1500,
    "l1_referral_fee_basis_points": 300,
    "l2_referral_fee_basis_points": 30,
    "l3_referral_fee_basis_points": 20,
    "referee_discount_basis_points": 100,
    "creator_fee_basis_points": 300,
    "meme_fee_basis_points": 100,
    "migration_fee_basis_points": 5000,
    "migration_base_threshold": 100_000_000_000_000,
    "migration_quote_threshold": 96_000_000_000,
    "curve_model": {
        "kind": "segmented",
        "initial_sqrt_price": INITIAL_SQRT_PRICE,
        "migration_sqrt_price": MIGRATION_SQRT_PRICE,
        "curve": [
            {
                "sqrt_price": MIGRATION_SQRT_PRICE,
                "liquidity": 126468855042921406515868865861078,
            },
            {"sqrt_price": MAX_SQRT_PRICE, "liquidity": 3374878340866846586010188},
        ],
    },
    "authorities": {
        "admins": ["admin"],
        "fee_type_reviewers": ["reviewer"],
        "migration_authorities": ["migrator"],
    },
}

CONSTANT_PRODUCT_MAPPING: dict[str, Any] = {
    "quote_mint": "So11111111111111111111111111111111111111112",
    "fee_claimer": "treasury",
    "base_decimal": 6,
    "quote_decimal": 9,
    "fee_basis_points": 1000,
    "creator_fee_basis_points": 500,
    "meme_fee_basis_points": 200,
    "migration_fee_basis_points": 2000,
    "migration_base_threshold": 200_000_000_000_000,
    "migration_quote_threshold": 85_000_000_000,
    "curve_model": {
        "kind": "constant_product",
        "initial_virtual_quote_reserve": 30_000_000_000,
        "initial_virtual_base_reserve": 1_073_000_000_000_000,
    },
    "authorities": {
        "admins": ["admin"],
        "fee_type_reviewers": ["reviewer"],
        "migration_authorities": ["migrator"],
    },
}

VESTING = {
    "amount_per_period": 1_000_000_000_000,
    "cliff_duration_from_migration_time": 3600,
    "frequency": 86400,
    "number_of_period": 10,
    "cliff_unlock_amount": 5_000_000_000_000,
}


@pytest.fixture
def segmented_mapping() -> dict[str, Any]:
    return copy.deepcopy(SEGMENTED_MAPPING)


@pytest.fixture
def constant_product_mapping() -> dict[str, Any]:
    return copy.deepcopy(CONSTANT_PRODUCT_MAPPING)


@pytest.fixture
def segmented_config(segmented_mapping: dict[str, Any]) -> Config:
    return build_config(segmented_mapping)


@pytest.fixture
def vesting_config(segmented_mapping: dict[str, Any]) -> Config:
    segmented_mapping["locked_vesting"] = dict(VESTING)
    return build_config(segmented_mapping)


@pytest.fixture
def constant_product_config(constant_product_mapping: dict[str, Any]) -> Config:
    return build_config(constant_product_mapping)


@pytest.fixture
def flat_fee_config(constant_product_mapping: dict[str, Any]) -> Config:
    """0.1% gross fee with a 0.02% creator share and nothing else."""
    constant_product_mapping.update(
        fee_basis_points=100,
        creator_fee_basis_points=20,
        meme_fee_basis_points=0,
    )
    # Below the cashback headroom the validator asks for, so skip it.
    return Config.model_validate(constant_product_mapping)
