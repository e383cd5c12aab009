"""Error taxonomy for the bonding curve core.

Every failure is a local validation or invariant fault. Nothing here is
retriable, so callers surface the error as-is and drop the operation.
"""

from __future__ import annotations


class AmmError(Exception):
    """Base class for all bonding curve errors."""

    code = "AmmError"
    message = "Bonding curve error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        text = self.message if detail is None else f"{self.message}: {detail}"
        super().__init__(text)


class Unauthorized(AmmError):
    code = "Unauthorized"
    message = "Unauthorized operation"


class InvalidAmmConfig(AmmError):
    code = "InvalidAmmConfig"
    message = "Invalid amm config"


class InvalidTokenDecimals(AmmError):
    code = "InvalidTokenDecimals"
    message = "Invalid token decimals"


class InvalidFeeBasisPoints(AmmError):
    code = "InvalidFeeBasisPoints"
    message = "Invalid fee basis points"


class InvalidQuoteThreshold(AmmError):
    code = "InvalidQuoteThreshold"
    message = "Invalid quote threshold"


class InvalidCurve(AmmError):
    code = "InvalidCurve"
    message = "Invalid curve"


class InvalidCreatorTradingFeePercentage(AmmError):
    code = "InvalidCreatorTradingFeePercentage"
    message = "Invalid creator trading fee percentage"


class ClaimCooldownNotMet(AmmError):
    code = "ClaimCooldownNotMet"
    message = "Claim cooldown period not met"


class NoCashbackToClaim(AmmError):
    code = "NoCashbackToClaim"
    message = "No cashback available to claim"


class AccountNotInactive(AmmError):
    code = "AccountNotInactive"
    message = "Account is not inactive for required period"


class InvalidCashbackTier(AmmError):
    code = "InvalidCashbackTier"
    message = "Invalid cashback tier"


class MathOverflow(AmmError):
    code = "MathOverflow"
    message = "Math operation overflow"


class TypeCastFailed(AmmError):
    code = "TypeCastFailed"
    message = "Type cast error"


class AmountIsZero(AmmError):
    code = "AmountIsZero"
    message = "Amount is zero"


class ExceededSlippage(AmmError):
    code = "ExceededSlippage"
    message = "Exceeded slippage tolerance"


class PoolIsCompleted(AmmError):
    code = "PoolIsCompleted"
    message = "Pool is completed"


class PoolIsIncompleted(AmmError):
    code = "PoolIsIncompleted"
    message = "Pool is incompleted"


class SwapAmountIsOverAThreshold(AmmError):
    code = "SwapAmountIsOverAThreshold"
    message = "Swap amount is over a threshold"


class NotEnoughLiquidity(AmmError):
    code = "NotEnoughLiquidity"
    message = "Not enough liquidity"


class InsufficientLiquidityForMigration(AmmError):
    code = "InsufficientLiquidityForMigration"
    message = "Insufficient liquidity for migration"


class InvalidMigrationCalculation(AmmError):
    code = "InvalidMigrationCalculation"
    message = "Invalid migration calculation"


class InvalidMigrationStatus(AmmError):
    code = "InvalidMigrationStatus"
    message = "Migration status can only move forward"


class NotPermitToDoThisAction(AmmError):
    code = "NotPermitToDoThisAction"
    message = "Not permit to do this action"


class NothingToClaim(AmmError):
    code = "NothingToClaim"
    message = "Nothing to claim"


class InvalidFeeType(AmmError):
    code = "InvalidFeeType"
    message = "Invalid fee type"


class FeeTypeAlreadySet(AmmError):
    code = "FeeTypeAlreadySet"
    message = "Setting the same fee type"
