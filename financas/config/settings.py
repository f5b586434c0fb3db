"""
Configuration Management for the Ledger Engine

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: Every magic string the engine matches on (the credit card
channel, the invoice category, the investment category) lives here.
The aggregates depend on exact string matches, so they must be defined
in exactly one place.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CATEGORIES = (
    "Alimentação,Moradia,Transporte,Saúde,Lazer,Educação,Salário,"
    "Investimento,Contas Fixas,Extra,Fatura Cartão"
)


class LedgerSettings(BaseSettings):
    """
    Ledger engine settings.

    Loads configuration from environment variables (FINANCAS_*) and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FINANCAS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Payment channels
    credit_card_method: str = Field(
        default="Cartão Crédito",
        description="Payment method that routes purchases through card invoices"
    )
    invoice_payment_method: str = Field(
        default="Pix",
        description="Method recorded on invoice payment transactions"
    )
    fixed_bill_method: str = Field(
        default="Boleto",
        description="Method recorded when a fixed bill is paid"
    )
    investment_method: str = Field(
        default="Pix",
        description="Method recorded on investment deposits and withdrawals"
    )

    # Categories with special handling
    invoice_category: str = Field(
        default="Fatura Cartão",
        description="Category of invoice payment transactions"
    )
    fixed_bills_category: str = Field(
        default="Contas Fixas",
        description="Default category for fixed bills"
    )
    investment_category: str = Field(
        default="Investimento",
        description="Category tracked as invested capital"
    )
    default_categories: str = Field(
        default=DEFAULT_CATEGORIES,
        description="Comma-separated list of categories for a new ledger"
    )

    # Limits
    max_installments: int = Field(
        default=60,
        ge=1,
        le=120,
        description="Maximum number of installments for a card purchase"
    )
    max_transaction_value: float = Field(
        default=1_000_000_000.0,
        gt=0,
        description="Largest amount accepted for a single entry or purchase"
    )
    goal_warning_percent: float = Field(
        default=80.0,
        ge=0.0,
        le=100.0,
        description="Goal usage above this percentage is flagged as a warning"
    )

    # Behaviour toggles
    reject_duplicate_bill_payment: bool = Field(
        default=False,
        description="Reject paying a fixed bill twice in the same month"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum level for the structured log"
    )
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON (False renders for the console)"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept any casing, reject unknown levels."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def default_categories_list(self) -> list[str]:
        """Get default categories as a list."""
        return [cat.strip() for cat in self.default_categories.split(",") if cat.strip()]

    @property
    def max_value(self) -> Decimal:
        """max_transaction_value as a Decimal for money comparisons."""
        return Decimal(str(self.max_transaction_value))

    @property
    def non_variable_categories(self) -> frozenset[str]:
        """Categories that are not discretionary spend for forecasting."""
        return frozenset({
            self.fixed_bills_category,
            self.invoice_category,
            self.investment_category,
        })


@lru_cache()
def get_settings() -> LedgerSettings:
    """
    Get ledger settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return LedgerSettings()
