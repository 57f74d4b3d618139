"""
Runtime configuration, read from the environment.
"""

import os
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class Settings:
    environment: str = "dev"
    supabase_url: str = ""
    supabase_service_key: str = ""
    backend_timeout_seconds: float = 10.0
    default_external_admin_fee: Decimal = Decimal("7000")
    default_bank_initiation_fee: Decimal = Decimal("1207")
    currency_symbol: str = "R"
    dealership_name: str = "Lumina Auto"

    @property
    def backend_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)

    @property
    def rest_url(self) -> str:
        return f"{self.supabase_url}/rest/v1" if self.supabase_url else ""

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            environment=env.get("ENVIRONMENT", "dev"),
            supabase_url=env.get("SUPABASE_URL", "").strip().rstrip("/"),
            supabase_service_key=env.get("SUPABASE_SERVICE_KEY", "").strip(),
            backend_timeout_seconds=float(env.get("BACKEND_TIMEOUT_SECONDS", "10")),
            default_external_admin_fee=Decimal(env.get("DEFAULT_EXTERNAL_ADMIN_FEE", "7000")),
            default_bank_initiation_fee=Decimal(env.get("DEFAULT_BANK_INITIATION_FEE", "1207")),
            currency_symbol=env.get("CURRENCY_SYMBOL", "R"),
            dealership_name=env.get("DEALERSHIP_NAME", "Lumina Auto"),
        )
