import sys
from decimal import Decimal
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """
    riskdesk 設定。
    從環境變數 (.env) 讀取；所有欄位都有預設值，未設定時可直接執行。
    """
    # Ledger 儲存 (本機 key-value store)
    LEDGER_PATH: str = "riskdesk_store.json"
    LEDGER_STORAGE_KEY: str = "udr_trading_history"

    # 規劃表預設值 (Gestión TRADING)
    INITIAL_CAPITAL: Decimal = Decimal("10000")
    DEFAULT_RIESGO: Decimal = Decimal("2")
    DEFAULT_FLUCTUACION: Decimal = Decimal("4")
    DEFAULT_FEE_COMPRA: Decimal = Decimal("0.1")
    DEFAULT_FEE_VENTA: Decimal = Decimal("0.1")
    DEFAULT_ORDEN_LIMIT: Decimal = Decimal("65000")  # 模擬現價，圖表無法回傳即時價格

    # 平倉手續費率 (0.10%，開倉與平倉各收一次)
    COMMISSION_RATE: Decimal = Decimal("0.001")

    ALERT_HIDE_SECONDS: float = 3.0

    # Gemini 趨勢訊號 (Optional)
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-1.5-flash"
    TREND_RANDOM_FALLBACK: bool = True

    CHART_SYMBOL: str = "BINANCE:BTCUSDT"
    CHART_INTERVAL: str = "D"

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

    @field_validator("INITIAL_CAPITAL", "DEFAULT_ORDEN_LIMIT")
    @classmethod
    def _positive(cls, value: Decimal) -> Decimal:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @field_validator("DEFAULT_FEE_COMPRA", "DEFAULT_FEE_VENTA", "COMMISSION_RATE", "ALERT_HIDE_SECONDS")
    @classmethod
    def _non_negative(cls, value):
        if value < 0:
            raise ValueError("must not be negative")
        return value

try:
    settings = Settings()
except Exception as e:
    # logging 依賴 settings，這裡只能直接寫 stderr
    print(f"CRITICAL: Failed to load configuration. Invalid env vars? {e}", file=sys.stderr)
    settings = None
