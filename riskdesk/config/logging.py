import logging
import sys
from typing import Optional, TextIO

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# SDK 的 gRPC / HTTP 日誌太吵，只保留警告以上
NOISY_LOGGERS = ("google", "urllib3", "grpc")

def _configured_level() -> str:
    # settings 載入失敗 (None) 時不能讓 logging 一起壞掉
    try:
        from riskdesk.config.settings import settings
    except Exception:
        return "INFO"
    return settings.LOG_LEVEL.upper() if settings else "INFO"

def setup_logging(
    name: str = "riskdesk",
    level: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    建立 riskdesk logger。
    日誌寫到 stderr，stdout 留給 CLI 的表格與 JSON 輸出。
    重複呼叫只回傳既有 logger，不會疊加 handler。
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    resolved = getattr(logging, (level or _configured_level()).upper(), logging.INFO)
    logger.setLevel(resolved)
    logger.propagate = False

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)
    return logger

logger = setup_logging()
