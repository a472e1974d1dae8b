class AppError(Exception):
    """所有應用程式自定義錯誤的基類"""
    pass

class ConfigurationError(AppError):
    """設定錯誤 (如環境變數格式錯誤)"""
    pass

class ValidationError(AppError):
    """使用者輸入錯誤 (如 pair 為空、Orden Limit 非正數)"""
    pass

class StorageError(AppError):
    """本機儲存讀寫錯誤"""
    pass

class SignalSourceError(AppError):
    """外部趨勢訊號錯誤 (如 Gemini API 失敗)"""
    pass

class BusinessLogicError(AppError):
    """業務邏輯錯誤 (如交易狀態不符)"""
    pass

class TradeNotFoundError(BusinessLogicError):
    """找不到指定 ID 的交易"""
    pass

class TradeAlreadyClosedError(BusinessLogicError):
    """交易已平倉，平倉欄位只能寫入一次"""
    pass
