import json
import os
import tempfile
from typing import Dict, Optional

from riskdesk.config.logging import logger
from riskdesk.core.exceptions import StorageError

class LocalStore:
    """
    本機 key-value store。
    整個 store 是一個 JSON 物件 {key: string value}，存成單一檔案；
    每次 set 都整檔覆寫 (先寫暫存檔再 os.replace，避免寫到一半)。
    注意：沒有跨 process 鎖，同時開兩個 CLI 寫入時後寫者勝出。
    """

    def __init__(self, path: str):
        self.path = path

    def _read_all(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read store {self.path}: {e}")
        if not isinstance(data, dict):
            raise StorageError(f"Store {self.path} is not a JSON object")
        return data

    def get(self, key: str) -> Optional[str]:
        """讀取 key，不存在時回傳 None。檔案損毀時拋出 StorageError。"""
        value = self._read_all().get(key)
        if value is not None and not isinstance(value, str):
            raise StorageError(f"Value under {key!r} is not a string")
        return value

    def set(self, key: str, value: str):
        try:
            data = self._read_all()
        except StorageError as e:
            # 損毀的 store 直接以新內容覆蓋
            logger.warning(f"Overwriting unreadable store: {e}")
            data = {}
        data[key] = value
        self._write_all(data)

    def _write_all(self, data: Dict[str, str]):
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".store-", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageError(f"Failed to write store {self.path}: {e}")

