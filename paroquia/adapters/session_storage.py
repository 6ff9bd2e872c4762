"""Session Storage Adapters

SessionStorage ABCの実装。
ブラウザの localStorage と同じ key/value 文字列ストアとして振る舞う。
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from paroquia.domain.ports import SessionStorage

logger = logging.getLogger(__name__)


class JsonFileSessionStorage(SessionStorage):
    """
    1つのJSONファイルに key/value を保存する実装。

    - 変更のたびにファイル全体を書き出す（一時ファイル + os.replace で原子的に置換）
    - ファイルが壊れている場合は読み込み時に ValueError を送出する
      （SessionStore 側で「セッションなし」として扱う）
    """

    def __init__(self, path: str | Path) -> None:
        """
        Args:
            path: 保存先のJSONファイルパス（親ディレクトリは自動作成）
        """
        self.path = Path(path)

    def get_item(self, key: str) -> str | None:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load_for_update()
        data[key] = value
        self._save(data)

    def remove_item(self, key: str) -> None:
        if not self.path.exists():
            return
        data = self._load_for_update()
        if data.pop(key, None) is not None:
            self._save(data)

    # ── 内部ヘルパー ──────────────────────────────────────────────────────────

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Session file is not a JSON object: {self.path}")
        return data

    def _load_for_update(self) -> dict[str, str]:
        """書き込み用の読み込み。壊れたファイルは空として上書きする"""
        try:
            return self._load()
        except ValueError:
            logger.warning("Overwriting corrupt session file: %s", self.path)
            return {}

    def _save(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, self.path)
        logger.debug("Session file written: %s", self.path)


class InMemorySessionStorage(SessionStorage):
    """プロセス内だけで保持する実装（テスト・一時利用向け）"""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)
