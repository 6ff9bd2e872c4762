"""ロギング設定モジュール

LOG_FORMAT=json の場合はJSON行形式、それ以外はテキスト形式でログを出力する。

使い方:
    from paroquia.logging_config import setup_logging
    setup_logging()

環境変数:
    LOG_LEVEL: ログレベル (DEBUG, INFO, WARNING, ERROR, CRITICAL) デフォルト: WARNING
    LOG_FORMAT: "json" でJSON形式、それ以外はテキスト形式
"""

import json
import logging
import os


class JsonLogFormatter(logging.Formatter):
    """1行1JSONのフォーマッタ

    `extra={"extra_fields": {...}}` で渡した値はトップレベルに展開する
    （severity 等の固定フィールドは上書きしない）。
    並列読み込みのログを追えるようスレッド名も出力する。
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict = dict(getattr(record, "extra_fields", None) or {})
        log_entry.update(
            severity=record.levelname,
            message=record.getMessage(),
            logger=record.name,
            thread=record.threadName,
            timestamp=self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
        )
        if record.exc_info and record.exc_info[0]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


def setup_logging() -> None:
    """ログ設定を初期化する

    CLI の出力と混ざらないよう、デフォルトレベルは WARNING。
    DEBUG 以外では httpx / httpcore のリクエストログを抑制する。
    """
    log_level = os.getenv("LOG_LEVEL", "WARNING").upper()
    level = getattr(logging, log_level, logging.WARNING)
    use_json = os.getenv("LOG_FORMAT", "").lower() == "json"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    handler = logging.StreamHandler()
    if use_json:
        handler.setFormatter(JsonLogFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    if level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
