"""Console Notifier Adapter

Notifier ABCの実装。CLI では通知を標準出力／標準エラーに1行で表示する。
"""

import logging
import sys
from typing import TextIO

from paroquia.domain.models import Notification, NotificationLevel
from paroquia.domain.ports import Notifier

logger = logging.getLogger(__name__)

_PREFIX = {
    NotificationLevel.SUCCESS: "[ok]",
    NotificationLevel.ERROR: "[erro]",
    NotificationLevel.INFO: "[info]",
}


class ConsoleNotifier(Notifier):
    """エラーは stderr、それ以外は stdout に出力する"""

    def __init__(self, out: TextIO | None = None, err: TextIO | None = None) -> None:
        self._out = out
        self._err = err

    def show(self, notification: Notification) -> None:
        if notification.level is NotificationLevel.ERROR:
            stream = self._err or sys.stderr
        else:
            stream = self._out or sys.stdout
        print(f"{_PREFIX[notification.level]} {notification.message}", file=stream)
        logger.debug("Notification shown: %s", notification)
