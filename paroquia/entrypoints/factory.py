"""Factory - 依存性注入の組み立て

全AdapterとServiceを組み立て、ViewController を生成する。
"""

import logging

from paroquia.adapters.console_notifier import ConsoleNotifier
from paroquia.adapters.parish_api import HttpParishBackend
from paroquia.adapters.resource_client import ResourceClient
from paroquia.adapters.session_storage import JsonFileSessionStorage
from paroquia.config import AppConfig
from paroquia.domain.ports import Notifier
from paroquia.services.session_store import SessionStore
from paroquia.services.view_controller import ViewController

logger = logging.getLogger(__name__)


def create_controller(
    config: AppConfig | None = None,
    notifier: Notifier | None = None,
) -> tuple[ViewController, ResourceClient]:
    """
    ViewController を生成（全依存を組み立て）。

    Args:
        config: アプリケーション設定（Noneの場合は環境変数から読み込み）
        notifier: 通知の表示先（Noneの場合はコンソール）

    Returns:
        (ViewController, ResourceClient): 呼び出し側は使用後に client.close() する

    Raises:
        ConfigError: 設定値が不正な場合
    """
    if config is None:
        config = AppConfig.from_env()

    logger.info("Creating controller: api=%s", config.api_base_url)

    # 1. セッション（永続ストレージから復元）
    session_store = SessionStore(JsonFileSessionStorage(config.session_file))

    # 2. Adapters生成
    client = ResourceClient(
        base_url=config.api_base_url,
        session_store=session_store,
        timeout=config.request_timeout,
    )
    backend = HttpParishBackend(client)

    # 3. ViewController生成
    controller = ViewController(
        backend=backend,
        session_store=session_store,
        notifier=notifier or ConsoleNotifier(),
        pix_key=config.pix_key,
    )
    return controller, client
