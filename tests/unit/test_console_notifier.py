"""ConsoleNotifier のテスト"""

import io

from paroquia.adapters.console_notifier import ConsoleNotifier
from paroquia.domain.models import Notification, NotificationLevel


def test_errors_go_to_err_stream():
    out, err = io.StringIO(), io.StringIO()
    ConsoleNotifier(out=out, err=err).show(
        Notification("Credenciais inválidas.", NotificationLevel.ERROR)
    )

    assert err.getvalue() == "[erro] Credenciais inválidas.\n"
    assert out.getvalue() == ""


def test_success_and_info_go_to_out_stream():
    out, err = io.StringIO(), io.StringIO()
    notifier = ConsoleNotifier(out=out, err=err)
    notifier.show(Notification("Inscrição realizada!", NotificationLevel.SUCCESS))
    notifier.show(Notification("Sessão encerrada."))

    assert out.getvalue().splitlines() == ["[ok] Inscrição realizada!", "[info] Sessão encerrada."]
    assert err.getvalue() == ""
