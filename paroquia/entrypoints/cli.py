#!/usr/bin/env python3
"""CLI Entrypoint - コマンドラインから実行

使い方:
    python -m paroquia.entrypoints.cli home
    python -m paroquia.entrypoints.cli login fiel@example.com
    python -m paroquia.entrypoints.cli enroll 7
    python -m paroquia.entrypoints.cli contribute 50.00 --method PIX

環境変数:
    PAROQUIA_API_URL: バックエンドのURL デフォルト: http://localhost:8080
    PAROQUIA_SESSION_FILE: セッション保存先 デフォルト: ~/.paroquia/session.json
    LOG_LEVEL: ログレベル (DEBUG, INFO, WARNING, ERROR) デフォルト: WARNING
"""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from collections.abc import Callable
from typing import Any

from paroquia.domain.errors import ConfigError
from paroquia.domain.models import (
    Contribution,
    ContributionMethod,
    DashboardStats,
    MassTime,
    ParishInfo,
    Pastoral,
    RegisterForm,
    Registration,
    RegistrationStatus,
    Service,
    UserProfile,
    UserUpdate,
    format_brl,
)
from paroquia.entrypoints.factory import create_controller
from paroquia.logging_config import setup_logging
from paroquia.services.view_controller import Screen, ScreenState, ViewController

# ── 表示 ─────────────────────────────────────────────────────────────────────


def _render_parish_info(info: ParishInfo) -> list[str]:
    lines = [info.name, "", info.history]
    if info.mass_times:
        lines.append("")
        lines.append("Horários de Missa:")
        lines.extend(f"  - {t}" for t in info.mass_times)
    if info.secretariat_hours:
        lines.append(f"Secretaria: {info.secretariat_hours}")
    if info.priest_hours:
        lines.append(f"Atendimento do padre: {info.priest_hours}")
    if info.liturgical_calendar_url:
        lines.append(f"Calendário litúrgico: {info.liturgical_calendar_url}")
    return lines


def _render_item(item: Any) -> str:
    if isinstance(item, Service):
        return f"[{item.id}] {item.name} - {item.description}"
    if isinstance(item, Pastoral):
        return f"[{item.id}] {item.name} - {item.description} (Reuniões: {item.meeting_info})"
    if isinstance(item, MassTime):
        suffix = f" - {item.description}" if item.description else ""
        return f"{item.day} {item.time} @ {item.location}{suffix}"
    if isinstance(item, Registration):
        who = item.user.name or f"user #{item.user.id}"
        what = item.service.name or f"serviço #{item.service.id}"
        return f"[{item.id}] {what} | {who} | {item.status.value} | {item.created_at}"
    if isinstance(item, Contribution):
        return (
            f"[{item.id}] {format_brl(item.value)} via {item.method.value}"
            f" | {item.status} | {item.created_at}"
        )
    if isinstance(item, UserProfile):
        admin = " (admin)" if item.is_admin else ""
        return f"[{item.id}] {item.name} <{item.email}>{admin}"
    return str(item)


def _render_stats(stats: DashboardStats) -> list[str]:
    return [
        f"Usuários: {stats.total_users}",
        f"Inscrições: {stats.total_registrations} ({stats.pending_registrations} pendentes)",
        f"Contribuições: {stats.total_contributions} ({format_brl(stats.contributions_total)})",
    ]


def render(value: Any) -> list[str]:
    """データセット1つ分を表示用の行に変換"""
    if isinstance(value, ParishInfo):
        return _render_parish_info(value)
    if isinstance(value, DashboardStats):
        return _render_stats(value)
    if isinstance(value, list):
        return [_render_item(item) for item in value] or ["(vazio)"]
    return [str(value)]


def _print_screen(controller: ViewController, screen: Screen) -> bool:
    view = controller.open_screen(screen)
    if controller.auth_prompt_open:
        print("Faça login com: paroquia login <email>")
        return False
    for name, value in view.data.items():
        print(f"== {name} ==")
        for line in render(value):
            print(line)
        print()
    return view.state is ScreenState.READY and not view.errors


# ── コマンド ─────────────────────────────────────────────────────────────────


def _screen_command(screen: Screen) -> Callable[[ViewController, argparse.Namespace], bool]:
    return lambda controller, args: _print_screen(controller, screen)


def _cmd_login(controller: ViewController, args: argparse.Namespace) -> bool:
    password = args.password or getpass.getpass("Senha: ")
    return controller.login(args.email, password)


def _cmd_register(controller: ViewController, args: argparse.Namespace) -> bool:
    password = args.password or getpass.getpass("Senha: ")
    form = RegisterForm(
        name=args.name,
        email=args.email,
        password=password,
        address=args.address,
        date_of_birth=args.dob,
        gender=args.gender,
    )
    return controller.register(form)


def _cmd_logout(controller: ViewController, args: argparse.Namespace) -> bool:
    controller.logout()
    return True


def _cmd_whoami(controller: ViewController, args: argparse.Namespace) -> bool:
    session = controller.session
    if session is None:
        print("Nenhuma sessão ativa.")
        return False
    print(_render_item(session.user))
    return True


def _cmd_enroll(controller: ViewController, args: argparse.Namespace) -> bool:
    ok = controller.enroll(args.service_id)
    if ok:
        for line in render(controller.view(Screen.MY_REGISTRATIONS).data.get("registrations", [])):
            print(line)
    return ok


def _cmd_contribute(controller: ViewController, args: argparse.Namespace) -> bool:
    return controller.contribute(args.value, args.method)


def _cmd_set_status(controller: ViewController, args: argparse.Namespace) -> bool:
    return controller.change_registration_status(args.registration_id, args.status)


def _cmd_edit_user(controller: ViewController, args: argparse.Namespace) -> bool:
    update = UserUpdate(
        name=args.name,
        email=args.email,
        is_admin=args.admin,
        address=args.address,
        date_of_birth=args.dob,
        gender=args.gender,
    )
    return controller.edit_user(args.user_id, update)


def _print_dataset(screen: Screen, name: str):
    def command(controller: ViewController, args: argparse.Namespace) -> bool:
        view = controller.open_screen(screen)
        if controller.auth_prompt_open:
            print("Faça login com: paroquia login <email>")
            return False
        if name not in view.data:
            return False
        for line in render(view.data[name]):
            print(line)
        return name not in view.errors

    return command


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="paroquia", description="Cliente da Paróquia Santo Antônio"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    for name, screen in [
        ("home", Screen.HOME),
        ("services", Screen.SERVICES),
        ("pastorais", Screen.PASTORAIS),
        ("mass-times", Screen.MASS_TIMES),
        ("my-registrations", Screen.MY_REGISTRATIONS),
        ("my-contributions", Screen.MY_CONTRIBUTIONS),
    ]:
        sub.add_parser(name).set_defaults(handler=_screen_command(screen))

    p = sub.add_parser("login")
    p.add_argument("email")
    p.add_argument("--password")
    p.set_defaults(handler=_cmd_login)

    p = sub.add_parser("register")
    p.add_argument("--name", required=True)
    p.add_argument("--email", required=True)
    p.add_argument("--password")
    p.add_argument("--address")
    p.add_argument("--dob", help="YYYY-MM-DD")
    p.add_argument("--gender")
    p.set_defaults(handler=_cmd_register)

    sub.add_parser("logout").set_defaults(handler=_cmd_logout)
    sub.add_parser("whoami").set_defaults(handler=_cmd_whoami)

    p = sub.add_parser("enroll")
    p.add_argument("service_id", type=int)
    p.set_defaults(handler=_cmd_enroll)

    p = sub.add_parser("contribute")
    p.add_argument("value")
    p.add_argument(
        "--method",
        default=ContributionMethod.PIX.value,
        choices=[m.value for m in ContributionMethod],
    )
    p.set_defaults(handler=_cmd_contribute)

    sub.add_parser("admin-registrations").set_defaults(
        handler=_print_dataset(Screen.ADMIN, "registrations")
    )
    sub.add_parser("admin-users").set_defaults(
        handler=_print_dataset(Screen.ADMIN, "users")
    )
    sub.add_parser("admin-stats").set_defaults(
        handler=_print_dataset(Screen.ADMIN, "stats")
    )

    p = sub.add_parser("admin-set-status")
    p.add_argument("registration_id", type=int)
    p.add_argument(
        "status",
        choices=[RegistrationStatus.CONFIRMED.value, RegistrationStatus.DECLINED.value],
    )
    p.set_defaults(handler=_cmd_set_status)

    p = sub.add_parser("admin-edit-user")
    p.add_argument("user_id", type=int)
    p.add_argument("--name")
    p.add_argument("--email")
    p.add_argument("--admin", action=argparse.BooleanOptionalAction, default=None)
    p.add_argument("--address")
    p.add_argument("--dob")
    p.add_argument("--gender")
    p.set_defaults(handler=_cmd_edit_user)

    return parser


def main(argv: list[str] | None = None) -> None:
    """メインエントリーポイント"""
    args = build_parser().parse_args(argv)
    setup_logging()
    logger = logging.getLogger(__name__)

    try:
        controller, client = create_controller()
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        print(f"Configuração inválida: {e}", file=sys.stderr)
        sys.exit(2)

    try:
        with client:
            ok = args.handler(controller, args)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
