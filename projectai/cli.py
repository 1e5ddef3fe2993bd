"""
ProjectAI CLI — local setup and a terminal view of the dashboard.

Commands:
- projectai init                       — create local tables (sql mode), seed bootstrap admins
- projectai login                      — print the SSO sign-in URL
- projectai whoami                     — resolve the session and show role + capabilities
- projectai dashboard                  — headline stats, recent projects and tasks
- projectai projects list|create|validate
- projectai tasks list
- projectai team list|set-role
- projectai analytics
- projectai logs cleanup               — apply log retention

The access token comes from --token or PROJECTAI_ACCESS_TOKEN. In sql mode
the token is simply the user's email address.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Optional

from projectai.engine.errors import ProjectAIError

logger = logging.getLogger("projectai.cli")


def _add_project_fields(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--name", default="", help="Project name (3-100 characters)")
    parser.add_argument("--description", default="")
    parser.add_argument("--status", default="planning", help="planning/active/on_hold/completed")
    parser.add_argument("--priority", default="medium", help="low/medium/high/urgent")
    parser.add_argument("--progress", default=None, help="0-100")
    parser.add_argument("--budget", default=None)
    parser.add_argument("--start-date", default=None, help="YYYY-MM-DD")
    parser.add_argument("--end-date", default=None, help="YYYY-MM-DD")
    parser.add_argument("--color", default=None, help="#RRGGBB")


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="projectai",
        description="ProjectAI — project management dashboard",
    )
    parser.add_argument("--config", default=None, help="Path to projectai.yaml (default: auto-discover)")
    parser.add_argument("--token", default=None, help="Access token (default: $PROJECTAI_ACCESS_TOKEN)")
    parser.add_argument("--log-level", default=None, help="Console log level (default: from config)")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init", help="Create local tables and seed bootstrap admins")
    subparsers.add_parser("login", help="Print the SSO sign-in URL")
    subparsers.add_parser("whoami", help="Show the signed-in user and role")
    subparsers.add_parser("dashboard", help="Show dashboard stats")
    subparsers.add_parser("analytics", help="Show analytics")

    # projectai projects ...
    projects_parser = subparsers.add_parser("projects", help="List/create/validate projects")
    projects_sub = projects_parser.add_subparsers(dest="action")
    p_list = projects_sub.add_parser("list", help="List projects")
    p_list.add_argument("--search", default=None)
    p_list.add_argument("--status", default="all")
    p_list.add_argument("--priority", default="all")
    _add_project_fields(projects_sub.add_parser("create", help="Create a project"))
    _add_project_fields(projects_sub.add_parser("validate", help="Validate project input offline"))

    # projectai tasks list
    tasks_parser = subparsers.add_parser("tasks", help="List tasks")
    tasks_sub = tasks_parser.add_subparsers(dest="action")
    t_list = tasks_sub.add_parser("list", help="List tasks")
    t_list.add_argument("--search", default=None)
    t_list.add_argument("--status", default="all")
    t_list.add_argument("--priority", default="all")

    # projectai team ...
    team_parser = subparsers.add_parser("team", help="List team / change roles")
    team_sub = team_parser.add_subparsers(dest="action")
    tm_list = team_sub.add_parser("list", help="List team members")
    tm_list.add_argument("--search", default=None)
    tm_list.add_argument("--role", default="all")
    tm_role = team_sub.add_parser("set-role", help="Change a member's role (admin only)")
    tm_role.add_argument("member_id")
    tm_role.add_argument("role", help="admin/manager/member")

    # projectai logs cleanup
    logs_parser = subparsers.add_parser("logs", help="Log maintenance")
    logs_sub = logs_parser.add_subparsers(dest="action")
    logs_sub.add_parser("cleanup", help="Delete/compress old log files")

    args = parser.parse_args(argv)

    handlers = {
        "init": cmd_init,
        "login": cmd_login,
        "whoami": cmd_whoami,
        "dashboard": cmd_dashboard,
        "analytics": cmd_analytics,
        "projects": cmd_projects,
        "tasks": cmd_tasks,
        "team": cmd_team,
        "logs": cmd_logs,
    }
    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 0

    try:
        return handler(args)
    except ProjectAIError as e:
        print(f"[ERROR] {e.message}")
        return 1


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load(args: argparse.Namespace):
    from projectai.engine.config import load_config
    from projectai.engine.logging import configure_console_logging

    config = load_config(args.config)
    configure_console_logging(args.log_level or config.logging.level)
    return config


def _start(args: argparse.Namespace):
    from projectai.runtime import ProjectAIRuntime

    runtime = ProjectAIRuntime(_load(args))
    runtime.startup()
    return runtime


def _session(args: argparse.Namespace, runtime):
    token = args.token or os.environ.get("PROJECTAI_ACCESS_TOKEN")
    if not token:
        print("[ERROR] No access token. Pass --token or set PROJECTAI_ACCESS_TOKEN.")
        print("  Run 'projectai login' to get one.")
        return None
    return runtime.auth.establish_session(token)


def _print_notices(notices) -> None:
    for notice in notices:
        print(f"[{notice.level.upper()}] {notice.message}")


def _project_input(args: argparse.Namespace) -> dict:
    return {
        "name": args.name,
        "description": args.description,
        "status": args.status,
        "priority": args.priority,
        "progress": args.progress,
        "budget": args.budget,
        "start_date": args.start_date,
        "end_date": args.end_date,
        "color": args.color,
    }


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_init(args: argparse.Namespace) -> int:
    """
    Local bootstrap (sql mode):
    1. Load config
    2. Create all tables
    3. Insert a profile for every bootstrap administrator
    """
    print("=" * 60)
    print("  ProjectAI Initialization")
    print("=" * 60)

    config = _load(args)
    print("[OK] Configuration loaded")
    if config.backend.mode != "sql":
        print("[ERROR] init only manages local databases (backend.mode: sql).")
        print("  The hosted backend owns its schema and policies.")
        return 1

    from projectai.backend.query import Query
    from projectai.backend.sql import SqlBackend
    from projectai.db.base import engine_registry
    from projectai.db.session import ENGINE_NAME, init_db
    from projectai.services.auth import LocalIdentityProvider

    init_db(config.database.url, create_tables=True)
    print(f"[OK] Tables ready in {config.database.url}")

    backend = SqlBackend(engine_registry.get(ENGINE_NAME))
    provider = LocalIdentityProvider()
    for email in config.security.bootstrap_admin_emails:
        identity = provider.get_user(email)
        if backend.select_one(Query("profiles").eq("id", identity.id)) is not None:
            print(f"[INFO] Bootstrap admin already present: {email}")
            continue
        backend.insert("profiles", {
            "id": identity.id,
            "email": email,
            "full_name": identity.suggested_name,
            "role": "admin",
        })
        print(f"[OK] Seeded bootstrap admin: {email}")
    if not config.security.bootstrap_admin_emails:
        print("[WARN] No security.bootstrap_admin_emails configured; nobody will be admin.")
    return 0


def cmd_login(args: argparse.Namespace) -> int:
    runtime = _start(args)
    try:
        print("Open this URL to sign in:")
        print(f"  {runtime.auth.sign_in_url()}")
        return 0
    finally:
        runtime.shutdown()


def cmd_whoami(args: argparse.Namespace) -> int:
    from projectai.security.permissions import capabilities_for

    runtime = _start(args)
    try:
        ctx = _session(args, runtime)
        if ctx is None:
            return 1
        print(f"User:  {ctx.full_name} <{ctx.email}>")
        print(f"Id:    {ctx.user_id}")
        print(f"Role:  {ctx.role}")
        caps = sorted(capabilities_for(ctx.role))
        print(f"Can:   {', '.join(caps) if caps else '(read only)'}")
        return 0
    finally:
        runtime.shutdown()


def cmd_dashboard(args: argparse.Namespace) -> int:
    from projectai.services.formatting import status_label

    runtime = _start(args)
    try:
        ctx = _session(args, runtime)
        if ctx is None:
            return 1
        with runtime.views_for(ctx) as views:
            data = views.dashboard.load()
        _print_notices(data.notices)
        s = data.stats
        print(f"Projects: {s.total_projects} ({s.active_projects} active, avg progress {s.avg_progress}%)")
        print(f"Tasks:    {s.completed_tasks}/{s.total_tasks} recent tasks completed")
        print(f"Team:     {s.team_members} members")
        print("Recent projects:")
        for p in data.recent_projects:
            print(f"  - {p.name} [{status_label(p.status)}] {p.progress or 0}%")
        print("Recent tasks:")
        for t in data.recent_tasks:
            print(f"  - {t.name} [{status_label(t.status)}]")
        return 1 if data.notices else 0
    finally:
        runtime.shutdown()


def cmd_analytics(args: argparse.Namespace) -> int:
    runtime = _start(args)
    try:
        ctx = _session(args, runtime)
        if ctx is None:
            return 1
        with runtime.views_for(ctx) as views:
            data = views.analytics.load()
        _print_notices(data.notices)
        if data.is_placeholder:
            print("[WARN] Showing placeholder figures; live data could not be loaded.")
        print(f"Projects: {data.total_projects} total, {data.active_projects} active, "
              f"{data.completed_projects} completed ({data.project_success_rate:.0f}% success)")
        print(f"Tasks:    {data.total_tasks} total, {data.completed_tasks} completed, "
              f"{data.overdue_tasks} overdue ({data.completion_rate:.0f}% completion)")
        print(f"Team utilization: {data.team_utilization}%")
        for point in data.projects_by_status:
            print(f"  status   {point.name:<12} {point.value}")
        for point in data.tasks_by_priority:
            print(f"  priority {point.name:<12} {point.value}")
        return 0
    finally:
        runtime.shutdown()


def cmd_projects(args: argparse.Namespace) -> int:
    if args.action == "validate":
        return _validate_project(args)
    if args.action not in ("list", "create"):
        print("[ERROR] Usage: projectai projects list|create|validate")
        return 1

    from projectai.services.formatting import format_budget, status_label

    runtime = _start(args)
    try:
        ctx = _session(args, runtime)
        if ctx is None:
            return 1
        with runtime.views_for(ctx) as views:
            if args.action == "create":
                result = views.projects.create_project(_project_input(args))
            else:
                page = views.projects.load(args.search, args.status, args.priority)

        if args.action == "create":
            if not result.success:
                print(f"[ERROR] {result.message}")
                for error in result.errors:
                    print(f"  {error['field']}: {error['message']}")
                return 1
            print(f"[OK] {result.message} (id={result.record['id']})")
            return 0

        _print_notices(page.notices)
        if not page.projects:
            print("No projects match your filters." if page.has_filters else "No projects yet.")
        for p in page.projects:
            print(f"{p.id}  {p.name:<30} {status_label(p.status):<10} {p.priority or '-':<7} "
                  f"{p.progress or 0:>3}%  {format_budget(p.budget)}")
        return 1 if page.notices else 0
    finally:
        runtime.shutdown()


def _validate_project(args: argparse.Namespace) -> int:
    from projectai.services.validation import sanitize_project, validate_project

    config = _load(args)
    data = _project_input(args)
    errors = validate_project(data)
    if config.validation.negative_budget == "clamp":
        errors = [e for e in errors if not (e.field == "budget" and e.code == "negative")]
    if errors:
        for error in errors:
            print(f"[ERROR] {error.field}: {error.message}")
        return 1
    print("[OK] Project input is valid")
    print(json.dumps(sanitize_project(data, config.validation.default_color), indent=2))
    return 0


def cmd_tasks(args: argparse.Namespace) -> int:
    from projectai.services.formatting import status_label

    runtime = _start(args)
    try:
        ctx = _session(args, runtime)
        if ctx is None:
            return 1
        with runtime.views_for(ctx) as views:
            page = views.tasks.load(args.search, args.status, args.priority)
        _print_notices(page.notices)
        s = page.summary
        print(f"{s.total} tasks: {s.completed} completed, {s.in_progress} in progress, {s.overdue} overdue")
        for t in page.tasks:
            print(f"{t.id}  {t.name:<30} {status_label(t.status):<12} {t.start_date} → {t.end_date}  {t.progress}%")
        return 1 if page.notices else 0
    finally:
        runtime.shutdown()


def cmd_team(args: argparse.Namespace) -> int:
    if args.action not in ("list", "set-role"):
        print("[ERROR] Usage: projectai team list|set-role")
        return 1

    runtime = _start(args)
    try:
        ctx = _session(args, runtime)
        if ctx is None:
            return 1
        with runtime.views_for(ctx) as views:
            if args.action == "set-role":
                result = views.team.update_member_role(args.member_id, args.role)
            else:
                page = views.team.load(args.search, args.role)

        if args.action == "set-role":
            print(f"[{'OK' if result.success else 'ERROR'}] {result.message}")
            return 0 if result.success else 1

        _print_notices(page.notices)
        c = page.counts
        print(f"{c.total} members: {c.admins} admins, {c.managers} managers, {c.active} active")
        for m in page.members:
            print(f"{m.id}  {m.display_name:<25} {m.email:<30} {m.role or '-':<8} "
                  f"{m.department or '-':<15} {m.workload}%")
        return 1 if page.notices else 0
    finally:
        runtime.shutdown()


def cmd_logs(args: argparse.Namespace) -> int:
    if args.action != "cleanup":
        print("[ERROR] Usage: projectai logs cleanup")
        return 1
    from projectai.engine.logging import LogRetentionManager

    config = _load(args)
    manager = LogRetentionManager(
        log_dir=config.logging.directory,
        retention_days={
            "execution": config.logging.retention.execution_days,
            "performance": config.logging.retention.performance_days,
            "security": config.logging.retention.security_days,
        },
        compress_after_days=config.logging.compress_after_days,
    )
    result = manager.cleanup()
    print(f"[OK] Deleted {result['deleted']} file(s), compressed {result['compressed']} file(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
