"""
Users admin CLI - Command-line interface for the users resource.

This layer provides the user-facing CLI commands, using the SDK layer
for all operations. It handles:
- Argument parsing
- TTY detection for human vs machine output
- Pretty formatting for human output
- JSON output for piping/automation
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

import httpx
from dotenv import load_dotenv

from users_admin.core.client import ClientError, ValidationError
from users_admin.core.types import (
    FileEntity,
    Role,
    SortItem,
    SortOrder,
    User,
    UserFilters,
    UserPatchRequest,
    UserPostRequest,
    UserRequest,
    UsersDeleteRequest,
    UsersRequest,
)
from users_admin.sdk import UsersAdminClient

# =============================================================================
# Output Helpers
# =============================================================================


def is_tty() -> bool:
    """Check if stdout is a TTY (human) or pipe (machine)."""
    return sys.stdout.isatty()


def json_output(data: Any, pretty: bool = False) -> None:
    """Print JSON output."""
    indent = 2 if pretty or is_tty() else None
    print(json.dumps(data, indent=indent, default=str))


def error_output(error: ClientError) -> None:
    """Print error and exit."""
    json_output(error.to_dict())
    sys.exit(1)


def table_output(
    headers: list[str],
    rows: list[list[str]],
    widths: list[int],
) -> None:
    """Print a formatted table for human output."""
    header_line = "  ".join(h.ljust(w) for h, w in zip(headers, widths))
    print(header_line)
    print("-" * len(header_line))

    for row in rows:
        print("  ".join(str(v)[:w].ljust(w) for v, w in zip(row, widths)))


def user_output(user: User) -> None:
    """Print a single user."""
    if is_tty():
        print(f"ID: {user.id}")
        print(f"Email: {user.email or ''}")
        print(f"Name: {user.full_name}")
        if user.role:
            print(f"Role: {user.role.name or user.role.id}")
        if user.photo:
            print(f"Photo: {user.photo.path or user.photo.id}")
    else:
        json_output(user.to_dict())


# =============================================================================
# Argument Helpers
# =============================================================================


def parse_sort(value: str | None) -> list[SortItem] | None:
    """Parse ``field[:asc|desc]`` into a sort list."""
    if not value:
        return None
    field_name, _, order = value.partition(":")
    if not field_name:
        raise ValidationError(f"Invalid sort '{value}': expected FIELD[:asc|desc]")
    try:
        sort_order = SortOrder(order.lower()) if order else SortOrder.ASC
    except ValueError:
        raise ValidationError(f"Invalid sort order '{order}': expected asc or desc") from None
    return [SortItem(order_by=field_name, order=sort_order)]


def parse_id(value: str) -> str | int:
    """Numeric IDs are sent as integers, anything else as a string."""
    return int(value) if value.isdigit() else value


def _role(args: argparse.Namespace) -> Role | None:
    return Role(id=parse_id(args.role_id)) if args.role_id is not None else None


def _photo(args: argparse.Namespace) -> FileEntity | None:
    return FileEntity(id=args.photo_id) if args.photo_id is not None else None


# =============================================================================
# CLI Commands
# =============================================================================


async def cmd_users_list(client: UsersAdminClient, args: argparse.Namespace) -> None:
    """List users."""
    filters = UserFilters(email=args.email) if args.email else None
    sort = parse_sort(args.sort)

    if args.all and args.page is not None:
        raise ValidationError("--all always starts at page 1; drop --page or --all.")

    if args.all:
        users = await client.users.list_all(limit=args.limit, filters=filters, sort=sort)
        has_next_page = False
    else:
        page_number = args.page or 1
        page = await client.users.list(UsersRequest(page=page_number, limit=args.limit, filters=filters, sort=sort))
        users, has_next_page = page.data, page.has_next_page

    if is_tty():
        if not users:
            print("No users found.")
            return

        table_output(
            ["ID", "Email", "Name", "Role"],
            [
                [
                    str(u.id),
                    u.email or "",
                    u.full_name,
                    (u.role.name or str(u.role.id)) if u.role else "",
                ]
                for u in users
            ],
            [10, 36, 30, 12],
        )

        if has_next_page:
            print(f"\nMore users available. Use --page {page_number + 1} to see the next page.")
    else:
        json_output({"data": [u.to_dict() for u in users], "hasNextPage": has_next_page})


async def cmd_users_get(client: UsersAdminClient, args: argparse.Namespace) -> None:
    """Get a user by ID."""
    user = await client.users.get(UserRequest(id=args.user_id))
    user_output(user)


async def cmd_users_create(client: UsersAdminClient, args: argparse.Namespace) -> None:
    """Create a user."""
    user = await client.users.create(
        UserPostRequest(
            email=args.email,
            password=args.password,
            first_name=args.first_name,
            last_name=args.last_name,
            photo=_photo(args),
            role=_role(args),
        )
    )
    user_output(user)


async def cmd_users_update(client: UsersAdminClient, args: argparse.Namespace) -> None:
    """Update fields of a user."""
    request = UserPatchRequest(
        id=args.user_id,
        email=args.email,
        password=args.password,
        first_name=args.first_name,
        last_name=args.last_name,
        photo=_photo(args),
        role=_role(args),
    )
    if not request.to_dict():
        raise ValidationError("Nothing to update. Pass at least one field option.")

    user = await client.users.update(request)
    user_output(user)


async def cmd_users_delete(client: UsersAdminClient, args: argparse.Namespace) -> None:
    """Delete a user."""
    await client.users.delete(UsersDeleteRequest(id=args.user_id))
    json_output({"success": True, "message": f"User {args.user_id} deleted"})


# =============================================================================
# Main CLI
# =============================================================================


def _add_user_fields(parser: argparse.ArgumentParser, required: bool) -> None:
    parser.add_argument("--email", "-e", required=required, help="Email address")
    parser.add_argument("--password", "-p", required=required, help="Password")
    parser.add_argument("--first-name", required=required, help="First name")
    parser.add_argument("--last-name", required=required, help="Last name")
    parser.add_argument("--role-id", help="Role ID")
    parser.add_argument("--photo-id", help="Uploaded photo file ID")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="users-admin",
        description="Users admin CLI - Manage users through the admin API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Output Modes:
  TTY (human):  Pretty tables
  Pipe:         JSON

Examples:
  users-admin users list --limit 20 --sort email:desc
  users-admin users list --all | jq '.data[].email'
  users-admin users get 42
  users-admin users update 42 --first-name Ada
""",
    )
    parser.add_argument("--base-url", help="API root URL (overrides USERS_ADMIN_API_URL)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log HTTP requests to stderr")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # ========== Users ==========
    users = subparsers.add_parser("users", help="List and manage users")
    users.set_defaults(func=None, help_parser=users)
    users_sub = users.add_subparsers(dest="subcommand")

    u_list = users_sub.add_parser("list", help="List users")
    u_list.add_argument("--page", type=int, help="Page number (starts at 1, default 1)")
    u_list.add_argument("--limit", "-l", type=int, default=10, help="Users per page")
    u_list.add_argument("--email", "-e", help="Filter by email")
    u_list.add_argument("--sort", "-s", help="Sort as FIELD[:asc|desc], e.g. email:desc")
    u_list.add_argument("--all", action="store_true", help="Fetch every page from page 1 (not with --page)")
    u_list.set_defaults(func=cmd_users_list)

    u_get = users_sub.add_parser("get", help="Get user details")
    u_get.add_argument("user_id", help="User ID")
    u_get.set_defaults(func=cmd_users_get)

    u_create = users_sub.add_parser("create", help="Create a user")
    _add_user_fields(u_create, required=True)
    u_create.set_defaults(func=cmd_users_create)

    u_update = users_sub.add_parser("update", help="Update a user")
    u_update.add_argument("user_id", help="User ID")
    _add_user_fields(u_update, required=False)
    u_update.set_defaults(func=cmd_users_update)

    u_delete = users_sub.add_parser("delete", help="Delete a user")
    u_delete.add_argument("user_id", help="User ID")
    u_delete.set_defaults(func=cmd_users_delete)

    return parser


async def run(args: argparse.Namespace) -> None:
    """Build a client and run the selected command."""
    async with UsersAdminClient(base_url=args.base_url) as client:
        await args.func(client, args)


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    load_dotenv()
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if not args.command:
        parser.print_help()
        sys.exit(0)
    if args.func is None:
        args.help_parser.print_help()
        sys.exit(0)

    try:
        asyncio.run(run(args))
    except ClientError as e:
        error_output(e)
    except httpx.TransportError as e:
        error_output(ClientError(f"Connection error: {e}"))


if __name__ == "__main__":
    main()
