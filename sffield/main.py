# sffield/main.py
import argparse
import json
import logging
import sys

from sffield.config import settings
from sffield.errors import FieldCreationError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sffield",
        description="Create Salesforce custom fields from a CSV of field definitions.",
    )
    parser.add_argument("--mcp-stdio", action="store_true", help="Run as an MCP server over stdio")
    parser.add_argument("--list-tools", action="store_true", help="List the MCP tools and exit")
    sub = parser.add_subparsers(dest="command")

    create = sub.add_parser("create-field", help="Create custom fields on an object from a CSV file")
    create.add_argument("-t", "--target-object", required=True, help="API name of the object, e.g. Account")
    create.add_argument("-f", "--source-file", required=True, help="CSV file with the field definitions")
    create.add_argument("-o", "--target-org", default="", help="Username of the target org")
    create.add_argument("--skip-existing", action="store_true", help="Skip fields that already exist in the org")
    create.add_argument("--json", action="store_true", help="Print the result as JSON")
    return parser


def run_create_field(args) -> int:
    from sffield.services.field_creator import create_fields
    from sffield.services.salesforce import get_salesforce_connection

    try:
        sf = get_salesforce_connection(args.target_org or None)
        result = create_fields(
            args.target_object, args.source_file, sf, skip_existing=args.skip_existing
        )
    except FieldCreationError as e:
        logging.error("%s", e.message)
        if args.json:
            print(json.dumps({"status": 1, "name": type(e).__name__, "message": e.message}, indent=2))
        return 1

    if args.json:
        print(json.dumps({"status": 0, "result": {
            "path": result.path, "deployedFields": result.deployed_fields,
        }}, indent=2))
    return 0


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(stream=sys.stderr, level=settings.log_level.upper())

    if args.list_tools:
        from sffield.mcp import tools as _tools  # noqa: F401
        from sffield.mcp.server import format_tool_listing

        print(format_tool_listing())
        return 0

    if args.mcp_stdio:
        # Importing the tools package registers every @register_tool function.
        from sffield.mcp import tools as _tools  # noqa: F401
        from sffield.mcp.server import mcp_server, tool_registry

        logging.info("MCP starting (stdio)")
        logging.info("Tools: %s", ", ".join(tool_registry.keys()) or "(none)")
        mcp_server.run(transport="stdio")
        return 0

    if args.command == "create-field":
        return run_create_field(args)

    parser.print_help()
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
