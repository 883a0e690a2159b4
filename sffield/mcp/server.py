"""MCP Server definition and tool registration"""
import inspect
import logging
import re

import pydantic
from mcp.server.fastmcp import FastMCP

logger = logging.getLogger(__name__)

# Tool names containing any of these change org state.
WRITE_KEYWORDS = ("create", "deploy", "upsert", "delete")

_SECTION = re.compile(r"^(Args|Arguments|Parameters|Returns|Raises):\s*$", re.IGNORECASE)
_ARG_LINE = re.compile(r"^(\w+)\s*(?:\([^)]*\))?:\s*(.*)$")


def describe_tool(func):
    """Return ``(summary, {arg: description})`` from a Google-style docstring.

    Argument descriptions may wrap onto indented continuation lines.
    """
    doc = inspect.getdoc(func)
    if not doc:
        return "No description available.", {}

    lines = doc.splitlines()
    summary = lines[0].strip()
    args = {}
    section = None
    current = None

    for raw in lines[1:]:
        header = _SECTION.match(raw.strip())
        if header:
            section = header.group(1).lower()
            current = None
            continue
        if section not in ("args", "arguments", "parameters") or not raw.strip():
            continue
        match = _ARG_LINE.match(raw.strip())
        if match and not raw.startswith("        "):
            current = match.group(1)
            args[current] = match.group(2).strip()
        elif current:
            args[current] = f"{args[current]} {raw.strip()}".strip()

    return summary, args


def argument_schema(func, arg_descriptions):
    """Pydantic model describing the keyword arguments of a tool."""
    fields = {}
    for name, param in inspect.signature(func).parameters.items():
        annotation = str if param.annotation is inspect.Parameter.empty else param.annotation
        default = ... if param.default is inspect.Parameter.empty else param.default
        fields[name] = (annotation, pydantic.Field(default, description=arg_descriptions.get(name, "")))

    return pydantic.create_model(f"{func.__name__}Schema", **fields)


mcp_server = FastMCP(name="salesforce-field-loader")

tool_registry = {}


def is_write_tool(name: str) -> bool:
    n = name.lower()
    return any(k in n for k in WRITE_KEYWORDS)


def register_tool(func):
    """Decorator: record the tool in ``tool_registry`` and expose it on the MCP server."""
    summary, arg_descriptions = describe_tool(func)
    tool_registry[func.__name__] = {
        "name": func.__name__,
        "description": summary,
        "schema": argument_schema(func, arg_descriptions),
        "write_op": is_write_tool(func.__name__),
        "function": func,
    }
    mcp_server.tool()(func)
    logger.info("Registered tool: '%s'", func.__name__)
    return func


def format_tool_listing() -> str:
    """One block per registered tool: name, READ/WRITE, summary and arguments."""
    blocks = []
    for name in sorted(tool_registry, key=str.lower):
        entry = tool_registry[name]
        lines = [f"- {name}  [{'WRITE' if entry['write_op'] else 'READ'}]"]
        if entry["description"]:
            lines.append(f"    {entry['description']}")
        for arg, info in entry["schema"].model_fields.items():
            lines.append(f"    --{arg}: {info.description or ''}".rstrip())
        blocks.append("\n".join(lines))
    return "\n".join(blocks)


__all__ = ['mcp_server', 'register_tool', 'tool_registry', 'is_write_tool', 'format_tool_listing']
