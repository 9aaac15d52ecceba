"""
Portcullis Backend - LLM-Friendly API Docs
==========================================

What:  GET /llms.txt, the OpenAPI document rendered as Markdown.
How:   Walks app.openapi() once and caches the text on app.state; the
       schema never changes while the process runs.

Swagger UI (/docs) and the JSON document (/api-specs) are served by
FastAPI itself; see main.create_app().
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["Docs"])

_HTTP_METHODS = ("get", "post", "put", "patch", "delete")


def _schema_label(schema: Dict[str, Any]) -> str:
    if "$ref" in schema:
        return schema["$ref"].rsplit("/", 1)[-1]
    if schema.get("type") == "array":
        return f"array of {_schema_label(schema.get('items', {}))}"
    if "anyOf" in schema:
        return " | ".join(_schema_label(option) for option in schema["anyOf"])
    return schema.get("type", "object")


def _render_operation(path: str, method: str, op: Dict[str, Any]) -> List[str]:
    lines = [f"### {method.upper()} {path}", ""]
    if op.get("summary"):
        lines += [op["summary"], ""]
    if op.get("description"):
        lines += [op["description"], ""]

    params = op.get("parameters", [])
    if params:
        lines.append("Parameters:")
        for param in params:
            required = "required" if param.get("required") else "optional"
            label = _schema_label(param.get("schema", {}))
            lines.append(f"- `{param['name']}` ({param['in']}, {label}, {required})")
        lines.append("")

    body = op.get("requestBody", {}).get("content", {}).get("application/json")
    if body:
        lines += [f"Request body: `{_schema_label(body.get('schema', {}))}`", ""]

    responses = op.get("responses", {})
    if responses:
        lines.append("Responses:")
        for status, response in sorted(responses.items()):
            lines.append(f"- `{status}`: {response.get('description', '')}")
        lines.append("")
    return lines


def _render_schema(name: str, schema: Dict[str, Any]) -> List[str]:
    lines = [f"### {name}", ""]
    required = set(schema.get("required", []))
    for prop, spec in schema.get("properties", {}).items():
        flag = " (required)" if prop in required else ""
        lines.append(f"- `{prop}`: {_schema_label(spec)}{flag}")
    lines.append("")
    return lines


def openapi_to_markdown(spec: Dict[str, Any]) -> str:
    info = spec.get("info", {})
    lines = [f"# {info.get('title', 'API')} {info.get('version', '')}".rstrip(), ""]
    if info.get("description"):
        lines += [info["description"], ""]
    for server in spec.get("servers", []):
        lines += [f"Base URL: {server['url']}", ""]

    lines += ["## Endpoints", ""]
    for path, item in spec.get("paths", {}).items():
        for method in _HTTP_METHODS:
            if method in item:
                lines += _render_operation(path, method, item[method])

    schemas = spec.get("components", {}).get("schemas", {})
    if schemas:
        lines += ["## Schemas", ""]
        for name, schema in schemas.items():
            lines += _render_schema(name, schema)

    return "\n".join(lines).rstrip() + "\n"


@router.get("/llms.txt", response_class=PlainTextResponse, include_in_schema=False)
async def llms_txt(request: Request) -> PlainTextResponse:
    app = request.app
    markdown = getattr(app.state, "llms_markdown", None)
    if markdown is None:
        markdown = openapi_to_markdown(app.openapi())
        app.state.llms_markdown = markdown
    return PlainTextResponse(markdown)
