"""Error response builder for MCP tool handlers.

Structured error responses carry a corrective action so an agent can
recover without human intervention.
"""

import mcp.types as types

# Corrective actions keyed by error type
CORRECTIVE_ACTIONS: dict[str, str] = {
    "validation_error": "Check parameter values and retry.",
    "version_conflict": (
        "The remote file changed during the publish. Run publish_document "
        "again to re-read its version."
    ),
    "remote_error": (
        "Check GITHUB_TOKEN permissions (contents: write), GITHUB_OWNER "
        "and GITHUB_REPO, then retry."
    ),
    "server_error": "Check the server log and retry later.",
    "unknown_tool": "Use list_tools to see available tools.",
}


def build_error_response(
    error_type: str, message: str, corrective_action: str | None = None
) -> types.CallToolResult:
    """Build a structured error response with corrective action.

    Args:
        error_type: Error category (validation_error, version_conflict,
            remote_error, server_error, unknown_tool)
        message: Human-readable error description
        corrective_action: Action the agent can take; defaults to the
            standard action for ``error_type``

    Returns:
        CallToolResult with isError=True
    """
    action = corrective_action or CORRECTIVE_ACTIONS.get(
        error_type, CORRECTIVE_ACTIONS["server_error"]
    )
    error_text = f"Error ({error_type}): {message}\n\nAction: {action}"

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=error_text)],
        isError=True,
    )
