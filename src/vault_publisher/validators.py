"""
Input validation functions for vault-publisher.

Provides validation for remote repository paths and uploaded content so
bad input is rejected before any request is made.
"""

# GitHub's contents API rejects blobs above 100 MB
MAX_CONTENT_BYTES = 100 * 1024 * 1024


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Remote path")
        reason: Description of validation failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def validate_remote_path(path: str) -> tuple[bool, str]:
    """
    Validate a repository-relative path.

    Args:
        path: The path to validate (e.g. ``notes/Idea.md``)

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - Cannot be empty or whitespace-only
        - Cannot start with '/'
        - Cannot contain '..' segments (path traversal protection)
        - Cannot have empty path segments (e.g., 'notes//Idea.md')
    """
    if not path or not path.strip():
        return (
            False,
            format_validation_error("Remote path", "cannot be empty"),
        )

    if path.startswith("/"):
        return (
            False,
            format_validation_error(
                "Remote path", "must be relative to the repository root"
            ),
        )

    segments = path.split("/")
    if ".." in segments:
        return (
            False,
            format_validation_error("Remote path", "cannot contain '..'"),
        )

    if "" in segments:
        return (
            False,
            format_validation_error(
                "Remote path", "cannot have empty path segments"
            ),
        )

    return (True, "")


def validate_content(
    content: str, max_size: int = MAX_CONTENT_BYTES
) -> tuple[bool, str]:
    """
    Validate base64-encoded content before upload.

    Args:
        content: The base64 payload to validate
        max_size: Maximum size in bytes

    Returns:
        Tuple of (is_valid, error_message).

    Validation rules:
        - Cannot exceed max_size bytes
    """
    if len(content) > max_size:
        return (
            False,
            format_validation_error(
                "Content", f"exceeds maximum size of {max_size} bytes"
            ),
        )

    return (True, "")
