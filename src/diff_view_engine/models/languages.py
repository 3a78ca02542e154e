"""
File extension to language tag mapping.
"""

from pathlib import PurePosixPath

PLAINTEXT = "plaintext"

EXTENSION_LANGUAGES: dict[str, str] = {
    "ts": "typescript",
    "tsx": "tsx",
    "js": "javascript",
    "jsx": "jsx",
    "py": "python",
    "go": "go",
    "rs": "rust",
    "md": "markdown",
    "json": "json",
    "css": "css",
    "html": "html",
}


def language_for_path(path: str) -> str:
    """
    Infer a language tag from a file path's extension.

    Args:
        path: File path (any prefix convention).

    Returns:
        The language tag, or ``plaintext`` for unknown extensions.
    """
    suffix = PurePosixPath(path).suffix.lower().lstrip(".")
    return EXTENSION_LANGUAGES.get(suffix, PLAINTEXT)
