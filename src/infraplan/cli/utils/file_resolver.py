"""Path resolution for declaration files passed on the command line."""

from pathlib import Path

DECLARATION_SUFFIXES = (".yaml", ".yml", ".json")


def resolve_file_path(file_path: str) -> Path:
    """
    Resolve a declarations path against the current directory.

    A bare name without a suffix is also tried with .yaml, .yml and .json,
    so `infraplan plan stack` finds stack.yaml.

    Args:
        file_path: User-provided file path or name

    Returns:
        Resolved Path object

    Raises:
        FileNotFoundError: If no matching file exists
    """
    path = Path(file_path)
    if not path.is_absolute():
        path = Path.cwd() / path

    candidates = [path]
    if not path.suffix:
        candidates.extend(path.with_suffix(suffix) for suffix in DECLARATION_SUFFIXES)

    for candidate in candidates:
        if candidate.is_file():
            return candidate.resolve()

    if path.exists():
        raise FileNotFoundError(f"Path is not a file: {file_path}. Please provide a declarations file.")
    raise FileNotFoundError(f"File not found: {file_path}. Please check the file path and try again.")
