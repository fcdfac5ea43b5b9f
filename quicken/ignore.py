"""Workspace ignore rules (.quickenignore + .gitignore).

Provides gitignore-style pattern matching for excluding files from the
candidate index. Uses pathspec library for gitignore-compatible matching.

Precedence (highest to lowest):
1. .quickenignore patterns (explicit include/exclude)
2. Default patterns (if no .quickenignore exists)
3. Workspace root .gitignore patterns
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathspec import PathSpec

IGNORE_FILE = ".quickenignore"

# Default .quickenignore template
DEFAULT_TEMPLATE = """\
# quicken ignore patterns (gitignore syntax)
# Files matched here are never offered as import candidates

# ===================
# Dependencies
# ===================
node_modules/
bower_components/
jspm_packages/
.yarn/
.pnpm-store/

# ===================
# Build outputs
# ===================
dist/
build/
out/
coverage/
.next/
.nuxt/
.cache/

# ===================
# IDE/editors
# ===================
.idea/
.vscode/
*.swp
*.swo
*~

# ===================
# Tooling
# ===================
.quicken/

# ===================
# Version control
# ===================
.git/
.hg/
.svn/

# ===================
# OS files
# ===================
.DS_Store
Thumbs.db
"""


def load_ignore_patterns(workspace_root: str | Path) -> "PathSpec":
    """Load ignore patterns for a workspace.

    Args:
        workspace_root: Root directory of the workspace

    Returns:
        PathSpec matcher for checking if files should be ignored
    """
    import pathspec

    root_path = Path(workspace_root)
    ignore_path = root_path / IGNORE_FILE
    gitignore_path = root_path / ".gitignore"

    patterns: list[str] = []

    # .gitignore first so that later .quickenignore negations win
    if gitignore_path.exists():
        patterns.extend(gitignore_path.read_text(encoding="utf-8", errors="replace").splitlines())

    if ignore_path.exists():
        patterns.extend(ignore_path.read_text(encoding="utf-8", errors="replace").splitlines())
    else:
        patterns.extend(DEFAULT_TEMPLATE.splitlines())

    return pathspec.PathSpec.from_lines("gitwildmatch", patterns)


def should_ignore(
    file_path: str | Path,
    workspace_root: str | Path,
    spec: "PathSpec | None" = None,
) -> bool:
    """Check if a file should be ignored.

    Args:
        file_path: Path to check (absolute or relative to the workspace)
        workspace_root: Root directory of the workspace
        spec: Optional pre-loaded PathSpec (for efficiency in loops)

    Returns:
        True if file should be ignored, False otherwise
    """
    if spec is None:
        spec = load_ignore_patterns(workspace_root)

    # Directories are passed with a trailing separator so "dir/" patterns match
    is_directory = str(file_path).endswith(("/", "\\"))

    root_path = Path(workspace_root)
    file_path = Path(file_path)

    # Make path relative to the workspace for matching
    try:
        rel_path = file_path.relative_to(root_path)
    except ValueError:
        rel_path = file_path

    rel_path_str = rel_path.as_posix()
    if is_directory:
        rel_path_str += "/"

    return spec.match_file(rel_path_str)
