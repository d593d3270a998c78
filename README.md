# scbkit

A library for setting up and maintaining the Strategic Claude Basic framework
in a project directory. It works on the `.strategic-claude-basic` tree, the
hooks in `.claude/settings.json`, the `.codex/config.toml` file, the
project's `.mcp.json` and `.gitignore` entries.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Modules

- `scbkit.errors` defines `ErrorCode`, `AppError` (a code, a message and an
  optional cause) and `FileSystemError` (an `AppError` tied to a path).
  `is_error_code(err, code)` checks an error and the chain of errors it was
  raised from.
- `scbkit.layout` holds the directory and file names the framework uses. It
  provides `framework_directories()`, `core_directories()`,
  `user_preserved_directories()` and `required_symlinks()`. The last one maps
  each symlink path inside `.claude` to its relative target.
- `scbkit.fsops`: `FileSystem` creates directories, copies files and
  directory trees (symlinks are recreated, not followed) and keeps their
  modes. It also:
  - backs up a directory to a path that must not exist yet
    (`backup_directory`, `backup_path`);
  - replaces only the framework directories (`copy_framework_files`) and
    creates missing user directories without touching existing ones
    (`preserve_user_content`);
  - removes the framework directory, the known `.claude` symlinks or a named
    backup, after checking the path;
  - answers path questions (`is_sub_path`, `relative_path`,
    `check_write_permission`).
- `scbkit.gitignore`: `apply_gitignore_template` writes a template to a
  `.gitignore` under a `# Strategic Claude Basic entries` header. If the file
  already exists, it is first copied to `<file>.backup`. The existing lines
  are then merged with the template lines, with blanks, duplicates and old
  headers dropped (`merge_gitignore_lines`). A missing template is skipped,
  and a warning is logged through `logging`.
- `scbkit.script` copies an install script into a directory with mode 0755,
  runs it with `bash` from that directory, and removes it. A missing script
  is ignored in each case.
- `scbkit.codexconfig` manages `.codex/config.toml`:
  - `process_codex_config` copies it from the framework template and keeps a
    timestamped backup of any existing file;
  - `remove_codex_config` deletes the file and its backups;
  - `validate_codex_config` raises unless the file is a readable regular file.
- `scbkit.git`: `GitClient` clones a repository into a new temporary
  directory with `git`, trying up to three times, and checks out a given
  commit. It can read the checked-out commit and origin URL (`repo_info`) and
  check that a commit exists (`is_valid_commit`). `cleanup_temp_dir` only
  removes paths that look like its own temporary directories.
- `scbkit.mcp` handles MCP servers:
  - `scan_available_mcps` reads the `*.mcp.json` templates under
    `templates/mcps`;
  - `analyze_installation` builds an `MCPInstallationPlan`;
  - `install_mcp_servers` backs up any existing `.mcp.json` and writes it
    again with the selected servers merged in. With no existing file it
    starts from `template.mcp.json`.
- `scbkit.settings` handles the Claude settings file:
  - `process_settings` merges the framework's hook template into
    `.claude/settings.json`. The file is backed up first, the user's hooks and
    permissions are kept, and framework hooks are pointed at
    `.claude/hooks/strategic/`;
  - `clean_settings` takes the framework's hooks out again and deletes the
    file if nothing is left in it.

When an operation fails, the package raises `AppError` or `FileSystemError`
with an `ErrorCode`. `FileSystem.set_file_permissions` and
`set_directory_permissions` are the exceptions: they raise the plain `OSError`.

## Example

```python
from scbkit.fsops import FileSystem
from scbkit.settings import process_settings
from scbkit.codexconfig import process_codex_config
from scbkit.errors import AppError, ErrorCode, is_error_code

fs = FileSystem()
fs.ensure_directory_structure("my-project")
process_settings("my-project")
process_codex_config("my-project")

try:
    fs.remove_backup("my-project", "not-a-backup")
except AppError as err:
    assert is_error_code(err, ErrorCode.VALIDATION_FAILED)
```

## What it does not do

- scbkit is a library only. It installs no command-line program.
- No single function runs a whole installation from start to finish. The
  caller combines the steps: clone with `GitClient`, copy with `FileSystem`,
  then call `process_settings`, `process_codex_config`,
  `apply_gitignore_template` and the script helpers.
- It does not create the symlinks inside `.claude`. `FileSystem.remove_symlinks`
  only removes them.
- It does not report on whether an installation is complete or healthy.