# panelnode

Building blocks for a daemon that hosts game servers on behalf of a control
panel. The package has no runtime dependencies beyond the standard library.

## What is in it

`panelnode.filesystem`

- `paths.PathResolver` – joins requested paths onto a server's root
  directory, resolves symlinks, and raises a `FilesystemError` with code
  `ErrorCode.PATH_RESOLUTION` for anything that ends up outside the root.
  `parallel_safe_path` resolves several paths at once.
- `fs_errors` – `FilesystemError`, `ErrorCode` and the helpers
  `is_filesystem_error`, `is_error_code`, `is_unknown_archive_format_error`,
  `new_filesystem_error`, `new_bad_path_resolution` and `wrap_error`.
- `gitignore.GitIgnore` – matches paths against gitignore-style lines,
  including `!` negation.
- `fileinfo` – `stat_path` returns a `Stat` with a MIME type guessed from the
  file's first bytes (`detect_mimetype`); `Stat.to_dict()` gives the API form.
- `disk.DiskUsage` – measures a directory tree, caches the result for
  `check_interval` seconds, and checks it against a byte limit
  (`has_space_available`, `has_space_err`, `has_space_for`, `add_disk`).
- `archive.Archive` – writes a gzip compressed tar of a directory, either all
  files, only those listed in `files`, or all but those matched by a
  gitignore-style `ignore` text, optionally rate limited in MiB/s.

`panelnode.backup`

- `backup_base.Backup` – the archive location `<backup_directory>/<uuid>.tar.gz`,
  its size, SHA1 `checksum()` and `details()` (an `ArchiveDetails` whose
  `to_request()` gives the payload reported to the panel).

`panelnode.server`

- `console` – `ConsoleThrottler` counts console lines against
  `ConsoleThrottles` and raises `TooMuchConsoleData` after too many
  activations; `format_daemon_message` and `strip_ansi`.
- `crash.CrashHandler` and `is_crash` – crash timing bookkeeping.
- `power` – `PowerAction` and `PowerLock`, which keeps power actions from
  overlapping while always letting a kill through.
- `mounts` – `Mount`, `custom_mounts` and `default_mounts`.
- `websockets.WebsocketBag` – cancel callbacks for open connections.
- `manager.Manager` – a thread safe collection of servers, with
  `persist_states` / `read_states` to save their states as JSON.
- `server_errors` – `ServerError` and its subclasses.

## Examples

```python
from panelnode.filesystem.paths import PathResolver
from panelnode.filesystem.fs_errors import ErrorCode, is_error_code

resolver = PathResolver("/srv/servers/0001")
resolver.safe_path("config/../server.properties")
# '/srv/servers/0001/server.properties'

try:
    resolver.safe_path("../../etc/passwd")
except Exception as err:
    assert is_error_code(err, ErrorCode.PATH_RESOLUTION)
```

```python
from panelnode.filesystem.archive import Archive
from panelnode.backup.backup_base import Backup

backup = Backup("a1b2c3", "logs/\n*.tmp", "/var/lib/backups")
Archive("/srv/servers/0001", ignore=backup.ignore).create(backup.path())
details = backup.details()
print(details.checksum, details.size)
```

```python
from panelnode.server.console import ConsoleThrottles, ConsoleThrottler, TooMuchConsoleData

throttler = ConsoleThrottler(ConsoleThrottles(
    lines=2000, maximum_trigger_count=5, line_reset_interval=100, decay_interval=10000,
))
try:
    throttler.increment(lambda: print("throttled"))
except TooMuchConsoleData:
    ...  # stop the server
```

```python
from panelnode.server.power import PowerLock

lock = PowerLock()
with lock.hold("restart", wait_seconds=30):
    ...  # stop and start the process
```

## What it does not do

There is no single object that wraps a server's data directory for reading,
writing, copying, renaming or deleting files; callers combine `PathResolver`,
`DiskUsage` and their own file operations. Archives can be created but not
extracted, and backups are not uploaded anywhere: `Backup` only knows where
its archive lives and how to measure it. There is no command line program,
no HTTP or websocket server, and no container runtime integration.

## Tests

```
pip install ".[test]"
pytest
```