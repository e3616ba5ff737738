"""auo -- switch between Claude Code API profiles and launch ``claude`` with them.

This package keeps a small set of named credential profiles (base URL, auth
token, model) in a single JSON file and injects the active one into the
environment of the ``claude`` executable when it is spawned.

Typical workflow::

    auo --add                 # create a profile interactively
    auo --next                # make the next profile current
    auo "write some code"     # run claude with the current profile

Modules:
    app: Typer command-line surface and console-script entry point.
    models: Pydantic models for both on-disk schema versions.
    migration: Version detection, V1 to V2 migration and validation.
    store: The configuration store that owns the JSON file.
    environment: Projection of a profile into an environment overlay.
    launcher: Detection, installation and execution of ``claude``.
    config: Configuration directory resolution and atomic writes.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stderr diagnostics and stdout data formatting with Rich.
"""

__version__ = "1.1.0"
