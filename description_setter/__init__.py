"""
description_setter package

Sets a project's description from a file in the build workspace once a build
finishes, optionally expanding `${TOKEN}` markers in the file.

Key responsibilities are split across modules:
- `config.py`: build-step parameters (charset, description file, token switch)
- `tokens.py`: `${TOKEN}` expansion against build values (Jinja2)
- `workspace.py`: read-only access to workspace files
- `host.py`: build context and the host services the publisher consumes
- `publisher.py`: the publish algorithm and its skip/failure results
- `lifecycle.py`: teardown/aggregator hooks and a small build runner
- `github_client.py`: GitHub REST calls for the repository description sink
- `cli.py`: CLI entrypoint and orchestration
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
