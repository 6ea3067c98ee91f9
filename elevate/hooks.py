"""Lifecycle hooks for Elevate.

Hooks run shell commands when the tracker reaches key points, so a
presentation layer or script can react (show a reward, send a note).
Configured via hooks.yaml in the workspace root:

    post_end_day:
      - "notify-send 'Day closed'"
    on_streak_reward:
      - command: ./celebrate.sh
        timeout: 5

Hook points:
- post_rollover, post_end_day
- on_task_complete, on_streak_reward, on_level_up

Hooks never raise: a bad entry, a failing command or a timeout is logged
and reported in the returned result dicts.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from elevate.fileio import read_yaml
from elevate.workspace import hooks_config_path, workspace_root

logger = logging.getLogger(__name__)


VALID_HOOK_POINTS = {
    "post_rollover",
    "post_end_day",
    "on_task_complete",
    "on_streak_reward",
    "on_level_up",
}

DEFAULT_TIMEOUT = 30.0
OUTPUT_CAP = 4096


def _timeout(value: Any) -> float:
    if isinstance(value, bool):
        return DEFAULT_TIMEOUT
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return DEFAULT_TIMEOUT
    return seconds if seconds > 0 else DEFAULT_TIMEOUT


@dataclass(frozen=True)
class HookCommand:
    command: str
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_config(cls, entry: Any) -> HookCommand | None:
        """A plain command string or ``{command, timeout}``; None when unusable."""
        if isinstance(entry, str):
            command, timeout = entry, DEFAULT_TIMEOUT
        elif isinstance(entry, dict):
            command, timeout = entry.get("command"), _timeout(entry.get("timeout", DEFAULT_TIMEOUT))
        else:
            return None
        if not isinstance(command, str) or not command.strip():
            return None
        return cls(command, timeout)


def load_hooks_config(root: Path | None = None) -> dict[str, Any]:
    """Load hooks configuration from hooks.yaml; unreadable config means no hooks."""
    path = hooks_config_path(root if root is not None else workspace_root())
    if not path.exists():
        return {}
    try:
        config = read_yaml(path)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable hooks.yaml: %s", e)
        return {}
    return config if isinstance(config, dict) else {}


def hooks_for(hook_point: str, root: Path) -> list[HookCommand]:
    entries = load_hooks_config(root).get(hook_point)
    if not isinstance(entries, list):
        return []
    hooks = []
    for entry in entries:
        hook = HookCommand.from_config(entry)
        if hook is None:
            logger.warning("Skipping malformed %s hook entry: %r", hook_point, entry)
            continue
        hooks.append(hook)
    return hooks


def _run_command(hook: HookCommand, hook_point: str, payload: str, root: Path) -> dict[str, Any]:
    result: dict[str, Any] = {"command": hook.command, "hook_point": hook_point}
    try:
        proc = subprocess.run(
            hook.command,
            shell=True,
            input=payload,
            capture_output=True,
            text=True,
            timeout=hook.timeout,
            cwd=str(root),
            env=dict(os.environ, ELEVATE_HOOK=hook_point),
        )
    except subprocess.TimeoutExpired:
        logger.warning("Hook %r for %s timed out after %ss", hook.command, hook_point, hook.timeout)
        return {**result, "exit_code": -1, "error": f"Hook timed out after {hook.timeout:g}s"}
    except Exception as e:
        logger.warning("Hook %r for %s failed: %s", hook.command, hook_point, e)
        return {**result, "exit_code": -1, "error": str(e)}

    if proc.returncode != 0:
        logger.warning("Hook %r for %s exited %d", hook.command, hook_point, proc.returncode)
    result.update(
        exit_code=proc.returncode,
        stdout=proc.stdout[:OUTPUT_CAP],
        stderr=proc.stderr[:OUTPUT_CAP],
    )
    return result


def run_hooks(
    hook_point: str,
    context: dict[str, Any],
    root: Path | None = None,
) -> list[dict[str, Any]]:
    """Run every hook registered for *hook_point*, one result dict per command.

    Context is passed as JSON via stdin; the hook point name is also set
    in ELEVATE_HOOK.
    """
    if hook_point not in VALID_HOOK_POINTS:
        return []
    if root is None:
        root = workspace_root()
    payload = json.dumps(context, ensure_ascii=False, default=str)
    return [_run_command(hook, hook_point, payload, root) for hook in hooks_for(hook_point, root)]
