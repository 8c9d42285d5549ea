"""Concrete implementations for tool handlers."""

import logging
import os
import signal
import subprocess
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_SHELL_TIMEOUT = 120.0


class ToolNotFound(LookupError):
    """Raised by ``resolve`` for a name outside the registry."""


class ToolKind(str, Enum):
    """The closed set of builtin tools."""

    LIST_FILES = "list_files"
    READ_FILE = "read_file"
    WRITE_FILE = "write_file"
    RUN_SHELL_COMMAND = "run_shell_command"

    @classmethod
    def from_name(cls, name: str) -> Optional["ToolKind"]:
        try:
            return cls(name)
        except ValueError:
            return None


TOOL_SCHEMAS: Dict[ToolKind, Dict[str, Any]] = {
    ToolKind.LIST_FILES: {
        "name": "list_files",
        "description": "List files in a directory. Use this to discover the project structure.",
        "parameters": {
            "type": "object",
            "properties": {
                "dir_path": {
                    "type": "string",
                    "description": "The path to the directory to list. Defaults to current directory if not provided.",
                },
            },
            "required": [],
        },
    },
    ToolKind.READ_FILE: {
        "name": "read_file",
        "description": "Read the contents of a file.",
        "parameters": {
            "type": "object",
            "properties": {
                "file_path": {
                    "type": "string",
                    "description": "The path to the file to read.",
                },
            },
            "required": ["file_path"],
        },
    },
    ToolKind.WRITE_FILE: {
        "name": "write_file",
        "description": "Write content to a file. This overwrites the file if it exists.",
        "parameters": {
            "type": "object",
            "properties": {
                "file_path": {
                    "type": "string",
                    "description": "The path to the file to write.",
                },
                "content": {
                    "type": "string",
                    "description": "The content to write to the file.",
                },
            },
            "required": ["file_path", "content"],
        },
    },
    ToolKind.RUN_SHELL_COMMAND: {
        "name": "run_shell_command",
        "description": "Execute a shell command. Use this for git operations, installation, or running scripts. Output is returned.",
        "parameters": {
            "type": "object",
            "properties": {
                "command": {
                    "type": "string",
                    "description": "The shell command to execute.",
                },
            },
            "required": ["command"],
        },
    },
}


# --- Builtin tool callables ---
# Each returns a string on success and on expected failure; failures start
# with "Error".


def list_files(dir_path: Optional[str] = None) -> str:
    try:
        entries = sorted(Path(dir_path or ".").iterdir(), key=lambda p: p.name)
    except OSError as e:
        return f"Error listing files: {e}"
    lines = [f"{'[DIR]' if p.is_dir() else '[FILE]'} {p.name}" for p in entries]
    return "\n".join(lines) or "(Empty directory)"


def read_file(file_path: str) -> str:
    try:
        return Path(file_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return f"Error reading file: {e}"


def write_file(file_path: str, content: str) -> str:
    try:
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        return f"Error writing file: {e}"
    return f"Successfully wrote to {file_path}"


def _format_output(stdout: str, stderr: str) -> str:
    output = ""
    if stdout:
        output += f"STDOUT:\n{stdout}\n"
    if stderr:
        output += f"STDERR:\n{stderr}\n"
    return output


def _kill_process_tree(process: subprocess.Popen) -> None:
    if os.name == "posix":
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
    else:
        process.kill()


def run_shell_command(command: str, timeout: float = DEFAULT_SHELL_TIMEOUT) -> str:
    """Run ``command`` through the system shell, bounded by ``timeout`` seconds.

    The command runs in its own process group so that on expiry the shell and
    everything it spawned are killed together.
    """
    try:
        process = subprocess.Popen(
            command,
            shell=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            encoding="utf-8",
            errors="replace",
            start_new_session=os.name == "posix",
        )
    except OSError as e:
        return f"Error executing command: {e}"

    try:
        stdout, stderr = process.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        _kill_process_tree(process)
        process.communicate()
        logger.warning("Shell command timed out after %ss: %s", timeout, command)
        return f"Error executing command: timed out after {timeout:g}s"

    if process.returncode != 0:
        return (
            f"Error executing command: exit code {process.returncode}\n"
            + _format_output(stdout, stderr)
        )
    return _format_output(stdout, stderr) or "(Command completed with no output)"


# --- Tool handlers ---
class Tool(ABC):
    """Interface for the catalog of tools offered to the model."""

    @abstractmethod
    def describe(self) -> List[Dict[str, Any]]:
        """Returns name, description and parameter schema of every tool."""
        return []

    @abstractmethod
    def resolve(self, name: str) -> Callable[..., str]:
        """Returns the callable registered under ``name``.

        Raises
        ------
        ToolNotFound
            If no tool with that name exists.
        """
        pass

    def get_tools(self) -> List[Dict[str, Any]]:
        """Returns the tool specifications in the chat-completions format."""
        return [{"type": "function", "function": spec} for spec in self.describe()]


class NoTool(Tool):
    """Default handler that provides no tools."""

    def describe(self) -> List[Dict[str, Any]]:
        return []

    def resolve(self, name: str) -> Callable[..., str]:
        raise ToolNotFound(name)


class Builtin(Tool):
    """The four filesystem and shell tools of a local coding assistant.

    Parameters
    ----------
    shell_timeout : float, default=120.0
        Seconds a ``run_shell_command`` invocation may run before its process
        group is killed and a timeout error is returned.
    """

    def __init__(self, shell_timeout: float = DEFAULT_SHELL_TIMEOUT):
        self.shell_timeout = shell_timeout

    def describe(self) -> List[Dict[str, Any]]:
        return [TOOL_SCHEMAS[kind] for kind in ToolKind]

    def resolve(self, name: str) -> Callable[..., str]:
        kind = ToolKind.from_name(name)
        if kind is ToolKind.LIST_FILES:
            return list_files
        if kind is ToolKind.READ_FILE:
            return read_file
        if kind is ToolKind.WRITE_FILE:
            return write_file
        if kind is ToolKind.RUN_SHELL_COMMAND:
            return self._run_shell_command
        raise ToolNotFound(name)

    def _run_shell_command(self, command: str) -> str:
        return run_shell_command(command, timeout=self.shell_timeout)
