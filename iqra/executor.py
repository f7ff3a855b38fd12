"""Host system boundary for the Iqra interpreter.

All process execution, file access, environment lookups and host facts
used by built-ins go through a :class:`SystemExecutor`. A runtime receives
its executor at construction, so tests can swap in
:class:`StaticSystemExecutor` and never touch the host.

:class:`DefaultSystemExecutor` spawns programs directly from an argument
vector. A command interpreter (``sh -c`` or ``cmd /C``) is only used when
the ``IQRA_ALLOW_SHELL_FALLBACK`` environment variable is set to ``1``;
that mode lets shell syntax in a command string run, so it is unsafe for
untrusted input and every use is logged.
"""

from __future__ import annotations

import logging
import os
import platform
import shlex
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from .errors import SystemExecutionError, shell_fallback_disabled, system_error

log = logging.getLogger(__name__)

SHELL_FALLBACK_ENV = 'IQRA_ALLOW_SHELL_FALLBACK'
SHELL_FALLBACK_ENABLED = '1'

# characters a shell would interpret when unquoted
SHELL_OPERATORS = '|&;<>`$'


def shell_fallback_requested(environ: Optional[Mapping[str, str]] = None) -> bool:
    environ = os.environ if environ is None else environ
    return environ.get(SHELL_FALLBACK_ENV) == SHELL_FALLBACK_ENABLED


def needs_shell(command: str) -> bool:
    """True when `command` uses shell syntax outside of quotes."""
    quote: Optional[str] = None
    escaped = False
    for ch in command:
        if escaped:
            escaped = False
            continue
        if ch == '\\' and quote != "'":
            escaped = True
            continue
        if quote:
            if ch == quote:
                quote = None
            elif quote == '"' and ch in '`$':
                return True
            continue
        if ch in '\'"':
            quote = ch
            continue
        if ch in SHELL_OPERATORS:
            return True
    return False


class SystemExecutor(ABC):
    """Interface between the interpreter and the host system.

    Subclasses must implement process execution. The file, environment and
    host-information operations default to the real host and may be
    overridden. Every failure is raised as SystemExecutionError.
    """

    @abstractmethod
    def execute(self, command: str) -> str:
        ...

    @abstractmethod
    def execute_with_input(self, command: str, input_text: str) -> str:
        ...

    def read_file(self, path: str) -> str:
        try:
            return Path(path).read_text(encoding='utf-8')
        except (OSError, ValueError) as exc:
            raise SystemExecutionError(system_error(
                f"تعذرت قراءة الملف '{path}': {exc}",
                f"cannot read file '{path}': {exc}",
            ))

    def write_file(self, path: str, content: str) -> None:
        try:
            Path(path).write_text(content, encoding='utf-8')
        except (OSError, ValueError) as exc:
            raise SystemExecutionError(system_error(
                f"تعذرت كتابة الملف '{path}': {exc}",
                f"cannot write file '{path}': {exc}",
            ))

    def list_files(self, path: str) -> List[str]:
        try:
            return sorted(os.listdir(path))
        except (OSError, ValueError) as exc:
            raise SystemExecutionError(system_error(
                f"تعذرت قراءة المجلد '{path}': {exc}",
                f"cannot list directory '{path}': {exc}",
            ))

    def env_var(self, name: str) -> Optional[str]:
        return os.environ.get(name)

    def system_info(self) -> Dict[str, str]:
        return {
            'os': platform.system(),
            'os_version': platform.release(),
            'arch': platform.machine(),
            'hostname': platform.node(),
            'cpu_count': str(os.cpu_count() or 1),
            'python': platform.python_version(),
        }


class DefaultSystemExecutor(SystemExecutor):
    """Spawns programs directly, without a shell unless explicitly allowed."""

    def __init__(self, allow_shell_fallback: Optional[bool] = None):
        if allow_shell_fallback is None:
            allow_shell_fallback = shell_fallback_requested()
        self.allow_shell_fallback = allow_shell_fallback
        if allow_shell_fallback:
            log.warning("shell fallback enabled (%s=%s); commands may run through the system shell",
                        SHELL_FALLBACK_ENV, SHELL_FALLBACK_ENABLED)

    def execute(self, command: str) -> str:
        return self._run(command, None)

    def execute_with_input(self, command: str, input_text: str) -> str:
        return self._run(command, input_text)

    def _run(self, command: str, input_text: Optional[str]) -> str:
        if needs_shell(command):
            if not self.allow_shell_fallback:
                raise SystemExecutionError(shell_fallback_disabled(command))
            return self._run_shell(command, input_text)

        argv = self._split(command)
        log.debug("spawning %r", argv)
        try:
            completed = subprocess.run(
                argv,
                shell=False,
                input=input_text,
                capture_output=True,
                text=True,
                encoding='utf-8',
                errors='replace',
            )
        except FileNotFoundError:
            if not self.allow_shell_fallback:
                raise SystemExecutionError(system_error(
                    f"البرنامج '{argv[0]}' غير موجود",
                    f"program '{argv[0]}' not found",
                    'تحقق من اسم الأمر ومن متغير PATH / check the command name and PATH',
                ))
            return self._run_shell(command, input_text)
        except (OSError, ValueError) as exc:
            raise SystemExecutionError(system_error(
                f"تعذر تشغيل '{argv[0]}': {exc}",
                f"cannot start '{argv[0]}': {exc}",
            ))
        return self._collect(argv[0], completed)

    def _split(self, command: str) -> List[str]:
        try:
            argv = shlex.split(command, posix=(os.name != 'nt'))
        except ValueError as exc:
            raise SystemExecutionError(system_error(
                f"تعذر تحليل الأمر: {exc}",
                f"cannot parse command: {exc}",
            ))
        if not argv:
            raise SystemExecutionError(system_error('الأمر فارغ', 'empty command'))
        return argv

    def _run_shell(self, command: str, input_text: Optional[str]) -> str:
        log.warning("running %r through the system shell; unsafe for untrusted input", command)
        try:
            completed = subprocess.run(
                command,
                shell=True,
                input=input_text,
                capture_output=True,
                text=True,
                encoding='utf-8',
                errors='replace',
            )
        except (OSError, ValueError) as exc:
            raise SystemExecutionError(system_error(
                f"تعذر تشغيل الصدفة: {exc}",
                f"cannot start the shell: {exc}",
            ))
        return self._collect(command, completed)

    def _collect(self, program: str, completed: subprocess.CompletedProcess) -> str:
        if completed.returncode != 0:
            stderr = (completed.stderr or '').strip()
            raise SystemExecutionError(system_error(
                f"انتهى '{program}' برمز الخروج {completed.returncode}: {stderr}",
                f"'{program}' exited with status {completed.returncode}: {stderr}",
            ))
        return completed.stdout or ''


class StaticSystemExecutor(SystemExecutor):
    """Deterministic executor for tests.

    Returns `output` for every command unless `outputs` has an entry for
    the exact command string. Files, environment variables and host facts
    are served from in-memory dicts. Every command is recorded in
    `commands` as ``(command, input_text)``.
    """

    def __init__(self, output: str = '', outputs: Optional[Dict[str, str]] = None,
                 files: Optional[Dict[str, str]] = None, env: Optional[Dict[str, str]] = None,
                 info: Optional[Dict[str, str]] = None):
        self.output = output
        self.outputs = dict(outputs or {})
        self.files = dict(files or {})
        self.env = dict(env or {})
        self.info = dict(info or {'os': 'static', 'arch': 'none'})
        self.commands: List[Tuple[str, Optional[str]]] = []

    def execute(self, command: str) -> str:
        self.commands.append((command, None))
        return self.outputs.get(command, self.output)

    def execute_with_input(self, command: str, input_text: str) -> str:
        self.commands.append((command, input_text))
        return self.outputs.get(command, self.output)

    def read_file(self, path: str) -> str:
        if path not in self.files:
            raise SystemExecutionError(system_error(
                f"الملف '{path}' غير موجود",
                f"file '{path}' not found",
            ))
        return self.files[path]

    def write_file(self, path: str, content: str) -> None:
        self.files[path] = content

    def list_files(self, path: str) -> List[str]:
        prefix = path.rstrip('/') + '/'
        return sorted(name[len(prefix):] for name in self.files if name.startswith(prefix))

    def env_var(self, name: str) -> Optional[str]:
        return self.env.get(name)

    def system_info(self) -> Dict[str, str]:
        return dict(self.info)
