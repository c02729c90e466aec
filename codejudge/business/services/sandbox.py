"""
Sandbox executor: runs one unit of untrusted code and normalizes the outcome.

Every invocation gets its own scratch directory and its own process group.
The wall-clock deadline covers compilation and execution together; when it
expires the whole process group is killed, along with any process still
working inside the scratch directory, and reaped within a short grace period.
"""

import asyncio
import logging
import math
import os
import shutil
import signal
import tempfile
import time
from contextlib import asynccontextmanager
from typing import List, Optional, Union

from codejudge.business.services.runtimes import LanguageRuntime, get_runtime
from codejudge.config import Config
from codejudge.data.schemas.enums import ExitStatus, Language
from codejudge.data.schemas.execution import ExecuteResponse, ExecutionResult
from codejudge.errors import SandboxError

try:
    import resource
except ImportError:  # not available on Windows
    resource = None

sandbox_logger = logging.getLogger("sandbox")

MEMORY_EXHAUSTION_MARKERS = (
    "MemoryError",
    "OutOfMemoryError",
    "std::bad_alloc",
    "heap out of memory",
    "Cannot allocate memory",
)

FILE_SIZE_LIMIT_BYTES = 10 * 1024 * 1024
KILL_GRACE_SECONDS = 2
OPEN_FILES_LIMIT = 256


class _ProcessOutcome:
    def __init__(
        self,
        returncode: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
        timed_out: bool = False,
    ):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.timed_out = timed_out


def _resource_preexec(
    cpu_seconds: int,
    memory_mb: int,
    limit_address_space: bool,
    max_processes: Optional[int] = None,
):
    """Build the preexec_fn applying POSIX rlimits inside the child."""
    if resource is None:
        return None

    mem_bytes = memory_mb * 1024 * 1024

    def _set_limits():
        resource.setrlimit(resource.RLIMIT_CPU, (cpu_seconds, cpu_seconds + 1))
        if limit_address_space:
            resource.setrlimit(resource.RLIMIT_AS, (mem_bytes, mem_bytes))
        resource.setrlimit(
            resource.RLIMIT_FSIZE, (FILE_SIZE_LIMIT_BYTES, FILE_SIZE_LIMIT_BYTES)
        )
        resource.setrlimit(resource.RLIMIT_NOFILE, (OPEN_FILES_LIMIT, OPEN_FILES_LIMIT))
        if max_processes is not None:
            resource.setrlimit(resource.RLIMIT_NPROC, (max_processes, max_processes))

    return _set_limits


def _kill_process_group(process: asyncio.subprocess.Process) -> None:
    """SIGKILL the child's process group, even if the child itself is gone."""
    try:
        if hasattr(os, "killpg"):
            os.killpg(process.pid, signal.SIGKILL)
        elif process.returncode is None:
            process.kill()
    except (ProcessLookupError, PermissionError):
        pass


def _kill_strays(workdir: str) -> int:
    """
    SIGKILL every process whose working directory lies inside ``workdir``.

    Catches descendants that left the process group with ``setsid``. Linux
    only; elsewhere this is a no-op.
    """
    if not os.path.isdir("/proc"):
        return 0

    root = os.path.realpath(workdir)
    own_pid = os.getpid()
    killed = 0
    for entry in os.listdir("/proc"):
        if not entry.isdigit() or int(entry) == own_pid:
            continue
        try:
            cwd = os.readlink(f"/proc/{entry}/cwd")
        except OSError:
            continue
        if cwd != root and not cwd.startswith(root + os.sep):
            continue
        try:
            os.kill(int(entry), signal.SIGKILL)
            killed += 1
        except OSError:
            continue
    if killed:
        sandbox_logger.warning(f"Killed {killed} stray process(es) left in {workdir}")
    return killed


class SandboxExecutor:
    """
    Executes submitted code in an isolated scratch directory under a
    wall-clock timeout and a memory ceiling.

    Instances hold no per-run state, so one executor serves any number of
    concurrent submissions; ``max_concurrency`` bounds how many sandboxes
    run at the same time.
    """

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        memory_limit_mb: Optional[int] = None,
        max_concurrency: Optional[int] = None,
        scratch_root: Optional[str] = None,
        max_output_bytes: Optional[int] = None,
    ):
        self.timeout_seconds = timeout_seconds or Config.EXECUTION_TIMEOUT_SECONDS
        self.memory_limit_mb = memory_limit_mb or Config.EXECUTION_MEMORY_LIMIT_MB
        self.max_concurrency = max_concurrency or Config.MAX_CONCURRENT_SANDBOXES
        self.scratch_root = scratch_root or Config.SANDBOX_ROOT
        self.max_output_bytes = max_output_bytes or Config.MAX_OUTPUT_BYTES
        self._semaphore = asyncio.Semaphore(self.max_concurrency)

    @asynccontextmanager
    async def _slot(self):
        async with self._semaphore:
            yield

    async def execute_code(
        self, code: str, language: Union[str, Language], stdin: Optional[str] = None
    ) -> ExecuteResponse:
        """Run code once and return the public ``{output, error}`` contract."""
        result = await self.execute(code, language, stdin=stdin)
        return result.to_response()

    async def execute(
        self,
        code: str,
        language: Union[str, Language],
        stdin: Optional[str] = None,
        entry_class: Optional[str] = None,
    ) -> ExecutionResult:
        """
        Execute one program.

        Args:
            code: The program source
            language: A supported language identifier
            stdin: Optional payload piped to the program
            entry_class: Overrides the runtime's entry class (JVM only)

        Returns:
            The normalized execution result; code-level failures are encoded
            in its status, never raised.

        Raises:
            UnsupportedLanguageError: before anything touches the filesystem
            SandboxError: the scratch area or the process could not be set up
        """
        runtime = get_runtime(language)

        async with self._slot():
            workdir = self._allocate_workdir()
            try:
                return await self._execute_in(workdir, runtime, code, stdin, entry_class)
            finally:
                _kill_strays(workdir)
                shutil.rmtree(workdir, ignore_errors=True)

    def _allocate_workdir(self) -> str:
        try:
            os.makedirs(self.scratch_root, exist_ok=True)
            return tempfile.mkdtemp(prefix="codejudge-", dir=self.scratch_root)
        except OSError as e:
            sandbox_logger.error(f"Failed to allocate scratch directory: {e}")
            raise SandboxError(f"Failed to allocate scratch directory: {e}") from e

    def _write_source(self, workdir: str, runtime: LanguageRuntime, code: str) -> str:
        path = os.path.join(workdir, runtime.source_name())
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(code)
        except OSError as e:
            sandbox_logger.error(f"Failed to write source file {path}: {e}")
            raise SandboxError(f"Failed to write source file: {e}") from e
        return path

    async def _execute_in(
        self,
        workdir: str,
        runtime: LanguageRuntime,
        code: str,
        stdin: Optional[str],
        entry_class: Optional[str],
    ) -> ExecutionResult:
        source_path = self._write_source(workdir, runtime, code)
        compile_argv, run_argv = runtime.build_commands(
            source_path, workdir, self.memory_limit_mb, entry_class=entry_class
        )

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout_seconds
        started = time.monotonic()

        if compile_argv is not None:
            outcome = await self._run_process(
                compile_argv,
                workdir,
                None,
                deadline,
                memory_mb=Config.COMPILE_MEMORY_LIMIT_MB,
                limit_address_space=runtime.limits_address_space,
            )
            if outcome.timed_out or outcome.returncode != 0:
                return self._classify(runtime, outcome, started, compiling=True)

        outcome = await self._run_process(
            run_argv,
            workdir,
            stdin,
            deadline,
            memory_mb=self.memory_limit_mb,
            limit_address_space=runtime.limits_address_space,
            max_processes=Config.SANDBOX_MAX_PROCESSES if runtime.limits_processes else None,
        )
        return self._classify(runtime, outcome, started, compiling=False)

    async def _run_process(
        self,
        argv: List[str],
        workdir: str,
        stdin: Optional[str],
        deadline: float,
        memory_mb: int,
        limit_address_space: bool,
        max_processes: Optional[int] = None,
    ) -> _ProcessOutcome:
        loop = asyncio.get_running_loop()
        remaining = deadline - loop.time()
        if remaining <= 0:
            return _ProcessOutcome(timed_out=True)

        env = {
            "PATH": os.environ.get("PATH", "/usr/local/bin:/usr/bin:/bin"),
            "LANG": "C.UTF-8",
            "HOME": workdir,
            "TMPDIR": workdir,
        }
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=workdir,
                env=env,
                start_new_session=True,
                preexec_fn=_resource_preexec(
                    math.ceil(self.timeout_seconds) + 1,
                    memory_mb,
                    limit_address_space,
                    max_processes,
                ),
            )
        except OSError as e:
            sandbox_logger.error(f"Failed to spawn {argv[0]}: {e}")
            raise SandboxError(f"Failed to start {argv[0]}: {e}") from e

        payload = stdin.encode("utf-8") if stdin is not None else None
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(payload), timeout=remaining
            )
        except asyncio.TimeoutError:
            await self._terminate(process, workdir)
            return _ProcessOutcome(timed_out=True)
        except asyncio.CancelledError:
            _kill_process_group(process)
            _kill_strays(workdir)
            raise

        return _ProcessOutcome(
            returncode=process.returncode,
            stdout=self._decode(stdout),
            stderr=self._decode(stderr),
        )

    async def _terminate(self, process: asyncio.subprocess.Process, workdir: str) -> None:
        """Kill everything the run started, then reap within a bounded grace period."""
        _kill_process_group(process)
        _kill_strays(workdir)
        try:
            await asyncio.wait_for(process.wait(), timeout=KILL_GRACE_SECONDS)
        except asyncio.TimeoutError:
            # a descendant outside the scratch directory still holds the pipes
            _kill_process_group(process)
            sandbox_logger.warning(
                f"Process {process.pid} not reaped within {KILL_GRACE_SECONDS}s of kill"
            )

    def _decode(self, data: Optional[bytes]) -> str:
        if not data:
            return ""
        if len(data) > self.max_output_bytes:
            data = data[: self.max_output_bytes]
        return data.decode("utf-8", errors="replace")

    def _classify(
        self,
        runtime: LanguageRuntime,
        outcome: _ProcessOutcome,
        started: float,
        compiling: bool,
    ) -> ExecutionResult:
        duration_ms = int((time.monotonic() - started) * 1000)

        if outcome.timed_out:
            result = ExecutionResult(
                status=ExitStatus.TIMEOUT,
                limit_exceeded=True,
                duration_ms=duration_ms,
                message=f"Time limit exceeded ({self.timeout_seconds:g}s)",
            )
        elif compiling:
            diagnostics = (outcome.stderr or outcome.stdout).strip()
            result = ExecutionResult(
                stdout=outcome.stdout,
                stderr=outcome.stderr or None,
                status=ExitStatus.COMPILE_ERROR,
                exit_code=outcome.returncode,
                duration_ms=duration_ms,
                message=f"Compilation error:\n{diagnostics}".strip(),
            )
        elif outcome.returncode != 0:
            memory_exhausted = any(
                marker in outcome.stderr for marker in MEMORY_EXHAUSTION_MARKERS
            )
            if outcome.returncode is not None and outcome.returncode < 0:
                try:
                    reason = f"terminated by {signal.Signals(-outcome.returncode).name}"
                except ValueError:
                    reason = f"terminated by signal {-outcome.returncode}"
            else:
                reason = f"exit code {outcome.returncode}"
            headline = "Memory limit exceeded" if memory_exhausted else "Runtime error"
            result = ExecutionResult(
                stdout=outcome.stdout,
                stderr=outcome.stderr or None,
                status=ExitStatus.RUNTIME_ERROR,
                limit_exceeded=memory_exhausted,
                exit_code=outcome.returncode,
                duration_ms=duration_ms,
                message=f"{headline} ({reason})\n{outcome.stderr.strip()}".strip(),
            )
        else:
            result = ExecutionResult(
                stdout=outcome.stdout,
                stderr=outcome.stderr or None,
                status=ExitStatus.NORMAL,
                exit_code=0,
                duration_ms=duration_ms,
            )

        sandbox_logger.info(
            f"Sandbox run finished: language={runtime.language.value} "
            f"status={result.status.value} duration={duration_ms}ms"
        )
        return result
