import asyncio
import os
import time
from unittest.mock import patch

import pytest

from codejudge.business.services.runtimes import RUNTIMES, LanguageRuntime
from codejudge.business.services.sandbox import SandboxExecutor
from codejudge.data.schemas import ExitStatus, Language
from codejudge.errors import SandboxError, UnsupportedLanguageError

from conftest import requires_python

pytestmark = requires_python

requires_procfs = pytest.mark.skipif(
    not os.path.isdir("/proc"), reason="needs /proc to inspect processes"
)


def _alive(pid):
    try:
        with open(f"/proc/{pid}/stat") as f:
            stat = f.read()
    except (FileNotFoundError, ProcessLookupError):
        return False
    return stat.rsplit(")", 1)[1].split()[0] not in ("Z", "X")


async def _wait_until_gone(pids, seconds=3):
    deadline = time.monotonic() + seconds
    while any(_alive(pid) for pid in pids) and time.monotonic() < deadline:
        await asyncio.sleep(0.05)
    return [pid for pid in pids if _alive(pid)]


def _spawning_program(pid_file, child_kwargs, parent_tail):
    """A program that starts `sleep 60`, records both pids, then runs parent_tail."""
    return (
        "import os, subprocess, time\n"
        "pids = [os.getpid()]\n"
        "try:\n"
        f"    pids.append(subprocess.Popen(['sleep', '60'], {child_kwargs}).pid)\n"
        "except OSError:\n"
        "    pass\n"
        f"with open({str(pid_file)!r}, 'w') as f:\n"
        "    f.write(' '.join(map(str, pids)))\n"
        f"{parent_tail}\n"
    )


def _recorded_pids(pid_file):
    return [int(pid) for pid in pid_file.read_text().split()]


async def test_normal_exit_captures_stdout(executor):
    result = await executor.execute('print("hello")', "python")

    assert result.status == ExitStatus.NORMAL
    assert result.stdout == "hello\n"
    assert result.stderr is None
    assert result.exit_code == 0
    assert not result.limit_exceeded


async def test_stdin_is_piped_to_program(executor):
    code = "import sys\nprint(sys.stdin.read().upper())"

    result = await executor.execute(code, "python", stdin="abc")

    assert result.stdout.strip() == "ABC"


async def test_execute_code_reports_stderr_on_clean_exit(executor):
    code = 'import sys\nprint("out")\nsys.stderr.write("warning")'

    response = await executor.execute_code(code, "python")

    assert response.output == "out\n"
    assert response.error == "warning"


async def test_runtime_error_is_classified(executor):
    result = await executor.execute('raise ValueError("boom")', "python")

    assert result.status == ExitStatus.RUNTIME_ERROR
    assert result.exit_code == 1
    assert "ValueError: boom" in result.message
    assert "ValueError" in result.stderr

    response = result.to_response()
    assert response.output == ""
    assert "Runtime error" in response.error


async def test_non_zero_exit_is_runtime_error(executor):
    result = await executor.execute("import sys\nsys.exit(3)", "python")

    assert result.status == ExitStatus.RUNTIME_ERROR
    assert "exit code 3" in result.message


async def test_timeout_kills_process(tmp_path):
    executor = SandboxExecutor(timeout_seconds=1, scratch_root=str(tmp_path))

    started = time.monotonic()
    result = await executor.execute("while True:\n    pass", "python")

    assert time.monotonic() - started < 5
    assert result.status == ExitStatus.TIMEOUT
    assert result.limit_exceeded
    assert result.message == "Time limit exceeded (1s)"
    assert result.to_response().error == "Time limit exceeded (1s)"


@requires_procfs
async def test_timeout_kills_sleeping_program(tmp_path):
    executor = SandboxExecutor(timeout_seconds=1, scratch_root=str(tmp_path / "sandbox"))
    pid_file = tmp_path / "pids.txt"
    code = _spawning_program(pid_file, "", "time.sleep(30)")

    started = time.monotonic()
    result = await executor.execute(code, "python")

    assert time.monotonic() - started < 1 + 4
    assert result.status == ExitStatus.TIMEOUT
    assert await _wait_until_gone(_recorded_pids(pid_file)) == []


@requires_procfs
async def test_timeout_kills_descendant_in_new_session(tmp_path):
    executor = SandboxExecutor(timeout_seconds=1, scratch_root=str(tmp_path / "sandbox"))
    pid_file = tmp_path / "pids.txt"
    code = _spawning_program(pid_file, "start_new_session=True", "time.sleep(30)")

    started = time.monotonic()
    result = await executor.execute(code, "python")

    assert time.monotonic() - started < 1 + 4
    assert result.status == ExitStatus.TIMEOUT
    assert await _wait_until_gone(_recorded_pids(pid_file)) == []


@requires_procfs
async def test_timeout_kills_group_after_direct_child_exits(tmp_path):
    executor = SandboxExecutor(timeout_seconds=1, scratch_root=str(tmp_path / "sandbox"))
    pid_file = tmp_path / "pids.txt"
    # the background sleep leaves the scratch directory and keeps stdout open
    code = _spawning_program(pid_file, "cwd='/'", "pass")

    started = time.monotonic()
    result = await executor.execute(code, "python")

    assert time.monotonic() - started < 1 + 4
    assert result.status == ExitStatus.TIMEOUT
    assert await _wait_until_gone(_recorded_pids(pid_file)) == []


async def test_memory_exhaustion_sets_limit_exceeded(executor):
    code = "data = bytearray(1024 * 1024 * 1024)\nprint(len(data))"

    result = await executor.execute(code, "python")

    assert result.status == ExitStatus.RUNTIME_ERROR
    assert result.limit_exceeded
    assert result.message.startswith("Memory limit exceeded")


async def test_output_is_truncated(tmp_path):
    executor = SandboxExecutor(scratch_root=str(tmp_path), max_output_bytes=10)

    result = await executor.execute('print("x" * 100)', "python")

    assert result.stdout == "x" * 10


async def test_scratch_directory_is_removed(executor):
    await executor.execute('open("artifact.txt", "w").write("data")', "python")

    assert os.listdir(executor.scratch_root) == []


async def test_concurrent_runs_are_isolated(tmp_path):
    executor = SandboxExecutor(
        timeout_seconds=30, max_concurrency=20, scratch_root=str(tmp_path / "sandbox")
    )
    code = (
        "import os, sys, time\n"
        "value = sys.stdin.read()\n"
        "open('shared.txt', 'w').write(value)\n"
        "time.sleep(0.05)\n"
        "print(open('shared.txt').read())\n"
        "print(os.getcwd())\n"
    )

    results = await asyncio.gather(
        *(executor.execute(code, "python", stdin=str(i)) for i in range(100))
    )

    lines = [r.stdout.split() for r in results]
    assert [line[0] for line in lines] == [str(i) for i in range(100)]
    assert len({line[1] for line in lines}) == 100
    assert os.listdir(executor.scratch_root) == []


async def test_unsupported_language_touches_nothing(tmp_path):
    scratch = tmp_path / "never-created"
    executor = SandboxExecutor(scratch_root=str(scratch))

    with pytest.raises(UnsupportedLanguageError):
        await executor.execute("puts 1", "ruby")

    assert not scratch.exists()


async def test_missing_interpreter_raises_sandbox_error(executor):
    broken = LanguageRuntime(
        language=Language.PYTHON,
        extension="py",
        run_template=("codejudge-missing-interpreter", "{source}"),
    )

    with patch.dict(RUNTIMES, {Language.PYTHON: broken}):
        with pytest.raises(SandboxError) as exc_info:
            await executor.execute("print(1)", "python")

    assert exc_info.value.status_code == 500
    assert os.listdir(executor.scratch_root) == []
