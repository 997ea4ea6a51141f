"""Debounced recompile session with per-file cancellation tokens.

WHY: Editors fire a change event on every keystroke, while a listing
compile takes seconds. Recompiling on every event wastes the machine and,
worse, a slow early compile can finish after a fast later one and paint
stale assembly over fresh source. The session coalesces triggers and
guarantees only the newest correlation for a file is ever delivered.

HOW: Four pieces work together:
  SessionStatus       — enum of what the session is doing / last did
  CancellationToken   — one per trigger; a newer trigger cancels it
  RecompileRequest    — everything needed to correlate one file once
  RecompileSession    — per-key token + task registry on an asyncio loop

Each trigger() cancels the key's previous token and pending task, then
schedules a task that sleeps for the debounce delay, runs the correlator,
and delivers the result only if its token is still the current one.

RULES:
- At most one correlation in flight per key (file)
- A cancelled token's result is discarded, never delivered or stored
- Correlator failures are logged and mapped to a status, never raised
  out of the background task
- Empty results are delivered and reported as NO_ASSEMBLY, not as errors
- Must be driven from a running asyncio event loop
"""

from __future__ import annotations

import asyncio
import enum
import itertools
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional

from asm_explorer.config import (
    COMPILE_TIMEOUT_SECONDS,
    DEBOUNCE_SECONDS,
    SUPPORTED_SOURCE_SUFFIXES,
    load_palette,
)
from asm_explorer.core.assembler import correlate
from asm_explorer.core.errors import CorrelatorError
from asm_explorer.core.ir import CorrelationResult
from asm_explorer.driver.command import (
    CompilerFamily,
    UnknownCompilerError,
    UnsupportedCompilerError,
    detect_compiler,
)
from asm_explorer.driver.runner import (
    CompileError,
    CompileTimeoutError,
    generate_msvc_listing,
)

logger = logging.getLogger(__name__)


class SessionStatus(str, enum.Enum):
    """What the session last did, shown to the user as a status line.

    RULES:
    - inactive: nothing triggered yet
    - recompiling: a correlation is running
    - ready: last correlation produced entries
    - no_assembly: last correlation produced an empty result
    - compile_error / unknown_compiler / unsupported_compiler / failed:
      last correlation ended with that error
    """

    INACTIVE = "inactive"
    RECOMPILING = "recompiling"
    READY = "ready"
    NO_ASSEMBLY = "no_assembly"
    COMPILE_ERROR = "compile_error"
    UNKNOWN_COMPILER = "unknown_compiler"
    UNSUPPORTED_COMPILER = "unsupported_compiler"
    FAILED = "failed"


_STATUS_TEXT = {
    SessionStatus.INACTIVE: "Inactive",
    SessionStatus.RECOMPILING: "Recompiling...",
    SessionStatus.READY: "Ready",
    SessionStatus.NO_ASSEMBLY: "No assembly for this file",
    SessionStatus.COMPILE_ERROR: "Compile error",
    SessionStatus.UNKNOWN_COMPILER: "Unknown compiler: {}",
    SessionStatus.UNSUPPORTED_COMPILER: "Unsupported compiler: {}",
    SessionStatus.FAILED: "Failed: {}",
}


class CancellationToken:
    """Marks one trigger; cancelled as soon as a newer trigger arrives."""

    def __init__(self, key: str, generation: int) -> None:
        self.key = key
        self.generation = generation
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def __repr__(self) -> str:
        return "CancellationToken(key={!r}, generation={}, cancelled={})".format(
            self.key, self.generation, self._cancelled
        )


@dataclass
class RecompileRequest:
    """Inputs for one correlation of one source file.

    RULES:
    - command: full compile command, command[0] is the compiler
    - source_text: the in-memory text to compile (may be unsaved)
    - working_dir: where the compile command runs
    - build_dir: where the listing is written
    """

    source_path: Path
    source_text: str
    command: List[str]
    working_dir: Path
    build_dir: Path
    timeout: Optional[float] = COMPILE_TIMEOUT_SECONDS


Correlator = Callable[[RecompileRequest, CancellationToken], Awaitable[CorrelationResult]]
ResultCallback = Callable[[str, CorrelationResult], None]
StatusCallback = Callable[[SessionStatus, str], None]


def is_supported_source(path: Path) -> bool:
    """True for C/C++ sources the session should recompile."""
    return Path(path).suffix.lower() in SUPPORTED_SOURCE_SUFFIXES


async def correlate_request(
    request: RecompileRequest,
    token: CancellationToken,
) -> CorrelationResult:
    """Default correlator: compile a listing, then correlate it.

    RULES:
    - MSVC → listing generated via generate_msvc_listing()
    - GCC/Clang → UnsupportedCompilerError (no grammar for their listings)
    - Anything else → UnknownCompilerError
    """
    program = request.command[0] if request.command else ""
    family = detect_compiler(program)
    if family is CompilerFamily.GCC:
        raise UnsupportedCompilerError(program)
    if family is not CompilerFamily.MSVC:
        raise UnknownCompilerError(program)

    output = await generate_msvc_listing(
        request.command,
        request.source_path,
        request.source_text,
        request.working_dir,
        request.build_dir,
        request.timeout,
    )
    return correlate(
        output.listing_text,
        output.target_path,
        request.source_text,
        Path(request.source_path).name,
        palette=load_palette(),
    )


class RecompileSession:
    """Debounces recompile triggers and delivers only current results.

    WHY: Overlapping recompiles for the same file must not race. The core
    is stateless, so cancelling and discarding at this layer is enough to
    keep stale listings out of the UI.

    HOW: Keeps the newest CancellationToken and asyncio.Task per key.
    trigger() supersedes both; the task checks its token after the
    debounce sleep and again after the correlator returns.

    RULES:
    - trigger() returns None for unsupported sources (nothing scheduled)
    - latest(key) returns the last delivered result, or None
    - on_result(key, result) and on_status(status, message) are optional
    """

    def __init__(
        self,
        correlator: Optional[Correlator] = None,
        debounce_seconds: Optional[float] = None,
        on_result: Optional[ResultCallback] = None,
        on_status: Optional[StatusCallback] = None,
    ) -> None:
        self._correlator = correlator or correlate_request
        self._debounce_seconds = (
            DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds
        )
        self._on_result = on_result
        self._on_status = on_status
        self._generations = itertools.count(1)
        self._tokens: Dict[str, CancellationToken] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._results: Dict[str, CorrelationResult] = {}
        self.status = SessionStatus.INACTIVE
        self.status_detail = ""

    @property
    def status_message(self) -> str:
        text = _STATUS_TEXT[self.status].format(self.status_detail)
        return "Assembly Explorer: {}".format(text)

    def trigger(self, key: str, request: RecompileRequest) -> Optional[asyncio.Task]:
        """Schedule a debounced correlation, superseding any pending one.

        Args:
            key: Identity of the target file (usually its path).
            request: What to compile and correlate.

        Returns:
            The scheduled task, or None when the source is not C/C++.
        """
        if not is_supported_source(request.source_path):
            logger.debug("Ignoring trigger for unsupported source %s", request.source_path)
            return None

        self._supersede(key)
        token = CancellationToken(key, next(self._generations))
        task = asyncio.get_running_loop().create_task(self._run(request, token))
        self._tokens[key] = token
        self._tasks[key] = task
        return task

    def latest(self, key: str) -> Optional[CorrelationResult]:
        return self._results.get(key)

    def current_token(self, key: str) -> Optional[CancellationToken]:
        return self._tokens.get(key)

    def cancel(self, key: str) -> None:
        """Cancel the pending or running correlation for one key."""
        self._supersede(key)
        self._tokens.pop(key, None)
        self._tasks.pop(key, None)

    async def close(self) -> None:
        """Cancel everything and wait for the tasks to unwind."""
        tasks = list(self._tasks.values())
        for key in list(self._tokens):
            self.cancel(key)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _supersede(self, key: str) -> None:
        previous = self._tokens.get(key)
        if previous is not None:
            previous.cancel()
        task = self._tasks.get(key)
        if task is not None and not task.done():
            task.cancel()

    def _is_current(self, token: CancellationToken) -> bool:
        return not token.cancelled and self._tokens.get(token.key) is token

    def _set_status(self, status: SessionStatus, detail: str = "") -> None:
        self.status = status
        self.status_detail = detail
        if self._on_status is not None:
            self._on_status(status, self.status_message)

    async def _run(
        self,
        request: RecompileRequest,
        token: CancellationToken,
    ) -> Optional[CorrelationResult]:
        await asyncio.sleep(self._debounce_seconds)
        if not self._is_current(token):
            return None

        self._set_status(SessionStatus.RECOMPILING)
        try:
            result = await self._correlator(request, token)
        except UnknownCompilerError as exc:
            return self._fail(token, SessionStatus.UNKNOWN_COMPILER, exc.program)
        except UnsupportedCompilerError as exc:
            return self._fail(token, SessionStatus.UNSUPPORTED_COMPILER, exc.program)
        except (CompileError, CompileTimeoutError) as exc:
            logger.warning("Listing compile failed for %s: %s", token.key, exc)
            return self._fail(token, SessionStatus.COMPILE_ERROR, str(exc))
        except CorrelatorError as exc:
            logger.warning("Correlation failed for %s: %s", token.key, exc)
            return self._fail(token, SessionStatus.FAILED, str(exc))
        except Exception as exc:
            logger.exception("Unexpected error correlating %s", token.key)
            return self._fail(token, SessionStatus.FAILED, str(exc))

        if not self._is_current(token):
            logger.info(
                "Discarding stale result for %s (generation %d)",
                token.key,
                token.generation,
            )
            return None

        self._results[token.key] = result
        if result.is_empty:
            self._set_status(SessionStatus.NO_ASSEMBLY)
        else:
            self._set_status(SessionStatus.READY)
        if self._on_result is not None:
            self._on_result(token.key, result)
        return result

    def _fail(
        self,
        token: CancellationToken,
        status: SessionStatus,
        detail: str,
    ) -> None:
        if self._is_current(token):
            self._set_status(status, detail)
        return None
