"""Runs bundle source text inside a function shell with a fixed host surface.

A bundle is Python source. Its statements become the body of
``async def __bundle__(exports, module, require, log, ui)`` so top-level
``return`` and ``await`` are legal, and its globals hold nothing but a
restricted builtins table whose ``__import__`` routes through the resolver.
"""

from __future__ import annotations

import ast
import asyncio
import builtins
import logging
import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from diagnostics.tracing import span

from .errors import BundleExecutionError
from .module_map import HostModuleMap, default_module_map
from .resolver import InertModule, ModuleResolver, ResolutionStatus
from .types import SessionModule

logger = logging.getLogger(__name__)

SHIM_NAMES: Tuple[str, ...] = ("exports", "module", "require", "log", "ui")
BUNDLE_FUNCTION = "__bundle__"
DEFAULT_TIMEOUT_S = 10.0

# Deeply nested source exhausts the parser before it can report a SyntaxError.
_PARSE_FAILURES = (SyntaxError, ValueError, RecursionError, MemoryError)

_SHELL_TEMPLATE = f"async def {BUNDLE_FUNCTION}({', '.join(SHIM_NAMES)}):\n    pass\n"

SAFE_BUILTIN_NAMES: Tuple[str, ...] = (
    "abs",
    "all",
    "any",
    "bool",
    "bytes",
    "callable",
    "classmethod",
    "dict",
    "divmod",
    "enumerate",
    "filter",
    "float",
    "format",
    "frozenset",
    "getattr",
    "hasattr",
    "hash",
    "int",
    "isinstance",
    "issubclass",
    "iter",
    "len",
    "list",
    "map",
    "max",
    "min",
    "next",
    "object",
    "property",
    "range",
    "repr",
    "reversed",
    "round",
    "set",
    "setattr",
    "slice",
    "sorted",
    "staticmethod",
    "str",
    "sum",
    "super",
    "tuple",
    "type",
    "zip",
    "__build_class__",
    "ArithmeticError",
    "AssertionError",
    "AttributeError",
    "Exception",
    "IndexError",
    "KeyError",
    "LookupError",
    "NotImplementedError",
    "RuntimeError",
    "StopIteration",
    "TypeError",
    "ValueError",
    "ZeroDivisionError",
    "NotImplemented",
    "Ellipsis",
)


def _session_slug(session_id: str) -> str:
    return re.sub(r"[^0-9A-Za-z_]", "_", session_id or "anonymous")


def restricted_builtins(import_hook: Callable[..., Any]) -> Dict[str, Any]:
    table = {name: getattr(builtins, name) for name in SAFE_BUILTIN_NAMES}
    table["__import__"] = import_hook
    return table


class BundleModule:
    """The ``module`` object a bundle sees; ``exports`` starts as the shared dict."""

    def __init__(self, exports: Optional[Dict[str, Any]] = None) -> None:
        self.exports: Any = exports if exports is not None else {}

    def __repr__(self) -> str:
        return f"BundleModule(exports={type(self.exports).__name__})"


class BundleLog:
    """Logging facility exposed to bundles as ``log``."""

    def __init__(self, session_id: str) -> None:
        self._logger = logging.getLogger(f"bundlehost.bundle.{_session_slug(session_id)}")

    def __call__(self, *args: Any) -> None:
        self.info(*args)

    def info(self, *args: Any) -> None:
        self._logger.info(" ".join(str(arg) for arg in args))

    def warning(self, *args: Any) -> None:
        self._logger.warning(" ".join(str(arg) for arg in args))

    def error(self, *args: Any) -> None:
        self._logger.error(" ".join(str(arg) for arg in args))


def collect_static_imports(tree: ast.AST) -> List[str]:
    """Module names a bundle names literally via ``require("...")`` or ``import``."""
    names: List[str] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            names.extend(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom):
            if node.level == 0 and node.module and node.module != "__future__":
                names.append(node.module)
        elif isinstance(node, ast.Call):
            func = node.func
            if (
                isinstance(func, ast.Name)
                and func.id == "require"
                and node.args
                and isinstance(node.args[0], ast.Constant)
                and isinstance(node.args[0].value, str)
            ):
                names.append(node.args[0].value)
    unique: List[str] = []
    for name in names:
        if name not in unique:
            unique.append(name)
    return unique


def normalize_exports(exports: Any, session_id: Optional[str] = None) -> SessionModule:
    if exports is None:
        raise BundleExecutionError("Bundle execution returned no module", phase="exports", session_id=session_id)
    if not isinstance(exports, Mapping):
        raise BundleExecutionError(
            f"module.exports must be a mapping, got {type(exports).__name__}",
            phase="exports",
            session_id=session_id,
        )
    sections: Dict[str, Dict[str, Any]] = {}
    for key in ("screens", "services"):
        value = exports.get(key)
        if value is None:
            sections[key] = {}
            continue
        if not isinstance(value, Mapping):
            raise BundleExecutionError(
                f"exports['{key}'] must be a mapping, got {type(value).__name__}",
                phase="exports",
                session_id=session_id,
            )
        bad = [name for name in value if not isinstance(name, str) or not name]
        if bad:
            raise BundleExecutionError(
                f"exports['{key}'] has invalid names: {bad!r}",
                phase="exports",
                session_id=session_id,
            )
        sections[key] = dict(value)
    app = exports.get("App")
    if app is None:
        app = exports.get("default")
    return SessionModule(
        screens=sections["screens"],
        services=sections["services"],
        navigation=exports.get("navigation"),
        app=app,
    )


class BundleExecutor:
    def __init__(
        self,
        module_map: Optional[HostModuleMap] = None,
        *,
        strict_imports: bool = False,
        timeout_s: Optional[float] = DEFAULT_TIMEOUT_S,
    ) -> None:
        self._module_map = module_map if module_map is not None else default_module_map()
        self._strict_imports = strict_imports
        self._timeout_s = timeout_s
        self._last_misses: List[Tuple[str, ResolutionStatus]] = []

    @property
    def module_map(self) -> HostModuleMap:
        return self._module_map

    @property
    def strict_imports(self) -> bool:
        return self._strict_imports

    @property
    def last_misses(self) -> List[Tuple[str, ResolutionStatus]]:
        """Unresolved ``require`` names seen during the most recent execution."""
        return list(self._last_misses)

    async def execute(self, source: str, session_id: str = "anonymous") -> SessionModule:
        if not isinstance(source, str):
            raise BundleExecutionError(
                f"bundle source must be text, got {type(source).__name__}",
                phase="parse",
                session_id=session_id,
            )
        with span("bundle.execute", session_id=session_id, size=len(source)):
            resolver = ModuleResolver(self._module_map)
            self._last_misses = []
            filename = f"<bundle:{session_id}>"
            tree = self._parse(source, filename, session_id)
            if self._strict_imports:
                self._check_imports(tree, resolver, session_id)
            bundle_fn = self._build_function(tree, filename, resolver, session_id)

            module = BundleModule()
            ui = self._module_map.get("ui") or InertModule("ui")
            coro = bundle_fn(module.exports, module, resolver.resolve, BundleLog(session_id), ui)
            try:
                if self._timeout_s and self._timeout_s > 0:
                    await asyncio.wait_for(coro, timeout=self._timeout_s)
                else:
                    await coro
            except asyncio.TimeoutError as exc:
                raise BundleExecutionError(
                    f"Bundle execution timeout after {self._timeout_s} seconds",
                    phase="timeout",
                    session_id=session_id,
                ) from exc
            except BundleExecutionError:
                raise
            except Exception as exc:
                logger.error("bundle %s raised %s: %s", session_id, type(exc).__name__, exc)
                raise BundleExecutionError(
                    str(exc) or type(exc).__name__,
                    phase="runtime",
                    session_id=session_id,
                ) from exc
            finally:
                self._last_misses = resolver.misses

            session_module = normalize_exports(module.exports, session_id)
            logger.info(
                "bundle %s executed: screens=%s services=%s app=%s navigation=%s",
                session_id,
                len(session_module.screens),
                len(session_module.services),
                session_module.app is not None,
                session_module.navigation is not None,
            )
            return session_module

    def _parse(self, source: str, filename: str, session_id: str) -> ast.Module:
        try:
            return ast.parse(source, filename=filename, mode="exec")
        except _PARSE_FAILURES as exc:
            raise BundleExecutionError(_describe_syntax_error(exc), phase="parse", session_id=session_id) from exc

    def _check_imports(self, tree: ast.AST, resolver: ModuleResolver, session_id: str) -> None:
        failures = []
        for name in collect_static_imports(tree):
            status = resolver.classify(name)
            if status is not ResolutionStatus.RESOLVED:
                failures.append(f"{name} ({status.value})")
        if failures:
            raise BundleExecutionError(
                f"unresolved imports: {', '.join(failures)}",
                phase="imports",
                session_id=session_id,
            )

    def _build_function(
        self,
        tree: ast.Module,
        filename: str,
        resolver: ModuleResolver,
        session_id: str,
    ) -> Callable[..., Any]:
        shell = ast.parse(_SHELL_TEMPLATE, filename=filename)
        body = [
            node
            for node in tree.body
            if not (isinstance(node, ast.ImportFrom) and node.module == "__future__")
        ]
        shell.body[0].body = body or [ast.Pass()]
        try:
            ast.fix_missing_locations(shell)
            code = compile(shell, filename, "exec")
        except _PARSE_FAILURES as exc:
            raise BundleExecutionError(_describe_syntax_error(exc), phase="parse", session_id=session_id) from exc
        namespace: Dict[str, Any] = {
            "__builtins__": restricted_builtins(resolver.import_hook),
            "__name__": f"bundle_{_session_slug(session_id)}",
        }
        exec(code, namespace)
        return namespace[BUNDLE_FUNCTION]


def _describe_syntax_error(exc: Exception) -> str:
    if isinstance(exc, SyntaxError):
        where = f" (line {exc.lineno})" if exc.lineno else ""
        return f"invalid bundle syntax{where}: {exc.msg}"
    if isinstance(exc, (RecursionError, MemoryError)):
        return f"bundle source too deeply nested to compile ({type(exc).__name__})"
    return f"invalid bundle source: {exc}"
