"""Execution of component rules.

Component bodies are opaque Python functions with the signature
``f(variables, parameters, characteristics)``.  A :class:`RuleExecutor`
resolves a component name to a function and calls it; the evaluator never
looks inside the rule.
"""
from __future__ import annotations

import logging
import threading
import types
from typing import Any, Callable, Dict, Mapping, MutableMapping, Protocol

from kalkoto.errors import RuleCompilationError

logger = logging.getLogger(__name__)

RuleFunction = Callable[[MutableMapping[str, float], Mapping[str, float], Mapping[str, Any]], Any]


class RuleExecutor(Protocol):
    def evaluate(
        self,
        rule_id: str,
        variables: MutableMapping[str, float],
        parameters: Mapping[str, float],
        characteristics: Mapping[str, Any],
    ) -> Any:
        ...


class _LockedExecutor:
    """Shared call path: optional global lock around every rule call."""

    def __init__(self, functions: Dict[str, RuleFunction], serialize: bool) -> None:
        self._functions = functions
        self._lock = threading.RLock() if serialize else None

    def evaluate(
        self,
        rule_id: str,
        variables: MutableMapping[str, float],
        parameters: Mapping[str, float],
        characteristics: Mapping[str, Any],
    ) -> Any:
        try:
            func = self._functions[rule_id]
        except KeyError:
            raise LookupError(f"No rule function named '{rule_id}'") from None
        if self._lock is None:
            return func(variables, parameters, characteristics)
        with self._lock:
            return func(variables, parameters, characteristics)


class CallableRuleExecutor(_LockedExecutor):
    """Rules supplied directly as Python callables, keyed by component name."""

    def __init__(self, functions: Mapping[str, RuleFunction], *, serialize: bool = False) -> None:
        super().__init__(dict(functions), serialize)


class PythonRuleExecutor(_LockedExecutor):
    """Compile the policy's rule source once into an isolated module namespace.

    With ``serialize=True`` (the default) calls go through a single lock, so
    rule code that keeps module-level state is never entered concurrently.
    """

    def __init__(self, source: str, *, serialize: bool = True, module_name: str = "composantemodule") -> None:
        module = types.ModuleType(module_name)
        try:
            code = compile(source, f"{module_name}.py", "exec")
            exec(code, module.__dict__)
        except Exception as exc:
            raise RuleCompilationError(f"Could not compile the policy rule functions: {exc}") from exc

        functions = {
            name: obj
            for name, obj in vars(module).items()
            if callable(obj) and not name.startswith("__")
        }
        logger.debug("Compiled %d rule functions", len(functions))
        super().__init__(functions, serialize)

    @classmethod
    def for_policy(cls, policy, *, serialize: bool = True) -> "PythonRuleExecutor":
        executor = cls(policy.python_functions or "", serialize=serialize)
        missing = [name for name in policy.composante_names if name not in executor._functions]
        if missing:
            raise RuleCompilationError(
                f"Policy '{policy.name}' has no rule function for component(s): {', '.join(missing)}"
            )
        return executor


__all__ = ["RuleExecutor", "RuleFunction", "CallableRuleExecutor", "PythonRuleExecutor"]
