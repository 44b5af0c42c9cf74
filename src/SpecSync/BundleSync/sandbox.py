# === NAVMAP v1 ===
# {
#   "module": "SpecSync.BundleSync.sandbox",
#   "purpose": "Execute untrusted bundle code in a disposable V8 context and recover specification objects",
#   "sections": [
#     {"id": "strip-module-syntax", "name": "strip_module_syntax", "anchor": "function-strip-module-syntax", "kind": "function"},
#     {"id": "binding", "name": "Binding", "anchor": "class-binding", "kind": "class"},
#     {"id": "enumerate-global-bindings", "name": "enumerate_global_bindings", "anchor": "function-enumerate-global-bindings", "kind": "function"},
#     {"id": "jssandbox", "name": "JsSandbox", "anchor": "class-jssandbox", "kind": "class"},
#     {"id": "extract-specs", "name": "extract_specs", "anchor": "function-extract-specs", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Sandboxed execution of the specification data bundle.

The data bundle is an ES module built for the browser.  It never ships the
specifications as JSON; they exist only as objects constructed when the module
runs.  Recovery therefore works in three steps:

1. :func:`strip_module_syntax` removes the trailing ``export { ... }`` list and
   every ``export default`` token so the module parses as a classic script.
   Top-level declarations and their initializers are left untouched.
2. :class:`JsSandbox` runs the script in a brand-new embedded V8 context
   (``mini-racer``) under a wall-clock budget.  V8 terminates the script when
   the budget runs out, so a bundle that never returns cannot hang the run.
3. Every global property the script introduced (non-enumerable ones included)
   is snapshotted back to Python as JSON.  Object values are de-duplicated by
   reference inside the engine before serialization: one object bound under
   two names counts once, two equal but distinct objects count twice.

:func:`extract_specs` keeps the values that pass
:func:`~SpecSync.BundleSync.models.is_spec_document` and wraps each in a
:class:`~SpecSync.BundleSync.models.DiscoveredSpec` handle.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence

from py_mini_racer import JSEvalException, JSTimeoutException, MiniRacer

from .errors import ExtractionError
from .models import DiscoveredSpec, is_spec_document

__all__ = [
    "Binding",
    "JsSandbox",
    "enumerate_global_bindings",
    "extract_specs",
    "strip_module_syntax",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SEC = 10.0

_EXPORT_LIST_PATTERN = re.compile(r"\bexport\s*\{[\s\S]*?\}\s*;?\s*$", re.MULTILINE)
_EXPORT_DEFAULT_PATTERN = re.compile(r"\bexport\s+default\s+")

_GLOBAL_NAMES_SCRIPT = "JSON.stringify(Object.getOwnPropertyNames(globalThis))"

# Wrapped in an IIFE so the snapshot itself adds no bindings to the context.
_SNAPSHOT_SCRIPT = """
(function (baseline) {
  var skip = new Set(baseline);
  var seen = new Set();
  var out = [];
  var names = Object.getOwnPropertyNames(globalThis);
  for (var i = 0; i < names.length; i++) {
    var name = names[i];
    if (skip.has(name)) continue;
    var value;
    try { value = globalThis[name]; } catch (err) { continue; }
    if (value === null || typeof value !== "object" || seen.has(value)) continue;
    seen.add(value);
    var encoded = null;
    try { encoded = JSON.stringify(value); } catch (err) { encoded = null; }
    out.push([name, encoded === undefined ? null : encoded]);
  }
  return JSON.stringify(out);
})(%s)
"""


def strip_module_syntax(source: str) -> str:
    """Make an ES module bundle executable as a classic script.

    Removes the first trailing ``export { a as x, ... };`` block and every
    ``export default`` token, keeping the exported expression.

    Examples:
        >>> strip_module_syntax("var a = 1;\\nexport { a as b };\\n")
        'var a = 1;\\n'
        >>> strip_module_syntax("export default window.spec = {};")
        'window.spec = {};'
    """

    without_exports = _EXPORT_LIST_PATTERN.sub("", source, count=1)
    return _EXPORT_DEFAULT_PATTERN.sub("", without_exports)


@dataclass(frozen=True)
class Binding:
    """One object-valued top-level binding recovered from the context.

    ``value`` is ``None`` when the object could not be serialized (cycles,
    BigInt members); such values are never specification documents.
    """

    name: str
    value: Optional[Any]


BindingEnumerator = Callable[[MiniRacer, Sequence[str], int], List[Binding]]


def enumerate_global_bindings(
    context: MiniRacer,
    baseline: Sequence[str],
    timeout_ms: int,
) -> List[Binding]:
    """Snapshot the global properties added on top of ``baseline``."""

    script = _SNAPSHOT_SCRIPT % json.dumps(list(baseline))
    raw = context.eval(script, timeout=timeout_ms)
    bindings: List[Binding] = []
    for name, encoded in json.loads(raw):
        value = json.loads(encoded) if encoded is not None else None
        bindings.append(Binding(name=name, value=value))
    return bindings


class JsSandbox:
    """Run untrusted script source and return its top-level bindings, or fail.

    A fresh context is created by ``context_factory`` for every :meth:`run`
    call and closed before the call returns; contexts are never reused.
    """

    def __init__(
        self,
        *,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        max_memory_mb: Optional[int] = None,
        context_factory: Callable[[], MiniRacer] = MiniRacer,
        binding_enumerator: BindingEnumerator = enumerate_global_bindings,
    ) -> None:
        if timeout_sec <= 0:
            raise ValueError("timeout_sec must be positive")
        self.timeout_sec = timeout_sec
        self.max_memory_mb = max_memory_mb
        self.context_factory = context_factory
        self.binding_enumerator = binding_enumerator

    @property
    def timeout_ms(self) -> int:
        return max(1, int(self.timeout_sec * 1000))

    def run(self, source: str) -> List[Binding]:
        """Execute ``source`` and snapshot the bindings it introduced.

        Raises:
            ExtractionError: If the script throws, fails to parse, or exceeds
                the wall-clock budget.
        """

        context = self.context_factory()
        try:
            if self.max_memory_mb is not None:
                context.set_hard_memory_limit(self.max_memory_mb * 1024 * 1024)
            baseline = json.loads(context.eval(_GLOBAL_NAMES_SCRIPT))
            try:
                context.eval(source, timeout=self.timeout_ms)
                return self.binding_enumerator(context, baseline, self.timeout_ms)
            except JSTimeoutException as exc:
                raise ExtractionError(
                    f"Bundle script exceeded the {self.timeout_sec:g}s execution budget",
                    reason="timeout",
                ) from exc
            except JSEvalException as exc:
                first_line = str(exc).strip().splitlines()[0] if str(exc).strip() else type(exc).__name__
                raise ExtractionError(
                    f"Bundle script failed during sandboxed execution: {first_line}",
                    reason="script-error",
                ) from exc
        finally:
            context.close()


def extract_specs(
    source: str,
    *,
    timeout_sec: float = DEFAULT_TIMEOUT_SEC,
    sandbox: Optional[JsSandbox] = None,
) -> List[DiscoveredSpec]:
    """Recover every specification document built by a data bundle.

    Returns:
        Non-empty list of handles in context enumeration order.

    Raises:
        ExtractionError: If execution fails or no binding passes the
            specification shape check.
    """

    runner = sandbox or JsSandbox(timeout_sec=timeout_sec)
    bindings = runner.run(strip_module_syntax(source))

    specs: List[DiscoveredSpec] = []
    for binding in bindings:
        if binding.value is None:
            LOGGER.debug("skipping unserializable binding %s", binding.name, extra={"stage": "extract"})
            continue
        if is_spec_document(binding.value):
            specs.append(DiscoveredSpec(document=binding.value))

    if not specs:
        raise ExtractionError(
            "Could not find OpenAPI object in evaluated JS payload",
            reason="no-candidates",
        )

    LOGGER.info(
        "recovered %d specification document(s) from %d binding(s)",
        len(specs),
        len(bindings),
        extra={"stage": "extract"},
    )
    return specs
