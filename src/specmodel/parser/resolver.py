"""Resolve ``$ref`` JSON Reference pointers into a finite, shareable graph.

OpenAPI documents use ``$ref`` pointers (e.g.,
``{"$ref": "#/components/schemas/Pet"}``) both to avoid repetition and to
describe recursive data models. This module walks the ``paths`` and schema
roots depth-first and replaces every pointer with one of two markers:

* :class:`ResolvedRef` -- a direct reference to the resolved target. Each
  pointer target is resolved once and the same object is shared by every
  ``ResolvedRef`` that points at it, so the graph never holds two copies
  of a node.
* :class:`BackReference` -- emitted when a pointer's target is already
  being resolved further up the current chain (``Node -> Node``, or
  ``A -> B -> A``). It stores only the pointer and the target's name; the
  node itself can be fetched with :meth:`ResolvedDocument.lookup`.

The chain of pointers currently being resolved is the per-traversal visited
set. Because a cycle is cut the first time a pointer repeats on the chain and
each target is memoised, resolution is linear in the size of the document no
matter how long the cycles are.

Pointers that cannot be followed (missing keys, bad array indexes, external
files or URLs) do not abort resolution. They are recorded as
:class:`~specmodel.models.UnresolvedReference` entries, logged, and the
original ``$ref`` mapping is left in place.

The single public function is :func:`resolve_document`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import unquote

from specmodel.exceptions import ParsingError, ReferenceError_
from specmodel.models import UnresolvedReference
from specmodel.parser.loader import RawDocument

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 256

_OPENAPI3_SCHEMA_ROOT = "#/components/schemas"
_SWAGGER2_SCHEMA_ROOT = "#/definitions"


@dataclass(frozen=True)
class ResolvedRef:
    """A resolved pointer. ``target`` is shared, never copied."""

    pointer: str
    target: Any = field(compare=False, repr=False)

    @property
    def name(self) -> str:
        return pointer_name(self.pointer)


@dataclass(frozen=True)
class BackReference:
    """A non-owning marker that closes a reference cycle.

    Attributes:
        pointer: The pointer whose target is an ancestor on the current
            chain. Doubles as the lookup key into the resolved graph.
        name: Last segment of the pointer (the schema name for
            ``#/components/schemas/...`` pointers).
        relation: ``"self"`` when the node refers to itself directly,
            ``"ancestor"`` when the cycle passes through other nodes.
    """

    pointer: str
    name: str
    relation: str = "ancestor"


class ResolvedDocument:
    """Output of :func:`resolve_document`.

    Attributes:
        raw: The :class:`~specmodel.parser.loader.RawDocument` this was
            resolved from.
        paths: The resolved ``paths`` node (normally a dict; left as-is
            when the document's ``paths`` is malformed).
        schemas: Ordered mapping of schema name to its resolved node.
        unresolved: Every pointer that could not be followed.
        schema_root: Pointer prefix of the named schema table
            (``#/components/schemas`` or ``#/definitions``).
    """

    def __init__(
        self,
        raw: RawDocument,
        paths: Any,
        schemas: dict[str, Any],
        unresolved: list[UnresolvedReference],
        schema_root: str,
        arena: dict[str, Any],
    ) -> None:
        self.raw = raw
        self.paths = paths
        self.schemas = schemas
        self.unresolved = unresolved
        self.schema_root = schema_root
        self._arena = arena

    @property
    def tree(self) -> dict[str, Any]:
        return self.raw.tree

    @property
    def version(self) -> str:
        return self.raw.version

    def lookup(self, pointer: str) -> Optional[Any]:
        """Return the resolved node for *pointer*, or ``None`` if it was never resolved."""
        return self._arena.get(pointer)

    def schema_name_for(self, pointer: str) -> Optional[str]:
        """Return the schema name when *pointer* addresses a named schema directly.

        ``#/components/schemas/Pet`` gives ``"Pet"``;
        ``#/components/schemas/Pet/properties/tag`` gives ``None``.
        """
        prefix = self.schema_root + "/"
        if not pointer.startswith(prefix):
            return None
        remainder = pointer[len(prefix):]
        if not remainder or "/" in remainder:
            return None
        return _unescape(remainder)


def resolve_document(raw: RawDocument, max_depth: int = DEFAULT_MAX_DEPTH) -> ResolvedDocument:
    """Resolve all internal pointers reachable from ``paths`` and the schema root.

    Args:
        raw: The loaded document. It is not modified.
        max_depth: Deepest nesting to walk before giving up.

    Returns:
        A :class:`ResolvedDocument`. Unresolvable pointers are listed in
        ``unresolved`` rather than raised.

    Raises:
        ParsingError: If the document nests deeper than *max_depth*.

    Example::

        raw = load_document("petstore.yaml")
        resolved = resolve_document(raw)
        node = resolved.schemas["Node"]
        node["properties"]["children"]["items"]
        # BackReference(pointer='#/components/schemas/Node', name='Node', relation='self')
    """
    schema_root = _SWAGGER2_SCHEMA_ROOT if raw.is_swagger2 else _OPENAPI3_SCHEMA_ROOT
    walker = _Walker(raw.tree, max_depth)

    try:
        schemas = walker.resolve_table(schema_root)
        paths = walker.resolve(raw.tree.get("paths"), "#/paths", 0)
    except RecursionError as exc:
        raise ParsingError(
            f"Document nesting is too deep to resolve (limit {max_depth} levels)"
        ) from exc

    if walker.unresolved:
        logger.warning(
            "%d unresolved reference(s) in %s", len(walker.unresolved), raw.source
        )
    return ResolvedDocument(
        raw=raw,
        paths=paths,
        schemas=schemas,
        unresolved=walker.unresolved,
        schema_root=schema_root,
        arena=walker.arena,
    )


def lookup_pointer(root: dict[str, Any], pointer: str) -> Any:
    """Follow an internal JSON pointer against the document root.

    Handles RFC 6901 escaping (``~0`` for ``~``, ``~1`` for ``/``) and
    percent-encoded segments.

    Raises:
        ReferenceError_: If the pointer is external or any segment does not
            exist.
    """
    if pointer == "#":
        return root
    if not pointer.startswith("#/"):
        raise ReferenceError_(pointer, "external references are not supported")

    current: Any = root
    for raw_segment in pointer[2:].split("/"):
        segment = _unescape(unquote(raw_segment))
        if isinstance(current, dict):
            if segment not in current:
                raise ReferenceError_(pointer, f"key '{segment}' not found")
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError):
                raise ReferenceError_(pointer, f"invalid array index '{segment}'") from None
        else:
            raise ReferenceError_(
                pointer, f"cannot navigate into {type(current).__name__}"
            )
    return current


def pointer_name(pointer: str) -> str:
    """Return the unescaped last segment of a pointer."""
    return _unescape(unquote(pointer.rstrip("/").rsplit("/", 1)[-1]))


def escape_segment(segment: str) -> str:
    return segment.replace("~", "~0").replace("/", "~1")


def _unescape(segment: str) -> str:
    return segment.replace("~1", "/").replace("~0", "~")


class _Walker:
    """Depth-first resolver state for one document.

    Named schemas get an arena slot before any of them is resolved, so a
    reference to a named schema is a :class:`ResolvedRef` to its slot and
    never recurses. Only pointers into other parts of the document are
    resolved recursively.
    """

    def __init__(self, root: dict[str, Any], max_depth: int) -> None:
        self.root = root
        self.max_depth = max_depth
        self.arena: dict[str, Any] = {}
        self.unresolved: list[UnresolvedReference] = []
        self._chain: list[str] = []

    def resolve_table(self, table_pointer: str) -> dict[str, Any]:
        """Resolve every entry of a name-keyed table such as ``components.schemas``."""
        try:
            table = lookup_pointer(self.root, table_pointer)
        except ReferenceError_:
            return {}

        if isinstance(table, dict) and isinstance(table.get("$ref"), str):
            resolved = self._follow_ref(table, table_pointer, 0)
            if not isinstance(resolved, ResolvedRef):
                return {}
            table_pointer = resolved.pointer
            table = lookup_pointer(self.root, table_pointer)

        if not isinstance(table, dict):
            return {}

        pointers = {name: f"{table_pointer}/{escape_segment(str(name))}" for name in table}
        slots: set[str] = set()
        for name, pointer in pointers.items():
            if _is_definition(table[name]):
                self.arena[pointer] = {}
                slots.add(pointer)
        chains = self._reference_chains(table, pointers)

        result: dict[str, Any] = {}
        for name, pointer in pointers.items():
            chain = chains[pointer]
            if pointer in slots:
                self._chain = list(chain)
                self.arena[pointer].update(self.resolve(table[name], pointer, 0))
                result[name] = self.arena[pointer]
            else:
                self._chain = list(chain[:-1])
                result[name] = self._resolve_target(pointer, table[name], 0)
        self._chain = []
        return result

    def resolve(self, node: Any, location: str, depth: int) -> Any:
        if depth > self.max_depth:
            raise ParsingError(
                f"Document nesting exceeds {self.max_depth} levels at {location}"
            )

        if isinstance(node, dict):
            if isinstance(node.get("$ref"), str):
                return self._follow_ref(node, location, depth)
            resolved: dict[str, Any] = {}
            for key, value in node.items():
                resolved[key] = self.resolve(value, f"{location}/{escape_segment(str(key))}", depth + 1)
            return resolved

        if isinstance(node, list):
            items = []
            for index, item in enumerate(node):
                items.append(self.resolve(item, f"{location}/{index}", depth + 1))
            return items

        return node

    def _follow_ref(self, node: dict[str, Any], location: str, depth: int) -> Any:
        pointer = node["$ref"]

        if pointer in self._chain:
            relation = "self" if self._chain[-1] == pointer else "ancestor"
            return BackReference(pointer=pointer, name=pointer_name(pointer), relation=relation)

        if pointer in self.arena:
            return ResolvedRef(pointer=pointer, target=self.arena[pointer])

        try:
            target = lookup_pointer(self.root, pointer)
        except ReferenceError_ as exc:
            self.unresolved.append(
                UnresolvedReference(pointer=pointer, location=location, reason=exc.reason)
            )
            logger.warning("Unresolved reference %s at %s: %s", pointer, location, exc.reason)
            return node

        # Nesting is counted per target, not along the reference chain.
        return ResolvedRef(pointer=pointer, target=self._resolve_target(pointer, target, 0))

    def _resolve_target(self, pointer: str, target: Any, depth: int) -> Any:
        if pointer in self.arena:
            return self.arena[pointer]
        self._chain.append(pointer)
        try:
            resolved = self.resolve(target, pointer, depth)
        finally:
            self._chain.pop()
        self.arena[pointer] = resolved
        return resolved

    def _reference_chains(
        self, table: dict[str, Any], pointers: dict[str, str]
    ) -> dict[str, tuple[str, ...]]:
        """Walk the named-schema reference graph depth-first, in declaration order.

        Returns, for each schema pointer, the chain of schema pointers that
        leads to it on first visit (ending with the pointer itself). A
        reference to a pointer on that chain closes a cycle.
        """
        named = set(pointers.values())
        edges = {pointer: self._named_refs(table[name], named) for name, pointer in pointers.items()}

        chains: dict[str, tuple[str, ...]] = {}
        for root in pointers.values():
            if root in chains:
                continue
            chains[root] = (root,)
            stack = [(root, iter(edges[root]))]
            while stack:
                current, pending = stack[-1]
                target = next(pending, None)
                if target is None:
                    stack.pop()
                elif target not in chains:
                    chains[target] = chains[current] + (target,)
                    stack.append((target, iter(edges[target])))
        return chains

    def _named_refs(self, node: Any, named: set[str]) -> list[str]:
        """List the named-schema pointers *node* refers to, in document order.

        Pointers into other parts of the document are followed so that a
        named schema reached through them still counts.
        """
        found: list[str] = []
        followed: set[str] = set()
        stack = [node]
        while stack:
            current = stack.pop()
            if isinstance(current, dict):
                pointer = current.get("$ref")
                if not isinstance(pointer, str):
                    stack.extend(reversed(list(current.values())))
                elif pointer in named:
                    found.append(pointer)
                elif pointer not in followed:
                    followed.add(pointer)
                    try:
                        stack.append(lookup_pointer(self.root, pointer))
                    except ReferenceError_:
                        continue  # recorded when the reference is resolved
            elif isinstance(current, list):
                stack.extend(reversed(current))
        return found


def _is_definition(node: Any) -> bool:
    return isinstance(node, dict) and not isinstance(node.get("$ref"), str)
