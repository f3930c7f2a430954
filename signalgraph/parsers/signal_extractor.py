"""Extracts signal definitions, emissions and connections from GDScript syntax trees.

The extractor only relies on the small node surface tree-sitter exposes
(``type``, ``children``, ``named_children``, ``child_by_field_name``,
``start_point`` and ``text``), so any tree offering that surface works.
It keeps no state between calls and can be shared across worker threads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Sequence

from ..models import (
    ConnectionSite,
    EmissionSite,
    FileFacts,
    ParsedFile,
    SignalDefinition,
    SignalParam,
)

_CONTEXT_RADIUS = 2

_SIGNAL_DECLARATION = "signal_statement"
_CALL_TYPES = {"call", "call_expression"}
_ATTRIBUTE_TYPES = {"attribute"}
_METHOD_CALL_TYPE = "attribute_call"
_NAME_TYPES = {"identifier", "name", "self"}
_PARAMETER_TYPES = {
    "parameter",
    "typed_parameter",
    "default_parameter",
    "typed_default_parameter",
}
_IGNORED_ARGUMENT_TYPES = {"(", ")", ",", "comment"}
_LAMBDA_TYPES = {"lambda"}
_STRING_TYPES = {"string", "string_name"}

_EMIT = "emit"
_CONNECT = "connect"
LAMBDA_HANDLER = "<lambda>"


class ExtractionError(RuntimeError):
    """Raised when a file's syntax tree cannot be traversed."""


@dataclass
class _MethodCall:
    receiver: List[str]
    method: str
    arguments: List[Any]
    node: Any


@dataclass
class _Handler:
    handler: str
    is_lambda: bool = False
    flags: Optional[List[str]] = None


class SignalExtractor:
    """Turns one parsed file into definition, emission and connection facts."""

    def extract(self, tree: Any, file_path: str, source: Optional[bytes] = None) -> FileFacts:
        """Collect every signal fact in ``tree`` with a single traversal."""
        root = _root_of(tree, file_path)
        lines = _source_lines(source)
        facts = FileFacts(file_path=file_path)
        try:
            for node in _walk(root):
                if node.type == _SIGNAL_DECLARATION:
                    definition = _definition_from(node, file_path)
                    if definition is not None:
                        facts.definitions.append(definition)
                    continue
                call = _resolve_method_call(node)
                if call is None:
                    continue
                if call.method == _EMIT:
                    emission = _emission_from(call, file_path, lines)
                    if emission is not None:
                        facts.emissions.append(emission)
                elif call.method == _CONNECT:
                    connection = _connection_from(call, file_path, lines)
                    if connection is not None:
                        facts.connections.append(connection)
        except ExtractionError:
            raise
        except Exception as exc:
            raise ExtractionError(f"Failed to traverse {file_path}: {exc}") from exc
        return facts

    def extract_file(self, parsed: ParsedFile) -> FileFacts:
        return self.extract(parsed.tree, parsed.file_path, parsed.source)

    def extract_definitions(self, tree: Any, file_path: str) -> List[SignalDefinition]:
        return self.extract(tree, file_path).definitions

    def extract_emissions(
        self, tree: Any, file_path: str, source: Optional[bytes] = None
    ) -> List[EmissionSite]:
        return self.extract(tree, file_path, source).emissions

    def extract_connections(
        self, tree: Any, file_path: str, source: Optional[bytes] = None
    ) -> List[ConnectionSite]:
        return self.extract(tree, file_path, source).connections


# ----------------------------------------------------------------------
# Tree helpers


def _root_of(tree: Any, file_path: str) -> Any:
    if tree is None:
        raise ExtractionError(f"No syntax tree for {file_path}")
    root = getattr(tree, "root_node", tree)
    if root is None:
        raise ExtractionError(f"No root node for {file_path}")
    return root


def _walk(root: Any) -> Iterator[Any]:
    """Yield nodes in document order without recursing."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        children = node.children or []
        stack.extend(reversed(children))


def _text(node: Any) -> str:
    value = node.text
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _line(node: Any) -> int:
    return int(node.start_point[0]) + 1


def _field(node: Any, name: str) -> Any:
    return node.child_by_field_name(name)


def _named(node: Any) -> List[Any]:
    return [child for child in node.named_children if child.type != "comment"]


def _first_of_type(nodes: Sequence[Any], types: set[str]) -> Any:
    return next((child for child in nodes if child.type in types), None)


def _field_or_child(node: Any, name: str, children: Sequence[Any], types: set[str]) -> Any:
    value = _field(node, name)
    if value is not None:
        return value
    return _first_of_type(children, types)


def _callee(node: Any, children: Sequence[Any]) -> Any:
    value = _field(node, "function")
    if value is not None:
        return value
    return children[0] if children else None


def _source_lines(source: Optional[bytes]) -> List[str]:
    if not source:
        return []
    return source.decode("utf-8", errors="replace").split("\n")


def _context(node: Any, lines: Sequence[str]) -> str:
    if not lines:
        return _text(node)
    row = int(node.start_point[0])
    start = max(0, row - _CONTEXT_RADIUS)
    end = min(len(lines), row + _CONTEXT_RADIUS + 1)
    return "\n".join(lines[start:end])


def _strip_quotes(text: str) -> str:
    return text.replace('"', "").replace("'", "").lstrip("&")


# ----------------------------------------------------------------------
# Definitions


def _definition_from(node: Any, file_path: str) -> Optional[SignalDefinition]:
    children = _named(node)
    name_node = _field_or_child(node, "name", children, _NAME_TYPES)
    if name_node is None:
        return None
    name = _text(name_node)
    if not name:
        return None
    params_node = _field_or_child(node, "parameters", children, {"parameters"})
    params: List[SignalParam] = []
    if params_node is not None:
        for child in _named(params_node):
            param = _param_from(child)
            if param is not None:
                params.append(param)
    return SignalDefinition(name=name, file_path=file_path, line=_line(name_node), params=params)


def _param_from(node: Any) -> Optional[SignalParam]:
    if node.type in _NAME_TYPES:
        return SignalParam(name=_text(node))
    if node.type not in _PARAMETER_TYPES:
        return None
    children = _named(node)
    name_node = _field_or_child(node, "name", children, _NAME_TYPES)
    if name_node is None:
        return None
    type_node = _field_or_child(node, "type", children, {"type"})
    return SignalParam(
        name=_text(name_node),
        type=_text(type_node) if type_node is not None else None,
    )


# ----------------------------------------------------------------------
# Calls


def _segments(node: Any) -> Optional[List[str]]:
    """Flatten a dotted receiver such as ``EventBus.player_died`` into names."""
    if node.type in _NAME_TYPES:
        return [_text(node)]
    if node.type not in _ATTRIBUTE_TYPES:
        return None
    obj = _field(node, "object")
    attr = _field(node, "attribute")
    if obj is not None and attr is not None:
        head = _segments(obj)
        if head is None:
            return None
        return head + [_text(attr)]
    parts: List[str] = []
    for child in _named(node):
        sub = _segments(child)
        if sub is None:
            return None
        parts.extend(sub)
    return parts or None


def _arguments(args_node: Any) -> List[Any]:
    if args_node is None:
        return []
    return [child for child in args_node.named_children if child.type not in _IGNORED_ARGUMENT_TYPES]


def _resolve_method_call(node: Any) -> Optional[_MethodCall]:
    """Recognise ``receiver.method(args)`` in both grammar shapes."""
    if node.type in _ATTRIBUTE_TYPES:
        children = _named(node)
        if len(children) < 2 or children[-1].type != _METHOD_CALL_TYPE:
            return None
        receiver: List[str] = []
        for child in children[:-1]:
            sub = _segments(child)
            if sub is None:
                return None
            receiver.extend(sub)
        method_call = children[-1]
        call_children = _named(method_call)
        name_node = _first_of_type(call_children, _NAME_TYPES)
        if name_node is None:
            return None
        args_node = _field_or_child(method_call, "arguments", call_children, {"arguments"})
        return _MethodCall(receiver, _text(name_node), _arguments(args_node), node)

    if node.type in _CALL_TYPES:
        children = _named(node)
        callee = _callee(node, children)
        if callee is None or callee.type not in _ATTRIBUTE_TYPES:
            return None
        segments = _segments(callee)
        if not segments or len(segments) < 2:
            return None
        args_node = _field_or_child(node, "arguments", children, {"arguments"})
        return _MethodCall(segments[:-1], segments[-1], _arguments(args_node), node)

    return None


def _qualifier(receiver: Sequence[str]) -> Optional[str]:
    qualifier = ".".join(receiver[:-1])
    return qualifier or None


def _emission_from(call: _MethodCall, file_path: str, lines: Sequence[str]) -> Optional[EmissionSite]:
    if not call.receiver:
        return None
    args = [_text(arg) for arg in call.arguments]
    return EmissionSite(
        signal_name=call.receiver[-1],
        file_path=file_path,
        line=_line(call.node),
        context=_context(call.node, lines),
        emitter=_qualifier(call.receiver),
        args=args or None,
    )


def _connection_from(
    call: _MethodCall, file_path: str, lines: Sequence[str]
) -> Optional[ConnectionSite]:
    if not call.receiver or not call.arguments:
        return None

    first = call.arguments[0]
    if first.type in _STRING_TYPES:
        # Godot 3 form: obj.connect("signal_name", target, "method", binds, flags)
        signal_name = _strip_quotes(_text(first))
        target: Optional[str] = ".".join(call.receiver)
        handler = _legacy_handler(call.arguments)
    else:
        signal_name = call.receiver[-1]
        target = _qualifier(call.receiver)
        handler = _handler_from(call.arguments)

    if not signal_name or handler is None:
        return None
    return ConnectionSite(
        signal_name=signal_name,
        file_path=file_path,
        line=_line(call.node),
        handler=handler.handler,
        target=target,
        context=_context(call.node, lines),
        flags=handler.flags,
        is_lambda=handler.is_lambda,
    )


def _handler_from(arguments: Sequence[Any]) -> Optional[_Handler]:
    first = arguments[0]
    if first.type in _LAMBDA_TYPES:
        flags = [_text(arguments[1])] if len(arguments) > 1 else None
        return _Handler(handler=LAMBDA_HANDLER, is_lambda=True, flags=flags)

    callable_handler = _callable_handler(first)
    if callable_handler is not None:
        flags = [_text(arguments[1])] if len(arguments) > 1 else None
        return _Handler(handler=callable_handler, flags=flags)

    if len(arguments) >= 2:
        flags = [_text(arg) for arg in arguments[2:]] or None
        return _Handler(handler=_strip_quotes(_text(arguments[1])), flags=flags)
    return _Handler(handler=_strip_quotes(_text(first)))


def _callable_handler(node: Any) -> Optional[str]:
    """Return the method name of ``Callable(target, "method")``, if that is what ``node`` is."""
    if node.type not in _CALL_TYPES:
        return None
    children = _named(node)
    callee = _callee(node, children)
    if callee is None or _text(callee) != "Callable":
        return None
    args_node = _field_or_child(node, "arguments", children, {"arguments"})
    callable_args = _arguments(args_node)
    if len(callable_args) < 2:
        return None
    return _strip_quotes(_text(callable_args[1]))


def _legacy_handler(arguments: Sequence[Any]) -> Optional[_Handler]:
    if len(arguments) >= 3:
        flags = [_text(arg) for arg in arguments[3:]] or None
        return _Handler(handler=_strip_quotes(_text(arguments[2])), flags=flags)
    if len(arguments) == 2:
        second = arguments[1]
        if second.type in _LAMBDA_TYPES:
            return _Handler(handler=LAMBDA_HANDLER, is_lambda=True)
        return _Handler(handler=_strip_quotes(_text(second)))
    return None


__all__ = ["ExtractionError", "LAMBDA_HANDLER", "SignalExtractor"]
