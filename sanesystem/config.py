"""Curly-bracket configuration documents: parser and tree of named nodes.

A document looks like::

    sanesystem{
        threads = 4;
        dirs{
            /usr/bin{ recursive=true; what=size,crc; }
        }
    }

``{`` opens a named node, ``=`` or ``:`` opens one that a ``;`` closes,
``,`` separates values, ``}`` or ``;`` closes the current node, ``#`` starts
a comment, double quotes keep white space and ``\\`` escapes the next
special character.  A value starting with ``@`` refers to another node by
path (``@/a/b[1]``, ``@../x``).  ``%include=name;`` pulls in ``name.conf``.
"""

from __future__ import annotations

import os
import sys
from enum import Enum
from pathlib import Path

INCLUDE_KEY = "%include"
_INDENT = "    "


class ConfigError(ValueError):
    """Raised when a configuration document cannot be parsed."""

    def __init__(self, message, line=None):
        super().__init__(message if line is None else f"line {line}: {message}")
        self.line = line


class NodeType(Enum):
    NULL = "null"
    NODE = "node"
    LEAF = "leaf"


class Node:
    """A named node holding an ordered list of child nodes (its values)."""

    def __init__(self, name="", kind=NodeType.NULL, parent=None):
        self.name = name
        self.kind = kind
        self.parent = parent
        self.values = []

    def __repr__(self):
        return f"Node({self.name!r}, {self.kind.name}, {len(self.values)} values)"

    @property
    def ok(self):
        """False for the placeholder returned by failed look-ups."""
        return self.kind is not NodeType.NULL

    def top(self):
        """Return the root of the tree this node belongs to."""
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def add(self, child):
        """Attach an existing node as the last child."""
        self.kind = NodeType.NODE
        child.parent = self
        self.values.append(child)

    def add_value(self, value):
        """Append a leaf holding value; return this node."""
        self._store(value)
        return self

    def _store(self, name):
        leaf = Node(name, NodeType.LEAF, self)
        self.kind = NodeType.NODE
        self.values.append(leaf)
        return leaf

    def __getitem__(self, key):
        if key == self.name:
            return self
        return self._at(key)

    def is_node(self):
        return self.kind is NodeType.NODE

    def pnode(self, name):
        """Return the direct child called name, or an empty node."""
        return self._at(name)

    def count(self):
        return len(self.values)

    def value(self, index=0):
        """Return the text of the value at index, following @ references.

        An index past the end yields the first value.
        """
        if not self.values:
            return ""
        if index < len(self.values):
            text, position_text = self.values[index].name, "0"
        else:
            text, position_text = self.values[0].name, str(index)

        if not text.startswith("@"):
            return text

        target, position_text = self._resolve(text, position_text)
        if target is None:
            return ""
        position = int(float(position_text)) if position_text else 0
        if 0 <= position < len(target.values):
            return target.values[position].name
        return ""

    def _resolve(self, reference, position_text):
        node = self
        indexing = False
        segment = ""
        for ch in reference:
            if ch in "@&":
                continue
            if ch == "/":
                if segment == "..":
                    node = node.parent
                elif not segment:
                    node = node.top()
                else:
                    node = node._at(segment)
                segment = ""
                if node is None:
                    return None, position_text
                continue
            if ch == "[":
                indexing = True
            elif ch == "]":
                indexing = False
            elif indexing:
                position_text += ch
            else:
                segment += ch
        return node._at(segment), position_text

    def _at(self, name):
        return next((child for child in self.values if child.name == name), Node())

    def _remove(self, child):
        self.values = [value for value in self.values if value is not child]


def _locate(argv0):
    stem = Path(argv0).stem
    candidate = os.path.dirname(argv0) + "/" + stem + ".conf"
    if os.path.exists(candidate):
        return candidate
    candidate = os.path.join(os.getcwd(), stem + ".conf")
    if os.path.exists(candidate):
        return candidate
    return None


def _format(node, depth):
    indent = _INDENT * depth
    yield f"\n{indent}{node.name}"
    if node.values:
        yield f"\n{indent}{{\n"
        for child in node.values:
            yield from _format(child, depth + 1)
        yield f"\n{indent}}}\n"


class _Parser:
    """Character-driven state machine that builds the tree of a Config."""

    def __init__(self, config):
        self.config = config
        self.current = None
        self.depth = 0
        self.closed = 0
        self.pending_eq = False
        self.quoted = False
        self.escaping = False
        self.buffer = ""

    def run(self, text):
        lines = text.split("\n")
        if lines and lines[-1] == "":
            lines.pop()
        for lineno, line in enumerate(lines, 1):
            if not self.escaping and not self.quoted:
                if not line or line.startswith("#"):
                    continue
                if self.pending_eq:
                    raise ConfigError("missing ; at the end when using = or :", lineno)
            if self.quoted:
                line += "\n"
            for ch in line:
                if ch == "#":
                    break
                self._feed(ch, lineno)
        if self.depth or self.config.root is None:
            raise ConfigError("document malformated. check { and }")

    def _take_escaped(self, ch):
        if self.escaping:
            self.buffer += ch
            self.escaping = False
            return True
        return False

    def _feed(self, ch, lineno):
        if ch in " \t":
            if self.quoted:
                self.buffer += ch
        elif ch == "\\":
            if self.escaping:
                self.buffer += ch
                self.escaping = False
            else:
                self.escaping = True
        elif ch == '"':
            if not self._take_escaped(ch):
                self.quoted = not self.quoted
        elif ch in ":={":
            if ch != "{":
                self.pending_eq = True
            if not self._take_escaped(ch):
                self._open()
        elif ch in "};":
            self.pending_eq = False
            if not self._take_escaped(ch):
                self._close(lineno)
        elif ch == ",":
            if not self._take_escaped(ch):
                if self.current is None:
                    raise ConfigError("unexpected ','", lineno)
                self.current._store(self.buffer)
                self.buffer = ""
        else:
            self.buffer += ch

    def _open(self):
        config = self.config
        # A document without an enclosing node gets an unnamed root.
        if self.closed == 1 and self.current is None:
            root = Node("", NodeType.NODE)
            root.add(config.root)
            config.root = root
            self.current = root

        parent = self.current
        if config.root is None:
            node = Node(kind=NodeType.NODE)
            config.root = node
        else:
            node = Node(kind=NodeType.LEAF)
        node.name = self.buffer
        node.parent = parent
        self.buffer = ""
        if parent is not None and node is not parent:
            parent.values.append(node)
        self.current = node
        self.depth += 1

    def _close(self, lineno):
        node = self.current
        if node is None:
            raise ConfigError("unexpected '}'", lineno)
        if self.buffer and node.name:
            if node.name == INCLUDE_KEY:
                self._include(node)
            else:
                node._store(self.buffer)
                self.buffer = ""
        self.current = node.parent
        self.closed += 1
        self.depth -= 1

    def _include(self, node):
        target = self.buffer
        included = Config().parse(target)
        if included is not None:
            holder = node.parent if node.parent is not None else self.config.root
            holder._remove(node)
            holder.add(included)
        else:
            node._store(f"~failed to load {target}")
        self.buffer = ""


class Config:
    """A parsed configuration document, or a tree built by hand."""

    def __init__(self):
        self.root = None

    def __getitem__(self, key):
        if self.root is None:
            return Node()
        return self.root[key]

    def parse(self, argv0):
        """Parse ``<stem>.conf`` next to argv0, else in the working directory.

        Returns the root node, or None when no such file exists.
        """
        self.root = None
        found = _locate(argv0)
        if found is None:
            print(f"No file found {argv0}", file=sys.stderr)
            return None
        return self.parse_file(found)

    def parse_file(self, path):
        try:
            text = Path(path).read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise ConfigError(f"error open {path}") from exc
        return self.parse_text(text)

    def parse_text(self, text):
        self.root = None
        _Parser(self).run(text)
        return self.root

    def begin(self, name):
        """Start a hand-built tree with a root called name."""
        if self.root is not None:
            raise ConfigError("a tree has already been started")
        self.root = Node(name, NodeType.NODE)
        return self.root

    def make(self, name):
        return Node(name, NodeType.NODE)

    def format_tree(self, node):
        """Render node and its descendants as indented text."""
        return "".join(_format(node, 1))