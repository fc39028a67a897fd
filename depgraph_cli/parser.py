"""TypeScript structural fact extraction using Tree-sitter.

Produces :class:`~depgraph_cli.models.ParsedFile` records (classes, methods,
functions, interfaces, imports and raw call-expression text) for the graph
builder. The scanner walks the project tree, skipping excluded paths and
directories it cannot read.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import tree_sitter_typescript
from tree_sitter import Language, Parser

from .config import SUPPORTED_EXTENSIONS
from .models import (
    ParsedClass,
    ParsedFile,
    ParsedFunction,
    ParsedImport,
    ParsedInterface,
    ParsedMethod,
)
from .path_utils import normalize_path, should_exclude_path

logger = logging.getLogger(__name__)

CLASS_TYPES = {"class_declaration", "abstract_class_declaration"}
FUNCTION_TYPES = {"function_declaration", "generator_function_declaration"}
CALLEE_TYPES = {"identifier", "member_expression"}


def _text(node: Any) -> str:
    return node.text.decode("utf-8")


def _lines(node: Any) -> Tuple[int, int]:
    return node.start_point[0] + 1, node.end_point[0] + 1


# ===================================================================
# File scanning
# ===================================================================

class FileScanner:
    """Recursively collects ``.ts``/``.tsx`` files under a root.

    Unreadable directories are logged and counted in ``skipped_dirs``;
    the scan carries on.
    """

    def __init__(self, exclude: Iterable[str] = ()) -> None:
        self.exclude = list(exclude)
        self.skipped_dirs: List[str] = []

    def scan(self, root: Path) -> List[Path]:
        self.skipped_dirs = []
        files: List[Path] = []
        self._scan_dir(Path(root), Path(root), files)
        return sorted(files)

    def _scan_dir(self, root: Path, directory: Path, files: List[Path]) -> None:
        try:
            entries = list(os.scandir(directory))
        except OSError as exc:
            logger.warning("Skipping unreadable directory %s: %s", directory, exc)
            self.skipped_dirs.append(str(directory))
            return

        for entry in entries:
            path = Path(entry.path)
            rel = normalize_path(path, root)
            if should_exclude_path(rel, self.exclude):
                continue
            if entry.is_dir(follow_symlinks=False):
                self._scan_dir(root, path, files)
            elif entry.is_file() and path.suffix in SUPPORTED_EXTENSIONS:
                files.append(path)


def find_project_root(start: Optional[Path] = None) -> Path:
    """Nearest ancestor containing ``package.json``, else *start* itself."""
    start = (start or Path.cwd()).resolve()
    for candidate in [start, *start.parents]:
        if (candidate / "package.json").exists():
            return candidate
    return start


# ===================================================================
# Tree-sitter parser
# ===================================================================

class TypeScriptParser:
    """Extracts structural facts from TypeScript and TSX sources."""

    def __init__(self) -> None:
        self._parsers: Dict[str, Parser] = {
            ".ts": Parser(Language(tree_sitter_typescript.language_typescript())),
            ".tsx": Parser(Language(tree_sitter_typescript.language_tsx())),
        }

    def parse_file(self, file_path: Path, rel_path: str, source: Optional[str] = None) -> ParsedFile:
        if source is None:
            source = file_path.read_text(encoding="utf-8", errors="ignore")
        return self.parse_source(source, rel_path, suffix=file_path.suffix)

    def parse_source(self, source: str, rel_path: str, suffix: str = ".ts") -> ParsedFile:
        parser = self._parsers.get(suffix, self._parsers[".ts"])
        tree = parser.parse(source.encode("utf-8"))

        parsed = ParsedFile(file_path=rel_path)
        for child in tree.root_node.children:
            outer = child
            decl = child
            if child.type == "export_statement":
                inner = child.child_by_field_name("declaration")
                if inner is None:
                    continue
                decl = inner

            if decl.type == "import_statement":
                self._process_import(decl, parsed)
            elif decl.type in CLASS_TYPES:
                self._process_class(outer, decl, parsed)
            elif decl.type in FUNCTION_TYPES:
                self._process_function(outer, decl, parsed)
            elif decl.type == "interface_declaration":
                self._process_interface(outer, decl, parsed)
        return parsed

    def parse_project(
        self,
        project_root: Path,
        scanner: Optional[FileScanner] = None,
    ) -> Tuple[List[ParsedFile], List[str]]:
        """Parse every scanned file; returns parsed files and failed paths."""
        scanner = scanner or FileScanner()
        parsed_files: List[ParsedFile] = []
        failures: List[str] = []
        for path in scanner.scan(project_root):
            rel = normalize_path(path, project_root)
            try:
                parsed_files.append(self.parse_file(path, rel))
            except (OSError, UnicodeError, ValueError) as exc:
                logger.warning("Failed to parse %s: %s", rel, exc)
                failures.append(rel)
        return parsed_files, failures

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    @staticmethod
    def _process_import(node: Any, parsed: ParsedFile) -> None:
        source = node.child_by_field_name("source")
        if source is None:
            return
        specifier = _text(source).strip("'\"`")
        is_type_only = any(ch.type == "type" for ch in node.children)
        parsed.imports.append(ParsedImport(source=specifier, is_type_only=is_type_only))

    def _process_class(self, outer: Any, node: Any, parsed: ParsedFile) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        line, end_line = _lines(outer)
        extends, implements = self._heritage(node)

        methods: List[ParsedMethod] = []
        body = node.child_by_field_name("body")
        if body is not None:
            # Member decorators are siblings that precede the method in class_body.
            first_decorator = None
            for member in body.children:
                if member.type == "decorator":
                    first_decorator = first_decorator or member
                    continue
                if member.type == "comment":
                    continue
                decorator, first_decorator = first_decorator, None
                if member.type != "method_definition":
                    continue
                method_name = member.child_by_field_name("name")
                if method_name is None or _text(method_name) == "constructor":
                    continue
                m_line, m_end = _lines(member)
                if decorator is not None:
                    m_line = _lines(decorator)[0]
                methods.append(ParsedMethod(
                    name=_text(method_name),
                    line=m_line,
                    end_line=m_end,
                    calls=self._collect_calls(member),
                ))

        parsed.classes.append(ParsedClass(
            name=_text(name_node),
            line=line,
            end_line=end_line,
            methods=methods,
            extends=extends,
            implements=implements or None,
        ))

    def _process_function(self, outer: Any, node: Any, parsed: ParsedFile) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        line, end_line = _lines(outer)
        parsed.functions.append(ParsedFunction(
            name=_text(name_node),
            line=line,
            end_line=end_line,
            calls=self._collect_calls(node),
        ))

    @staticmethod
    def _process_interface(outer: Any, node: Any, parsed: ParsedFile) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        line, end_line = _lines(outer)
        parsed.interfaces.append(ParsedInterface(name=_text(name_node), line=line, end_line=end_line))

    @staticmethod
    def _heritage(class_node: Any) -> Tuple[Optional[str], List[str]]:
        extends: Optional[str] = None
        implements: List[str] = []
        for child in class_node.children:
            if child.type != "class_heritage":
                continue
            for clause in child.children:
                if clause.type == "extends_clause":
                    parts = [_text(c) for c in clause.children if c.type not in ("extends", ",")]
                    extends = "".join(parts) or None
                elif clause.type == "implements_clause":
                    implements.extend(
                        _text(c) for c in clause.children if c.type not in ("implements", ",")
                    )
        return extends, implements

    @staticmethod
    def _collect_calls(node: Any) -> List[str]:
        """Callee text of every call inside *node*, deduplicated in source order."""
        calls: Dict[str, None] = {}
        stack = [node]
        while stack:
            current = stack.pop()
            if current.type == "call_expression":
                callee = current.child_by_field_name("function")
                if callee is not None and callee.type in CALLEE_TYPES:
                    calls.setdefault(_text(callee), None)
            stack.extend(reversed(current.children))
        return list(calls)
