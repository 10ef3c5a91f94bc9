"""Import accumulation and grouped rendering for generated modules."""

from __future__ import annotations

import sys
from typing import Final, Iterable

# Rendering groups, in output order
TYPING_GROUP: Final[int] = 0
STDLIB_GROUP: Final[int] = 1
THIRD_PARTY_GROUP: Final[int] = 2
DIALECT_GROUP: Final[int] = 3
ORM_GROUP: Final[int] = 4

# Groups rendered together without a separating blank line
_BLOCKS: Final[tuple[tuple[int, ...], ...]] = (
    (TYPING_GROUP, STDLIB_GROUP),
    (THIRD_PARTY_GROUP, DIALECT_GROUP, ORM_GROUP),
)


def import_group(module: str) -> int:
    """Classify a module into one of the rendering groups."""
    root = module.split(".", 1)[0]
    if module == "typing":
        return TYPING_GROUP
    if root in sys.stdlib_module_names:
        return STDLIB_GROUP
    if module == "sqlalchemy.orm" or module.startswith("sqlalchemy.orm."):
        return ORM_GROUP
    if module.startswith("sqlalchemy.dialects."):
        return DIALECT_GROUP
    return THIRD_PARTY_GROUP


class ImportCollector:
    """Collects ``from module import symbol`` and bare ``import module`` pairs.

    Rendering is independent of registration order: modules are sorted
    within their group and symbols are sorted within their statement.
    One collector belongs to one render call (or one table block of it).
    """

    def __init__(self) -> None:
        self._from_imports: dict[str, set[str]] = {}
        self._bare_imports: set[str] = set()

    def add(self, module: str, symbol: str | None = None) -> None:
        """Register an import; ``symbol=None`` means ``import module``."""
        if symbol is None:
            self._bare_imports.add(module)
        else:
            self._from_imports.setdefault(module, set()).add(symbol)

    def add_all(self, pairs: Iterable[tuple[str, str | None]]) -> None:
        for module, symbol in pairs:
            self.add(module, symbol)

    def update(self, other: ImportCollector) -> None:
        """Merge another collector's imports into this one."""
        for module, symbols in other._from_imports.items():
            self._from_imports.setdefault(module, set()).update(symbols)
        self._bare_imports.update(other._bare_imports)

    @property
    def symbols(self) -> frozenset[str]:
        """Names bound in the generated module by these imports."""
        names = {symbol for symbols in self._from_imports.values() for symbol in symbols}
        names.update(module.split(".", 1)[0] for module in self._bare_imports)
        return frozenset(names)

    def render(self) -> str:
        """Render the import header (no trailing newline).

        Examples:
            >>> imports = ImportCollector()
            >>> imports.add("sqlalchemy.orm", "Mapped")
            >>> imports.add("typing", "Optional")
            >>> imports.add("sqlalchemy", "Integer")
            >>> print(imports.render())
            from typing import Optional
            <BLANKLINE>
            from sqlalchemy import Integer
            from sqlalchemy.orm import Mapped
        """
        from_lines: dict[int, list[str]] = {}
        for module in sorted(self._from_imports):
            names = ", ".join(sorted(self._from_imports[module]))
            from_lines.setdefault(import_group(module), []).append(
                f"from {module} import {names}"
            )

        bare_lines: dict[int, list[str]] = {}
        for module in sorted(self._bare_imports):
            bare_lines.setdefault(import_group(module), []).append(f"import {module}")

        blocks: list[str] = []
        for groups in _BLOCKS:
            lines = [line for group in groups for line in from_lines.get(group, [])]
            lines.extend(line for group in groups for line in bare_lines.get(group, []))
            if lines:
                blocks.append("\n".join(lines))
        return "\n\n".join(blocks)
