"""Generator options."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final, Iterable

from .errors import OptionError

GENERATOR_NAMES: Final[tuple[str, ...]] = ("declarative", "tables")

# Flags accepted in the comma-delimited --options value
OPTION_TOKENS: Final[tuple[str, ...]] = (
    "noindexes",
    "noconstraints",
    "nocomments",
    "use_inflect",
    "nojoined",
    "nobidi",
)


@dataclass(frozen=True, slots=True)
class GeneratorOptions:
    """Options controlling table selection and rendering.

    Empty ``tables`` and ``schemas`` mean no filtering.
    """

    generator: str = "declarative"
    tables: frozenset[str] = field(default_factory=frozenset)
    schemas: tuple[str, ...] = ()
    include_views: bool = True
    noindexes: bool = False
    noconstraints: bool = False
    nocomments: bool = False
    use_inflect: bool = False
    nojoined: bool = False
    nobidi: bool = False

    def __post_init__(self) -> None:
        if self.generator not in GENERATOR_NAMES:
            raise OptionError(self.generator, kind="generator")
        # Accept any iterable from callers while keeping the dataclass hashable
        object.__setattr__(self, "tables", frozenset(self.tables))
        object.__setattr__(self, "schemas", tuple(dict.fromkeys(self.schemas)))

    @classmethod
    def from_tokens(cls, tokens: Iterable[str], **kwargs) -> GeneratorOptions:
        """Build options from ``--options`` tokens such as ``noindexes``.

        Raises:
            OptionError: If a token is not a recognized option.
        """
        flags: dict[str, bool] = {}
        for raw in tokens:
            token = raw.strip()
            if not token:
                continue
            if token not in OPTION_TOKENS:
                raise OptionError(token)
            flags[token] = True
        return cls(**kwargs, **flags)
