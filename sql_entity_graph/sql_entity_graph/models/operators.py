"""Operator-class (btree) and hash-operator declarations.

Both are derived for a declared type and rely on support functions that
follow a naming convention: for a type ``Dog`` the btree class expects
``dog_cmp``, ``dog_lt`` and friends, the hash class expects ``dog_hash``.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from sql_entity_graph.models.base import EntityKind, GraphEntity


class _OperatorEntity(GraphEntity):
    name: str = Field(..., min_length=1)
    module_path: str
    full_path: str
    type_id: str = Field(..., min_length=1, description="Identity of the type the operators act on.")

    @property
    def qualified_identifier(self) -> str:
        return self.full_path

    def _fn_name(self, suffix: str) -> str:
        return f"{self.name.lower()}_{suffix}"


class OrdEntity(_OperatorEntity):
    """A ``CREATE OPERATOR CLASS ... USING btree`` for a type."""

    kind: Literal[EntityKind.ORD] = EntityKind.ORD

    def cmp_fn_name(self) -> str:
        return self._fn_name("cmp")

    def lt_fn_name(self) -> str:
        return self._fn_name("lt")

    def le_fn_name(self) -> str:
        return self._fn_name("le")

    def eq_fn_name(self) -> str:
        return self._fn_name("eq")

    def gt_fn_name(self) -> str:
        return self._fn_name("gt")

    def ge_fn_name(self) -> str:
        return self._fn_name("ge")

    def comparison_fn_names(self) -> tuple[str, ...]:
        return (
            self.cmp_fn_name(),
            self.lt_fn_name(),
            self.le_fn_name(),
            self.eq_fn_name(),
            self.gt_fn_name(),
            self.ge_fn_name(),
        )


class HashEntity(_OperatorEntity):
    """A ``CREATE OPERATOR CLASS ... USING hash`` for a type."""

    kind: Literal[EntityKind.HASH] = EntityKind.HASH

    def fn_name(self) -> str:
        return self._fn_name("hash")

    def eq_fn_name(self) -> str:
        # The hash class references the `=` operator, so it follows `{type}_eq`.
        return self._fn_name("eq")
