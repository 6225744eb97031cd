# File: gennetta/wizard.py
"""
GenNetta - Wizard State
=======================
The three-step flow a user goes through:

    connection → schema (pick tables) → generation

``WizardState`` holds what each step produced and decides which steps are
reachable, so the CLI and any UI share one set of gating rules.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, List, Optional, Sequence

from gennetta.connection import mask_connection_string
from gennetta.errors import TableLookupError, ValidationError
from gennetta.models import GenerationConfig, SchemaSnapshot

logger: logging.Logger = logging.getLogger("gennetta.wizard")


class WizardStep(str, Enum):
    CONNECTION = "connection"
    SCHEMA = "schema"
    GENERATION = "generation"


_STEP_ORDER: List[WizardStep] = [WizardStep.CONNECTION, WizardStep.SCHEMA, WizardStep.GENERATION]


class WizardState:
    """Mutable state of one wizard session."""

    def __init__(self) -> None:
        self._clear()

    def _clear(self) -> None:
        self.current_step: WizardStep = WizardStep.CONNECTION
        self.connection_string: Optional[str] = None
        self.snapshot: Optional[SchemaSnapshot] = None
        self.selected_tables: List[str] = []
        self.config: GenerationConfig = GenerationConfig()

    # -- Transitions ---------------------------------------------------------

    def connect(self, connection_string: str, snapshot: SchemaSnapshot) -> None:
        """
        Record a successful analysis and move to table selection.

        Only the masked connection string is kept.  A previous selection is
        dropped when the new snapshot no longer has those tables.
        """
        self.connection_string = mask_connection_string(connection_string)
        self.snapshot = snapshot
        self.selected_tables = [n for n in self.selected_tables if snapshot.get_table(n)]
        self.current_step = WizardStep.SCHEMA
        logger.info(
            "Wizard connected: %d table(s) available%s.",
            len(snapshot.tables),
            " (demo data)" if snapshot.is_demo else "",
        )

    def select_tables(
        self,
        names: Sequence[str],
        config: Optional[GenerationConfig] = None,
    ) -> None:
        """
        Store the selection (duplicates dropped, order kept) and move to generation.

        Raises:
            ValidationError: No schema yet, or an empty selection.
            TableLookupError: A name is not in the snapshot.
        """
        if self.snapshot is None:
            raise ValidationError("Connect to a database before selecting tables.")
        if not names:
            raise ValidationError("Select at least one table to generate.")

        unique: List[str] = list(dict.fromkeys(names))
        for name in unique:
            if self.snapshot.get_table(name) is None:
                raise TableLookupError(name, self.snapshot.table_names)

        self.selected_tables = unique
        if config is not None:
            self.config = config
        self.current_step = WizardStep.GENERATION
        logger.info("Wizard selection: %s.", ", ".join(unique))

    def go_to(self, step: WizardStep) -> None:
        """Jump to *step*; only reachable steps are allowed."""
        if not self.is_step_accessible(step):
            raise ValidationError(f"Step '{step.value}' is not available yet.")
        self.current_step = step

    def reset(self) -> None:
        """Forget everything and return to the connection step."""
        self._clear()
        logger.debug("Wizard reset.")

    # -- Gating --------------------------------------------------------------

    def is_step_completed(self, step: WizardStep) -> bool:
        if step is WizardStep.CONNECTION:
            return self.snapshot is not None
        if step is WizardStep.SCHEMA:
            return bool(self.selected_tables)
        return False

    def is_step_accessible(self, step: WizardStep) -> bool:
        """A step is reachable when every step before it is completed."""
        index: int = _STEP_ORDER.index(step)
        return all(self.is_step_completed(prev) for prev in _STEP_ORDER[:index])

    def progress(self) -> Dict[str, Dict[str, bool]]:
        return {
            step.value: {
                "current": step is self.current_step,
                "completed": self.is_step_completed(step),
                "accessible": self.is_step_accessible(step),
            }
            for step in _STEP_ORDER
        }


__all__: List[str] = ["WizardState", "WizardStep"]
