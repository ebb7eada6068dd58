from __future__ import annotations

from dataclasses import dataclass, field

from ..domain import Asset, Bundle, SelectionEntry
from ..state import AppState


@dataclass
class PipelineContext:
    state: AppState
    requested: list[tuple[str, str]]
    target_symbol: str
    target: Asset | None = None
    selections: list[SelectionEntry] = field(default_factory=list)
    bundle: Bundle | None = None
    safe_url: str | None = None

    @property
    def target_required(self) -> Asset:
        if self.target is None:
            raise RuntimeError(
                "Target asset has not been set. Ensure resolve_selections() is called before accessing this property."
            )
        return self.target

    @property
    def bundle_required(self) -> Bundle:
        if self.bundle is None:
            raise RuntimeError(
                "Bundle has not been set. Ensure assemble_bundle() is called before accessing this property."
            )
        return self.bundle
