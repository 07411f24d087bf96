"""Session identity: the values that decide whether the live engine is still valid."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from termchat.approval.decisions import ApprovalPolicy

if TYPE_CHECKING:
    from termchat.config.schema import Config


@dataclass(frozen=True)
class SessionIdentity:
    """Model, config snapshot, approval policy and writable roots.

    Equality ignores `approval_policy`: a policy change is applied to the
    live engine in place, every other change recreates the engine.
    """

    model: str
    config: Config
    approval_policy: ApprovalPolicy = field(default=ApprovalPolicy.SUGGEST, compare=False)
    writable_roots: tuple[str, ...] = ()

    @classmethod
    def from_config(
        cls,
        config: Config,
        *,
        model: str | None = None,
        approval_policy: ApprovalPolicy | None = None,
        writable_roots: tuple[str, ...] | None = None,
    ) -> SessionIdentity:
        return cls(
            model=model or config.model,
            config=config,
            approval_policy=approval_policy or ApprovalPolicy(config.approval_policy),
            writable_roots=(
                tuple(writable_roots) if writable_roots is not None else tuple(config.writable_roots)
            ),
        )

    def with_model(self, model: str) -> SessionIdentity:
        return replace(self, model=model)

    def with_policy(self, policy: ApprovalPolicy) -> SessionIdentity:
        return replace(self, approval_policy=policy)

    def with_writable_roots(self, roots: tuple[str, ...]) -> SessionIdentity:
        return replace(self, writable_roots=tuple(roots))

    def __hash__(self) -> int:
        # Config holds lists and is unhashable
        return hash((self.model, self.writable_roots))
