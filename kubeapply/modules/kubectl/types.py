"""
Option models and the dry-run enumeration for apply/delete calls.
"""

from enum import IntEnum
from typing import Union

from pydantic import BaseModel, ConfigDict, field_validator


class DryRunType(IntEnum):
    """
    Dry-run strategy passed to ``kubectl apply --dry-run``.

    String conversion is positional: the value indexes a fixed list, so the
    member order must never change.
    """

    NONE = 0
    CLIENT = 1
    SERVER = 2

    def __str__(self) -> str:
        return ["none", "client", "server"][self.value]

    @classmethod
    def coerce(cls, value: Union[bool, str, "DryRunType"]) -> "DryRunType":
        """
        Normalise a public dry-run value.

        ``True`` means a server-side dry-run, ``False`` means no dry-run.
        """
        # bool is an int subclass; handle it before IntEnum lookup would
        # turn True into CLIENT.
        if isinstance(value, bool):
            return cls.SERVER if value else cls.NONE
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for member in cls:
                if str(member) == value.lower():
                    return member
            raise ValueError(f"invalid dry-run mode: {value!r}")
        return cls(value)


class _DryRunOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    dry_run: DryRunType = DryRunType.NONE
    recursive: bool = False

    @field_validator("dry_run", mode="before")
    @classmethod
    def normalise_dry_run(cls, v):
        return DryRunType.coerce(v)


class ApplyManifestsOptions(_DryRunOptions):
    """Options for apply_manifests. ``dry_run=True`` is a server-side dry-run."""


class ApplyKustomizationOptions(_DryRunOptions):
    """Options for apply_kustomization. ``dry_run=True`` is a server-side dry-run."""


class ApplyOptions(_DryRunOptions):
    """How a single apply invocation should behave."""

    is_kustomization: bool = False


class DeleteOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_kustomization: bool = False
