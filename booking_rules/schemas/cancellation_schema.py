"""Cancellation policy models."""

from decimal import Decimal
from enum import Enum
from typing import Union

from pydantic import BaseModel, Field, model_validator


class PolicyName(str, Enum):
    FLEXIBLE = "flexible"
    MODERATE = "moderate"
    STRICT = "strict"
    CUSTOM = "custom"


# (refund percentage, cutoff hours) for each named policy
NAMED_POLICY_TERMS: dict[PolicyName, tuple[Decimal, float]] = {
    PolicyName.FLEXIBLE: (Decimal("100"), 24.0),
    PolicyName.MODERATE: (Decimal("50"), 48.0),
    PolicyName.STRICT: (Decimal("0"), 72.0),
}


class CancellationPolicy(BaseModel):
    """Refund terms: the percentage returned when cancelling at least cutoff_hours ahead."""

    name: PolicyName
    refund_percentage: Decimal = Field(ge=0, le=100)
    cutoff_hours: float = Field(ge=0)

    @model_validator(mode="after")
    def _check_named_terms(self) -> "CancellationPolicy":
        terms = NAMED_POLICY_TERMS.get(self.name)
        if terms is not None and (self.refund_percentage, self.cutoff_hours) != terms:
            raise ValueError(
                f"The {self.name.value} policy has fixed terms: "
                f"{terms[0]}% refund with {terms[1]:g}h notice"
            )
        return self

    @classmethod
    def named(cls, name: PolicyName) -> "CancellationPolicy":
        if name not in NAMED_POLICY_TERMS:
            raise ValueError(f"'{name.value}' is not a named policy")
        refund, cutoff = NAMED_POLICY_TERMS[name]
        return cls(name=name, refund_percentage=refund, cutoff_hours=cutoff)

    @classmethod
    def flexible(cls) -> "CancellationPolicy":
        return cls.named(PolicyName.FLEXIBLE)

    @classmethod
    def moderate(cls) -> "CancellationPolicy":
        return cls.named(PolicyName.MODERATE)

    @classmethod
    def strict(cls) -> "CancellationPolicy":
        return cls.named(PolicyName.STRICT)

    @classmethod
    def custom(cls, refund_percentage: Union[Decimal, int], cutoff_hours: float) -> "CancellationPolicy":
        return cls(
            name=PolicyName.CUSTOM,
            refund_percentage=Decimal(refund_percentage),
            cutoff_hours=cutoff_hours,
        )
