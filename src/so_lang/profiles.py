"""
Emission Profiles
=================

An emission profile selects the target dialect the code generator writes.
It is chosen once per compilation, before generation, and held for the
whole pass.

| Profile | Output        | Default file |
|---------|---------------|--------------|
| C       | plain C       | output.c     |
| RUST    | plain Rust    | output.rs    |
| ANCHOR  | Anchor Rust   | lib.rs       |
| NATIVE  | native Solana | program.rs   |

Selection
---------
A unit is domain-flavored when configuration forces it or when the
detection pass found a domain node. Domain units use the ANCHOR profile
when the anchor framework is requested and NATIVE otherwise. Generic
units use RUST when the rust target is requested and C otherwise.
"""

from enum import Enum, auto
from typing import Optional

from so_lang.analysis import UnitClassification


# Accepted values for CompilerOptions.target and CompilerOptions.framework
TARGETS = ("c", "rust")
FRAMEWORKS = ("anchor", "native")


class EmissionProfile(Enum):
    """Target dialects supported by the code generator."""
    C = auto()
    RUST = auto()
    ANCHOR = auto()
    NATIVE = auto()

    @property
    def is_domain(self) -> bool:
        """True for the Solana program profiles."""
        return self in (EmissionProfile.ANCHOR, EmissionProfile.NATIVE)

    @property
    def is_rust(self) -> bool:
        return self is not EmissionProfile.C

    @property
    def default_output(self) -> str:
        """Output filename used when none is given."""
        return DEFAULT_OUTPUTS[self]

    @property
    def framework_name(self) -> Optional[str]:
        """Human-readable framework for domain profiles."""
        if self is EmissionProfile.ANCHOR:
            return "Anchor"
        if self is EmissionProfile.NATIVE:
            return "Native Solana"
        return None


DEFAULT_OUTPUTS: dict[EmissionProfile, str] = {
    EmissionProfile.C: "output.c",
    EmissionProfile.RUST: "output.rs",
    EmissionProfile.ANCHOR: "lib.rs",
    EmissionProfile.NATIVE: "program.rs",
}


def select_profile(
    classification: UnitClassification,
    target: str = "c",
    framework: Optional[str] = None,
    force_domain: bool = False,
) -> EmissionProfile:
    """
    Choose the emission profile for a unit.

    Args:
        classification: Result of the detection pass
        target: "c" or "rust", used for generic units
        framework: "anchor" or "native" (None means native) for domain units
        force_domain: Treat the unit as domain-flavored regardless of detection

    Returns:
        The selected EmissionProfile
    """
    if force_domain or classification.is_domain:
        if framework == "anchor":
            return EmissionProfile.ANCHOR
        return EmissionProfile.NATIVE

    if target == "rust":
        return EmissionProfile.RUST
    return EmissionProfile.C
